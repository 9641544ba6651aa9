"""Orquestração do pipeline de cada job.

Sequência por job (sempre nesta ordem):

* ``queued -> processing -> downloading``: cria o diretório temporário e
  baixa o áudio com o yt-dlp;
* ``downloading -> transcribing``: envia o áudio para a AssemblyAI;
* ``transcribing -> completed`` com o transcript, ou ``failed`` com o erro
  a partir de qualquer etapa.

Independente do resultado, o diretório temporário é removido, o callback
(se houver) é notificado e a remoção do job do registro é agendada.
Nenhuma etapa é repetida: a primeira falha é definitiva.
"""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Set
from ..errors import ClipscribeError, CleanupFailedError, JobNotFoundError
from ..models.job import Job, JobStatus
from ..utils.helpers import utc_now_iso
from .callback_notifier import CallbackNotifier
from .file_handler import FileHandler
from .job_registry import JobRegistry
from .scheduler import EvictionScheduler
from .speech_client import SpeechClient
from .url_downloader import URLDownloader

logger = logging.getLogger(__name__)


class JobPipeline:
    def __init__(
            self,
            registry: JobRegistry,
            file_handler: FileHandler,
            downloader: URLDownloader,
            speech_client: SpeechClient,
            notifier: CallbackNotifier,
            scheduler: EvictionScheduler
    ):
        self.registry = registry
        self.file_handler = file_handler
        self.downloader = downloader
        self.speech_client = speech_client
        self.notifier = notifier
        self.scheduler = scheduler
        self._tasks: Set[asyncio.Task] = set()

    def submit(self, job_id: str) -> asyncio.Task:
        """Dispara o pipeline em background e retorna sem esperar"""
        task = asyncio.create_task(self.run(job_id), name=f"pipeline-{job_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, job_id: str) -> Optional[Job]:
        """Executa o pipeline completo de um job e retorna o registro final"""
        job = self.registry.get(job_id)
        if job is None:
            logger.error(f"[{job_id}] Job não encontrado, pipeline ignorado")
            return None

        workspace = self.file_handler.workspace_path(job_id)
        try:
            job = await self._execute(job)
        except asyncio.CancelledError:
            logger.warning(f"[{job_id}] Pipeline cancelado")
            raise
        except JobNotFoundError:
            logger.error(f"[{job_id}] Job removido durante o processamento")
            return None
        except Exception as e:
            # Erros inesperados também terminam o job, nunca o processo
            logger.exception(f"[{job_id}] Erro inesperado no pipeline")
            current = self.registry.get(job_id)
            if current is None:
                return None
            job = current if current.is_terminal else self._fail(job_id, str(e) or type(e).__name__)
        finally:
            self._cleanup(job_id, workspace)

        try:
            if job.callback_url:
                await self.notifier.notify(job.callback_url, job)
        finally:
            self.scheduler.schedule(job_id)
        return job

    async def _execute(self, job: Job) -> Job:
        job_id = job.job_id

        self.registry.update(job_id, status=JobStatus.PROCESSING, started_at=utc_now_iso())
        self.registry.update(job_id, status=JobStatus.DOWNLOADING)

        try:
            workspace = self.file_handler.create_workspace(job_id)

            logger.info(f"[{job_id}] Baixando: {job.url}")
            audio_path = await self.downloader.download(job.url, workspace)

            logger.info(f"[{job_id}] Transcrevendo com AssemblyAI...")
            self.registry.update(job_id, status=JobStatus.TRANSCRIBING)
            transcript = await self.speech_client.transcribe(audio_path)
        except (ClipscribeError, OSError) as e:
            logger.error(f"[{job_id}] Erro: {e}")
            return self._fail(job_id, str(e))

        completed = self.registry.update(
            job_id,
            status=JobStatus.COMPLETED,
            transcript=transcript,
            completed_at=utc_now_iso()
        )
        logger.info(f"[{job_id}] Sucesso: {len(transcript)} caracteres")
        return completed

    def _fail(self, job_id: str, message: str) -> Job:
        return self.registry.update(
            job_id,
            status=JobStatus.FAILED,
            error=message or "Unknown error",
            failed_at=utc_now_iso()
        )

    def _cleanup(self, job_id: str, workspace: Path) -> None:
        try:
            self.file_handler.remove_workspace(workspace)
        except CleanupFailedError as e:
            logger.warning(f"[{job_id}] {e}")

    async def shutdown(self) -> None:
        """Cancela os pipelines em andamento (encerramento do processo)"""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
