import asyncio
import os
import signal
import logging
from pathlib import Path
from typing import List
from ..errors import DownloadFailedError
from ..utils.helpers import truncate
from .file_handler import FileHandler

logger = logging.getLogger(__name__)

NO_AUDIO_MESSAGE = "Audio file was not created. Video may be private or unavailable."
KILL_GRACE_SECONDS = 5.0


class URLDownloader:
    """Baixa a mídia de uma URL e extrai o áudio usando o yt-dlp.

    O yt-dlp roda como subprocesso com lista de argumentos (sem shell), então
    a URL nunca é interpretada pelo shell.
    """

    def __init__(self, file_handler: FileHandler, binary: str = "yt-dlp", timeout: float = 300.0):
        self.file_handler = file_handler
        self.binary = binary
        self.timeout = timeout

    def build_command(self, url: str, workspace: Path) -> List[str]:
        output_template = str(workspace / "audio.%(ext)s")
        return [
            self.binary,
            "-x",
            "--audio-format", "mp3",
            "--audio-quality", "0",
            "-o", output_template,
            "--",
            url,
        ]

    async def download(self, url: str, workspace: Path) -> Path:
        """Download do áudio para ``workspace``; retorna o caminho do arquivo.

        Raises:
            DownloadFailedError: saída diferente de zero, timeout ou nenhum áudio gerado
        """
        command = self.build_command(url, workspace)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                # Grupo próprio: o kill alcança também os filhos (ffmpeg)
                start_new_session=True,
            )
        except OSError as e:
            raise DownloadFailedError(f"Download failed: could not run {self.binary}: {e}") from e

        try:
            _, stderr = await asyncio.wait_for(process.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._kill_process_group(process)
            await self._reap(process)
            raise DownloadFailedError(f"Download failed: timed out after {self.timeout:.0f}s")
        except BaseException:
            # Cancelamento do pipeline: o yt-dlp não pode sobreviver à task
            self._kill_process_group(process)
            raise

        if process.returncode != 0:
            detail = truncate(stderr.decode(errors="replace")) or "no output"
            raise DownloadFailedError(f"Download failed: {self.binary} exited with code {process.returncode}: {detail}")

        # O yt-dlp pode escolher outra extensão; nesse caso procurar no diretório
        audio_path = workspace / "audio.mp3"
        if not audio_path.is_file():
            found = self.file_handler.find_audio_file(workspace)
            if found is None:
                raise DownloadFailedError(NO_AUDIO_MESSAGE)
            audio_path = found

        info = self.file_handler.get_file_info(audio_path)
        logger.info(f"Áudio extraído: {audio_path.name} ({info.get('size', 0)} bytes)")
        return audio_path

    def _kill_process_group(self, process: asyncio.subprocess.Process) -> None:
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass

    async def _reap(self, process: asyncio.subprocess.Process) -> None:
        """Espera o fim do processo morto, sem passar de KILL_GRACE_SECONDS"""
        try:
            await asyncio.wait_for(process.wait(), timeout=KILL_GRACE_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"{self.binary} (pid {process.pid}) não terminou após SIGKILL")
