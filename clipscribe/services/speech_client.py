import asyncio
import logging
from pathlib import Path
from typing import Optional, Dict, Any, AsyncIterator
import aiofiles
import httpx
from ..errors import TranscriptionFailedError
from ..utils.helpers import truncate

logger = logging.getLogger(__name__)

UPLOAD_CHUNK_SIZE = 5 * 1024 * 1024


class SpeechClient:
    """Cliente da API de speech-to-text da AssemblyAI.

    Fluxo: upload do arquivo -> criação do transcript -> polling até o status
    ``completed`` ou ``error``. Não há timeout total do lado do cliente: o job
    espera o tempo que o provedor levar.
    """

    def __init__(
            self,
            api_key: Optional[str],
            base_url: str = "https://api.assemblyai.com",
            speech_model: str = "universal-2",
            poll_interval: float = 3.0,
            client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.speech_model = speech_model
        self.poll_interval = poll_interval

        self.client = client or httpx.AsyncClient(timeout=30.0)
        self.headers = {
            "Authorization": api_key or "",
            "User-Agent": "Clipscribe-Transcription/1.0"
        }

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _handle_error(self, e: httpx.HTTPError, context: str) -> None:
        """Loga e converte erro HTTP da AssemblyAI em erro de domínio"""
        if isinstance(e, httpx.HTTPStatusError):
            status_code = e.response.status_code
            error_text = truncate(e.response.text)
        else:
            status_code = "sem resposta"
            error_text = str(e) or type(e).__name__

        logger.error(f"[AssemblyAI] Erro em {context} | Status: {status_code} | Detalhes: {error_text}")
        raise TranscriptionFailedError(f"AssemblyAI error: {context} failed ({status_code}): {error_text}") from e

    def _parse_json(self, response: httpx.Response, context: str) -> Dict[str, Any]:
        """Corpo JSON da resposta; HTML de gateway ou lixo viram erro de domínio"""
        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"[AssemblyAI] Resposta inválida em {context} | Status: {response.status_code}")
            raise TranscriptionFailedError(
                f"AssemblyAI error: {context} returned invalid JSON: {truncate(response.text)}"
            ) from e

        if not isinstance(data, dict):
            raise TranscriptionFailedError(f"AssemblyAI error: {context} returned unexpected body: {truncate(response.text)}")
        return data

    async def _read_chunks(self, audio_path: Path) -> AsyncIterator[bytes]:
        async with aiofiles.open(audio_path, "rb") as f:
            while True:
                chunk = await f.read(UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk

    async def upload(self, audio_path: Path) -> str:
        """Envia o arquivo de áudio e retorna a upload_url da AssemblyAI"""
        url = f"{self.base_url}/v2/upload"
        try:
            response = await self.client.post(url, headers=self.headers, content=self._read_chunks(audio_path))
            response.raise_for_status()
        except httpx.HTTPError as e:
            await self._handle_error(e, "upload")

        upload_url = self._parse_json(response, "upload").get("upload_url")
        if not upload_url:
            raise TranscriptionFailedError("AssemblyAI error: upload did not return an upload_url")
        return upload_url

    async def create_transcript(self, audio_url: str) -> str:
        """Cria o transcript e retorna o ID na AssemblyAI"""
        url = f"{self.base_url}/v2/transcript"
        body = {
            "audio_url": audio_url,
            "speech_models": [self.speech_model]
        }

        try:
            response = await self.client.post(url, headers=self.headers, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            await self._handle_error(e, "create_transcript")

        transcript_id = self._parse_json(response, "create_transcript").get("id")
        if not transcript_id:
            raise TranscriptionFailedError("AssemblyAI error: transcript was created without an id")
        return transcript_id

    async def get_transcript(self, transcript_id: str) -> Dict[str, Any]:
        """Consulta o transcript pelo ID"""
        url = f"{self.base_url}/v2/transcript/{transcript_id}"

        try:
            response = await self.client.get(url, headers=self.headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            await self._handle_error(e, f"get_transcript({transcript_id})")

        return self._parse_json(response, f"get_transcript({transcript_id})")

    async def wait_for_transcript(self, transcript_id: str) -> Dict[str, Any]:
        while True:
            result = await self.get_transcript(transcript_id)
            status = result.get("status")

            if status in ("completed", "error"):
                return result

            logger.debug(f"[AssemblyAI] Transcript {transcript_id} em '{status}', aguardando")
            await asyncio.sleep(self.poll_interval)

    async def transcribe(self, audio_path: Path) -> str:
        """Transcreve o arquivo e retorna o texto (pode ser vazio).

        Raises:
            TranscriptionFailedError: erro de rede/HTTP ou status 'error' do provedor
        """
        if not self.configured:
            raise TranscriptionFailedError("AssemblyAI error: ASSEMBLYAI_API_KEY is not configured")

        audio_url = await self.upload(audio_path)
        transcript_id = await self.create_transcript(audio_url)
        logger.info(f"[AssemblyAI] Transcript {transcript_id} criado para {Path(audio_path).name}")

        result = await self.wait_for_transcript(transcript_id)
        if result.get("status") == "error":
            raise TranscriptionFailedError(f"AssemblyAI error: {result.get('error') or 'unknown error'}")

        return result.get("text") or ""

    async def close(self):
        """Fecha o cliente HTTP"""
        await self.client.aclose()
