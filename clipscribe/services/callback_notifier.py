import logging
from typing import Optional
import httpx
from ..errors import NotificationFailedError
from ..models.job import Job

logger = logging.getLogger(__name__)


class CallbackNotifier:
    """Entrega o resultado final do job no callbackUrl do cliente.

    Melhor esforço: uma única tentativa, sem retry. Falhas são logadas e não
    alteram o status do job, que já foi definido pelo pipeline.
    """

    def __init__(self, timeout: float = 30.0, client: Optional[httpx.AsyncClient] = None):
        self.client = client or httpx.AsyncClient(
            headers={
                "Content-Type": "application/json",
                "User-Agent": "Clipscribe-Transcription/1.0"
            },
            timeout=timeout
        )

    async def send(self, callback_url: str, job: Job) -> None:
        """POST do payload final no callback.

        Raises:
            NotificationFailedError: erro de rede, timeout ou resposta não-2xx
        """
        try:
            response = await self.client.post(callback_url, json=job.callback_payload())
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            status_code = e.response.status_code if isinstance(e, httpx.HTTPStatusError) else "sem resposta"
            raise NotificationFailedError(f"Callback para {callback_url} falhou (status: {status_code}): {e}") from e

    async def notify(self, callback_url: str, job: Job) -> bool:
        try:
            await self.send(callback_url, job)
        except NotificationFailedError as e:
            logger.error(f"[{job.job_id}] {e}")
            return False

        logger.info(f"[{job.job_id}] Callback enviado para {callback_url}")
        return True

    async def close(self):
        """Fecha o cliente HTTP"""
        await self.client.aclose()
