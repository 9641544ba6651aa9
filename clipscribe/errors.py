"""Erros de domínio do worker de transcrição.

Apenas a validação da requisição chega ao cliente HTTP de forma síncrona.
Falhas do pipeline (download, transcrição) ficam registradas no campo
``error`` do job; falhas de callback e de limpeza são apenas logadas.
"""


class ClipscribeError(Exception):
    """Base para todos os erros do serviço"""


class JobNotFoundError(ClipscribeError):
    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Job not found: {job_id}")


class InvalidStateTransitionError(ClipscribeError):
    def __init__(self, job_id: str, current: str, target: str):
        self.job_id = job_id
        self.current = current
        self.target = target
        super().__init__(f"Invalid status transition for {job_id}: {current} -> {target}")


class DownloadFailedError(ClipscribeError):
    """yt-dlp saiu com erro, estourou o timeout ou não gerou o áudio"""


class TranscriptionFailedError(ClipscribeError):
    """Erro de rede/HTTP ou status 'error' retornado pelo provedor"""


class NotificationFailedError(ClipscribeError):
    """Falha ao entregar o callback"""


class CleanupFailedError(ClipscribeError):
    """Falha ao remover o diretório temporário do job"""
