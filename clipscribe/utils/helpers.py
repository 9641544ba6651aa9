import secrets
import string
import time
from datetime import datetime, timezone

_JOB_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_job_id() -> str:
    """Gera ID único para job: job_<epoch ms>_<9 caracteres base36>"""
    suffix = "".join(secrets.choice(_JOB_ID_ALPHABET) for _ in range(9))
    return f"job_{int(time.time() * 1000)}_{suffix}"


def utc_now_iso() -> str:
    """Timestamp ISO-8601 em UTC, com milissegundos e sufixo Z"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def truncate(text: str, limit: int = 500) -> str:
    """Corta mensagens longas (stderr do yt-dlp, respostas de erro)"""
    text = text.strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
