from typing import Optional
from urllib.parse import urlparse

ALLOWED_CALLBACK_SCHEMES = {"http", "https"}


def validate_url(url: Optional[str]) -> Optional[str]:
    """Valida a URL de origem; retorna mensagem de erro ou None se válida.

    Qualquer texto não vazio é aceito: o yt-dlp decide se sabe extrair a mídia.
    """
    if url is None or not url.strip():
        return "URL required"
    return None


def validate_callback_url(callback_url: Optional[str]) -> Optional[str]:
    """Valida o webhook opcional; precisa ser uma URL http(s) absoluta"""
    if callback_url is None:
        return None

    parsed = urlparse(callback_url.strip())
    if parsed.scheme.lower() not in ALLOWED_CALLBACK_SCHEMES or not parsed.netloc:
        return "callbackUrl must be an absolute http(s) URL"
    return None
