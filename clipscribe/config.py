import os
import tempfile
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel


class Settings(BaseModel):
    """Configuração do processo, lida das variáveis de ambiente"""

    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]

    assemblyai_api_key: Optional[str] = None
    assemblyai_base_url: str = "https://api.assemblyai.com"
    assemblyai_speech_model: str = "universal-2"
    transcript_poll_interval: float = 3.0

    scratch_dir: Path = Path(tempfile.gettempdir())
    ytdlp_binary: str = "yt-dlp"
    download_timeout: float = 300.0  # 5 min

    callback_timeout: float = 30.0
    job_retention_seconds: float = 60 * 60  # 1 hora

    @classmethod
    def from_env(cls) -> "Settings":
        env = {
            "host": os.getenv("HOST"),
            "port": os.getenv("PORT"),
            "log_level": os.getenv("LOG_LEVEL"),
            "assemblyai_api_key": os.getenv("ASSEMBLYAI_API_KEY") or None,
            "assemblyai_base_url": os.getenv("ASSEMBLYAI_BASE_URL"),
            "assemblyai_speech_model": os.getenv("ASSEMBLYAI_SPEECH_MODEL"),
            "transcript_poll_interval": os.getenv("TRANSCRIPT_POLL_INTERVAL"),
            "scratch_dir": os.getenv("SCRATCH_DIR"),
            "ytdlp_binary": os.getenv("YTDLP_BINARY"),
            "download_timeout": os.getenv("DOWNLOAD_TIMEOUT"),
            "callback_timeout": os.getenv("CALLBACK_TIMEOUT"),
            "job_retention_seconds": os.getenv("JOB_RETENTION_SECONDS"),
        }
        cors_origins = os.getenv("CORS_ORIGINS")
        if cors_origins:
            env["cors_origins"] = [origin.strip() for origin in cors_origins.split(",") if origin.strip()]

        # Variáveis ausentes ficam com o default do modelo
        return cls(**{key: value for key, value in env.items() if value is not None})
