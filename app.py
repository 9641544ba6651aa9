from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from typing import Optional
import logging
import uvicorn
from clipscribe import __version__
from clipscribe.api.routes import transcription
from clipscribe.config import Settings
from clipscribe.services import (
    CallbackNotifier,
    EvictionScheduler,
    FileHandler,
    JobPipeline,
    JobRegistry,
    SpeechClient,
    URLDownloader,
)
from clipscribe.utils.helpers import utc_now_iso

logger = logging.getLogger("clipscribe")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(settings.log_level)

        # Registro em memória + serviços do pipeline
        registry = JobRegistry()
        file_handler = FileHandler(settings.scratch_dir)
        downloader = URLDownloader(file_handler, binary=settings.ytdlp_binary, timeout=settings.download_timeout)
        speech_client = SpeechClient(
            api_key=settings.assemblyai_api_key,
            base_url=settings.assemblyai_base_url,
            speech_model=settings.assemblyai_speech_model,
            poll_interval=settings.transcript_poll_interval
        )
        notifier = CallbackNotifier(timeout=settings.callback_timeout)
        scheduler = EvictionScheduler(registry, retention_seconds=settings.job_retention_seconds)
        pipeline = JobPipeline(registry, file_handler, downloader, speech_client, notifier, scheduler)

        app.state.settings = settings
        app.state.registry = registry
        app.state.scheduler = scheduler
        app.state.pipeline = pipeline

        logger.info(f"✅ Transcription worker pronto na porta {settings.port}")
        logger.info(f"AssemblyAI configurado: {'Sim' if speech_client.configured else 'Não'}")

        yield

        # Cleanup
        await pipeline.shutdown()
        await scheduler.shutdown()
        await pipeline.speech_client.close()
        await pipeline.notifier.close()

    app = FastAPI(
        title="Clipscribe - Transcription Worker",
        description="Baixa o áudio de uma URL e transcreve com AssemblyAI em background",
        version=__version__,
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(transcription.router, tags=["transcription"])

    @app.get("/")
    async def root():
        return {"message": "Clipscribe Transcription Worker is running"}

    @app.get("/health")
    async def health_check():
        return {
            "status": "ok",
            "timestamp": utc_now_iso(),
            "activeJobs": app.state.registry.count()
        }

    return app


app = create_app()

if __name__ == "__main__":
    settings = Settings.from_env()
    uvicorn.run(
        "app:app",
        host=settings.host,
        port=settings.port
    )
