from fastapi import APIRouter, HTTPException, Request, Depends
import logging
from ...models.job import Job
from ...models.transcription import TranscriptionRequest, TranscriptionResponse
from ...services.job_registry import JobRegistry
from ...services.pipeline import JobPipeline
from ...utils.helpers import generate_job_id, utc_now_iso
from ...utils.validators import validate_url, validate_callback_url

router = APIRouter()
logger = logging.getLogger(__name__)


def get_registry(request: Request) -> JobRegistry:
    return request.app.state.registry


def get_pipeline(request: Request) -> JobPipeline:
    return request.app.state.pipeline


@router.post("/transcribe", response_model=TranscriptionResponse)
async def create_transcription(
        transcription_request: TranscriptionRequest,
        registry: JobRegistry = Depends(get_registry),
        pipeline: JobPipeline = Depends(get_pipeline)
):
    """Cria o job e responde imediatamente; o pipeline roda em background"""

    for error in (validate_url(transcription_request.url), validate_callback_url(transcription_request.callback_url)):
        if error:
            raise HTTPException(status_code=400, detail=error)

    url = transcription_request.url.strip()
    callback_url = transcription_request.callback_url.strip() if transcription_request.callback_url else None
    job_id = generate_job_id()

    try:
        registry.create(Job(
            job_id=job_id,
            url=url,
            callback_url=callback_url,
            created_at=utc_now_iso()
        ))
        logger.info(f"[{job_id}] Job criado para URL: {url}")

        # Não aguardar: a resposta sai antes de qualquer transição do pipeline
        pipeline.submit(job_id)

    except Exception as e:
        logger.error(f"[{job_id}] Erro ao criar job: {str(e)}")
        registry.delete(job_id)
        raise HTTPException(status_code=500, detail="Internal server error")

    return TranscriptionResponse(
        status="queued",
        job_id=job_id,
        url=url,
        message="Job queued for processing"
    )


@router.get("/job/{job_id}")
async def get_job_status(job_id: str, registry: JobRegistry = Depends(get_registry)):
    """Consulta o snapshot atual de um job"""
    job = registry.get(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail="Job not found")

    return job.to_dict()


@router.get("/jobs")
async def list_jobs(registry: JobRegistry = Depends(get_registry)):
    """Lista todos os jobs em memória (para inspeção/debug)"""
    jobs = [job.to_dict() for job in registry.list_all()]
    return {
        "total": len(jobs),
        "jobs": jobs
    }
