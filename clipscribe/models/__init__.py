from .transcription import TranscriptionRequest, TranscriptionResponse
from .job import Job, JobStatus, TERMINAL_STATUSES, can_transition, is_terminal

__all__ = [
    "TranscriptionRequest",
    "TranscriptionResponse",
    "Job",
    "JobStatus",
    "TERMINAL_STATUSES",
    "can_transition",
    "is_terminal"
]
