from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, Dict, Any, FrozenSet, Set, Tuple
from enum import Enum


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    DOWNLOADING = "downloading"
    TRANSCRIBING = "transcribing"
    COMPLETED = "completed"
    FAILED = "failed"


TERMINAL_STATUSES: FrozenSet[JobStatus] = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})

# Caminho feliz: queued -> processing -> downloading -> transcribing -> completed
_TRANSITIONS: Set[Tuple[JobStatus, JobStatus]] = {
    (JobStatus.QUEUED, JobStatus.PROCESSING),
    (JobStatus.PROCESSING, JobStatus.DOWNLOADING),
    (JobStatus.DOWNLOADING, JobStatus.TRANSCRIBING),
    (JobStatus.TRANSCRIBING, JobStatus.COMPLETED),
    # Qualquer estado não terminal pode falhar
    (JobStatus.QUEUED, JobStatus.FAILED),
    (JobStatus.PROCESSING, JobStatus.FAILED),
    (JobStatus.DOWNLOADING, JobStatus.FAILED),
    (JobStatus.TRANSCRIBING, JobStatus.FAILED),
}


def is_terminal(status: JobStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: JobStatus, target: JobStatus) -> bool:
    """Verifica se a transição de status é permitida (nunca regride)"""
    if current == target:
        return not is_terminal(current)
    return (current, target) in _TRANSITIONS


class Job(BaseModel):
    """Registro de um job de transcrição mantido em memória.

    Os campos são serializados em camelCase (``jobId``, ``createdAt``...),
    o mesmo formato usado nas respostas HTTP e no payload do callback.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    job_id: str
    url: str
    callback_url: Optional[str] = None
    status: JobStatus = JobStatus.QUEUED
    created_at: str
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    failed_at: Optional[str] = None
    transcript: Optional[str] = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _check_outcome(self) -> "Job":
        if self.status == JobStatus.COMPLETED:
            if self.transcript is None or self.error is not None:
                raise ValueError("job concluído exige transcript e nenhum error")
        elif self.status == JobStatus.FAILED:
            if not self.error or self.transcript is not None:
                raise ValueError("job com falha exige error e nenhum transcript")
        elif self.transcript is not None or self.error is not None:
            raise ValueError(f"job em '{self.status.value}' não pode ter transcript nem error")
        return self

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    def to_dict(self) -> Dict[str, Any]:
        """Snapshot público do job (camelCase, sem campos vazios)"""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")

    def callback_payload(self) -> Dict[str, Any]:
        """Payload enviado ao callbackUrl quando o job termina"""
        payload: Dict[str, Any] = {
            "jobId": self.job_id,
            "url": self.url,
            "status": self.status.value,
        }
        if self.status == JobStatus.COMPLETED:
            payload["transcript"] = self.transcript
            payload["completedAt"] = self.completed_at
        elif self.status == JobStatus.FAILED:
            payload["error"] = self.error
            payload["failedAt"] = self.failed_at
        return payload
