import logging
from typing import Dict, List, Optional, Any
from ..errors import JobNotFoundError, InvalidStateTransitionError
from ..models.job import Job, JobStatus, can_transition

logger = logging.getLogger(__name__)


class JobRegistry:
    """Registro em memória dos jobs (fonte da verdade do estado).

    Os jobs são modelos imutáveis: ``update`` cria um novo snapshot validado e
    substitui o anterior, então quem lê nunca vê um registro pela metade.
    Só o pipeline dono do job escreve nele. Nada é persistido: um restart do
    processo perde todos os jobs.
    """

    def __init__(self):
        self._jobs: Dict[str, Job] = {}

    def create(self, job: Job) -> Job:
        if job.job_id in self._jobs:
            raise ValueError(f"Job com ID '{job.job_id}' já existe")

        self._jobs[job.job_id] = job
        return job

    def get(self, job_id: str) -> Optional[Job]:
        return self._jobs.get(job_id)

    def update(self, job_id: str, **patch: Any) -> Job:
        """Aplica ``patch`` ao job e retorna o novo snapshot.

        Raises:
            JobNotFoundError: se o job não existe (ou já foi removido)
            InvalidStateTransitionError: se o novo status regride ou sai de um estado terminal
        """
        current = self._jobs.get(job_id)
        if current is None:
            raise JobNotFoundError(job_id)

        target = JobStatus(patch.get("status", current.status))
        if current.is_terminal or not can_transition(current.status, target):
            raise InvalidStateTransitionError(job_id, current.status.value, target.value)

        data = current.model_dump()
        data.update(patch)
        updated = Job.model_validate(data)

        self._jobs[job_id] = updated
        if target != current.status:
            logger.debug(f"[{job_id}] {current.status.value} -> {target.value}")
        return updated

    def delete(self, job_id: str) -> bool:
        """Remove o job; retorna False se ele não existia"""
        return self._jobs.pop(job_id, None) is not None

    def list_all(self) -> List[Job]:
        """Snapshot de todos os jobs, do mais antigo para o mais novo"""
        return list(self._jobs.values())

    def count(self) -> int:
        return len(self._jobs)

    def __contains__(self, job_id: str) -> bool:
        return job_id in self._jobs
