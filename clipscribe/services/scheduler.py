import asyncio
import logging
from typing import Awaitable, Callable, Dict, List, Optional
from .job_registry import JobRegistry

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[None]]


class EvictionScheduler:
    """Remove jobs do registro depois do período de retenção.

    Cada job ganha uma task única (timer one-shot). O ``sleep`` é injetável
    para que os testes controlem o relógio; ``shutdown`` cancela os timers
    pendentes quando o processo encerra.
    """

    def __init__(self, registry: JobRegistry, retention_seconds: float = 3600, sleep: Optional[SleepFunc] = None):
        self.registry = registry
        self.retention_seconds = retention_seconds
        self._sleep = sleep or asyncio.sleep
        self._timers: Dict[str, asyncio.Task] = {}

    def schedule(self, job_id: str, delay: Optional[float] = None) -> asyncio.Task:
        """Agenda a remoção do job; reagendar substitui o timer anterior"""
        self.cancel(job_id)

        delay = self.retention_seconds if delay is None else delay
        task = asyncio.create_task(self._evict_later(job_id, delay), name=f"evict-{job_id}")
        self._timers[job_id] = task
        return task

    async def _evict_later(self, job_id: str, delay: float) -> None:
        try:
            await self._sleep(delay)
            if self.registry.delete(job_id):
                logger.info(f"[{job_id}] Job removido após {delay:.0f}s de retenção")
        finally:
            if self._timers.get(job_id) is asyncio.current_task():
                del self._timers[job_id]

    def cancel(self, job_id: str) -> bool:
        task = self._timers.pop(job_id, None)
        if task is None:
            return False
        task.cancel()
        return True

    def pending(self) -> List[str]:
        return list(self._timers)

    async def shutdown(self) -> None:
        """Cancela todos os timers pendentes"""
        tasks = list(self._timers.values())
        self._timers.clear()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
