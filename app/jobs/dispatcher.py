"""Job dispatcher interface."""

from abc import ABC, abstractmethod
from typing import Callable, List, Optional

from app.jobs.models import ShrinkJob
from app.processing.convergence import ShrinkResult

# Called with the job once its caller has gone away and the job can no
# longer touch its files (never started, or finished running)
AbandonCallback = Callable[[ShrinkJob], None]


class JobDispatcher(ABC):
    """Abstract interface for running shrink jobs off the event loop."""

    @abstractmethod
    async def run(
        self, job: ShrinkJob, on_abandon: Optional[AbandonCallback] = None
    ) -> ShrinkResult:
        """Run a job to completion and return its result."""
        ...

    @abstractmethod
    def active_jobs(self) -> List[ShrinkJob]:
        """Jobs pending or running."""
        ...

    @abstractmethod
    def active_count(self) -> int:
        """Number of jobs pending or running."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start the dispatcher (e.g., create the worker pool)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Stop the dispatcher gracefully."""
        ...
