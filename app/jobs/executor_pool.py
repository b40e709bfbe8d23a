"""Thread-pool job dispatcher.

Ghostscript blocks for up to the tool timeout per attempt, so every job
runs on a bounded ThreadPoolExecutor instead of the asyncio event loop.
Jobs in different requests run in parallel; attempts within one job run
sequentially on its worker thread.
"""

import asyncio
import logging
import threading
import traceback
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Callable, Dict, List, Optional

from app.jobs.dispatcher import AbandonCallback, JobDispatcher
from app.jobs.models import JobStatus, ShrinkJob
from app.processing.convergence import ShrinkResult

logger = logging.getLogger(__name__)


class ExecutorPoolDispatcher(JobDispatcher):
    """Runs jobs on a fixed-size thread pool and tracks them while in flight."""

    def __init__(self, worker_fn: Callable[[ShrinkJob], ShrinkResult], max_workers: int = 4):
        """
        worker_fn: callable(job: ShrinkJob) -> ShrinkResult
            Synchronous function that does the work (the convergence loop).
        """
        self._worker_fn = worker_fn
        self._max_workers = max_workers
        self._executor: Optional[ThreadPoolExecutor] = None
        self._jobs: Dict[str, ShrinkJob] = {}
        self._lock = threading.Lock()

    async def run(
        self, job: ShrinkJob, on_abandon: Optional[AbandonCallback] = None
    ) -> ShrinkResult:
        if self._executor is None:
            raise RuntimeError("Dispatcher not started")
        with self._lock:
            self._jobs[job.id] = job
        future = self._executor.submit(self._run_job, job)
        try:
            return await asyncio.wrap_future(future)
        except asyncio.CancelledError:
            if future.cancel():
                # Never started: _run_job won't run, so forget the job here
                with self._lock:
                    self._jobs.pop(job.id, None)
                job.status = JobStatus.FAILED
                job.error = "Cancelled before start"
                if on_abandon is not None:
                    on_abandon(job)
            elif on_abandon is not None:
                # Already running: it finishes on its own, then gets cleaned up
                future.add_done_callback(lambda _: on_abandon(job))
            raise

    def _run_job(self, job: ShrinkJob) -> ShrinkResult:
        """Worker-thread side. Status is recorded here, not in run(), so a job
        whose caller went away still finishes and records its outcome."""
        job.status = JobStatus.RUNNING
        job.started_at = datetime.utcnow()
        try:
            result = self._worker_fn(job)
        except Exception as e:
            job.status = JobStatus.FAILED
            job.error = f"{type(e).__name__}: {str(e)}\n{traceback.format_exc()}"
            raise
        else:
            job.status = JobStatus.COMPLETED
            return result
        finally:
            job.completed_at = datetime.utcnow()
            with self._lock:
                self._jobs.pop(job.id, None)
            logger.info(
                "[%s] job %s in %.1fs%s",
                job.id,
                job.status.value,
                (job.completed_at - job.started_at).total_seconds(),
                f": {job.error.splitlines()[0]}" if job.error else "",
            )

    def active_jobs(self) -> List[ShrinkJob]:
        with self._lock:
            return list(self._jobs.values())

    def active_count(self) -> int:
        with self._lock:
            return len(self._jobs)

    async def start(self) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self._max_workers, thread_name_prefix="shrink"
            )

    async def stop(self) -> None:
        if self._executor is not None:
            # Jobs already running finish; queued ones are cancelled and
            # their callers clean up through the CancelledError path in run()
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None
