"""Iterative size convergence: run Ghostscript until the output fits the budget.

Candidates are tried strictly in order against the original input, each
successful one replacing the previous attempt's file. The loop stops when
a candidate fits, when the sequence runs out, or on the first tool
failure (no retry and no further candidates). Whatever file is on disk at
that point is the result: the last good attempt wins, not the smallest.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Protocol

from app.errors import GenerationError, JobValidationError
from app.jobs.models import ShrinkJob, ShrinkMode
from app.processing import size_probe
from app.processing.ghostscript import ToolOutcome
from app.processing.sequencer import ParameterSet, plan_parameters
from app.storage.workspace import candidate_output

logger = logging.getLogger(__name__)


class ToolRunner(Protocol):
    def run(
        self, params: ParameterSet, input_path: str, output_path: str
    ) -> ToolOutcome: ...


class StopReason(str, Enum):
    SATISFIED = "satisfied"        # a candidate met the budget
    EXHAUSTED = "exhausted"        # every candidate tried, none met the budget
    TOOL_FAILURE = "tool_failure"  # Ghostscript failed, loop aborted
    SINGLE_SHOT = "single_shot"    # quality mode, no budget to check


@dataclass(frozen=True)
class Candidate:
    """One attempt: the parameters used and the size produced (None if no file)."""
    params: ParameterSet
    size_bytes: Optional[int]


@dataclass
class ShrinkResult:
    final_path: str
    original_size_bytes: int
    final_size_bytes: int
    met_budget: bool
    stop_reason: StopReason
    candidates: List[Candidate] = field(default_factory=list)

    @property
    def original_kb(self) -> int:
        return size_probe.size_kb(self.original_size_bytes)

    @property
    def final_kb(self) -> int:
        return size_probe.size_kb(self.final_size_bytes)


def validate_job(job: ShrinkJob) -> None:
    """Reject mode/target/quality combinations before any tool runs."""
    if job.target_kb is not None and job.target_kb <= 0:
        raise JobValidationError("targetKb must be a positive integer")
    if job.quality is not None and not 0 <= job.quality <= 100:
        raise JobValidationError("quality must be between 0 and 100")
    if job.mode == ShrinkMode.RESIZE and job.target_kb is None:
        raise JobValidationError("Target size is required for resizing")


class ConvergenceController:
    """Drives the sequencer, the tool runner and the size probe for one job at a time."""

    def __init__(self, runner: ToolRunner):
        self._runner = runner

    def run(self, job: ShrinkJob) -> ShrinkResult:
        """Shrink job.input_path into job.output_path.

        Raises:
            JobValidationError: invalid job, nothing was run.
            GenerationError: no output file exists when the loop ends.
        """
        validate_job(job)
        plan = plan_parameters(job.mode, quality=job.quality, target_kb=job.target_kb)

        original_size = size_probe.size_bytes(job.input_path)
        if original_size is None:
            raise GenerationError(f"Input file missing: {job.input_path}")

        candidates: List[Candidate] = []
        stop_reason = StopReason.EXHAUSTED

        with candidate_output(job.output_path) as slot:
            for params in plan:
                attempt_path = slot.begin()
                outcome = self._runner.run(params, job.input_path, attempt_path)
                if not outcome.ok:
                    slot.abort()
                    logger.error(
                        "[%s] Ghostscript %s (exit %s) at %s: %s",
                        job.id,
                        outcome.status.value,
                        outcome.exit_code,
                        params.describe(),
                        outcome.diagnostics,
                    )
                    stop_reason = StopReason.TOOL_FAILURE
                    break

                slot.commit()
                produced = size_probe.size_bytes(slot.path)
                candidates.append(Candidate(params=params, size_bytes=produced))
                logger.info(
                    "[%s] %s %s -> %s",
                    job.id,
                    job.mode.value,
                    params.describe(),
                    f"{size_probe.size_kb(produced)}KB" if produced is not None else "no output",
                )

                if job.target_kb is None:
                    stop_reason = StopReason.SINGLE_SHOT
                    break
                if size_probe.within_budget(produced, job.target_kb):
                    stop_reason = StopReason.SATISFIED
                    break

            final_size = size_probe.size_bytes(slot.path)

        if final_size is None:
            verb = "Compression" if job.mode == ShrinkMode.COMPRESS else "Resize"
            raise GenerationError(f"{verb} failed to generate file")

        met_budget = (
            job.target_kb is None
            or size_probe.within_budget(final_size, job.target_kb)
        )
        logger.info(
            "[%s] done (%s): %dKB -> %dKB after %d attempt(s)",
            job.id,
            stop_reason.value,
            size_probe.size_kb(original_size),
            size_probe.size_kb(final_size),
            len(candidates),
        )
        return ShrinkResult(
            final_path=job.output_path,
            original_size_bytes=original_size,
            final_size_bytes=final_size,
            met_budget=met_budget,
            stop_reason=stop_reason,
            candidates=candidates,
        )
