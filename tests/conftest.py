"""Shared fixtures: a scripted Ghostscript stand-in and job builders."""

import os
from typing import Iterable, List, Optional

import pytest

from app.jobs.models import ShrinkJob, ShrinkMode
from app.processing.ghostscript import ToolOutcome, ToolStatus
from app.processing.sequencer import ParameterSet


class FakeGhostscript:
    """Deterministic tool: the n-th call writes sizes_kb[n] KB (last value repeats).

    fail_on: call indexes that exit non-zero without writing anything.
    no_output_on: call indexes that exit 0 but write nothing.
    """

    executable = "fake-gs"

    def __init__(
        self,
        sizes_kb: Iterable[int] = (10,),
        fail_on: Iterable[int] = (),
        no_output_on: Iterable[int] = (),
    ):
        self.sizes_kb = list(sizes_kb)
        self.fail_on = set(fail_on)
        self.no_output_on = set(no_output_on)
        self.calls: List[ParameterSet] = []

    def run(self, params: ParameterSet, input_path: str, output_path: str) -> ToolOutcome:
        index = len(self.calls)
        self.calls.append(params)
        if index in self.fail_on:
            return ToolOutcome(status=ToolStatus.FAILED, exit_code=1, stderr="Unrecoverable error")
        if index not in self.no_output_on:
            size_kb = self.sizes_kb[min(index, len(self.sizes_kb) - 1)]
            with open(output_path, "wb") as f:
                f.write(b"\0" * (size_kb * 1024))
        return ToolOutcome(status=ToolStatus.SUCCESS, exit_code=0)

    def version(self) -> Optional[str]:
        return "10.02.1"


def write_pdf(path: str, size_kb: int) -> str:
    with open(path, "wb") as f:
        f.write(b"%PDF-1.4\n" + b"\0" * (size_kb * 1024 - 9))
    return path


@pytest.fixture
def make_job(tmp_path):
    """Build a ShrinkJob over a fresh input file of the given size."""

    def _make(
        mode: ShrinkMode = ShrinkMode.COMPRESS,
        input_kb: int = 500,
        target_kb: Optional[int] = None,
        quality: Optional[int] = None,
    ) -> ShrinkJob:
        input_path = write_pdf(str(tmp_path / f"input_{len(os.listdir(tmp_path))}.pdf"), input_kb)
        return ShrinkJob(
            mode=mode,
            input_path=input_path,
            output_path=str(tmp_path / f"{mode.value}_out.pdf"),
            target_kb=target_kb,
            quality=quality,
        )

    return _make
