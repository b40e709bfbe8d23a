"""Ghostscript invocation for a single shrink attempt.

Each call is one blocking subprocess with a hard timeout. Failures are
reported through ToolOutcome rather than raised, so the convergence loop
decides what a failure means.
"""

from __future__ import annotations

import logging
import subprocess
import sys
import time
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from app.errors import ToolExecutionError
from app.processing.sequencer import CompressParams, ParameterSet, ResizeParams

logger = logging.getLogger(__name__)

COMMON_FLAGS = [
    "-sDEVICE=pdfwrite",
    "-dCompatibilityLevel=1.4",
]

# Non-interactive and quiet: no prompts, no paging, exit when done
BATCH_FLAGS = ["-dNOPAUSE", "-dQUIET", "-dBATCH"]

# Keep Windows from flashing a console window per attempt
_NO_WINDOW = subprocess.CREATE_NO_WINDOW if sys.platform == "win32" else 0


class ToolStatus(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"
    SPAWN_ERROR = "spawn_error"


@dataclass(frozen=True)
class ToolOutcome:
    """Result of one Ghostscript run."""

    status: ToolStatus
    exit_code: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0

    @property
    def ok(self) -> bool:
        return self.status == ToolStatus.SUCCESS

    @property
    def diagnostics(self) -> str:
        return (self.stderr or self.stdout).strip()

    def raise_for_status(self) -> None:
        if self.ok:
            return
        if self.status == ToolStatus.FAILED:
            message = f"Ghostscript exited with code {self.exit_code}"
        elif self.status == ToolStatus.TIMEOUT:
            message = f"Ghostscript timed out after {self.elapsed_ms}ms"
        else:
            message = "Ghostscript could not be started"
        raise ToolExecutionError(message, diagnostics=self.diagnostics)


def compress_args(resolution_dpi: int) -> List[str]:
    """Flags that downsample colour and grey images to resolution_dpi."""
    return [
        *COMMON_FLAGS,
        "-dPDFSETTINGS=/default",
        *BATCH_FLAGS,
        "-dDownsampleColorImages=true",
        "-dColorImageDownsampleType=/Bicubic",
        f"-dColorImageResolution={resolution_dpi}",
        "-dDownsampleGrayImages=true",
        "-dGrayImageDownsampleType=/Bicubic",
        f"-dGrayImageResolution={resolution_dpi}",
    ]


def resize_args(page_width: int, page_height: int) -> List[str]:
    """Flags that fit every page onto a page_width x page_height (points) page."""
    return [
        *COMMON_FLAGS,
        f"-dDEVICEWIDTHPOINTS={page_width}",
        f"-dDEVICEHEIGHTPOINTS={page_height}",
        "-dPDFFitPage",
        *BATCH_FLAGS,
    ]


def build_command(
    executable: str,
    params: ParameterSet,
    input_path: str,
    output_path: str,
) -> List[str]:
    if isinstance(params, CompressParams):
        flags = compress_args(params.resolution_dpi)
    elif isinstance(params, ResizeParams):
        flags = resize_args(params.page_width, params.page_height)
    else:
        raise TypeError(f"Unsupported parameter set: {params!r}")
    return [executable, *flags, f"-sOutputFile={output_path}", input_path]


class GhostscriptRunner:
    """Runs Ghostscript with a parameter set against an input PDF."""

    def __init__(self, executable: str, timeout_seconds: int = 120):
        self.executable = executable
        self.timeout_seconds = timeout_seconds

    def run(
        self,
        params: ParameterSet,
        input_path: str,
        output_path: str,
    ) -> ToolOutcome:
        """Write output_path from input_path. Blocks for up to timeout_seconds."""
        cmd = build_command(self.executable, params, input_path, output_path)
        start_time = time.monotonic()

        try:
            proc = subprocess.run(
                cmd,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                creationflags=_NO_WINDOW,
            )
        except subprocess.TimeoutExpired:
            return ToolOutcome(
                status=ToolStatus.TIMEOUT,
                stderr=f"Timed out after {self.timeout_seconds}s",
                elapsed_ms=_elapsed_ms(start_time),
            )
        except OSError as e:
            return ToolOutcome(
                status=ToolStatus.SPAWN_ERROR,
                stderr=f"{type(e).__name__}: {e}",
                elapsed_ms=_elapsed_ms(start_time),
            )

        status = ToolStatus.SUCCESS if proc.returncode == 0 else ToolStatus.FAILED
        return ToolOutcome(
            status=status,
            exit_code=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            elapsed_ms=_elapsed_ms(start_time),
        )

    def version(self) -> Optional[str]:
        """Installed Ghostscript version, or None if it can't be run."""
        try:
            proc = subprocess.run(
                [self.executable, "--version"],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=10,
                creationflags=_NO_WINDOW,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning("Ghostscript version probe failed: %s", e)
            return None
        if proc.returncode != 0:
            return None
        return proc.stdout.strip() or None


def _elapsed_ms(start_time: float) -> int:
    return int((time.monotonic() - start_time) * 1000)
