"""Candidate parameter sequences for the convergence loop.

Compress mode lowers the image downsampling resolution geometrically
(x0.75 per step), resize mode lowers the page scale linearly (-0.1 per
step). Both sequences only ever move toward smaller output.
"""

import math
from dataclasses import dataclass
from typing import List, Optional, Union

from app.errors import JobValidationError
from app.jobs.models import ShrinkMode

# Quality slider thresholds -> downsampling resolution (dpi), highest first
QUALITY_STEPS = [(90, 300), (75, 200), (50, 150), (25, 100)]
QUALITY_FLOOR_DPI = 72
DEFAULT_RESOLUTION_DPI = 150

BUDGET_START_DPI = 200
BUDGET_MIN_DPI = 40
BUDGET_DPI_DECAY = 0.75

# Scales are stepped in tenths so float error can't add or drop a step
SCALE_START_TENTHS = 10
SCALE_MIN_TENTHS = 1

# A4 in PostScript points
REFERENCE_PAGE_WIDTH = 595
REFERENCE_PAGE_HEIGHT = 842


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class CompressParams:
    """Image downsampling resolution for one Ghostscript pass."""
    resolution_dpi: int

    def describe(self) -> str:
        return f"{self.resolution_dpi}dpi"


@dataclass(frozen=True)
class ResizeParams:
    """Page scale factor in (0, 1] applied to the A4 reference page."""
    scale: float

    @property
    def page_width(self) -> int:
        return _round_half_up(REFERENCE_PAGE_WIDTH * self.scale)

    @property
    def page_height(self) -> int:
        return _round_half_up(REFERENCE_PAGE_HEIGHT * self.scale)

    def describe(self) -> str:
        return f"scale={self.scale:.1f} ({self.page_width}x{self.page_height}pt)"


ParameterSet = Union[CompressParams, ResizeParams]


def quality_to_resolution(quality: Optional[int]) -> int:
    """Map a 0-100 quality slider to a downsampling resolution.

    An unset quality means "no preference" and gets the 150dpi default;
    0 is a real value and maps to the 72dpi floor.
    """
    if quality is None:
        return DEFAULT_RESOLUTION_DPI
    for threshold, dpi in QUALITY_STEPS:
        if quality >= threshold:
            return dpi
    return QUALITY_FLOOR_DPI


def compress_resolutions() -> List[int]:
    """Resolutions tried when compressing toward a budget: [200, 150, 112, 84, 63, 47]."""
    resolutions = []
    dpi = BUDGET_START_DPI
    while dpi >= BUDGET_MIN_DPI:
        resolutions.append(dpi)
        dpi = math.floor(dpi * BUDGET_DPI_DECAY)
    return resolutions


def resize_scales() -> List[float]:
    """Scales tried when resizing toward a budget: 1.0, 0.9, ..., 0.1."""
    return [
        tenths / 10
        for tenths in range(SCALE_START_TENTHS, SCALE_MIN_TENTHS - 1, -1)
    ]


def plan_parameters(
    mode: ShrinkMode,
    quality: Optional[int] = None,
    target_kb: Optional[int] = None,
) -> List[ParameterSet]:
    """Return the ordered parameter sets to attempt for a job.

    Raises:
        JobValidationError: resize mode without a target budget.
    """
    if mode == ShrinkMode.RESIZE:
        if target_kb is None:
            raise JobValidationError("Target size is required for resizing")
        return [ResizeParams(scale=s) for s in resize_scales()]

    if target_kb is None:
        return [CompressParams(resolution_dpi=quality_to_resolution(quality))]
    return [CompressParams(resolution_dpi=dpi) for dpi in compress_resolutions()]
