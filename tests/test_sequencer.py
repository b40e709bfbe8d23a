"""Tests for app.processing.sequencer: quality table and budget sequences."""

import pytest

from app.errors import JobValidationError
from app.jobs.models import ShrinkMode
from app.processing.sequencer import (
    CompressParams,
    ResizeParams,
    compress_resolutions,
    plan_parameters,
    quality_to_resolution,
    resize_scales,
)


class TestQualityToResolution:
    @pytest.mark.parametrize(
        "quality,dpi",
        [
            (100, 300),
            (90, 300),
            (89, 200),
            (75, 200),
            (74, 150),
            (50, 150),
            (49, 100),
            (25, 100),
            (24, 72),
            (0, 72),
        ],
    )
    def test_threshold_boundaries(self, quality, dpi):
        assert quality_to_resolution(quality) == dpi

    def test_unset_quality_defaults_to_150(self):
        assert quality_to_resolution(None) == 150

    def test_zero_is_not_treated_as_unset(self):
        assert quality_to_resolution(0) == 72

    def test_monotonic_in_quality(self):
        resolutions = [quality_to_resolution(q) for q in range(0, 101)]
        assert resolutions == sorted(resolutions)


class TestCompressResolutions:
    def test_exact_sequence(self):
        assert compress_resolutions() == [200, 150, 112, 84, 63, 47]

    def test_never_below_floor(self):
        assert min(compress_resolutions()) >= 40

    def test_strictly_decreasing(self):
        seq = compress_resolutions()
        assert all(a > b for a, b in zip(seq, seq[1:]))


class TestResizeScales:
    def test_ten_steps_down_to_a_tenth(self):
        assert resize_scales() == [1.0, 0.9, 0.8, 0.7, 0.6, 0.5, 0.4, 0.3, 0.2, 0.1]

    def test_page_dimensions_from_a4(self):
        assert (ResizeParams(1.0).page_width, ResizeParams(1.0).page_height) == (595, 842)
        assert (ResizeParams(0.5).page_width, ResizeParams(0.5).page_height) == (298, 421)
        assert (ResizeParams(0.1).page_width, ResizeParams(0.1).page_height) == (60, 84)


class TestPlanParameters:
    def test_quality_mode_is_single_shot(self):
        plan = plan_parameters(ShrinkMode.COMPRESS, quality=60)
        assert plan == [CompressParams(resolution_dpi=150)]

    def test_quality_mode_without_quality(self):
        plan = plan_parameters(ShrinkMode.COMPRESS)
        assert plan == [CompressParams(resolution_dpi=150)]

    def test_target_ignores_quality(self):
        plan = plan_parameters(ShrinkMode.COMPRESS, quality=95, target_kb=100)
        assert [p.resolution_dpi for p in plan] == [200, 150, 112, 84, 63, 47]

    def test_resize_with_target(self):
        plan = plan_parameters(ShrinkMode.RESIZE, target_kb=100)
        assert len(plan) == 10
        assert plan[0] == ResizeParams(scale=1.0)
        assert plan[-1] == ResizeParams(scale=0.1)

    def test_resize_without_target_rejected(self):
        with pytest.raises(JobValidationError, match="Target size is required"):
            plan_parameters(ShrinkMode.RESIZE, quality=80)
