"""Unit tests for the dimension estimator."""

import math

import pytest

from engine.dimension_estimator import (
    DEPTH_BOUNDS_MM,
    HEIGHT_BOUNDS_MM,
    WIDTH_BOUNDS_MM,
    clamp,
    estimate,
    format_dimensions,
)
from models.space_analysis import ConfidenceTier, SpaceAnalysis


def _analysis(width, depth, height) -> SpaceAnalysis:
    return SpaceAnalysis(
        room_type="kitchen",
        estimated_width=width,
        estimated_depth=depth,
        estimated_height=height,
        style_aesthetic="modern",
        lighting_conditions="natural",
    )


class TestClamp:
    """Tests for clamp()."""

    def test_value_inside_bounds_is_rounded(self):
        assert clamp(3200.4, WIDTH_BOUNDS_MM) == 3200
        assert clamp(3200.6, WIDTH_BOUNDS_MM) == 3201

    def test_value_below_bounds(self):
        assert clamp(-50, WIDTH_BOUNDS_MM) == 500

    def test_value_above_bounds(self):
        assert clamp(1e9, HEIGHT_BOUNDS_MM) == 3500

    def test_nan_falls_to_lower_bound(self):
        assert clamp(float("nan"), DEPTH_BOUNDS_MM) == 300

    def test_infinities(self):
        assert clamp(math.inf, WIDTH_BOUNDS_MM) == 6000
        assert clamp(-math.inf, WIDTH_BOUNDS_MM) == 500


class TestEstimate:
    """Tests for estimate()."""

    @pytest.mark.parametrize("raw", [
        (0, 0, 0),
        (-1e12, -1e12, -1e12),
        (1e12, 1e12, 1e12),
        (float("nan"), float("nan"), float("nan")),
        (499.9, 2000.1, 2099.5),
    ])
    def test_every_axis_within_envelope(self, raw):
        """Extreme estimates are clamped, never rejected."""
        dims = estimate(_analysis(*raw), ConfidenceTier.BASIC)

        assert WIDTH_BOUNDS_MM[0] <= dims.width <= WIDTH_BOUNDS_MM[1]
        assert DEPTH_BOUNDS_MM[0] <= dims.depth <= DEPTH_BOUNDS_MM[1]
        assert HEIGHT_BOUNDS_MM[0] <= dims.height <= HEIGHT_BOUNDS_MM[1]

    def test_in_range_values_pass_through(self, sample_analysis):
        dims = estimate(sample_analysis, ConfidenceTier.STANDARD)

        assert (dims.width, dims.depth, dims.height) == (3200, 2000, 2400)

    @pytest.mark.parametrize("tier,percent,label", [
        (ConfidenceTier.BASIC, 85, "Verify dimensions"),
        (ConfidenceTier.STANDARD, 90, "Verify dimensions"),
        (ConfidenceTier.ENHANCED, 95, "High confidence"),
        (ConfidenceTier.PRECISION, 98, "High confidence"),
    ])
    def test_confidence_tier(self, sample_analysis, tier, percent, label):
        dims = estimate(sample_analysis, tier)

        assert dims.confidence == tier
        assert dims.confidence_percent == percent
        assert dims.tier_label == label

    def test_format_dimensions(self):
        dims = estimate(_analysis(3200, 600, 2400), ConfidenceTier.BASIC)

        assert format_dimensions(dims) == "3200 x 600 x 2400mm"
