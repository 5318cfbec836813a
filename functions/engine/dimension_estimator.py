"""Dimension estimator.

Turns the unconstrained estimates from scene analysis into measurements
inside the cabinetry envelope, tagged with how far they can be trusted.
Total function: out-of-envelope input is clamped, never rejected.
"""

from typing import Dict, Tuple

from models.space_analysis import ConfidenceTier, Dimensions, SpaceAnalysis

# Physical envelope per axis in millimetres (inclusive).
WIDTH_BOUNDS_MM: Tuple[int, int] = (500, 6000)
DEPTH_BOUNDS_MM: Tuple[int, int] = (300, 2000)
HEIGHT_BOUNDS_MM: Tuple[int, int] = (2100, 3500)

CONFIDENCE_PERCENT: Dict[ConfidenceTier, int] = {
    ConfidenceTier.BASIC: 85,
    ConfidenceTier.STANDARD: 90,
    ConfidenceTier.ENHANCED: 95,
    ConfidenceTier.PRECISION: 98,
}

HIGH_CONFIDENCE_LABEL = "High confidence"
VERIFY_LABEL = "Verify dimensions"

TIER_LABELS: Dict[ConfidenceTier, str] = {
    ConfidenceTier.BASIC: VERIFY_LABEL,
    ConfidenceTier.STANDARD: VERIFY_LABEL,
    ConfidenceTier.ENHANCED: HIGH_CONFIDENCE_LABEL,
    ConfidenceTier.PRECISION: HIGH_CONFIDENCE_LABEL,
}


def clamp(value: float, bounds: Tuple[int, int]) -> int:
    """Clamp into bounds and round to whole millimetres.

    NaN falls to the lower bound.
    """
    low, high = bounds
    if value != value:
        return low
    return int(round(min(max(value, low), high)))


def estimate(analysis: SpaceAnalysis, tier: ConfidenceTier) -> Dimensions:
    """Constrain scene analysis estimates and tag them with a confidence tier.

    Args:
        analysis: Scene analysis with raw width/depth/height estimates.
        tier: Capture confidence tier chosen by the caller.

    Returns:
        Dimensions with every axis inside its envelope.
    """
    return Dimensions(
        width=clamp(analysis.estimated_width, WIDTH_BOUNDS_MM),
        depth=clamp(analysis.estimated_depth, DEPTH_BOUNDS_MM),
        height=clamp(analysis.estimated_height, HEIGHT_BOUNDS_MM),
        confidence=tier,
        confidence_percent=CONFIDENCE_PERCENT[tier],
        tier_label=TIER_LABELS[tier],
    )


def format_dimensions(dims: Dimensions) -> str:
    """'3200 x 600 x 2400mm'"""
    return f"{dims.width} x {dims.depth} x {dims.height}mm"
