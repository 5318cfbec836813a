"""Pure design engines for DesignFlow.

Everything in this package is synchronous and free of I/O:
- dimension_estimator: clamp scene estimates into the cabinetry envelope
- layout_engine: deterministic module layout from a LayoutIntent
- pricing_engine: low/estimate/high price bands from a catalog snapshot
- style_presets: style signal matching
- prompt_builder: narrative image synthesis prompt
"""

from engine.dimension_estimator import estimate, format_dimensions
from engine.layout_engine import generate_layout
from engine.pricing_engine import calculate_pricing, calculate_swap_delta
from engine.prompt_builder import build_narrative_prompt
from engine.style_presets import match_style_preset

__all__ = [
    "estimate",
    "format_dimensions",
    "generate_layout",
    "calculate_pricing",
    "calculate_swap_delta",
    "build_narrative_prompt",
    "match_style_preset",
]
