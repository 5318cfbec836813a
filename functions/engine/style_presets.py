"""Style presets.

Maps style signals (discovery words plus the detected aesthetic) to a named
preset carrying concrete catalog finish codes.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from models.layout import BudgetTier, FinishSelection


@dataclass(frozen=True)
class StylePreset:
    """A named look with the catalog codes that produce it."""

    id: str
    name: str
    label: str
    signals: Tuple[str, ...]
    finishes: FinishSelection
    budget_tier: BudgetTier
    description: str


def _finishes(material: str, hardware: str, door_profile: str) -> FinishSelection:
    return FinishSelection(material=material, hardware=hardware, door_profile=door_profile)


STYLE_PRESETS: Tuple[StylePreset, ...] = (
    StylePreset(
        id="coastal-light",
        name="Coastal Light",
        label="Light and airy",
        signals=("light", "warm", "coastal", "beach", "hamptons", "relaxed"),
        finishes=_finishes("POL-NOWM", "HW-BRASS-BAR", "DP-SHAKER"),
        budget_tier=BudgetTier.MID,
        description="Light oak with brass handles and classic framed doors, warm and inviting.",
    ),
    StylePreset(
        id="minimal-white",
        name="Minimal White",
        label="Clean and simple",
        signals=("minimal", "clean", "white", "simple", "modern", "bright"),
        finishes=_finishes("POL-CWSM", "HW-BLACK-BAR", "DP-FLAT"),
        budget_tier=BudgetTier.VALUE,
        description="Crisp white with matte black handles and smooth flat doors, easy to maintain.",
    ),
    StylePreset(
        id="dark-timber",
        name="Dark Timber",
        label="Rich and moody",
        signals=("dark", "moody", "timber", "rich", "dramatic", "textured", "industrial"),
        finishes=_finishes("POL-BTWM", "HW-BLACK-KNOB", "DP-SHAKER"),
        budget_tier=BudgetTier.MID,
        description="Dark timber with black hardware and classic framed doors, bold and full of character.",
    ),
    StylePreset(
        id="classic-cream",
        name="Classic Cream",
        label="Traditional and warm",
        signals=("traditional", "classic", "cream", "country", "farmhouse", "heritage"),
        finishes=_finishes("POL-ACSM", "HW-BRASS-KNOB", "DP-RAISED"),
        budget_tier=BudgetTier.MID,
        description="Cream cabinetry with brass knobs and raised panel doors, homey and elegant.",
    ),
    StylePreset(
        id="scandi-pale",
        name="Scandinavian",
        label="Pale and natural",
        signals=("scandi", "scandinavian", "pale", "birch", "natural", "nordic"),
        finishes=_finishes("POL-PBWM", "HW-WHITE-BAR", "DP-FLAT"),
        budget_tier=BudgetTier.VALUE,
        description="Pale birch with white handles and flat doors, calm and effortlessly modern.",
    ),
    StylePreset(
        id="premium-charcoal",
        name="Premium Charcoal",
        label="High-end dark",
        signals=("luxury", "premium", "charcoal", "high-end", "designer", "sleek"),
        finishes=_finishes("POL-CGSM", "HW-BRASS-BAR", "DP-SLIMSHAKER"),
        budget_tier=BudgetTier.PREMIUM,
        description="Charcoal with brass accents and slimline shaker doors, refined and contemporary.",
    ),
    StylePreset(
        id="two-tone-oak",
        name="Two-Tone",
        label="Mixed tones",
        signals=("two-tone", "mixed", "contrast", "variety"),
        finishes=_finishes("POL-NOWM", "HW-BLACK-BAR", "DP-SHAKER"),
        budget_tier=BudgetTier.MID,
        description="Natural oak bases with white wall cabinets and black hardware, balanced and on-trend.",
    ),
)

DEFAULT_PRESET = STYLE_PRESETS[0]


def get_preset(preset_id: str) -> Optional[StylePreset]:
    for preset in STYLE_PRESETS:
        if preset.id == preset_id:
            return preset
    return None


def match_style_preset(
    signals: Iterable[str],
    budget_tier: BudgetTier = BudgetTier.UNKNOWN,
) -> StylePreset:
    """Find the best preset for a set of style signals.

    Scoring per preset: +2 for each exact signal match, +1 for each partial
    match (either string contains the other), +1 when the preset's tier
    matches the stated tier, -3 for a premium preset on a value budget.
    The highest positive score wins; ties keep the earlier preset.

    Args:
        signals: Style words, e.g. ["light", "warm", "coastal"].
        budget_tier: Stated budget tier.

    Returns:
        The best preset, or coastal-light when nothing scores.
    """
    normalised: List[str] = [s.lower().strip() for s in signals if s and s.strip()]

    best: Optional[StylePreset] = None
    best_score = 0
    for preset in STYLE_PRESETS:
        score = 0
        for signal in preset.signals:
            if signal in normalised:
                score += 2
            if any(signal in n or n in signal for n in normalised):
                score += 1

        if budget_tier != BudgetTier.UNKNOWN and preset.budget_tier == budget_tier:
            score += 1
        if budget_tier == BudgetTier.VALUE and preset.budget_tier == BudgetTier.PREMIUM:
            score -= 3

        if score > best_score:
            best_score = score
            best = preset

    return best or DEFAULT_PRESET
