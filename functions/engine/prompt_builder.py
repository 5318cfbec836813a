"""Narrative prompt builder for image synthesis.

Pure string construction, no API calls. The prompt is descriptive prose in
five paragraphs: opening, the space, the design, homeowner preferences and
the fixed constraints the render must respect.
"""

from typing import Dict, List, Optional, Sequence

from engine.module_specs import ensure_exhaustive
from engine.style_presets import StylePreset
from models.layout import LayoutResult, ModuleType, WallSegment
from models.space_analysis import Dimensions, SpaceAnalysis

# Prompt wording per variant: (singular, plural).
MODULE_PROMPT_NOUNS: Dict[ModuleType, tuple] = {
    ModuleType.STANDARD: ("base cabinet", "base cabinets"),
    ModuleType.SINK_BASE: ("sink cabinet", "sink cabinets"),
    ModuleType.DRAWER_STACK: ("drawer stack", "drawer stacks"),
    ModuleType.PULL_OUT_PANTRY: ("pull-out pantry", "pull-out pantries"),
    ModuleType.CORNER_BASE: ("corner cabinet", "corner cabinets"),
    ModuleType.APPLIANCE_TOWER: ("tall oven tower", "tall oven towers"),
    ModuleType.OPEN_SHELVING: ("open shelving unit", "open shelving units"),
    ModuleType.STANDARD_OVERHEAD: ("wall cabinet", "wall cabinets"),
    ModuleType.GLASS_DOOR: ("glass-door display cabinet", "glass-door display cabinets"),
    ModuleType.OPEN_SHELF: ("open wall shelf", "open wall shelves"),
    ModuleType.RANGEHOOD_SPACE: ("rangehood cavity", "rangehood cavities"),
    ModuleType.LIFT_UP_DOOR: ("lift-up wall cabinet", "lift-up wall cabinets"),
}

ensure_exhaustive(MODULE_PROMPT_NOUNS, "MODULE_PROMPT_NOUNS")

CONSTRAINTS = (
    "MUST preserve the existing room exactly as photographed: same walls, flooring, "
    "ceiling, windows, and doors. MUST match the camera angle and perspective precisely. "
    "The cabinetry MUST look physically installed, not digitally overlaid. "
    "NEVER add text, labels or people. Generate a single photorealistic image."
)


def _metres(mm: float) -> str:
    return f"{mm / 1000:.1f}m"


def describe_module_mix(layout: Optional[LayoutResult]) -> str:
    """'5 base modules: 2 drawer stacks, 1 sink cabinet, ...'"""
    if layout is None or not layout.config.slots:
        return ""
    counts: Dict[ModuleType, int] = {}
    for slot in layout.config.slots:
        counts[slot.module_type] = counts.get(slot.module_type, 0) + 1

    phrases = []
    for module_type, n in counts.items():
        singular, plural = MODULE_PROMPT_NOUNS[module_type]
        phrases.append(f"{n} {singular if n == 1 else plural}")
    return "The cabinetry layout includes " + ", ".join(phrases) + "."


def build_narrative_prompt(
    preset: StylePreset,
    analysis: SpaceAnalysis,
    dimensions: Dimensions,
    walls: Sequence[WallSegment],
    purpose: str,
    style_summary: str = "",
    priorities: Sequence[str] = (),
    specific_requests: Sequence[str] = (),
    free_text: str = "",
    layout: Optional[LayoutResult] = None,
    material_name: Optional[str] = None,
    hardware_name: Optional[str] = None,
    door_profile_name: Optional[str] = None,
) -> str:
    """Build the image synthesis prompt.

    Args:
        preset: Resolved style preset.
        analysis: Scene analysis of the photo.
        dimensions: Constrained room dimensions.
        walls: Wall segments in traversal order.
        purpose: Cabinetry purpose, e.g. "kitchen".
        style_summary: The user's own style words.
        priorities: Priority tags.
        specific_requests: Free-text requests.
        free_text: Anything else the user said.
        layout: Generated layout, used for the module mix.
        material_name: Display name of the material; defaults to the code.
        hardware_name: Display name of the hardware; defaults to the code.
        door_profile_name: Display name of the door profile; defaults to the code.

    Returns:
        Paragraphs joined by blank lines.
    """
    feel = style_summary.strip() or preset.label.lower()
    opening = (
        f"Transform this {analysis.room_type.value} by installing new custom {purpose} "
        f"cabinetry, for an Australian homeowner who wants a {feel} feel."
    )

    wall_dims = ", ".join(f"{w.label}: {_metres(w.length_mm)}" for w in walls if w.selected)
    space = (
        f"The space is approximately {_metres(dimensions.width)} wide by "
        f"{_metres(dimensions.depth)} deep with {_metres(dimensions.height)} ceilings."
    )
    if wall_dims:
        space += f" Wall dimensions: {wall_dims}."
    if analysis.flooring:
        space += f" The flooring is {analysis.flooring}."
    if analysis.wall_finishes:
        space += f" Walls are {analysis.wall_finishes}."
    space += f" Lighting is {analysis.lighting_conditions.value}."
    if analysis.features:
        space += f" Notable features include {', '.join(analysis.features)}."

    material = material_name or preset.finishes.material
    design = (
        f"Design style: {preset.name}: {preset.description} "
        f"Primary material: {material} (Polytec finish). "
        f"Door profile: {door_profile_name or preset.finishes.door_profile}. "
        f"Hardware: {hardware_name or preset.finishes.hardware}."
    )
    mix = describe_module_mix(layout)
    if mix:
        design += f" {mix}"

    prefs: List[str] = []
    if priorities:
        prefs.append(f"The homeowner's priorities are: {', '.join(priorities)}.")
    if specific_requests:
        prefs.append(f"They specifically requested: {', '.join(specific_requests)}.")
    if free_text.strip():
        prefs.append(f'In their own words: "{free_text.strip()}"')

    paragraphs = [opening, space, design, " ".join(prefs), CONSTRAINTS]
    return "\n\n".join(p for p in paragraphs if p)
