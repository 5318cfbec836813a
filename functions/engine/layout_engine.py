"""
Layout Engine for DesignFlow.

Converts a LayoutIntent (walls, purpose, priorities, budget, requests) into a
concrete module assignment. No LLM calls and no I/O: the same intent always
yields the same layout.

Algorithm:
1. Keep selected walls in traversal order and derive the room shape
2. Split each wall into whole slots of the nominal module width
3. Fill base slots from the priority-driven type pattern
4. Place corner bases at wall junctions and the sink on the longest wall
5. Apply keyword triggers from specific requests (base row)
6. Mirror the base row with overhead modules where justified
7. Apply overhead request triggers and add-on triggers
8. Freeze into ModuleAssignments and summarise in plain language
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Pattern, Sequence, Tuple

import structlog

from engine.module_specs import MODULE_SPECS, ensure_exhaustive, get_spec
from models.layout import (
    CabinetConfig,
    CabinetDimensions,
    LayoutIntent,
    LayoutResult,
    ModuleAssignment,
    ModulePosition,
    ModuleType,
    Priority,
    Purpose,
    RoomShape,
    WallAssignment,
    WallSegment,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

DEFAULT_NOMINAL_WIDTH_MM = 600
DEFAULT_MIN_WIDTH_MM = 300

# Standard run envelope reported on the config.
RUN_HEIGHT_MM = 2100
RUN_DEPTH_MM = 600

ADDON_LED_STRIP = "ADDON-LED-STRIP"
ADDON_BIN_PULLOUT = "ADDON-BIN-PULLOUT"

# Base fill pattern contributed by each priority.
PRIORITY_PATTERNS: Dict[Priority, Tuple[ModuleType, ...]] = {
    Priority.STORAGE: (
        ModuleType.DRAWER_STACK,
        ModuleType.PULL_OUT_PANTRY,
        ModuleType.DRAWER_STACK,
        ModuleType.STANDARD,
    ),
    Priority.CLEAN_LOOK: (ModuleType.DRAWER_STACK, ModuleType.STANDARD),
    Priority.EASY_CLEAN: (ModuleType.OPEN_SHELVING, ModuleType.STANDARD),
    Priority.VALUE: (ModuleType.STANDARD, ModuleType.STANDARD, ModuleType.DRAWER_STACK),
    Priority.WOW_FACTOR: (
        ModuleType.DRAWER_STACK,
        ModuleType.OPEN_SHELVING,
        ModuleType.STANDARD,
    ),
}

# Used when no priorities were stated.
PURPOSE_PATTERNS: Dict[Purpose, Tuple[ModuleType, ...]] = {
    Purpose.KITCHEN: (ModuleType.DRAWER_STACK, ModuleType.STANDARD),
    Purpose.LAUNDRY: (ModuleType.STANDARD, ModuleType.STANDARD, ModuleType.DRAWER_STACK),
    Purpose.PANTRY: (ModuleType.PULL_OUT_PANTRY, ModuleType.STANDARD),
    Purpose.OTHER: (ModuleType.STANDARD,),
}

# First matching trigger wins for each request.
REQUEST_TRIGGERS: Tuple[Tuple[Pattern, ModuleType], ...] = (
    (re.compile(r"\bwine"), ModuleType.OPEN_SHELVING),
    (re.compile(r"\b(oven|microwave)"), ModuleType.APPLIANCE_TOWER),
    (re.compile(r"\bpantry"), ModuleType.PULL_OUT_PANTRY),
    (re.compile(r"\bdrawer"), ModuleType.DRAWER_STACK),
    (re.compile(r"\b(glass|display)"), ModuleType.GLASS_DOOR),
    (re.compile(r"\b(rangehood|range hood|cooktop)"), ModuleType.RANGEHOOD_SPACE),
    (re.compile(r"\blift[- ]?up"), ModuleType.LIFT_UP_DOOR),
    (re.compile(r"\bcorner"), ModuleType.CORNER_BASE),
    (re.compile(r"\bsink"), ModuleType.SINK_BASE),
)

OVERHEAD_REQUEST = re.compile(r"\b(overhead|upper|wall cabinet)")

ADDON_TRIGGERS: Tuple[Tuple[Pattern, str, ModulePosition], ...] = (
    (re.compile(r"\b(led|lighting|strip light)"), ADDON_LED_STRIP, ModulePosition.OVERHEAD),
    (re.compile(r"\b(bin|rubbish|recycling)"), ADDON_BIN_PULLOUT, ModulePosition.BASE),
)

# Fixed overhead variant above these base variants. The overhead row always
# mirrors the base row one-for-one, so module counts grow with wall length.
OVERHEAD_ABOVE: Dict[ModuleType, ModuleType] = {
    ModuleType.APPLIANCE_TOWER: ModuleType.LIFT_UP_DOOR,
    ModuleType.CORNER_BASE: ModuleType.STANDARD_OVERHEAD,
}

# (singular, plural) phrases used by the layout description.
FEATURE_PHRASES: Dict[ModuleType, Tuple[str, str]] = {
    ModuleType.STANDARD: ("a classic cabinet with a shelf", "{n} classic cabinets with shelves"),
    ModuleType.SINK_BASE: ("a sink cabinet with room for plumbing", "{n} sink cabinets"),
    ModuleType.DRAWER_STACK: ("a set of drawers near where you'll prep food", "{n} sets of drawers near where you'll prep food"),
    ModuleType.PULL_OUT_PANTRY: ("a pull-out pantry for easy access to everything", "{n} pull-out pantries"),
    ModuleType.CORNER_BASE: ("a corner carousel so nothing gets lost in the corner", "{n} corner carousels"),
    ModuleType.APPLIANCE_TOWER: ("a tall cabinet for your oven", "{n} tall appliance cabinets"),
    ModuleType.OPEN_SHELVING: ("open shelving to display your favourite pieces", "{n} open shelving units"),
    ModuleType.STANDARD_OVERHEAD: ("a wall cabinet above for extra storage", "{n} wall cabinets above for extra storage"),
    ModuleType.GLASS_DOOR: ("a glass display cabinet", "{n} glass display cabinets"),
    ModuleType.OPEN_SHELF: ("an open shelf up top", "{n} open shelves up top"),
    ModuleType.RANGEHOOD_SPACE: ("space for your rangehood", "{n} rangehood spaces"),
    ModuleType.LIFT_UP_DOOR: ("a lift-up cabinet", "{n} lift-up cabinets"),
}

ensure_exhaustive(FEATURE_PHRASES, "FEATURE_PHRASES")

SHAPE_LABELS: Dict[RoomShape, str] = {
    RoomShape.STRAIGHT: "a straight run",
    RoomShape.L_SHAPE: "an L-shape",
    RoomShape.U_SHAPE: "a U-shape",
}


# =============================================================================
# Working state
# =============================================================================


@dataclass
class _Slot:
    """Mutable slot used while planning; frozen into a ModuleAssignment."""

    wall_pos: int
    position: ModulePosition
    width_mm: int
    module_type: ModuleType
    locked: bool = False
    addons: List[str] = field(default_factory=list)


@dataclass
class _WallPlan:
    index: int
    wall: WallSegment
    base: List[_Slot] = field(default_factory=list)
    overhead: List[_Slot] = field(default_factory=list)

    def row(self, position: ModulePosition) -> List[_Slot]:
        return self.base if position == ModulePosition.BASE else self.overhead


# =============================================================================
# Public API
# =============================================================================


def generate_layout(
    intent: LayoutIntent,
    nominal_width_mm: Optional[int] = None,
    min_width_mm: int = DEFAULT_MIN_WIDTH_MM,
) -> LayoutResult:
    """Generate a deterministic module layout.

    Args:
        intent: Walls, purpose, priorities, requests and finishes.
        nominal_width_mm: Catalog-informed slot width; defaults to 600mm.
        min_width_mm: Walls shorter than this receive no modules.

    Returns:
        LayoutResult. An intent with no selected walls yields an empty layout.
    """
    nominal = nominal_width_mm or DEFAULT_NOMINAL_WIDTH_MM

    plans = [
        _WallPlan(index=index, wall=wall)
        for index, wall in enumerate(intent.walls)
        if wall.selected
    ]
    shape = detect_shape(len(plans))

    _plan_base_row(plans, intent, nominal, min_width_mm)
    _place_corners(plans)
    _place_sink(plans, intent)

    requests = [r.lower() for r in intent.specific_requests]
    overhead_requested = False
    for request in requests:
        module_type = match_request(request)
        if module_type is None:
            if OVERHEAD_REQUEST.search(request):
                overhead_requested = True
            continue
        if get_spec(module_type).position == ModulePosition.OVERHEAD:
            overhead_requested = True
        else:
            _force_type(plans, module_type, request)

    if overhead_requested or wants_overhead_row(intent):
        _plan_overhead_row(plans, intent)
        for request in requests:
            module_type = match_request(request)
            if module_type and get_spec(module_type).position == ModulePosition.OVERHEAD:
                _force_type(plans, module_type, request)

    _apply_addons(plans, requests)

    wall_assignments, slots = _freeze(plans)
    config = CabinetConfig(
        dimensions=CabinetDimensions(
            width=sum(p.wall.length_mm for p in plans),
            height=RUN_HEIGHT_MM,
            depth=RUN_DEPTH_MM,
        ),
        slots=tuple(slots),
        finishes=intent.finishes,
    )
    description = describe_layout(wall_assignments, intent.purpose, shape)

    logger.debug(
        "layout_generated",
        shape=shape.value,
        walls=len(plans),
        base_modules=len(config.base_modules),
        overhead_modules=len(config.overhead_modules),
    )

    return LayoutResult(
        config=config,
        shape=shape,
        wall_assignments=tuple(wall_assignments),
        description=description,
    )


def detect_shape(selected_wall_count: int) -> RoomShape:
    """Run shape from the number of selected walls."""
    if selected_wall_count <= 1:
        return RoomShape.STRAIGHT
    if selected_wall_count == 2:
        return RoomShape.L_SHAPE
    return RoomShape.U_SHAPE


def slot_count(length_mm: int, nominal_width_mm: int, min_width_mm: int) -> int:
    """Whole modules that fit on a wall.

    A wall shorter than one nominal module but at least the minimum width
    still takes a single narrower module, so the count never decreases as
    the wall grows.
    """
    if length_mm < min_width_mm:
        return 0
    return max(1, length_mm // nominal_width_mm)


def base_fill_pattern(intent: LayoutIntent) -> List[ModuleType]:
    """Interleave the patterns of every stated priority.

    Priorities are taken in vocabulary order so the result does not depend
    on how the set was built.
    """
    patterns = [PRIORITY_PATTERNS[p] for p in Priority if p in intent.priorities]
    if not patterns:
        return list(PURPOSE_PATTERNS[intent.purpose])

    merged: List[ModuleType] = []
    longest = max(len(p) for p in patterns)
    for i in range(longest):
        for pattern in patterns:
            if i < len(pattern):
                merged.append(pattern[i])
    return merged


def wants_overhead_row(intent: LayoutIntent) -> bool:
    """Whether purpose and priorities alone justify wall cabinets."""
    return (
        intent.purpose in (Purpose.KITCHEN, Purpose.LAUNDRY)
        and Priority.WOW_FACTOR in intent.priorities
    )


def match_request(request: str) -> Optional[ModuleType]:
    """Module variant triggered by a free-text request, if any."""
    text = request.lower()
    for pattern, module_type in REQUEST_TRIGGERS:
        if pattern.search(text):
            return module_type
    return None


def describe_layout(
    wall_assignments: Sequence[WallAssignment],
    purpose: Purpose,
    shape: RoomShape,
) -> str:
    """Plain-language summary of the layout, in wall order.

    Display and prompt text only.
    """
    if not wall_assignments:
        return "No walls were selected, so no cabinetry has been placed yet."

    walls = " + ".join(f"{a.wall_length_mm / 1000:.1f}m" for a in wall_assignments)
    parts = [
        f"I've designed {SHAPE_LABELS[shape]} layout for your {purpose.value}",
        f"across {walls} of wall space.",
    ]

    counts: Dict[ModuleType, int] = {}
    for assignment in wall_assignments:
        for module in assignment.modules:
            counts[module.module_type] = counts.get(module.module_type, 0) + 1

    features = []
    for module_type in MODULE_SPECS:
        n = counts.get(module_type, 0)
        if n == 0 or module_type == ModuleType.STANDARD:
            continue
        singular, plural = FEATURE_PHRASES[module_type]
        features.append(singular if n == 1 else plural.format(n=n))

    if features:
        parts.append(f"I've included {_join(features)}.")
    return " ".join(parts)


# =============================================================================
# Planning steps
# =============================================================================


def _plan_base_row(
    plans: List[_WallPlan],
    intent: LayoutIntent,
    nominal: int,
    min_width: int,
) -> None:
    pattern = base_fill_pattern(intent)
    cursor = 0
    for plan in plans:
        length = plan.wall.length_mm
        count = slot_count(length, nominal, min_width)
        if count == 0:
            logger.debug("wall_skipped", wall=plan.wall.label, length_mm=length)
            continue
        width = nominal if length >= nominal else length
        for pos in range(count):
            module_type = pattern[cursor % len(pattern)]
            cursor += 1
            if not get_spec(module_type).fits(width):
                module_type = ModuleType.STANDARD
            plan.base.append(_Slot(pos, ModulePosition.BASE, width, module_type))


def _place_corners(plans: List[_WallPlan]) -> None:
    """Corner base in the last slot of each wall that meets the next wall."""
    corner = get_spec(ModuleType.CORNER_BASE)
    for plan in plans[:-1]:
        if plan.base and corner.fits(plan.base[-1].width_mm):
            slot = plan.base[-1]
            slot.module_type = ModuleType.CORNER_BASE
            slot.locked = True


def _place_sink(plans: List[_WallPlan], intent: LayoutIntent) -> None:
    """Kitchens get a sink near the middle of the longest selected wall."""
    if intent.purpose != Purpose.KITCHEN:
        return
    walls = [p for p in plans if p.base]
    if not walls:
        return
    longest = max(walls, key=lambda p: p.wall.length_mm)
    sink = get_spec(ModuleType.SINK_BASE)

    centre = (len(longest.base) - 1) // 2
    candidates = sorted(range(len(longest.base)), key=lambda i: (abs(i - centre), i))
    # Prefer a free slot; a corner only yields when nothing else fits.
    for allow_locked in (False, True):
        for i in candidates:
            slot = longest.base[i]
            if (allow_locked or not slot.locked) and sink.fits(slot.width_mm):
                slot.module_type = ModuleType.SINK_BASE
                slot.locked = True
                return


def _plan_overhead_row(plans: List[_WallPlan], intent: LayoutIntent) -> None:
    default_type = (
        ModuleType.OPEN_SHELF
        if Priority.EASY_CLEAN in intent.priorities
        else ModuleType.STANDARD_OVERHEAD
    )
    feature_pending = Priority.WOW_FACTOR in intent.priorities

    for plan in plans:
        for base in plan.base:
            if base.module_type in OVERHEAD_ABOVE:
                module_type = OVERHEAD_ABOVE[base.module_type]
            else:
                module_type = default_type
                if feature_pending and get_spec(ModuleType.GLASS_DOOR).fits(base.width_mm):
                    module_type = ModuleType.GLASS_DOOR
                    feature_pending = False
            # Every base slot gets a cabinet above it, standard if nothing else fits.
            if not get_spec(module_type).fits(base.width_mm):
                module_type = ModuleType.STANDARD_OVERHEAD
            plan.overhead.append(
                _Slot(base.wall_pos, ModulePosition.OVERHEAD, base.width_mm, module_type)
            )


def _force_type(plans: List[_WallPlan], module_type: ModuleType, request: str) -> None:
    """Place a requested variant in the first free slot that fits it."""
    spec = get_spec(module_type)
    for plan in plans:
        for slot in plan.row(spec.position):
            if slot.locked or not spec.fits(slot.width_mm):
                continue
            slot.module_type = module_type
            slot.locked = True
            return
    logger.info("request_not_placed", request=request, module_type=module_type.value)


def _apply_addons(plans: List[_WallPlan], requests: List[str]) -> None:
    for pattern, code, position in ADDON_TRIGGERS:
        if not any(pattern.search(r) for r in requests):
            continue
        if position == ModulePosition.OVERHEAD:
            targets = [s for p in plans for s in p.overhead if s.module_type != ModuleType.OPEN_SHELF]
        else:
            targets = [
                s for p in plans for s in p.base
                if s.module_type in (ModuleType.STANDARD, ModuleType.DRAWER_STACK)
            ][:1]
        for slot in targets:
            if code not in slot.addons:
                slot.addons.append(code)


def _freeze(plans: List[_WallPlan]) -> Tuple[List[WallAssignment], List[ModuleAssignment]]:
    """Assign slot ids and x offsets in traversal order."""
    counters = {ModulePosition.BASE: 0, ModulePosition.OVERHEAD: 0}
    wall_assignments: List[WallAssignment] = []
    slots: List[ModuleAssignment] = []

    for plan in plans:
        modules: List[ModuleAssignment] = []
        for row in (plan.base, plan.overhead):
            x = 0
            for slot in row:
                spec = get_spec(slot.module_type)
                assignment = ModuleAssignment(
                    slot_id=f"{slot.position.value}-{counters[slot.position]}",
                    wall_index=plan.index,
                    module_type=slot.module_type,
                    position=slot.position,
                    width_mm=slot.width_mm,
                    x_mm=x,
                    label=spec.label,
                    interior=spec.interior,
                    addons=tuple(slot.addons),
                )
                counters[slot.position] += 1
                x += slot.width_mm
                modules.append(assignment)

        used = sum(s.width_mm for s in plan.base)
        wall_assignments.append(
            WallAssignment(
                wall_label=plan.wall.label,
                wall_length_mm=plan.wall.length_mm,
                modules=tuple(modules),
                used_mm=used,
                remaining_mm=plan.wall.length_mm - used,
            )
        )
        slots.extend(modules)

    return wall_assignments, slots


def _join(items: List[str]) -> str:
    if len(items) == 1:
        return items[0]
    return ", ".join(items[:-1]) + " and " + items[-1]
