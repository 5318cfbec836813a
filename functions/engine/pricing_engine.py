"""
Pricing Engine for DesignFlow.

Catalog-based range pricing over a module configuration. Returns a
low/estimate/high band per category so the quote is presented as a range
until a site measure confirms it.

Band rules:
- Cabinets: one catalog module record per placed module (fixed confidence)
- Material: flat, one finish selection across the design (fixed confidence)
- Hardware: flat, one unit of the selected item, spread by the catalog's
  declared variance percentage
- Door profile: price per door x total doors across all modules
- Add-ons: one catalog record per attached add-on (fixed confidence)
- Total: per-bound sum of the categories
"""

from typing import Dict, List, Optional, Tuple

import structlog

from engine.module_specs import door_count, ensure_exhaustive
from models.catalog import DEFAULT_MODULE_CODE, CatalogSnapshot, ModuleRecord
from models.layout import BudgetTier, CabinetConfig, ModulePosition, ModuleType
from models.pricing import (
    BudgetFit,
    PriceBreakdown,
    PriceBreakdownItem,
    PriceCategory,
    PriceRange,
    format_aud,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# Lookup tables
# =============================================================================

MODULE_CODES: Dict[ModuleType, str] = {
    ModuleType.STANDARD: "MOD-BASE-600",
    ModuleType.SINK_BASE: "MOD-BASE-SINK",
    ModuleType.DRAWER_STACK: "MOD-BASE-DRAWER",
    ModuleType.PULL_OUT_PANTRY: "MOD-TALL-PANTRY",
    ModuleType.CORNER_BASE: "MOD-BASE-CORNER",
    ModuleType.APPLIANCE_TOWER: "MOD-TALL-OVEN",
    ModuleType.OPEN_SHELVING: "MOD-BASE-OPEN",
    ModuleType.STANDARD_OVERHEAD: "MOD-OH-600",
    ModuleType.GLASS_DOOR: "MOD-OH-GLASS",
    ModuleType.OPEN_SHELF: "MOD-OH-OPEN",
    ModuleType.RANGEHOOD_SPACE: "MOD-OH-RANGEHOOD",
    ModuleType.LIFT_UP_DOOR: "MOD-OH-LIFTUP",
}

ensure_exhaustive(MODULE_CODES, "MODULE_CODES")

# (low, high) cents for each explicit budget range key.
BUDGET_RANGES: Dict[str, Tuple[int, int]] = {
    "under-8k": (0, 800_000),
    "8-15k": (800_000, 1_500_000),
    "15-25k": (1_500_000, 2_500_000),
}

BUDGET_LABELS: Dict[str, str] = {
    "under-8k": "under $8K",
    "8-15k": "$8–15K",
    "15-25k": "$15–25K",
}

# Budget range implied by a tier when no explicit range was given.
TIER_BUDGET_RANGES: Dict[BudgetTier, Optional[str]] = {
    BudgetTier.VALUE: "under-8k",
    BudgetTier.MID: "8-15k",
    BudgetTier.PREMIUM: "15-25k",
    BudgetTier.UNKNOWN: None,
}

# Over the top of the range by at most this much counts as slightly over.
SLIGHTLY_OVER_PCT = 15

# Swaps closer than this are presented as the same price.
SAME_PRICE_THRESHOLD_CENTS = 5000


# =============================================================================
# Pricing
# =============================================================================


def calculate_pricing(
    config: CabinetConfig,
    catalog: CatalogSnapshot,
    budget_tier: BudgetTier = BudgetTier.UNKNOWN,
    budget_range: Optional[str] = None,
) -> PriceBreakdown:
    """Price a module configuration against a catalog snapshot.

    Args:
        config: Module configuration from the layout engine.
        catalog: Point-in-time catalog; never refreshed during the call.
        budget_tier: Stated budget tier, used for the budget comparison.
        budget_range: Explicit budget range key; overrides the tier's range.

    Returns:
        PriceBreakdown whose total is the per-bound category sum.
    """
    slots = config.slots

    cabinet_cents = 0
    for slot in slots:
        record = resolve_module(slot.module_type, catalog)
        cabinet_cents += record.price_per_unit if record else 0
    cabinets = PriceRange.fixed(cabinet_cents)

    material_record = catalog.material(config.finishes.material)
    material = PriceRange.fixed(material_record.price_per_unit if material_record else 0)

    hardware_record = catalog.hardware_item(config.finishes.hardware)
    if hardware_record:
        hardware = PriceRange.with_variance(
            hardware_record.price_per_unit, hardware_record.variance_pct
        )
    else:
        hardware = PriceRange.zero()

    doors = sum(door_count(slot.module_type) for slot in slots)
    profile_record = catalog.door_profile(config.finishes.door_profile)
    door_profile = PriceRange.fixed(profile_record.price_per_door * doors if profile_record else 0)

    addon_cents = 0
    addon_count = 0
    for slot in slots:
        for code in slot.addons:
            addon = catalog.addon(code)
            if addon is None:
                logger.info("addon_not_in_catalog", code=code, slot_id=slot.slot_id)
                continue
            addon_cents += addon.price_per_unit
            addon_count += 1
    addons = PriceRange.fixed(addon_cents)

    missing = [
        name for name, record in (
            ("material", material_record),
            ("hardware", hardware_record),
            ("door_profile", profile_record),
        ) if record is None
    ]
    if missing:
        logger.info("finish_not_in_catalog", categories=missing)

    total = cabinets + material + hardware + door_profile + addons
    items = _breakdown_items(
        config, cabinets, material, hardware, door_profile, addons,
        material_name=material_record.name if material_record else config.finishes.material,
        doors=doors,
        addon_count=addon_count,
    )

    fit, message = compare_budget(total, budget_tier, budget_range)

    return PriceBreakdown(
        cabinets=cabinets,
        material=material,
        hardware=hardware,
        door_profile=door_profile,
        addons=addons,
        total=total,
        items=items,
        budget_tier=budget_tier,
        budget_fit=fit,
        budget_message=message,
    )


def resolve_module(module_type: ModuleType, catalog: CatalogSnapshot) -> Optional[ModuleRecord]:
    """Catalog record for a variant, falling back to the default module."""
    record = catalog.module(MODULE_CODES[module_type])
    if record is None:
        record = catalog.module(DEFAULT_MODULE_CODE)
    return record


def _breakdown_items(
    config: CabinetConfig,
    cabinets: PriceRange,
    material: PriceRange,
    hardware: PriceRange,
    door_profile: PriceRange,
    addons: PriceRange,
    material_name: str,
    doors: int,
    addon_count: int,
) -> List[PriceBreakdownItem]:
    base_count = sum(1 for s in config.slots if s.position == ModulePosition.BASE)
    overhead_count = len(config.slots) - base_count
    parts = []
    if base_count:
        parts.append(f"{base_count} base")
    if overhead_count:
        parts.append(f"{overhead_count} wall")
    cabinet_label = f"{' + '.join(parts)} cabinets" if parts else "No cabinets selected"

    return [
        PriceBreakdownItem(category=PriceCategory.CABINETS, label=cabinet_label, range=cabinets),
        PriceBreakdownItem(
            category=PriceCategory.MATERIAL,
            label=f"{material_name} doors and matching panels",
            range=material,
        ),
        PriceBreakdownItem(
            category=PriceCategory.HARDWARE,
            label="Handles, hinges and drawer runners",
            range=hardware,
        ),
        PriceBreakdownItem(
            category=PriceCategory.DOOR_PROFILE,
            label=f"Door profile across {doors} door{'s' if doors != 1 else ''}",
            range=door_profile,
        ),
        PriceBreakdownItem(
            category=PriceCategory.ADDONS,
            label=f"{addon_count} add-on{'s' if addon_count != 1 else ''}" if addon_count else "No add-ons",
            range=addons,
        ),
    ]


# =============================================================================
# Budget comparison
# =============================================================================


def compare_budget(
    total: PriceRange,
    budget_tier: BudgetTier = BudgetTier.UNKNOWN,
    budget_range: Optional[str] = None,
) -> Tuple[BudgetFit, str]:
    """Compare the estimate against the stated budget.

    Returns:
        (fit, plain-language message). Unknown budgets yield (UNKNOWN, "").
    """
    key = budget_range if budget_range else TIER_BUDGET_RANGES[budget_tier]
    if not key or key not in BUDGET_RANGES:
        return BudgetFit.UNKNOWN, ""

    low, high = BUDGET_RANGES[key]
    label = BUDGET_LABELS[key]
    estimate = total.estimate_cents

    if estimate < low:
        return BudgetFit.UNDER, f"Under your {label} range — room to upgrade if you'd like."
    if estimate <= high:
        return BudgetFit.WITHIN, f"Within your {label} range."

    over_pct = round((estimate - high) / high * 100)
    if over_pct <= SLIGHTLY_OVER_PCT:
        return (
            BudgetFit.SLIGHTLY_OVER,
            f"Slightly above your {label} range — I can suggest where to save.",
        )
    return BudgetFit.OVER, f"Above your {label} range. Want me to suggest a simpler option?"


# =============================================================================
# Module swaps
# =============================================================================


def calculate_swap_delta(
    current: ModuleType,
    replacement: ModuleType,
    catalog: CatalogSnapshot,
) -> Tuple[int, str]:
    """Price difference of swapping one module variant for another.

    Returns:
        (delta cents, label) such as (40000, "Adds about $400").
    """
    current_record = resolve_module(current, catalog)
    next_record = resolve_module(replacement, catalog)
    if current_record is None or next_record is None:
        return 0, ""

    delta = next_record.price_per_unit - current_record.price_per_unit
    if abs(delta) < SAME_PRICE_THRESHOLD_CENTS:
        return delta, "About the same price"
    if delta > 0:
        return delta, f"Adds about {format_aud(delta)}"
    return delta, f"Saves about {format_aud(abs(delta))}"
