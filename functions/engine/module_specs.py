"""Module variant table.

One ModuleSpec per ModuleType. Every table keyed by ModuleType (here and in
the pricing engine / prompt builder) is checked with ``ensure_exhaustive``
at import time, so adding a variant without covering it fails immediately.
"""

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping

from models.layout import InteriorOptions, ModulePosition, ModuleType


@dataclass(frozen=True)
class ModuleSpec:
    """Physical and display properties of one module variant."""

    module_type: ModuleType
    position: ModulePosition
    label: str
    description: str
    min_width_mm: int
    max_width_mm: int
    door_count: int
    interior: InteriorOptions

    def fits(self, width_mm: int) -> bool:
        """Whether a slot of this width can hold the variant."""
        return self.min_width_mm <= width_mm <= self.max_width_mm


def ensure_exhaustive(table: Mapping[ModuleType, object], name: str) -> None:
    """Raise if a ModuleType-keyed table misses any variant.

    Raises:
        RuntimeError: Listing the missing variants.
    """
    missing = [t.value for t in ModuleType if t not in table]
    if missing:
        raise RuntimeError(f"{name} is missing module types: {', '.join(missing)}")


MODULE_SPECS: Dict[ModuleType, ModuleSpec] = {
    # Base row
    ModuleType.STANDARD: ModuleSpec(
        ModuleType.STANDARD, ModulePosition.BASE,
        "Cabinet", "Classic storage with shelf",
        300, 900, 1,
        InteriorOptions(shelf_count=1, soft_close=True),
    ),
    ModuleType.SINK_BASE: ModuleSpec(
        ModuleType.SINK_BASE, ModulePosition.BASE,
        "Sink cabinet", "Space for your sink and plumbing",
        600, 1200, 2,
        InteriorOptions(cutout_for_sink=True),
    ),
    ModuleType.DRAWER_STACK: ModuleSpec(
        ModuleType.DRAWER_STACK, ModulePosition.BASE,
        "Drawers", "Great for pots, utensils, cutlery",
        450, 900, 3,
        InteriorOptions(drawer_count=3, soft_close=True),
    ),
    ModuleType.PULL_OUT_PANTRY: ModuleSpec(
        ModuleType.PULL_OUT_PANTRY, ModulePosition.BASE,
        "Pull-out pantry", "Tall pull-out storage",
        300, 600, 1,
        InteriorOptions(basket_count=4, pull_out=True, soft_close=True),
    ),
    ModuleType.CORNER_BASE: ModuleSpec(
        ModuleType.CORNER_BASE, ModulePosition.BASE,
        "Corner carousel", "Makes corner space usable",
        600, 1000, 2,
        InteriorOptions(pull_out=True, soft_close=True),
    ),
    ModuleType.APPLIANCE_TOWER: ModuleSpec(
        ModuleType.APPLIANCE_TOWER, ModulePosition.BASE,
        "Tall oven cabinet", "For your oven and microwave",
        600, 600, 2,
        InteriorOptions(shelf_count=2),
    ),
    ModuleType.OPEN_SHELVING: ModuleSpec(
        ModuleType.OPEN_SHELVING, ModulePosition.BASE,
        "Open shelves", "Display your favourite pieces",
        300, 600, 0,
        InteriorOptions(shelf_count=3),
    ),
    # Overhead row
    ModuleType.STANDARD_OVERHEAD: ModuleSpec(
        ModuleType.STANDARD_OVERHEAD, ModulePosition.OVERHEAD,
        "Wall cabinet", "Upper storage",
        300, 900, 1,
        InteriorOptions(shelf_count=1, soft_close=True),
    ),
    ModuleType.GLASS_DOOR: ModuleSpec(
        ModuleType.GLASS_DOOR, ModulePosition.OVERHEAD,
        "Display cabinet", "Glass door cabinet",
        300, 600, 1,
        InteriorOptions(shelf_count=2, soft_close=True),
    ),
    ModuleType.OPEN_SHELF: ModuleSpec(
        ModuleType.OPEN_SHELF, ModulePosition.OVERHEAD,
        "Open shelf", "Open display shelf",
        300, 600, 0,
        InteriorOptions(shelf_count=2),
    ),
    ModuleType.RANGEHOOD_SPACE: ModuleSpec(
        ModuleType.RANGEHOOD_SPACE, ModulePosition.OVERHEAD,
        "Rangehood space", "For your rangehood",
        600, 900, 1,
        InteriorOptions(),
    ),
    ModuleType.LIFT_UP_DOOR: ModuleSpec(
        ModuleType.LIFT_UP_DOOR, ModulePosition.OVERHEAD,
        "Lift-up cabinet", "Lifts up for easy access",
        450, 900, 1,
        InteriorOptions(shelf_count=1),
    ),
}

ensure_exhaustive(MODULE_SPECS, "MODULE_SPECS")

for _module_type, _spec in MODULE_SPECS.items():
    if _spec.module_type != _module_type:
        raise RuntimeError(f"MODULE_SPECS entry {_module_type.value} is mislabelled")


def get_spec(module_type: ModuleType) -> ModuleSpec:
    return MODULE_SPECS[module_type]


def variants_for(position: ModulePosition) -> Iterable[ModuleSpec]:
    """Specs for one row, in declaration order."""
    return [spec for spec in MODULE_SPECS.values() if spec.position == position]


def door_count(module_type: ModuleType) -> int:
    """Door fronts carried by one module of this variant."""
    return MODULE_SPECS[module_type].door_count
