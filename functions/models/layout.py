"""Layout models for DesignFlow.

LayoutIntent is the layout engine's only input. LayoutResult and the
ModuleAssignment records inside it are immutable: a layout change produces
a new assignment list rather than editing one in place.
"""

from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import structlog
from pydantic import BaseModel, Field, field_validator

logger = structlog.get_logger(__name__)


# =============================================================================
# ENUMS
# =============================================================================


class ModuleType(str, Enum):
    """Closed set of placeable module variants."""

    # Base modules
    STANDARD = "standard"
    SINK_BASE = "sink-base"
    DRAWER_STACK = "drawer-stack"
    PULL_OUT_PANTRY = "pull-out-pantry"
    CORNER_BASE = "corner-base"
    APPLIANCE_TOWER = "appliance-tower"
    OPEN_SHELVING = "open-shelving"
    # Overhead modules
    STANDARD_OVERHEAD = "standard-overhead"
    GLASS_DOOR = "glass-door"
    OPEN_SHELF = "open-shelf"
    RANGEHOOD_SPACE = "rangehood-space"
    LIFT_UP_DOOR = "lift-up-door"


class ModulePosition(str, Enum):
    """Vertical row a module occupies."""

    BASE = "base"
    OVERHEAD = "overhead"


class Purpose(str, Enum):
    """What the cabinetry is for."""

    KITCHEN = "kitchen"
    LAUNDRY = "laundry"
    PANTRY = "pantry"
    OTHER = "other"


class BudgetTier(str, Enum):
    """Stated budget tier."""

    VALUE = "value"
    MID = "mid"
    PREMIUM = "premium"
    UNKNOWN = "unknown"


class Priority(str, Enum):
    """Closed vocabulary of user priorities from discovery."""

    STORAGE = "storage"
    CLEAN_LOOK = "clean-look"
    EASY_CLEAN = "easy-clean"
    VALUE = "value"
    WOW_FACTOR = "wow-factor"


class RoomShape(str, Enum):
    """Run shape derived from the selected walls."""

    STRAIGHT = "straight"
    L_SHAPE = "l-shape"
    U_SHAPE = "u-shape"


# =============================================================================
# INPUT MODELS
# =============================================================================


class WallSegment(BaseModel):
    """A named wall span eligible to receive modules."""

    label: str = Field(description="Wall name, e.g. 'Long wall'")
    length_mm: int = Field(
        alias="lengthMm",
        ge=0,
        description="Wall length in millimetres"
    )
    selected: bool = Field(
        default=True,
        description="Whether the user wants cabinetry on this wall"
    )

    class Config:
        populate_by_name = True
        frozen = True


class FinishSelection(BaseModel):
    """Resolved finish codes applied across the whole design."""

    material: str = Field(description="Material catalog code")
    hardware: str = Field(description="Hardware catalog code")
    door_profile: str = Field(
        alias="doorProfile",
        description="Door profile catalog code"
    )

    class Config:
        populate_by_name = True
        frozen = True


class LayoutIntent(BaseModel):
    """Everything the layout engine needs to place modules."""

    walls: Tuple[WallSegment, ...] = Field(
        description="Walls in room-traversal order"
    )
    purpose: Purpose = Field(default=Purpose.OTHER)
    budget_tier: BudgetTier = Field(default=BudgetTier.UNKNOWN, alias="budgetTier")
    priorities: FrozenSet[Priority] = Field(default_factory=frozenset)
    specific_requests: Tuple[str, ...] = Field(
        default_factory=tuple,
        alias="specificRequests",
        description="Free-text requests, e.g. 'wine rack'"
    )
    finishes: FinishSelection

    class Config:
        populate_by_name = True
        frozen = True

    @field_validator("purpose", mode="before")
    @classmethod
    def normalise_purpose(cls, value: Any) -> Any:
        """Unknown purposes fall back to 'other'."""
        if isinstance(value, Purpose):
            return value
        text = str(value or "").strip().lower()
        return text if text in {p.value for p in Purpose} else Purpose.OTHER

    @field_validator("budget_tier", mode="before")
    @classmethod
    def normalise_budget_tier(cls, value: Any) -> Any:
        """Unknown budget tiers fall back to 'unknown'."""
        if isinstance(value, BudgetTier):
            return value
        text = str(value or "").strip().lower()
        return text if text in {b.value for b in BudgetTier} else BudgetTier.UNKNOWN

    @field_validator("priorities", mode="before")
    @classmethod
    def normalise_priorities(cls, value: Any) -> FrozenSet[Priority]:
        """Deduplicate priorities and drop tags outside the vocabulary."""
        return parse_priorities(value or ())


def parse_priorities(tags: Any) -> FrozenSet[Priority]:
    """Map free-form priority tags onto the closed vocabulary.

    Unrecognised tags are dropped and logged, never raised.
    """
    known = {p.value: p for p in Priority}
    parsed = set()
    dropped = []
    for tag in tags:
        if isinstance(tag, Priority):
            parsed.add(tag)
            continue
        key = str(tag).strip().lower().replace("_", "-").replace(" ", "-")
        if key in known:
            parsed.add(known[key])
        else:
            dropped.append(tag)
    if dropped:
        logger.info("priority_tags_dropped", dropped=dropped)
    return frozenset(parsed)


# =============================================================================
# OUTPUT MODELS
# =============================================================================


class InteriorOptions(BaseModel):
    """Default interior fit-out for a module."""

    shelf_count: Optional[int] = Field(default=None, alias="shelfCount")
    drawer_count: Optional[int] = Field(default=None, alias="drawerCount")
    basket_count: Optional[int] = Field(default=None, alias="basketCount")
    pull_out: Optional[bool] = Field(default=None, alias="pullOut")
    soft_close: Optional[bool] = Field(default=None, alias="softClose")
    cutout_for_sink: Optional[bool] = Field(default=None, alias="cutoutForSink")

    class Config:
        populate_by_name = True
        frozen = True


class ModuleAssignment(BaseModel):
    """One placed module in one slot."""

    slot_id: str = Field(alias="slotId", description="'base-N' or 'overhead-N'")
    wall_index: int = Field(alias="wallIndex", ge=0)
    module_type: ModuleType = Field(alias="type")
    position: ModulePosition
    width_mm: int = Field(alias="widthMm", gt=0)
    x_mm: int = Field(default=0, alias="xMm", ge=0, description="Left edge along the wall")
    label: str
    interior: InteriorOptions = Field(default_factory=InteriorOptions)
    addons: Tuple[str, ...] = Field(default_factory=tuple)

    class Config:
        populate_by_name = True
        frozen = True


class WallAssignment(BaseModel):
    """Modules placed on one selected wall."""

    wall_label: str = Field(alias="wallLabel")
    wall_length_mm: int = Field(alias="wallLengthMm")
    modules: Tuple[ModuleAssignment, ...] = Field(default_factory=tuple)
    used_mm: int = Field(alias="usedMm", description="Base row millimetres used")
    remaining_mm: int = Field(alias="remainingMm", description="Base row filler left over")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def base_modules(self) -> List[ModuleAssignment]:
        return [m for m in self.modules if m.position == ModulePosition.BASE]

    @property
    def overhead_modules(self) -> List[ModuleAssignment]:
        return [m for m in self.modules if m.position == ModulePosition.OVERHEAD]


class CabinetDimensions(BaseModel):
    """Overall run envelope in millimetres."""

    width: int
    height: int
    depth: int

    class Config:
        frozen = True


class CabinetConfig(BaseModel):
    """Full module configuration.

    Slots are an ordered list in wall-traversal order (base row then
    overhead row for each wall), never a hash keyed by slot id.
    """

    dimensions: CabinetDimensions
    slots: Tuple[ModuleAssignment, ...] = Field(default_factory=tuple)
    finishes: FinishSelection

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def base_modules(self) -> List[ModuleAssignment]:
        return [s for s in self.slots if s.position == ModulePosition.BASE]

    @property
    def overhead_modules(self) -> List[ModuleAssignment]:
        return [s for s in self.slots if s.position == ModulePosition.OVERHEAD]

    def get_slot(self, slot_id: str) -> Optional[ModuleAssignment]:
        """Look up a slot by id."""
        for slot in self.slots:
            if slot.slot_id == slot_id:
                return slot
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a plain dict for Firestore storage."""
        return self.model_dump(by_alias=True, mode="json")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CabinetConfig":
        """Restore a config written by to_dict()."""
        return cls.model_validate(data)


class LayoutResult(BaseModel):
    """Output of one layout engine run."""

    config: CabinetConfig
    shape: RoomShape
    wall_assignments: Tuple[WallAssignment, ...] = Field(
        default_factory=tuple,
        alias="wallAssignments"
    )
    description: str = Field(
        description="Plain-language narrative; display and prompts only"
    )

    class Config:
        populate_by_name = True
        frozen = True
