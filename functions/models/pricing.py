"""Pricing models for DesignFlow.

All amounts are integer cents (AUD). Every category carries a
low/estimate/high band; the total band is the per-bound sum of the
category bands, never a percentage applied to the aggregate.
"""

from enum import Enum
from typing import Dict, List

from pydantic import BaseModel, Field, model_validator

from models.layout import BudgetTier


# =============================================================================
# ENUMS
# =============================================================================


class PriceCategory(str, Enum):
    """Line item categories in a price breakdown."""

    CABINETS = "cabinets"
    MATERIAL = "material"
    HARDWARE = "hardware"
    DOOR_PROFILE = "door_profile"
    ADDONS = "addons"


class BudgetFit(str, Enum):
    """How the estimate sits against the stated budget."""

    UNDER = "under"
    WITHIN = "within"
    SLIGHTLY_OVER = "slightly-over"
    OVER = "over"
    UNKNOWN = "unknown"


# =============================================================================
# PRICE RANGE
# =============================================================================


class PriceRange(BaseModel):
    """Low/estimate/high price band in cents."""

    low_cents: int = Field(..., ge=0, alias="lowCents")
    estimate_cents: int = Field(..., ge=0, alias="estimateCents")
    high_cents: int = Field(..., ge=0, alias="highCents")

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="after")
    def validate_order(self) -> "PriceRange":
        """Ensure low <= estimate <= high."""
        if not (self.low_cents <= self.estimate_cents <= self.high_cents):
            raise ValueError(
                f"Price range must be low <= estimate <= high, got: "
                f"low={self.low_cents}, estimate={self.estimate_cents}, high={self.high_cents}"
            )
        return self

    @classmethod
    def zero(cls) -> "PriceRange":
        """Create a zero price range."""
        return cls(low_cents=0, estimate_cents=0, high_cents=0)

    @classmethod
    def fixed(cls, cents: int) -> "PriceRange":
        """A fixed-confidence amount contributing identically to both bounds."""
        return cls(low_cents=cents, estimate_cents=cents, high_cents=cents)

    @classmethod
    def with_variance(cls, cents: int, variance_pct: float) -> "PriceRange":
        """Spread an amount by +/- variance_pct percent.

        Args:
            cents: The estimate amount.
            variance_pct: Percentage variance, e.g. 5.0 for +/-5%.

        Returns:
            PriceRange rounded to whole cents.
        """
        delta = cents * variance_pct / 100
        return cls(
            low_cents=max(0, round(cents - delta)),
            estimate_cents=cents,
            high_cents=round(cents + delta)
        )

    def __add__(self, other: "PriceRange") -> "PriceRange":
        """Add two price ranges bound by bound."""
        return PriceRange(
            low_cents=self.low_cents + other.low_cents,
            estimate_cents=self.estimate_cents + other.estimate_cents,
            high_cents=self.high_cents + other.high_cents
        )

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary for JSON serialization."""
        return {
            "lowCents": self.low_cents,
            "estimateCents": self.estimate_cents,
            "highCents": self.high_cents
        }


# =============================================================================
# BREAKDOWN
# =============================================================================


class PriceBreakdownItem(BaseModel):
    """One labelled category line."""

    category: PriceCategory
    label: str = Field(description="Plain language, e.g. '5 base cabinets'")
    range: PriceRange

    class Config:
        frozen = True


class PriceBreakdown(BaseModel):
    """Per-category bands plus the aggregate band."""

    cabinets: PriceRange
    material: PriceRange
    hardware: PriceRange
    door_profile: PriceRange = Field(alias="doorProfile")
    addons: PriceRange
    total: PriceRange
    items: List[PriceBreakdownItem] = Field(default_factory=list)
    budget_tier: BudgetTier = Field(default=BudgetTier.UNKNOWN, alias="budgetTier")
    budget_fit: BudgetFit = Field(default=BudgetFit.UNKNOWN, alias="budgetFit")
    budget_message: str = Field(default="", alias="budgetMessage")

    class Config:
        populate_by_name = True
        frozen = True

    @model_validator(mode="after")
    def validate_total(self) -> "PriceBreakdown":
        """Total bounds must equal the per-bound sum of the categories."""
        bands = self.categories().values()
        for bound in ("low_cents", "estimate_cents", "high_cents"):
            expected = sum(getattr(band, bound) for band in bands)
            if getattr(self.total, bound) != expected:
                raise ValueError(
                    f"total.{bound}={getattr(self.total, bound)} does not equal "
                    f"category sum {expected}"
                )
        return self

    def categories(self) -> Dict[PriceCategory, PriceRange]:
        """Category bands in display order."""
        return {
            PriceCategory.CABINETS: self.cabinets,
            PriceCategory.MATERIAL: self.material,
            PriceCategory.HARDWARE: self.hardware,
            PriceCategory.DOOR_PROFILE: self.door_profile,
            PriceCategory.ADDONS: self.addons,
        }

    @property
    def range_label(self) -> str:
        """'$9,500 – $13,500'"""
        return f"{format_aud(self.total.low_cents)} – {format_aud(self.total.high_cents)}"

    @property
    def summary(self) -> str:
        """'~$11,500'"""
        return f"~{format_aud(self.total.estimate_cents)}"

    def to_dict(self) -> Dict:
        """Firestore-ready price estimate document."""
        data = self.model_dump(by_alias=True, mode="json")
        data["rangeLabel"] = self.range_label
        data["summary"] = self.summary
        return data


def format_aud(cents: int) -> str:
    """Format cents as whole Australian dollars, e.g. 950000 -> '$9,500'."""
    dollars = int(round(cents / 100))
    sign = "-" if dollars < 0 else ""
    return f"{sign}${abs(dollars):,}"
