"""Scene analysis and dimension models for DesignFlow.

SpaceAnalysis is produced once per session by the scene analysis service
and is immutable once captured. Dimensions are the constrained,
confidence-tagged measurements derived from it.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field


# =============================================================================
# ENUMS
# =============================================================================


class RoomType(str, Enum):
    """Room classification returned by scene analysis."""

    KITCHEN = "kitchen"
    BEDROOM = "bedroom"
    LIVING = "living"
    OFFICE = "office"
    LAUNDRY = "laundry"
    GARAGE = "garage"
    OTHER = "other"


class StyleAesthetic(str, Enum):
    """Existing aesthetic detected in the photo."""

    MODERN = "modern"
    TRADITIONAL = "traditional"
    INDUSTRIAL = "industrial"
    COASTAL = "coastal"
    SCANDINAVIAN = "scandinavian"


class LightingCondition(str, Enum):
    """Dominant lighting in the photo."""

    NATURAL = "natural"
    ARTIFICIAL = "artificial"
    MIXED = "mixed"


class ConfidenceTier(str, Enum):
    """How a dimension estimate was produced, ordered by accuracy.

    - basic: single photo (+/-15%)
    - standard: photo + reference object (+/-10%)
    - enhanced: multiple photos (+/-5%)
    - precision: depth sensor scan (+/-2%)
    """

    BASIC = "basic"
    STANDARD = "standard"
    ENHANCED = "enhanced"
    PRECISION = "precision"


# =============================================================================
# MODELS
# =============================================================================


class SpaceAnalysis(BaseModel):
    """Structured scene understanding for one room photo."""

    room_type: RoomType = Field(
        alias="roomType",
        description="Room classification"
    )
    estimated_width: float = Field(
        alias="estimatedWidth",
        description="Estimated width in mm (unconstrained)"
    )
    estimated_depth: float = Field(
        alias="estimatedDepth",
        description="Estimated depth in mm (unconstrained)"
    )
    estimated_height: float = Field(
        alias="estimatedHeight",
        description="Estimated ceiling height in mm (unconstrained)"
    )
    features: List[str] = Field(
        default_factory=list,
        description="Notable features: windows, doors, alcoves, power points"
    )
    style_aesthetic: StyleAesthetic = Field(
        alias="styleAesthetic",
        description="Detected aesthetic"
    )
    lighting_conditions: LightingCondition = Field(
        alias="lightingConditions",
        description="Lighting condition"
    )
    flooring: str = Field(
        default="",
        description="Floor type and colour"
    )
    wall_finishes: str = Field(
        default="",
        alias="wallFinishes",
        description="Wall colour and texture"
    )

    class Config:
        populate_by_name = True
        frozen = True


class Dimensions(BaseModel):
    """Constrained, confidence-tagged measurements in millimetres."""

    width: int = Field(description="Width in mm, within 500-6000")
    depth: int = Field(description="Depth in mm, within 300-2000")
    height: int = Field(description="Height in mm, within 2100-3500")
    confidence: ConfidenceTier = Field(description="Confidence tier")
    confidence_percent: int = Field(
        alias="confidencePercent",
        ge=0,
        le=100,
        description="Confidence percentage derived from the tier"
    )
    tier_label: str = Field(
        alias="tierLabel",
        description="'High confidence' or 'Verify dimensions'"
    )

    class Config:
        populate_by_name = True
        frozen = True
