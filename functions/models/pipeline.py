"""Pipeline models for DesignFlow.

Defines the ordered pipeline stages, the progress snapshot published to
observers, the caller-supplied UserContext and the terminal DesignResult.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from models.layout import BudgetTier, Purpose, WallSegment


# =============================================================================
# STAGES
# =============================================================================


class PipelineStage(str, Enum):
    """Pipeline stages in forward order, plus the terminal error state."""

    ANALYZING = "analyzing"
    MEASURING = "measuring"
    STYLING = "styling"
    CREATING = "creating"
    DONE = "done"
    ERROR = "error"

    @property
    def order(self) -> int:
        """Position in the forward sequence; error sorts after done."""
        return STAGE_ORDER.index(self) if self in STAGE_ORDER else len(STAGE_ORDER)

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStage.DONE, PipelineStage.ERROR)


# Forward order; ERROR is reachable from any non-terminal stage.
STAGE_ORDER: Tuple[PipelineStage, ...] = (
    PipelineStage.ANALYZING,
    PipelineStage.MEASURING,
    PipelineStage.STYLING,
    PipelineStage.CREATING,
    PipelineStage.DONE,
)

# Progress bar percentage reported once a stage completes.
STAGE_PROGRESS: Dict[PipelineStage, int] = {
    PipelineStage.ANALYZING: 25,
    PipelineStage.MEASURING: 50,
    PipelineStage.STYLING: 75,
    PipelineStage.CREATING: 100,
}


class PipelineProgress(BaseModel):
    """Observation-only snapshot of pipeline state."""

    stage: Optional[PipelineStage] = Field(
        default=None,
        description="Active stage, None while idle"
    )
    completed_stages: Tuple[PipelineStage, ...] = Field(
        default_factory=tuple,
        alias="completedStages"
    )
    percent: int = Field(default=0, ge=0, le=100)
    error_stage: Optional[PipelineStage] = Field(
        default=None,
        alias="errorStage",
        description="Stage at which the run failed, when stage is error"
    )

    class Config:
        populate_by_name = True
        frozen = True

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# INPUT
# =============================================================================


class UserContext(BaseModel):
    """User-stated preferences collected before the pipeline runs."""

    session_id: str = Field(alias="sessionId")
    user_id: str = Field(default="", alias="userId")
    purpose: Purpose = Field(default=Purpose.KITCHEN)
    style_summary: str = Field(
        default="",
        alias="styleSummary",
        description="Style words from discovery, e.g. 'light, warm, coastal'"
    )
    priorities: List[str] = Field(default_factory=list)
    specific_requests: List[str] = Field(default_factory=list, alias="specificRequests")
    free_text: str = Field(default="", alias="freeText")
    walls: List[WallSegment] = Field(default_factory=list)
    budget_tier: BudgetTier = Field(default=BudgetTier.UNKNOWN, alias="budgetTier")
    budget_range: Optional[str] = Field(
        default=None,
        alias="budgetRange",
        description="'under-8k', '8-15k', '15-25k' or 'not-sure'"
    )

    class Config:
        populate_by_name = True

    @field_validator("purpose", mode="before")
    @classmethod
    def normalise_purpose(cls, value: Any) -> Any:
        if isinstance(value, Purpose):
            return value
        text = str(value or "").strip().lower()
        return text if text in {p.value for p in Purpose} else Purpose.OTHER

    @field_validator("budget_tier", mode="before")
    @classmethod
    def normalise_budget_tier(cls, value: Any) -> Any:
        if isinstance(value, BudgetTier):
            return value
        text = str(value or "").strip().lower()
        return text if text in {b.value for b in BudgetTier} else BudgetTier.UNKNOWN

    def style_signals(self) -> List[str]:
        """Split the style summary into individual signal words."""
        words = self.style_summary.replace(",", " ").replace("/", " ").split()
        return [w.strip().lower() for w in words if w.strip()]


# =============================================================================
# OUTPUT
# =============================================================================


class Render(BaseModel):
    """One generated preview image."""

    id: str
    image_base64: str = Field(alias="imageBase64", repr=False)
    mime_type: str = Field(default="image/jpeg", alias="mimeType")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.image_base64}"

    def to_reference(self) -> Dict[str, str]:
        """Storage reference without the image payload."""
        return {"id": self.id, "mimeType": self.mime_type}


class CabinetSummary(BaseModel):
    """Flattened base cabinet entry for display."""

    position: int = Field(ge=1, description="1-based position on its wall")
    type: str
    label: str
    width: int = Field(description="Width in mm")

    class Config:
        frozen = True


class DesignResult(BaseModel):
    """Terminal aggregate of a successful pipeline run."""

    session_id: str = Field(alias="sessionId")
    renders: List[str] = Field(
        min_length=1,
        description="Rendered images as data URLs"
    )
    description: str = Field(description="Layout narrative")
    price_range: Tuple[int, int] = Field(alias="priceRange", description="(low, high) cents")
    price_label: str = Field(default="", alias="priceLabel")
    cabinets: List[CabinetSummary] = Field(default_factory=list)
    door_style: str = Field(alias="doorStyle")
    handle_style: str = Field(alias="handleStyle")
    wall_cabinets: int = Field(alias="wallCabinets", ge=0)
    style_preset: str = Field(default="", alias="stylePreset")

    class Config:
        populate_by_name = True
        frozen = True

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")
