"""Design request parsing and validation.

Checks the body posted to start_design_pipeline and turns it into a
typed UserContext plus the source photo. Unknown purposes, budget tiers
and priority tags are not errors; the models normalise them.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
import structlog

from config.errors import ValidationError
from engine.pricing_engine import BUDGET_RANGES
from models.pipeline import UserContext
from services.image_utils import decode_image

logger = structlog.get_logger(__name__)

BUDGET_RANGE_KEYS = frozenset(BUDGET_RANGES) | {"not-sure"}
MAX_WALLS = 8


@dataclass
class ValidationResult:
    """Result of design request validation."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    parsed: Optional[UserContext] = None
    photo: Optional[str] = None


def validate_design_request(data: Dict[str, Any]) -> ValidationResult:
    """Validate a start_design_pipeline request body.

    Args:
        data: Raw request JSON.

    Returns:
        ValidationResult with is_valid, errors, the parsed UserContext and
        the photo payload.
    """
    if not isinstance(data, dict):
        return ValidationResult(is_valid=False, errors=["Request body must be a JSON object"])

    errors: List[str] = []

    for key in ("sessionId", "userId"):
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"Missing {key}")

    photo = data.get("photo")
    if not isinstance(photo, str) or not photo.strip():
        errors.append("Missing photo")
    else:
        try:
            decode_image(photo)
        except ValidationError as e:
            errors.append(e.message)

    errors.extend(_check_string_list(data, "priorities"))
    errors.extend(_check_string_list(data, "specificRequests"))
    errors.extend(_check_walls(data.get("walls")))

    budget_range = data.get("budgetRange")
    if budget_range is not None and budget_range not in BUDGET_RANGE_KEYS:
        errors.append(
            f"budgetRange must be one of {sorted(BUDGET_RANGE_KEYS)}, got {budget_range!r}"
        )

    if errors:
        logger.warning("design_request_invalid", errors=errors, keys=list(data.keys()))
        return ValidationResult(is_valid=False, errors=errors)

    try:
        parsed = UserContext.model_validate(data)
    except PydanticValidationError as e:
        errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()]
        logger.warning("design_request_schema_invalid", errors=errors)
        return ValidationResult(is_valid=False, errors=errors)

    return ValidationResult(is_valid=True, parsed=parsed, photo=photo)


def _check_string_list(data: Dict[str, Any], key: str) -> List[str]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return [f"{key} must be a list of strings"]
    return []


def _check_walls(walls: Any) -> List[str]:
    if walls is None:
        return []
    if not isinstance(walls, list):
        return ["walls must be a list"]
    if len(walls) > MAX_WALLS:
        return [f"At most {MAX_WALLS} walls are supported"]

    errors = []
    for i, wall in enumerate(walls):
        if not isinstance(wall, dict):
            errors.append(f"walls[{i}] must be an object")
            continue
        if not str(wall.get("label") or "").strip():
            errors.append(f"walls[{i}].label is required")
        length = wall.get("lengthMm", wall.get("length_mm"))
        if isinstance(length, bool) or not isinstance(length, (int, float)) or length < 0:
            errors.append(f"walls[{i}].lengthMm must be a non-negative number")
    return errors
