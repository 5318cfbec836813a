"""Unit tests for design request validation."""

import pytest

from models.layout import BudgetTier, Purpose
from validators.design_request_validator import MAX_WALLS, validate_design_request


@pytest.fixture
def valid_request(sample_photo_base64):
    """A complete start_design_pipeline body."""
    return {
        "sessionId": "sess-1",
        "userId": "user-1",
        "photo": f"data:image/jpeg;base64,{sample_photo_base64}",
        "purpose": "kitchen",
        "styleSummary": "light, warm, coastal",
        "priorities": ["storage", "wow-factor"],
        "specificRequests": ["wine rack"],
        "freeText": "We entertain a lot",
        "walls": [{"label": "Long wall", "lengthMm": 3000}, {"label": "Short wall", "lengthMm": 1800}],
        "budgetTier": "mid",
        "budgetRange": "8-15k",
    }


class TestValidateDesignRequest:
    """Tests for validate_design_request()."""

    def test_valid_request(self, valid_request):
        result = validate_design_request(valid_request)

        assert result.is_valid
        assert result.errors == []
        assert result.photo == valid_request["photo"]
        context = result.parsed
        assert context.session_id == "sess-1"
        assert context.purpose == Purpose.KITCHEN
        assert context.budget_tier == BudgetTier.MID
        assert [w.length_mm for w in context.walls] == [3000, 1800]
        assert context.style_signals() == ["light", "warm", "coastal"]

    def test_minimal_request(self, sample_photo_base64):
        result = validate_design_request({
            "sessionId": "sess-1",
            "userId": "user-1",
            "photo": sample_photo_base64,
        })

        assert result.is_valid
        assert result.parsed.walls == []
        assert result.parsed.budget_tier == BudgetTier.UNKNOWN

    def test_not_an_object(self):
        result = validate_design_request(["photo"])

        assert not result.is_valid
        assert result.errors == ["Request body must be a JSON object"]

    @pytest.mark.parametrize("key", ["sessionId", "userId", "photo"])
    def test_required_fields(self, valid_request, key):
        del valid_request[key]

        result = validate_design_request(valid_request)

        assert not result.is_valid
        assert f"Missing {key}" in result.errors

    def test_blank_session_id(self, valid_request):
        valid_request["sessionId"] = "   "

        assert "Missing sessionId" in validate_design_request(valid_request).errors

    def test_photo_must_be_base64(self, valid_request):
        valid_request["photo"] = "not a photo!"

        result = validate_design_request(valid_request)

        assert result.errors == ["Photo is not valid base64"]

    def test_errors_are_collected(self, valid_request):
        del valid_request["sessionId"]
        valid_request["priorities"] = "storage"
        valid_request["budgetRange"] = "a lot"

        errors = validate_design_request(valid_request).errors

        assert len(errors) == 3
        assert "priorities must be a list of strings" in errors
        assert errors[-1].startswith("budgetRange must be one of")

    def test_specific_requests_must_be_strings(self, valid_request):
        valid_request["specificRequests"] = ["wine rack", 42]

        assert validate_design_request(valid_request).errors == [
            "specificRequests must be a list of strings"
        ]

    @pytest.mark.parametrize("wall,error", [
        ({"lengthMm": 3000}, "walls[0].label is required"),
        ({"label": "  ", "lengthMm": 3000}, "walls[0].label is required"),
        ({"label": "A"}, "walls[0].lengthMm must be a non-negative number"),
        ({"label": "A", "lengthMm": -1}, "walls[0].lengthMm must be a non-negative number"),
        ({"label": "A", "lengthMm": "3000"}, "walls[0].lengthMm must be a non-negative number"),
        ({"label": "A", "lengthMm": True}, "walls[0].lengthMm must be a non-negative number"),
        ("Long wall", "walls[0] must be an object"),
    ])
    def test_wall_errors(self, valid_request, wall, error):
        valid_request["walls"] = [wall]

        assert validate_design_request(valid_request).errors == [error]

    def test_snake_case_wall_length_accepted(self, valid_request):
        valid_request["walls"] = [{"label": "Long wall", "length_mm": 2400}]

        result = validate_design_request(valid_request)

        assert result.is_valid
        assert result.parsed.walls[0].length_mm == 2400

    def test_too_many_walls(self, valid_request):
        valid_request["walls"] = [{"label": f"W{i}", "lengthMm": 600} for i in range(MAX_WALLS + 1)]

        assert validate_design_request(valid_request).errors == [f"At most {MAX_WALLS} walls are supported"]

    def test_fractional_wall_length_reported_by_schema(self, valid_request):
        valid_request["walls"] = [{"label": "A", "lengthMm": 3000.5}]

        result = validate_design_request(valid_request)

        assert not result.is_valid
        assert result.errors[0].startswith("walls.0.lengthMm:")

    @pytest.mark.parametrize("budget_range", ["under-8k", "8-15k", "15-25k", "not-sure"])
    def test_budget_ranges(self, valid_request, budget_range):
        valid_request["budgetRange"] = budget_range

        assert validate_design_request(valid_request).is_valid

    def test_unknown_purpose_and_tier_normalised(self, valid_request):
        valid_request["purpose"] = "bathroom"
        valid_request["budgetTier"] = "whatever"

        result = validate_design_request(valid_request)

        assert result.is_valid
        assert result.parsed.purpose == Purpose.OTHER
        assert result.parsed.budget_tier == BudgetTier.UNKNOWN
