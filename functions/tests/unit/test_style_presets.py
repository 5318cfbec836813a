"""Unit tests for style preset matching."""

import pytest

from engine.style_presets import DEFAULT_PRESET, STYLE_PRESETS, get_preset, match_style_preset
from models.layout import BudgetTier


class TestMatchStylePreset:
    """Tests for match_style_preset()."""

    def test_coastal_signals(self):
        preset = match_style_preset(["light", "warm", "coastal"], BudgetTier.MID)

        assert preset.id == "coastal-light"
        assert preset.finishes.material == "POL-NOWM"
        assert preset.finishes.hardware == "HW-BRASS-BAR"
        assert preset.finishes.door_profile == "DP-SHAKER"

    def test_no_signals_uses_default(self):
        assert match_style_preset([]) is DEFAULT_PRESET
        assert DEFAULT_PRESET.id == "coastal-light"

    def test_blank_signals_ignored(self):
        assert match_style_preset(["", "   "]) is DEFAULT_PRESET

    def test_unmatched_signals_use_default(self):
        assert match_style_preset(["zzz"]).id == "coastal-light"

    @pytest.mark.parametrize("signal,preset_id", [
        ("industrial", "dark-timber"),
        ("Scandinavian", "scandi-pale"),
        ("farmhouse", "classic-cream"),
        ("two-tone", "two-tone-oak"),
    ])
    def test_single_signal(self, signal, preset_id):
        assert match_style_preset([signal]).id == preset_id

    def test_partial_match_scores(self):
        assert match_style_preset(["beach house vibe"]).id == "coastal-light"

    def test_premium_penalised_on_value_budget(self):
        assert match_style_preset(["sleek"]).id == "premium-charcoal"
        # Penalty zeroes the premium score; a value preset wins on tier alone
        assert match_style_preset(["sleek"], BudgetTier.VALUE).id == "minimal-white"

    def test_tie_keeps_earlier_preset(self):
        assert match_style_preset(["white", "dark"]).id == "minimal-white"

    def test_tier_breaks_tie(self):
        assert match_style_preset(["white", "dark"], BudgetTier.MID).id == "dark-timber"


class TestPresetTable:
    """Tests for the preset table itself."""

    def test_seven_presets_with_unique_ids(self):
        ids = [p.id for p in STYLE_PRESETS]

        assert len(ids) == 7
        assert len(set(ids)) == len(ids)

    def test_get_preset(self):
        assert get_preset("premium-charcoal").budget_tier == BudgetTier.PREMIUM
        assert get_preset("missing") is None
