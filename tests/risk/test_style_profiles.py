"""Tests for the style-aware weight profiles."""

import pytest

from src.risk.style_profiles import (
    STYLE_WEIGHT_PROFILES,
    StyleWeightProfile,
    TradingStyle,
    get_style_profile,
)


class TestStyleWeightProfiles:
    """Configuration checks for STYLE_WEIGHT_PROFILES."""

    def test_every_style_has_a_profile(self):
        assert set(STYLE_WEIGHT_PROFILES) == set(TradingStyle)

    @pytest.mark.parametrize("style", list(TradingStyle))
    def test_composite_weights_sum_to_one(self, style):
        assert STYLE_WEIGHT_PROFILES[style].composite_weights.total() == pytest.approx(1.0)

    @pytest.mark.parametrize("style", list(TradingStyle))
    def test_orchestrator_weights_sum_to_one(self, style):
        assert STYLE_WEIGHT_PROFILES[style].orchestrator_weights.total() == pytest.approx(1.0)

    @pytest.mark.parametrize("style", list(TradingStyle))
    def test_profile_keyed_by_its_own_style(self, style):
        assert STYLE_WEIGHT_PROFILES[style].style == style

    def test_event_sensitivity_grows_with_holding_period(self):
        scalping = STYLE_WEIGHT_PROFILES[TradingStyle.SCALPING]
        short_trade = STYLE_WEIGHT_PROFILES[TradingStyle.SHORT_TRADE]
        swing = STYLE_WEIGHT_PROFILES[TradingStyle.SWING]

        assert (
            scalping.event_sensitivity_hours
            < short_trade.event_sensitivity_hours
            < swing.event_sensitivity_hours
        )

    def test_scalping_weighs_calendar_most(self):
        weights = STYLE_WEIGHT_PROFILES[TradingStyle.SCALPING].orchestrator_weights

        assert weights.calendar > weights.regime
        assert weights.calendar > weights.volatility


class TestGetStyleProfile:
    """Tests for get_style_profile."""

    def test_lookup_by_enum(self):
        profile = get_style_profile(TradingStyle.SWING)

        assert isinstance(profile, StyleWeightProfile)
        assert profile.range_horizon == "7d"

    def test_lookup_by_string(self):
        assert get_style_profile("short_trade").style == TradingStyle.SHORT_TRADE

    def test_unknown_style_raises_key_error(self):
        with pytest.raises(KeyError, match="position_trading"):
            get_style_profile("position_trading")
