"""Tests for the risk limit validator."""

import pytest

from src.risk.limit_validator import (
    check_correlated_exposure,
    check_weekly_drawdown,
    validate_risk_limits,
)
from src.risk.models import PositionSizeInput, RiskProfile
from src.risk.position_sizer import compute_position_size


def make_position(risk_percent: float = 2.0, leverage: float = 10.0):
    """Size a BTC-style trade on a 10k account."""
    return compute_position_size(
        PositionSizeInput(
            account_balance=10000.0,
            risk_percent=risk_percent,
            entry_price=50000.0,
            stop_loss_price=49000.0,
            leverage=leverage,
        )
    )


@pytest.fixture
def profile() -> RiskProfile:
    return RiskProfile(user_id="user-1")


class TestValidateRiskLimits:
    """Tests for validate_risk_limits."""

    def test_all_checks_pass(self, profile):
        """A small trade on a fresh day is allowed without warnings."""
        result = validate_risk_limits(
            make_position(),
            profile,
            current_open_positions=0,
            current_daily_loss=0.0,
            starting_balance=10000.0,
        )

        assert result.can_trade is True
        assert result.warnings == []

    def test_rejects_oversized_position(self, profile):
        """Deployment above max_position_size_percent is rejected."""
        result = validate_risk_limits(
            make_position(leverage=1.0),
            profile,
            current_open_positions=0,
            current_daily_loss=0.0,
            starting_balance=10000.0,
        )

        assert result.can_trade is False
        assert len(result.warnings) == 1
        assert "Position size (100.0%) exceeds max allowed (40.0% of capital)" == result.warnings[0]

    def test_rejects_at_concurrency_limit(self, profile):
        """Open positions at the limit block the trade on their own."""
        result = validate_risk_limits(
            make_position(),
            profile,
            current_open_positions=3,
            current_daily_loss=0.0,
            starting_balance=10000.0,
        )

        assert result.can_trade is False
        assert result.warnings == ["Max concurrent positions reached (3/3)"]

    def test_rejects_when_loss_budget_exhausted(self, profile):
        """Projected loss above the daily limit reports the remaining budget."""
        result = validate_risk_limits(
            make_position(risk_percent=0.5),
            profile,
            current_open_positions=0,
            current_daily_loss=-480.0,
            starting_balance=10000.0,
        )

        assert result.can_trade is False
        assert len(result.warnings) == 1
        assert "$20.00" in result.warnings[0]

    def test_projected_loss_equal_to_limit_passes(self, profile):
        """The loss budget check is strict: exactly at the limit is allowed."""
        result = validate_risk_limits(
            make_position(),
            profile,
            current_open_positions=0,
            current_daily_loss=-300.0,
            starting_balance=10000.0,
        )

        assert result.can_trade is True

    def test_daily_loss_sign_ignored(self, profile):
        """Daily loss may be passed as a positive magnitude."""
        negative = validate_risk_limits(make_position(), profile, 0, -480.0, 10000.0)
        positive = validate_risk_limits(make_position(), profile, 0, 480.0, 10000.0)

        assert negative == positive

    def test_reports_every_violation(self, profile):
        """All violated checks are reported together."""
        result = validate_risk_limits(
            make_position(leverage=1.0),
            profile,
            current_open_positions=5,
            current_daily_loss=-450.0,
            starting_balance=10000.0,
        )

        assert result.can_trade is False
        assert len(result.warnings) == 3

    @pytest.mark.parametrize(
        "leverage,open_positions,daily_loss,expected_warnings",
        [
            (10.0, 0, 0.0, 0),
            (1.0, 0, 0.0, 1),
            (10.0, 3, 0.0, 1),
            (10.0, 0, -400.0, 1),
        ],
    )
    def test_can_trade_is_conjunction(
        self, profile, leverage, open_positions, daily_loss, expected_warnings
    ):
        """Failing any single check flips can_trade and adds exactly one warning."""
        result = validate_risk_limits(
            make_position(leverage=leverage),
            profile,
            current_open_positions=open_positions,
            current_daily_loss=daily_loss,
            starting_balance=10000.0,
        )

        assert result.can_trade is (expected_warnings == 0)
        assert len(result.warnings) == expected_warnings

    def test_decision_not_cached(self, profile):
        """The same position is re-evaluated against new account state."""
        position = make_position()

        first = validate_risk_limits(position, profile, 0, 0.0, 10000.0)
        second = validate_risk_limits(position, profile, 3, 0.0, 10000.0)

        assert first.can_trade is True
        assert second.can_trade is False


class TestCheckWeeklyDrawdown:
    """Tests for check_weekly_drawdown."""

    def test_blocks_at_limit(self, profile):
        result = check_weekly_drawdown(-1000.0, 10000.0, profile)

        assert result.can_trade is False
        assert "Weekly drawdown (10.0%)" in result.warnings[0]

    def test_allows_below_limit(self, profile):
        result = check_weekly_drawdown(-500.0, 10000.0, profile)

        assert result.can_trade is True
        assert result.warnings == []

    def test_profitable_week_allowed(self, profile):
        assert check_weekly_drawdown(800.0, 10000.0, profile).can_trade is True


class TestCheckCorrelatedExposure:
    """Tests for check_correlated_exposure."""

    def test_warns_above_limit_without_blocking(self, profile):
        result = check_correlated_exposure(0.8, profile)

        assert result.can_trade is True
        assert result.warnings == ["Correlated exposure (80%) exceeds limit (75%)"]

    def test_silent_at_limit(self, profile):
        result = check_correlated_exposure(0.75, profile)

        assert result.warnings == []
