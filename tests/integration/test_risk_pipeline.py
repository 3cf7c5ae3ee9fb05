"""Integration tests for the risk engine pipeline."""

from datetime import date

import pytest

from src.config.settings import Settings, StorageConfig
from src.risk.models import PositionSizeInput, RiskEventType, RiskInputs, RiskProfile
from src.risk.signal_orchestrator import (
    derive_calendar_multiplier,
    derive_regime_multiplier,
)
from src.risk.trade_evaluator import TradeRiskEvaluator


MONDAY = date(2026, 3, 2)
TUESDAY = date(2026, 3, 3)


class TestRiskPipelineIntegration:
    """A trading day from onboarding to roll-over, through settings, store, tracker and evaluator."""

    @pytest.fixture
    def settings(self, tmp_path) -> Settings:
        return Settings(storage=StorageConfig(data_dir=str(tmp_path / "risk")))

    @pytest.fixture
    def evaluator(self, settings) -> TradeRiskEvaluator:
        return TradeRiskEvaluator.from_settings(settings)

    @pytest.fixture
    def trade(self) -> PositionSizeInput:
        return PositionSizeInput(
            account_balance=10000.0,
            risk_percent=2.0,
            entry_price=50000.0,
            stop_loss_price=49000.0,
            leverage=10.0,
        )

    def test_full_trading_day(self, settings, evaluator, trade):
        store = evaluator.tracker.store
        tracker = evaluator.tracker
        profile = store.get_or_create_profile(
            "trader-1", settings.profile_defaults.model_dump()
        )

        # Calm market, first trade goes through at full size
        first = evaluator.evaluate("trader-1", trade, profile, snapshot_date=MONDAY)
        assert first.can_trade is True
        tracker.record_position_opened("trader-1", first.position, profile, MONDAY)

        # Event day: the calendar signal halves the next trade
        risk_inputs = RiskInputs(
            calendar_multiplier=derive_calendar_multiplier("HIGH"),
            regime_multiplier=derive_regime_multiplier("AGGRESSIVE"),
            volatility_multiplier=evaluator.volatility_multiplier(95.0),
        )
        second = evaluator.evaluate(
            "trader-1", trade, profile, risk_inputs=risk_inputs, snapshot_date=MONDAY
        )
        assert second.can_trade is True
        assert second.unified_risk.final_size_label == "Reduce 50% (high risk)"
        assert second.adjusted_position_size == pytest.approx(0.1)

        # First trade stops out, second one loses more
        tracker.record_position_closed(
            "trader-1", -200.0, first.position.capital_deployment_percent, profile, MONDAY
        )
        tracker.record_realized_pnl("trader-1", -180.0, profile, MONDAY)

        third = evaluator.evaluate("trader-1", trade, profile, snapshot_date=MONDAY)
        assert third.gate.status == "warning"
        assert third.can_trade is False
        assert any("$120.00" in w for w in third.warnings)

        # Another loss exhausts the budget
        tracker.record_realized_pnl("trader-1", -150.0, profile, MONDAY)
        blocked = evaluator.evaluate("trader-1", trade, profile, snapshot_date=MONDAY)
        assert blocked.can_trade is False
        assert blocked.validation is None

        assert [e.event_type for e in store.get_events("trader-1", MONDAY)] == [
            RiskEventType.WARNING_70,
            RiskEventType.WARNING_90,
            RiskEventType.LIMIT_REACHED,
            RiskEventType.TRADING_DISABLED,
        ]

        # Next day starts fresh from the ending balance
        tuesday = tracker.roll_over("trader-1", TUESDAY)
        assert tuesday.starting_balance == pytest.approx(9470.0)
        assert tracker.get_snapshot("trader-1", MONDAY).sealed is True

        reopened = evaluator.evaluate("trader-1", trade, profile, snapshot_date=TUESDAY)
        assert reopened.gate.status == "ok"
        assert reopened.can_trade is True
        assert store.get_events("trader-1", TUESDAY) == []

    def test_profile_change_keeps_history(self, settings, evaluator, trade):
        store = evaluator.tracker.store
        store.get_or_create_profile("trader-1", settings.profile_defaults.model_dump())

        tightened = store.save_profile(
            RiskProfile(user_id="trader-1", max_position_size_percent=5.0)
        )
        assessment = evaluator.evaluate("trader-1", trade, tightened, snapshot_date=MONDAY)

        assert assessment.can_trade is False
        assert "exceeds max allowed (5.0% of capital)" in assessment.warnings[0]
        assert len(store.get_profile_history("trader-1")) == 2
