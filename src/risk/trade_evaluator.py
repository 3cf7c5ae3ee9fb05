"""Risk evaluation pipeline for a proposed trade."""

import logging
from datetime import date
from pathlib import Path

from src.config.settings import (
    PositionSizingSettings,
    Settings,
    SignalOrchestratorSettings,
)
from src.risk.daily_tracker import DailyRiskTracker
from src.risk.limit_validator import validate_risk_limits
from src.risk.models import (
    PositionSizeInput,
    RiskInputs,
    RiskProfile,
    TradeRiskAssessment,
)
from src.risk.position_sizer import compute_position_size
from src.risk.signal_orchestrator import (
    calculate_unified_position_size,
    derive_volatility_multiplier,
)
from src.risk.store import RiskStore

logger = logging.getLogger(__name__)


class TradeRiskEvaluator:
    """Sizes, gates, validates and scales a proposed trade.

    Pipeline:
    1. Compute the candidate position size
    2. Read today's trading gate (starting the day if needed)
    3. Validate against the risk profile, unless the gate is closed
    4. Scale the candidate by the most conservative market-risk signal

    Attributes:
        tracker: Daily risk tracker providing the snapshot and gate.
    """

    def __init__(
        self,
        tracker: DailyRiskTracker,
        position_settings: PositionSizingSettings | None = None,
        orchestrator_settings: SignalOrchestratorSettings | None = None,
    ):
        self.tracker = tracker
        self._position_settings = position_settings or PositionSizingSettings()
        self._orchestrator_settings = orchestrator_settings or SignalOrchestratorSettings()

    @classmethod
    def from_settings(cls, settings: Settings) -> "TradeRiskEvaluator":
        """Build an evaluator, store and tracker from application settings."""
        store = RiskStore(Path(settings.storage.data_dir))
        tracker = DailyRiskTracker(store, settings.daily_risk)
        return cls(
            tracker,
            position_settings=settings.position_sizing,
            orchestrator_settings=settings.signal_orchestrator,
        )

    def volatility_multiplier(self, annualized_vol_pct: float) -> float:
        """Volatility multiplier using the configured breakpoints."""
        return derive_volatility_multiplier(
            annualized_vol_pct,
            extreme_threshold=self._orchestrator_settings.extreme_volatility_percent,
            high_threshold=self._orchestrator_settings.high_volatility_percent,
        )

    def evaluate(
        self,
        user_id: str,
        position_input: PositionSizeInput,
        profile: RiskProfile,
        risk_inputs: RiskInputs | None = None,
        snapshot_date: date | None = None,
    ) -> TradeRiskAssessment:
        """Evaluate a proposed trade end to end.

        Args:
            user_id: User proposing the trade.
            position_input: Balance, risk percent, entry, stop and leverage.
            profile: The user's active risk profile.
            risk_inputs: Calendar, regime and volatility multipliers. When
                omitted the candidate size is not scaled.
            snapshot_date: Trading day, defaults to today.

        Returns:
            TradeRiskAssessment. can_trade is True only when the gate is open,
            every profile limit passes and the sizing result is valid.
        """
        position = compute_position_size(
            position_input,
            far_stop_percent=self._position_settings.far_stop_percent,
            max_capital_deployment_percent=self._position_settings.max_capital_deployment_percent,
        )

        snapshot = self.tracker.start_day(
            user_id, position_input.account_balance, snapshot_date
        )
        gate = self.tracker.get_gate_status(user_id, profile, snapshot.snapshot_date)

        warnings = list(position.warnings)
        validation = None
        if gate.can_trade:
            if gate.status == "warning" and gate.reason:
                warnings.append(gate.reason)
            validation = validate_risk_limits(
                position,
                profile,
                current_open_positions=snapshot.positions_open,
                current_daily_loss=min(snapshot.current_pnl, 0.0),
                starting_balance=snapshot.starting_balance,
            )
            warnings.extend(validation.warnings)
        else:
            logger.warning(f"Trade blocked for {user_id}: {gate.reason}")
            warnings.append(gate.reason or "Trading disabled for today.")

        unified_risk = None
        multiplier = 1.0
        if risk_inputs is not None:
            unified_risk = calculate_unified_position_size(risk_inputs)
            multiplier = unified_risk.final_multiplier

        can_trade = (
            gate.can_trade
            and validation is not None
            and validation.can_trade
            and position.is_valid
        )

        return TradeRiskAssessment(
            can_trade=can_trade,
            position=position,
            validation=validation,
            gate=gate,
            unified_risk=unified_risk,
            adjusted_position_size=position.position_size * multiplier,
            adjusted_position_value=position.position_value * multiplier,
            warnings=warnings,
        )
