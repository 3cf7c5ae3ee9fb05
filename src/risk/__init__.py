"""Risk limit and position sizing engine."""

from .daily_tracker import (
    DailyRiskTracker,
    classify_daily_state,
    compute_loss_limit_used_percent,
)
from .limit_validator import (
    check_correlated_exposure,
    check_weekly_drawdown,
    validate_risk_limits,
)
from .models import (
    DailyRiskSnapshot,
    DailyRiskState,
    PositionSizeInput,
    PositionSizeResult,
    RiskEngineError,
    RiskEvent,
    RiskEventType,
    RiskFactor,
    RiskInputs,
    RiskProfile,
    RiskValidationResult,
    SnapshotConflictError,
    SnapshotNotFoundError,
    SnapshotSealedError,
    TradeRiskAssessment,
    TradingGateStatus,
    UnifiedRiskOutput,
)
from .position_sizer import compute_position_size
from .signal_orchestrator import (
    calculate_unified_position_size,
    derive_calendar_multiplier,
    derive_regime_multiplier,
    derive_volatility_multiplier,
)
from .store import RiskStore
from .style_profiles import STYLE_WEIGHT_PROFILES, StyleWeightProfile, TradingStyle, get_style_profile
from .trade_evaluator import TradeRiskEvaluator

__all__ = [
    "DailyRiskSnapshot",
    "DailyRiskState",
    "DailyRiskTracker",
    "PositionSizeInput",
    "PositionSizeResult",
    "RiskEngineError",
    "RiskEvent",
    "RiskEventType",
    "RiskFactor",
    "RiskInputs",
    "RiskProfile",
    "RiskStore",
    "RiskValidationResult",
    "STYLE_WEIGHT_PROFILES",
    "SnapshotConflictError",
    "SnapshotNotFoundError",
    "SnapshotSealedError",
    "StyleWeightProfile",
    "TradeRiskAssessment",
    "TradeRiskEvaluator",
    "TradingGateStatus",
    "TradingStyle",
    "UnifiedRiskOutput",
    "calculate_unified_position_size",
    "check_correlated_exposure",
    "check_weekly_drawdown",
    "classify_daily_state",
    "compute_loss_limit_used_percent",
    "compute_position_size",
    "derive_calendar_multiplier",
    "derive_regime_multiplier",
    "derive_volatility_multiplier",
    "get_style_profile",
    "validate_risk_limits",
]
