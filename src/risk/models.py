"""Data models for risk management."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Literal, Union


class RiskEngineError(Exception):
    """Base class for errors raised by the risk engine's stateful layer."""


class SnapshotConflictError(RiskEngineError):
    """A daily snapshot changed between read and write. Safe to retry."""


class SnapshotNotFoundError(RiskEngineError):
    """No daily snapshot exists for the requested user and date."""


class SnapshotSealedError(RiskEngineError):
    """The daily snapshot belongs to a closed trading day."""


@dataclass
class RiskProfile:
    """User-defined risk limits. One active profile per user.

    Attributes:
        user_id: Owner of the profile.
        risk_per_trade_percent: Percent of balance risked per trade.
        max_daily_loss_percent: Daily loss limit as percent of starting balance.
        max_weekly_drawdown_percent: Weekly drawdown limit as percent.
        max_position_size_percent: Max capital deployment for one position.
        max_correlated_exposure: Max fraction (0-1) of correlated exposure.
        max_concurrent_positions: Max number of simultaneously open positions.
        is_active: Whether this is the user's active profile.
    """

    user_id: str
    risk_per_trade_percent: float = 2.0
    max_daily_loss_percent: float = 5.0
    max_weekly_drawdown_percent: float = 10.0
    max_position_size_percent: float = 40.0
    max_correlated_exposure: float = 0.75
    max_concurrent_positions: int = 3
    is_active: bool = True
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        percent_fields = {
            "risk_per_trade_percent": self.risk_per_trade_percent,
            "max_daily_loss_percent": self.max_daily_loss_percent,
            "max_weekly_drawdown_percent": self.max_weekly_drawdown_percent,
            "max_position_size_percent": self.max_position_size_percent,
        }
        for name, value in percent_fields.items():
            if value < 0:
                raise ValueError(f"{name} must be non-negative, got {value}")
        if not 0.0 <= self.max_correlated_exposure <= 1.0:
            raise ValueError(
                f"max_correlated_exposure must be between 0 and 1, got {self.max_correlated_exposure}"
            )
        if self.max_concurrent_positions < 0:
            raise ValueError(
                f"max_concurrent_positions must be non-negative, got {self.max_concurrent_positions}"
            )


@dataclass
class PositionSizeInput:
    """Parameters of a proposed trade."""

    account_balance: float
    risk_percent: float
    entry_price: float
    stop_loss_price: float
    leverage: float = 1.0


@dataclass
class PositionSizeResult:
    """Computed position size and outcome figures for a proposed trade.

    Attributes:
        position_size: Quantity to buy or sell (0 when the stop distance is 0).
        position_value: Notional value of the position.
        risk_amount: Dollars at risk, one R.
        capital_deployment_percent: Notional as percent of balance * leverage.
        stop_distance: Absolute distance between entry and stop.
        stop_distance_percent: Stop distance as percent of entry.
        potential_loss: Loss if the stop is hit (equals risk_amount).
        potential_profit_1r: Profit at 1R.
        potential_profit_2r: Profit at 2R.
        potential_profit_3r: Profit at 3R.
        is_valid: False when any invalidating rule fired.
        warnings: Advisory and invalidating messages, in rule order.
    """

    position_size: float
    position_value: float
    risk_amount: float
    capital_deployment_percent: float
    stop_distance: float
    stop_distance_percent: float
    potential_loss: float
    potential_profit_1r: float
    potential_profit_2r: float
    potential_profit_3r: float
    is_valid: bool
    warnings: list[str] = field(default_factory=list)


@dataclass
class RiskValidationResult:
    """Verdict of the risk limit validator."""

    can_trade: bool
    warnings: list[str] = field(default_factory=list)


class DailyRiskState(str, Enum):
    """Position of a trading day on the loss-limit ladder."""

    OPEN = "open"
    WARNING_70 = "warning_70"
    WARNING_90 = "warning_90"
    DISABLED = "disabled"


@dataclass
class DailyRiskSnapshot:
    """Risk state of one user for one trading day.

    Attributes:
        user_id: Owner of the snapshot.
        snapshot_date: The trading day.
        starting_balance: Balance at the start of the day.
        current_pnl: Realized P&L so far today.
        loss_limit_used_percent: Share of the daily loss limit consumed.
        positions_open: Number of currently open positions.
        capital_deployed_percent: Capital committed to open positions.
        trading_allowed: False once the daily loss limit is reached.
        version: Incremented on every write, used for conflict detection.
        sealed: True once the day has rolled over.
    """

    user_id: str
    snapshot_date: date
    starting_balance: float
    current_pnl: float = 0.0
    loss_limit_used_percent: float = 0.0
    positions_open: int = 0
    capital_deployed_percent: float = 0.0
    trading_allowed: bool = True
    version: int = 0
    sealed: bool = False

    @property
    def ending_balance(self) -> float:
        """Balance after today's realized P&L."""
        return self.starting_balance + self.current_pnl


class RiskEventType(str, Enum):
    """Kinds of entries in the risk event log."""

    WARNING_70 = "warning_70"
    WARNING_90 = "warning_90"
    LIMIT_REACHED = "limit_reached"
    TRADING_DISABLED = "trading_disabled"
    TRADING_ENABLED = "trading_enabled"
    POSITION_LIMIT_WARNING = "position_limit_warning"
    CORRELATION_WARNING = "correlation_warning"


EVENT_METADATA_SCHEMA_VERSION = 1


@dataclass
class LossThresholdMetadata:
    """Context for warning_70, warning_90 and limit_reached events."""

    current_pnl: float
    daily_loss_limit: float
    starting_balance: float
    kind: Literal["loss_threshold"] = "loss_threshold"
    schema_version: int = EVENT_METADATA_SCHEMA_VERSION


@dataclass
class TradingStateMetadata:
    """Context for trading_disabled and trading_enabled events."""

    previous_state: DailyRiskState
    new_state: DailyRiskState
    kind: Literal["trading_state"] = "trading_state"
    schema_version: int = EVENT_METADATA_SCHEMA_VERSION


@dataclass
class PositionLimitMetadata:
    """Context for position_limit_warning events."""

    positions_open: int
    max_concurrent_positions: int
    kind: Literal["position_limit"] = "position_limit"
    schema_version: int = EVENT_METADATA_SCHEMA_VERSION


@dataclass
class CorrelationMetadata:
    """Context for correlation_warning events."""

    correlated_exposure: float
    max_correlated_exposure: float
    symbols: list[str] = field(default_factory=list)
    kind: Literal["correlation"] = "correlation"
    schema_version: int = EVENT_METADATA_SCHEMA_VERSION


RiskEventMetadata = Union[
    LossThresholdMetadata,
    TradingStateMetadata,
    PositionLimitMetadata,
    CorrelationMetadata,
]


@dataclass
class RiskEvent:
    """Append-only risk log entry, unique per (user, event_type, event_date)."""

    user_id: str
    event_type: RiskEventType
    event_date: date
    trigger_value: float
    threshold_value: float
    message: str
    metadata: RiskEventMetadata
    created_at: datetime = field(default_factory=datetime.now)


class RiskFactor(str, Enum):
    """Risk signals combined by the signal orchestrator."""

    CALENDAR = "calendar"
    REGIME = "regime"
    VOLATILITY = "volatility"


@dataclass
class RiskInputs:
    """Position-size multipliers from independent market-risk signals."""

    calendar_multiplier: float = 1.0
    regime_multiplier: float = 1.0
    volatility_multiplier: float = 1.0


@dataclass
class UnifiedRiskOutput:
    """Single position-size scaling decision derived from RiskInputs."""

    final_multiplier: float
    final_size_percent: int
    dominant_factor: RiskFactor
    final_size_label: str
    inputs: RiskInputs


@dataclass
class TradingGateStatus:
    """Whether a user may trade today, and how much loss budget is left."""

    can_trade: bool
    status: Literal["ok", "warning", "disabled"]
    reason: str | None
    loss_used_percent: float
    remaining_budget: float
    daily_loss_limit: float
    current_pnl: float
    starting_balance: float


@dataclass
class TradeRiskAssessment:
    """Combined outcome of sizing, gating, validation and signal scaling."""

    can_trade: bool
    position: PositionSizeResult
    validation: RiskValidationResult | None
    gate: TradingGateStatus
    unified_risk: UnifiedRiskOutput | None
    adjusted_position_size: float
    adjusted_position_value: float
    warnings: list[str] = field(default_factory=list)
