# src/risk/signal_orchestrator.py
"""Combines independent market-risk signals into one position-size multiplier."""

import math
from enum import Enum

from src.risk.models import RiskFactor, RiskInputs, UnifiedRiskOutput


class VolatilityRegime(str, Enum):
    """Event-driven volatility regime from the economic calendar."""

    EXTREME = "EXTREME"
    HIGH = "HIGH"
    ELEVATED = "ELEVATED"
    NORMAL = "NORMAL"
    LOW = "LOW"


class RiskMode(str, Enum):
    """Risk appetite derived from the market regime classification."""

    AGGRESSIVE = "AGGRESSIVE"
    NEUTRAL = "NEUTRAL"
    DEFENSIVE = "DEFENSIVE"


class EventRiskLevel(str, Enum):
    """Calendar event risk for the current session."""

    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


# Step thresholds on annualized realized volatility (percent)
EXTREME_VOLATILITY_PERCENT = 120.0
HIGH_VOLATILITY_PERCENT = 80.0
EXTREME_VOLATILITY_MULTIPLIER = 0.5
HIGH_VOLATILITY_MULTIPLIER = 0.7

# LOW is capped at 1.0: a quiet calendar never enlarges a position
CALENDAR_MULTIPLIERS: dict[VolatilityRegime, float] = {
    VolatilityRegime.EXTREME: 0.25,
    VolatilityRegime.HIGH: 0.5,
    VolatilityRegime.ELEVATED: 0.7,
    VolatilityRegime.NORMAL: 1.0,
    VolatilityRegime.LOW: 1.0,
}

REGIME_MULTIPLIERS: dict[RiskMode, float] = {
    RiskMode.AGGRESSIVE: 1.0,
    RiskMode.NEUTRAL: 0.7,
    RiskMode.DEFENSIVE: 0.5,
}
EXTREME_EVENT_DEFENSIVE_MULTIPLIER = 0.25


def calculate_unified_position_size(inputs: RiskInputs) -> UnifiedRiskOutput:
    """Pick the most conservative of the calendar, regime and volatility signals.

    Dominant factor precedence when values tie: calendar, then volatility,
    with regime as the fallback.

    Args:
        inputs: The three independently computed multipliers.

    Returns:
        UnifiedRiskOutput with the final multiplier, its rounded percent,
        the dominant factor and a display label.
    """
    final_multiplier = min(
        inputs.calendar_multiplier,
        inputs.regime_multiplier,
        inputs.volatility_multiplier,
    )

    dominant_factor = RiskFactor.REGIME
    if final_multiplier == inputs.calendar_multiplier:
        dominant_factor = RiskFactor.CALENDAR
    elif final_multiplier == inputs.volatility_multiplier:
        dominant_factor = RiskFactor.VOLATILITY

    final_size_percent = _round_half_up(final_multiplier * 100)

    return UnifiedRiskOutput(
        final_multiplier=final_multiplier,
        final_size_percent=final_size_percent,
        dominant_factor=dominant_factor,
        final_size_label=size_label(final_size_percent),
        inputs=inputs,
    )


def size_label(final_size_percent: int) -> str:
    """Human-readable label for a final size percent.

    Half size or less is flagged as high risk.
    """
    if final_size_percent >= 100:
        return "Normal (100%)"
    reduction = 100 - final_size_percent
    if final_size_percent > 50:
        return f"Reduce {reduction}%"
    return f"Reduce {reduction}% (high risk)"


def derive_volatility_multiplier(
    annualized_vol_pct: float,
    extreme_threshold: float = EXTREME_VOLATILITY_PERCENT,
    high_threshold: float = HIGH_VOLATILITY_PERCENT,
) -> float:
    """Map annualized realized volatility to a size multiplier.

    Step function: > 120% -> 0.5, > 80% -> 0.7, otherwise 1.0.
    """
    if annualized_vol_pct > extreme_threshold:
        return EXTREME_VOLATILITY_MULTIPLIER
    if annualized_vol_pct > high_threshold:
        return HIGH_VOLATILITY_MULTIPLIER
    return 1.0


def derive_calendar_multiplier(volatility_regime: VolatilityRegime | str) -> float:
    """Map the calendar's event-volatility regime to a size multiplier."""
    return CALENDAR_MULTIPLIERS[VolatilityRegime(volatility_regime)]


def derive_regime_multiplier(
    risk_mode: RiskMode | str,
    event_risk_level: EventRiskLevel | str | None = None,
) -> float:
    """Map the market regime's risk mode to a size multiplier.

    A defensive regime on a very-high event-risk day drops to 0.25.
    """
    mode = RiskMode(risk_mode)
    if (
        mode == RiskMode.DEFENSIVE
        and event_risk_level is not None
        and EventRiskLevel(event_risk_level) == EventRiskLevel.VERY_HIGH
    ):
        return EXTREME_EVENT_DEFENSIVE_MULTIPLIER
    return REGIME_MULTIPLIERS[mode]


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
