# src/risk/style_profiles.py
"""Per trading-style weights for market scoring and risk-signal selection.

The signal orchestrator itself is style-agnostic. Callers use these profiles
to decide which signal providers to query and how heavily a market-scoring
service should lean on each input.

Weight vectors are expected to sum to 1.0; this is checked by the test suite,
not at runtime.
"""

from dataclasses import dataclass
from enum import Enum


class TradingStyle(str, Enum):
    """Holding-period style declared by the user."""

    SCALPING = "scalping"
    SHORT_TRADE = "short_trade"
    SWING = "swing"


@dataclass(frozen=True)
class CompositeWeights:
    """Weights of the market composite score components."""

    technical: float
    on_chain: float
    macro: float
    fear_greed: float

    def total(self) -> float:
        return self.technical + self.on_chain + self.macro + self.fear_greed


@dataclass(frozen=True)
class OrchestratorWeights:
    """Relative importance of the three risk signals for a style."""

    calendar: float
    regime: float
    volatility: float

    def total(self) -> float:
        return self.calendar + self.regime + self.volatility


@dataclass(frozen=True)
class StyleWeightProfile:
    """Weight configuration for one trading style.

    Attributes:
        style: The trading style this profile applies to.
        composite_weights: Market composite score weights.
        orchestrator_weights: Calendar/regime/volatility signal weights.
        range_horizon: Horizon of the expected-range estimate.
        timeframe_label: Chart timeframes the profile is tuned for.
        event_sensitivity_hours: How far ahead calendar events matter.
    """

    style: TradingStyle
    composite_weights: CompositeWeights
    orchestrator_weights: OrchestratorWeights
    range_horizon: str
    timeframe_label: str
    event_sensitivity_hours: int


STYLE_WEIGHT_PROFILES: dict[TradingStyle, StyleWeightProfile] = {
    TradingStyle.SCALPING: StyleWeightProfile(
        style=TradingStyle.SCALPING,
        composite_weights=CompositeWeights(
            technical=0.50, on_chain=0.10, macro=0.15, fear_greed=0.25
        ),
        orchestrator_weights=OrchestratorWeights(
            calendar=0.50, regime=0.20, volatility=0.30
        ),
        range_horizon="1h",
        timeframe_label="Optimized for 1m-15m",
        event_sensitivity_hours=2,
    ),
    TradingStyle.SHORT_TRADE: StyleWeightProfile(
        style=TradingStyle.SHORT_TRADE,
        composite_weights=CompositeWeights(
            technical=0.40, on_chain=0.20, macro=0.20, fear_greed=0.20
        ),
        orchestrator_weights=OrchestratorWeights(
            calendar=0.35, regime=0.35, volatility=0.30
        ),
        range_horizon="24h",
        timeframe_label="Optimized for 1h-4h",
        event_sensitivity_hours=12,
    ),
    TradingStyle.SWING: StyleWeightProfile(
        style=TradingStyle.SWING,
        composite_weights=CompositeWeights(
            technical=0.30, on_chain=0.25, macro=0.30, fear_greed=0.15
        ),
        orchestrator_weights=OrchestratorWeights(
            calendar=0.20, regime=0.50, volatility=0.30
        ),
        range_horizon="7d",
        timeframe_label="Optimized for 4h-1D",
        event_sensitivity_hours=72,
    ),
}


def get_style_profile(style: TradingStyle | str) -> StyleWeightProfile:
    """Look up the weight profile for a trading style.

    Args:
        style: TradingStyle member or its string value.

    Returns:
        The matching StyleWeightProfile.

    Raises:
        KeyError: If the style is unknown.
    """
    try:
        key = TradingStyle(style)
    except ValueError as e:
        raise KeyError(f"Unknown trading style: {style}") from e
    return STYLE_WEIGHT_PROFILES[key]
