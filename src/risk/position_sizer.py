# src/risk/position_sizer.py
"""Fixed-fractional position sizing."""

from src.risk.models import PositionSizeInput, PositionSizeResult


FAR_STOP_PERCENT = 10.0
MAX_CAPITAL_DEPLOYMENT_PERCENT = 40.0


def compute_position_size(
    position_input: PositionSizeInput,
    far_stop_percent: float = FAR_STOP_PERCENT,
    max_capital_deployment_percent: float = MAX_CAPITAL_DEPLOYMENT_PERCENT,
) -> PositionSizeResult:
    """Size a position so that hitting the stop loses exactly one R.

    Every rule is evaluated and all triggered warnings are collected:
        - Stop distance above far_stop_percent: advisory only.
        - Capital deployment above max_capital_deployment_percent: invalid.
        - Non-positive leverage on a real position: invalid.
        - Position size of zero or less: invalid.
        - Risk amount of zero or less: invalid.

    Bad inputs never raise. A zero stop distance, a non-positive balance or a
    non-positive risk percent surface as an invalid result with warnings.

    Args:
        position_input: Balance, risk percent, entry, stop and leverage.
        far_stop_percent: Stop distance (percent of entry) that triggers the
            far-stop warning.
        max_capital_deployment_percent: Maximum notional as a percent of
            balance * leverage.

    Returns:
        PositionSizeResult with sizing, R-multiple outcomes and warnings.
    """
    balance = position_input.account_balance
    entry = position_input.entry_price
    leverage = position_input.leverage

    stop_distance = abs(entry - position_input.stop_loss_price)
    stop_distance_percent = stop_distance / entry * 100 if entry > 0 else 0.0

    risk_amount = balance * position_input.risk_percent / 100
    position_size = risk_amount / stop_distance if stop_distance > 0 else 0.0

    position_value = position_size * entry
    leveraged_balance = balance * leverage
    capital_deployment_percent = (
        position_value / leveraged_balance * 100 if leveraged_balance > 0 else 0.0
    )

    warnings: list[str] = []
    is_valid = True

    if stop_distance_percent > far_stop_percent:
        warnings.append(
            f"Stop loss is very far from entry ({stop_distance_percent:.2f}% away)"
        )

    if capital_deployment_percent > max_capital_deployment_percent:
        warnings.append(
            f"Capital deployment ({capital_deployment_percent:.1f}%) exceeds "
            f"{max_capital_deployment_percent:.0f}% of leveraged balance"
        )
        is_valid = False

    if leveraged_balance <= 0 and position_value > 0:
        warnings.append(f"Leverage must be greater than zero (got {leverage:g})")
        is_valid = False

    if position_size <= 0:
        warnings.append("Invalid position size: check entry and stop loss prices")
        is_valid = False

    if risk_amount <= 0:
        warnings.append("Risk amount must be greater than zero")
        is_valid = False

    return PositionSizeResult(
        position_size=position_size,
        position_value=position_value,
        risk_amount=risk_amount,
        capital_deployment_percent=capital_deployment_percent,
        stop_distance=stop_distance,
        stop_distance_percent=stop_distance_percent,
        potential_loss=risk_amount,
        potential_profit_1r=risk_amount,
        potential_profit_2r=risk_amount * 2,
        potential_profit_3r=risk_amount * 3,
        is_valid=is_valid,
        warnings=warnings,
    )
