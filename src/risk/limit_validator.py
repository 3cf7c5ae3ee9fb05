# src/risk/limit_validator.py
"""Checks a sized position against a user's risk profile."""

from src.risk.models import PositionSizeResult, RiskProfile, RiskValidationResult


def validate_risk_limits(
    position_result: PositionSizeResult,
    risk_profile: RiskProfile,
    current_open_positions: int,
    current_daily_loss: float,
    starting_balance: float,
) -> RiskValidationResult:
    """Validate a proposed position against the profile's hard limits.

    All checks are evaluated and every violation is reported:
    1. Capital deployment above max_position_size_percent
    2. Open positions already at max_concurrent_positions
    3. Today's loss plus this trade's risk above the daily loss limit

    Must be called again on every trade attempt; open positions and daily
    loss change between calls.

    Args:
        position_result: Output of compute_position_size.
        risk_profile: The user's active risk profile.
        current_open_positions: Number of positions currently open.
        current_daily_loss: Today's realized P&L (sign is ignored).
        starting_balance: Balance at the start of the trading day.

    Returns:
        RiskValidationResult; can_trade is True only if all checks pass.
    """
    warnings: list[str] = []

    # Check 1: Position size limit
    size_ok = (
        position_result.capital_deployment_percent
        <= risk_profile.max_position_size_percent
    )
    if not size_ok:
        warnings.append(
            f"Position size ({position_result.capital_deployment_percent:.1f}%) exceeds "
            f"max allowed ({risk_profile.max_position_size_percent:.1f}% of capital)"
        )

    # Check 2: Concurrent positions
    concurrency_ok = current_open_positions < risk_profile.max_concurrent_positions
    if not concurrency_ok:
        warnings.append(
            f"Max concurrent positions reached "
            f"({current_open_positions}/{risk_profile.max_concurrent_positions})"
        )

    # Check 3: Daily loss budget
    daily_loss_limit = starting_balance * risk_profile.max_daily_loss_percent / 100
    realized_loss = abs(current_daily_loss)
    projected_loss = realized_loss + position_result.risk_amount
    loss_budget_ok = projected_loss <= daily_loss_limit
    if not loss_budget_ok:
        remaining_budget = max(0.0, daily_loss_limit - realized_loss)
        warnings.append(
            f"Trade would exceed daily loss limit. "
            f"Remaining budget: ${remaining_budget:.2f}"
        )

    return RiskValidationResult(
        can_trade=size_ok and concurrency_ok and loss_budget_ok,
        warnings=warnings,
    )


def check_weekly_drawdown(
    weekly_pnl: float,
    week_starting_balance: float,
    risk_profile: RiskProfile,
) -> RiskValidationResult:
    """Block trading once the week's realized loss reaches the drawdown limit."""
    if week_starting_balance <= 0 or weekly_pnl >= 0:
        return RiskValidationResult(can_trade=True)

    drawdown_percent = abs(weekly_pnl) / week_starting_balance * 100
    if drawdown_percent >= risk_profile.max_weekly_drawdown_percent:
        return RiskValidationResult(
            can_trade=False,
            warnings=[
                f"Weekly drawdown ({drawdown_percent:.1f}%) reached limit "
                f"({risk_profile.max_weekly_drawdown_percent:.1f}%)"
            ],
        )
    return RiskValidationResult(can_trade=True)


def check_correlated_exposure(
    correlated_exposure: float,
    risk_profile: RiskProfile,
) -> RiskValidationResult:
    """Warn when highly correlated positions make up too much exposure.

    Advisory only: can_trade stays True.

    Args:
        correlated_exposure: Fraction (0-1) of open exposure held in
            positions that are highly correlated with each other.
        risk_profile: The user's active risk profile.
    """
    if correlated_exposure > risk_profile.max_correlated_exposure:
        return RiskValidationResult(
            can_trade=True,
            warnings=[
                f"Correlated exposure ({correlated_exposure:.0%}) exceeds "
                f"limit ({risk_profile.max_correlated_exposure:.0%})"
            ],
        )
    return RiskValidationResult(can_trade=True)
