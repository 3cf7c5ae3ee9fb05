# src/risk/daily_tracker.py
"""Daily loss-limit tracking and the per-day trading gate."""

import logging
from dataclasses import replace
from datetime import date

from src.config.settings import DailyRiskSettings
from src.risk.limit_validator import check_correlated_exposure
from src.risk.models import (
    CorrelationMetadata,
    DailyRiskSnapshot,
    DailyRiskState,
    LossThresholdMetadata,
    PositionLimitMetadata,
    PositionSizeResult,
    RiskEvent,
    RiskEventMetadata,
    RiskEventType,
    RiskProfile,
    RiskValidationResult,
    SnapshotNotFoundError,
    SnapshotSealedError,
    TradingGateStatus,
    TradingStateMetadata,
)
from src.risk.store import RiskStore

logger = logging.getLogger(__name__)


def compute_loss_limit_used_percent(
    current_pnl: float,
    starting_balance: float,
    max_daily_loss_percent: float,
) -> float:
    """Share of the daily loss limit consumed by today's realized P&L.

    Profits count as zero usage. With a zero loss limit any loss uses the
    whole budget.

    Returns:
        Percent of the limit used, never negative; may exceed 100.
    """
    if starting_balance <= 0:
        return 0.0
    loss = abs(min(current_pnl, 0.0))
    daily_loss_limit = starting_balance * max_daily_loss_percent / 100
    if daily_loss_limit <= 0:
        return 100.0 if loss > 0 else 0.0
    return loss / daily_loss_limit * 100


def classify_daily_state(
    loss_limit_used_percent: float,
    settings: DailyRiskSettings | None = None,
) -> DailyRiskState:
    """Place a loss-limit usage on the open/warning/disabled ladder."""
    settings = settings or DailyRiskSettings()
    if loss_limit_used_percent >= settings.disabled_threshold:
        return DailyRiskState.DISABLED
    if loss_limit_used_percent >= settings.danger_threshold:
        return DailyRiskState.WARNING_90
    if loss_limit_used_percent >= settings.warning_threshold:
        return DailyRiskState.WARNING_70
    return DailyRiskState.OPEN


class DailyRiskTracker:
    """Maintains one risk snapshot per user per trading day.

    Every update is a read-recompute-write guarded by the store's version
    check. A concurrent writer makes the update fail with
    SnapshotConflictError; the tracker does not retry, callers repeat the
    whole read-validate-write sequence.

    Threshold crossings are written to the risk event log at most once per
    event type per day.
    """

    def __init__(self, store: RiskStore, settings: DailyRiskSettings | None = None):
        """Initialize the tracker.

        Args:
            store: Persistence for snapshots and events.
            settings: Loss-limit thresholds. Defaults to 70/90/100.
        """
        self._store = store
        self._settings = settings or DailyRiskSettings()

    @property
    def store(self) -> RiskStore:
        return self._store

    def start_day(
        self,
        user_id: str,
        starting_balance: float,
        snapshot_date: date | None = None,
    ) -> DailyRiskSnapshot:
        """Create the day's snapshot in the open state.

        Returns the existing snapshot unchanged if the day already started.
        """
        snapshot_date = snapshot_date or date.today()
        return self._store.create_snapshot(
            DailyRiskSnapshot(
                user_id=user_id,
                snapshot_date=snapshot_date,
                starting_balance=starting_balance,
            )
        )

    def get_snapshot(
        self, user_id: str, snapshot_date: date | None = None
    ) -> DailyRiskSnapshot:
        """Get the day's snapshot.

        Raises:
            SnapshotNotFoundError: If the day has not been started.
        """
        snapshot_date = snapshot_date or date.today()
        snapshot = self._store.get_snapshot(user_id, snapshot_date)
        if snapshot is None:
            raise SnapshotNotFoundError(
                f"No risk snapshot for {user_id} on {snapshot_date}"
            )
        return snapshot

    def record_realized_pnl(
        self,
        user_id: str,
        pnl_change: float,
        profile: RiskProfile,
        snapshot_date: date | None = None,
    ) -> DailyRiskSnapshot:
        """Add realized P&L to the day and re-derive loss-limit usage.

        Args:
            user_id: Owner of the snapshot.
            pnl_change: Realized profit (positive) or loss (negative).
            profile: Active risk profile supplying the daily loss limit.
            snapshot_date: Trading day, defaults to today.

        Returns:
            The updated snapshot.
        """
        snapshot = self._get_open_snapshot(user_id, snapshot_date)
        updated = replace(snapshot, current_pnl=snapshot.current_pnl + pnl_change)
        return self._commit(snapshot, updated, profile)

    def record_position_opened(
        self,
        user_id: str,
        position_result: PositionSizeResult,
        profile: RiskProfile,
        snapshot_date: date | None = None,
    ) -> DailyRiskSnapshot:
        """Count a newly opened position and its capital deployment."""
        snapshot = self._get_open_snapshot(user_id, snapshot_date)
        updated = replace(
            snapshot,
            positions_open=snapshot.positions_open + 1,
            capital_deployed_percent=(
                snapshot.capital_deployed_percent
                + position_result.capital_deployment_percent
            ),
        )
        stored = self._commit(snapshot, updated, profile)

        if stored.positions_open >= profile.max_concurrent_positions:
            self._log_event(
                stored,
                RiskEventType.POSITION_LIMIT_WARNING,
                trigger_value=stored.positions_open,
                threshold_value=profile.max_concurrent_positions,
                message=(
                    f"Open positions at limit "
                    f"({stored.positions_open}/{profile.max_concurrent_positions})"
                ),
                metadata=PositionLimitMetadata(
                    positions_open=stored.positions_open,
                    max_concurrent_positions=profile.max_concurrent_positions,
                ),
            )
        return stored

    def record_position_closed(
        self,
        user_id: str,
        pnl: float,
        capital_released_percent: float,
        profile: RiskProfile,
        snapshot_date: date | None = None,
    ) -> DailyRiskSnapshot:
        """Close a position: release its capital and realize its P&L."""
        snapshot = self._get_open_snapshot(user_id, snapshot_date)
        updated = replace(
            snapshot,
            positions_open=max(0, snapshot.positions_open - 1),
            capital_deployed_percent=max(
                0.0, snapshot.capital_deployed_percent - capital_released_percent
            ),
            current_pnl=snapshot.current_pnl + pnl,
        )
        return self._commit(snapshot, updated, profile)

    def record_correlated_exposure(
        self,
        user_id: str,
        correlated_exposure: float,
        profile: RiskProfile,
        symbols: list[str] | None = None,
        snapshot_date: date | None = None,
    ) -> RiskValidationResult:
        """Check correlated exposure and log a correlation warning if exceeded.

        Raises:
            SnapshotSealedError: If the day has already rolled over.
        """
        result = check_correlated_exposure(correlated_exposure, profile)
        if result.warnings:
            snapshot = self._get_open_snapshot(user_id, snapshot_date)
            self._log_event(
                snapshot,
                RiskEventType.CORRELATION_WARNING,
                trigger_value=correlated_exposure,
                threshold_value=profile.max_correlated_exposure,
                message=result.warnings[0],
                metadata=CorrelationMetadata(
                    correlated_exposure=correlated_exposure,
                    max_correlated_exposure=profile.max_correlated_exposure,
                    symbols=list(symbols or []),
                ),
            )
        return result

    def roll_over(self, user_id: str, new_date: date) -> DailyRiskSnapshot:
        """Seal the previous trading day and open the next one.

        The new day starts from the previous day's ending balance. Open
        positions carry over; realized P&L starts again at zero.

        Raises:
            SnapshotNotFoundError: If there is no earlier day to roll from.
        """
        existing = self._store.get_snapshot(user_id, new_date)
        if existing is not None:
            return existing

        previous = self._store.get_latest_snapshot_before(user_id, new_date)
        if previous is None:
            raise SnapshotNotFoundError(
                f"No risk snapshot before {new_date} for {user_id}"
            )

        if not previous.sealed:
            self._store.save_snapshot(
                replace(previous, sealed=True), expected_version=previous.version
            )

        logger.info(
            f"Rolled over risk snapshot for {user_id}: "
            f"{previous.snapshot_date} -> {new_date}, "
            f"starting balance {previous.ending_balance:.2f}"
        )
        return self._store.create_snapshot(
            DailyRiskSnapshot(
                user_id=user_id,
                snapshot_date=new_date,
                starting_balance=previous.ending_balance,
                positions_open=previous.positions_open,
                capital_deployed_percent=previous.capital_deployed_percent,
            )
        )

    def get_gate_status(
        self,
        user_id: str,
        profile: RiskProfile,
        snapshot_date: date | None = None,
    ) -> TradingGateStatus:
        """Summarize whether the user may trade and how much budget remains."""
        snapshot = self.get_snapshot(user_id, snapshot_date)
        daily_loss_limit = snapshot.starting_balance * profile.max_daily_loss_percent / 100
        loss_used_percent = compute_loss_limit_used_percent(
            snapshot.current_pnl,
            snapshot.starting_balance,
            profile.max_daily_loss_percent,
        )
        remaining_budget = max(0.0, daily_loss_limit - abs(min(snapshot.current_pnl, 0.0)))

        state = classify_daily_state(loss_used_percent, self._settings)
        status = "ok"
        can_trade = True
        reason = None
        if state == DailyRiskState.DISABLED:
            status = "disabled"
            can_trade = False
            reason = "Daily loss limit reached. Trading disabled for today."
        elif state != DailyRiskState.OPEN:
            status = "warning"
            reason = f"Warning: {loss_used_percent:.0f}% of daily loss limit used."

        if not snapshot.trading_allowed and state != DailyRiskState.DISABLED:
            status = "disabled"
            can_trade = False
            reason = "Trading has been disabled for today."

        return TradingGateStatus(
            can_trade=can_trade,
            status=status,
            reason=reason,
            loss_used_percent=loss_used_percent,
            remaining_budget=remaining_budget,
            daily_loss_limit=daily_loss_limit,
            current_pnl=snapshot.current_pnl,
            starting_balance=snapshot.starting_balance,
        )

    def _get_open_snapshot(
        self, user_id: str, snapshot_date: date | None
    ) -> DailyRiskSnapshot:
        snapshot = self.get_snapshot(user_id, snapshot_date)
        if snapshot.sealed:
            raise SnapshotSealedError(
                f"Risk snapshot for {user_id} on {snapshot.snapshot_date} is sealed"
            )
        return snapshot

    def _commit(
        self,
        previous: DailyRiskSnapshot,
        updated: DailyRiskSnapshot,
        profile: RiskProfile,
    ) -> DailyRiskSnapshot:
        """Re-derive loss usage, write with version check, then log crossings."""
        used_percent = compute_loss_limit_used_percent(
            updated.current_pnl,
            updated.starting_balance,
            profile.max_daily_loss_percent,
        )
        updated = replace(
            updated,
            loss_limit_used_percent=used_percent,
            trading_allowed=used_percent < self._settings.disabled_threshold,
        )
        stored = self._store.save_snapshot(updated, expected_version=previous.version)
        self._log_transitions(previous, stored, profile)
        return stored

    def _log_transitions(
        self,
        previous: DailyRiskSnapshot,
        current: DailyRiskSnapshot,
        profile: RiskProfile,
    ) -> None:
        before = previous.loss_limit_used_percent
        after = current.loss_limit_used_percent
        loss_metadata = LossThresholdMetadata(
            current_pnl=current.current_pnl,
            daily_loss_limit=current.starting_balance * profile.max_daily_loss_percent / 100,
            starting_balance=current.starting_balance,
        )

        crossings = [
            (RiskEventType.WARNING_70, self._settings.warning_threshold),
            (RiskEventType.WARNING_90, self._settings.danger_threshold),
            (RiskEventType.LIMIT_REACHED, self._settings.disabled_threshold),
        ]
        for event_type, threshold in crossings:
            if before < threshold <= after:
                self._log_event(
                    current,
                    event_type,
                    trigger_value=after,
                    threshold_value=threshold,
                    message=f"{after:.0f}% of daily loss limit used",
                    metadata=loss_metadata,
                )

        previous_state = classify_daily_state(before, self._settings)
        new_state = classify_daily_state(after, self._settings)
        if previous.trading_allowed and not current.trading_allowed:
            logger.warning(f"Trading disabled for {current.user_id}: daily loss limit reached")
            self._log_event(
                current,
                RiskEventType.TRADING_DISABLED,
                trigger_value=after,
                threshold_value=self._settings.disabled_threshold,
                message="Daily loss limit reached. Trading disabled for today.",
                metadata=TradingStateMetadata(previous_state=previous_state, new_state=new_state),
            )
        elif not previous.trading_allowed and current.trading_allowed:
            logger.info(f"Trading re-enabled for {current.user_id}")
            self._log_event(
                current,
                RiskEventType.TRADING_ENABLED,
                trigger_value=after,
                threshold_value=self._settings.disabled_threshold,
                message="Loss limit usage back below limit. Trading enabled.",
                metadata=TradingStateMetadata(previous_state=previous_state, new_state=new_state),
            )

    def _log_event(
        self,
        snapshot: DailyRiskSnapshot,
        event_type: RiskEventType,
        trigger_value: float,
        threshold_value: float,
        message: str,
        metadata: RiskEventMetadata,
    ) -> bool:
        written = self._store.append_event(
            RiskEvent(
                user_id=snapshot.user_id,
                event_type=event_type,
                event_date=snapshot.snapshot_date,
                trigger_value=trigger_value,
                threshold_value=threshold_value,
                message=message,
                metadata=metadata,
            )
        )
        if written:
            logger.warning(f"Risk event {event_type.value} for {snapshot.user_id}: {message}")
        return written
