# src/risk/store.py
"""Persistence layer for risk profiles, daily snapshots and risk events."""

import json
import logging
import threading
from dataclasses import replace
from datetime import date, datetime
from pathlib import Path
from typing import Any

from src.risk.models import (
    CorrelationMetadata,
    DailyRiskSnapshot,
    DailyRiskState,
    LossThresholdMetadata,
    PositionLimitMetadata,
    RiskEvent,
    RiskEventMetadata,
    RiskEventType,
    RiskProfile,
    SnapshotConflictError,
    SnapshotSealedError,
    TradingStateMetadata,
)

logger = logging.getLogger(__name__)


class RiskStore:
    """Stores risk records as JSON files.

    Layout under data_dir:
        profiles/{user_id}.json              all profiles of a user, oldest first
        snapshots/{user_id}/{YYYY-MM-DD}.json  one daily snapshot
        events/{user_id}/{YYYY-MM-DD}.json     risk events of one day

    Snapshot writes use an optimistic version check: the caller passes the
    version it read and the write fails with SnapshotConflictError if another
    writer got there first. Files are replaced atomically, so readers never
    see a partially written record.
    """

    def __init__(self, data_dir: Path = Path("data/risk")):
        """Initialize the store.

        Args:
            data_dir: Root directory for all risk JSON files.
        """
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.RLock:
        # One lock per user guards all of that user's files
        with self._locks_guard:
            return self._locks.setdefault(user_id, threading.RLock())

    # Profiles

    def _profile_path(self, user_id: str) -> Path:
        return self._data_dir / "profiles" / f"{user_id}.json"

    def _read_profiles(self, user_id: str) -> list[RiskProfile]:
        with self._lock_for(user_id):
            data = _read_json(self._profile_path(user_id), default=[])
        return [_dict_to_profile(item) for item in data]

    def _write_profiles(self, user_id: str, profiles: list[RiskProfile]) -> None:
        _write_json(
            self._profile_path(user_id), [_profile_to_dict(p) for p in profiles]
        )

    def get_active_profile(self, user_id: str) -> RiskProfile | None:
        """Get the user's active risk profile, if any."""
        for profile in self._read_profiles(user_id):
            if profile.is_active:
                return profile
        return None

    def get_profile_history(self, user_id: str) -> list[RiskProfile]:
        """Get all profiles of a user, including deactivated ones."""
        return self._read_profiles(user_id)

    def save_profile(self, profile: RiskProfile) -> RiskProfile:
        """Store a profile as the user's active one.

        Any previously active profile is deactivated, never removed.

        Args:
            profile: Profile to activate.

        Returns:
            The stored profile.
        """
        with self._lock_for(profile.user_id):
            profiles = self._read_profiles(profile.user_id)
            now = datetime.now()
            profiles = [
                replace(p, is_active=False, updated_at=now) if p.is_active else p
                for p in profiles
            ]
            stored = replace(profile, is_active=True, updated_at=now)
            profiles.append(stored)
            self._write_profiles(profile.user_id, profiles)

        logger.info(f"Saved active risk profile for {profile.user_id}")
        return stored

    def deactivate_profile(self, user_id: str) -> bool:
        """Deactivate the user's active profile.

        Returns:
            True if a profile was deactivated, False if none was active.
        """
        with self._lock_for(user_id):
            profiles = self._read_profiles(user_id)
            changed = False
            for i, p in enumerate(profiles):
                if p.is_active:
                    profiles[i] = replace(p, is_active=False, updated_at=datetime.now())
                    changed = True
            if changed:
                self._write_profiles(user_id, profiles)
        return changed

    def get_or_create_profile(
        self, user_id: str, defaults: dict[str, Any] | None = None
    ) -> RiskProfile:
        """Get the active profile or create one with onboarding defaults.

        Args:
            user_id: Owner of the profile.
            defaults: Field overrides for a newly created profile.

        Returns:
            Existing or newly created active RiskProfile.
        """
        profile = self.get_active_profile(user_id)
        if profile is None:
            profile = self.save_profile(RiskProfile(user_id=user_id, **(defaults or {})))
        return profile

    # Snapshots

    def _snapshot_path(self, user_id: str, snapshot_date: date) -> Path:
        return self._data_dir / "snapshots" / user_id / f"{snapshot_date.isoformat()}.json"

    def get_snapshot(self, user_id: str, snapshot_date: date) -> DailyRiskSnapshot | None:
        """Get the snapshot for a user and day, or None."""
        with self._lock_for(user_id):
            data = _read_json(self._snapshot_path(user_id, snapshot_date), default=None)
        if data is None:
            return None
        return _dict_to_snapshot(data)

    def get_latest_snapshot_before(
        self, user_id: str, snapshot_date: date
    ) -> DailyRiskSnapshot | None:
        """Get the most recent snapshot strictly before the given day."""
        user_dir = self._data_dir / "snapshots" / user_id
        if not user_dir.exists():
            return None
        earlier = sorted(
            p for p in user_dir.glob("*.json")
            if date.fromisoformat(p.stem) < snapshot_date
        )
        if not earlier:
            return None
        with self._lock_for(user_id):
            return _dict_to_snapshot(_read_json(earlier[-1], default={}))

    def create_snapshot(self, snapshot: DailyRiskSnapshot) -> DailyRiskSnapshot:
        """Insert a snapshot unless one already exists for that day.

        Returns:
            The stored snapshot (the existing one if present).
        """
        with self._lock_for(snapshot.user_id):
            existing = self.get_snapshot(snapshot.user_id, snapshot.snapshot_date)
            if existing is not None:
                return existing
            stored = replace(snapshot, version=1)
            _write_json(
                self._snapshot_path(snapshot.user_id, snapshot.snapshot_date),
                _snapshot_to_dict(stored),
            )

        logger.info(
            f"Created risk snapshot for {snapshot.user_id} on {snapshot.snapshot_date}"
        )
        return stored

    def save_snapshot(
        self, snapshot: DailyRiskSnapshot, expected_version: int
    ) -> DailyRiskSnapshot:
        """Write a snapshot if nobody else changed it since it was read.

        Args:
            snapshot: The updated snapshot.
            expected_version: Version of the snapshot when it was read.

        Returns:
            The stored snapshot with its version incremented.

        Raises:
            SnapshotConflictError: If the stored version differs or the
                snapshot does not exist yet.
            SnapshotSealedError: If the stored snapshot is sealed.
        """
        key = f"{snapshot.user_id}:{snapshot.snapshot_date.isoformat()}"
        with self._lock_for(snapshot.user_id):
            current = self.get_snapshot(snapshot.user_id, snapshot.snapshot_date)
            if current is None or current.version != expected_version:
                found = None if current is None else current.version
                raise SnapshotConflictError(
                    f"Snapshot {key} changed concurrently "
                    f"(expected version {expected_version}, found {found})"
                )
            if current.sealed:
                raise SnapshotSealedError(f"Snapshot {key} is sealed")

            stored = replace(snapshot, version=expected_version + 1)
            _write_json(
                self._snapshot_path(snapshot.user_id, snapshot.snapshot_date),
                _snapshot_to_dict(stored),
            )
        return stored

    # Events

    def _events_path(self, user_id: str, event_date: date) -> Path:
        return self._data_dir / "events" / user_id / f"{event_date.isoformat()}.json"

    def get_events(self, user_id: str, event_date: date) -> list[RiskEvent]:
        """Get all risk events of a user for one day, in insertion order."""
        with self._lock_for(user_id):
            data = _read_json(self._events_path(user_id, event_date), default=[])
        return [_dict_to_event(item) for item in data]

    def append_event(self, event: RiskEvent) -> bool:
        """Append an event unless the same type was already logged that day.

        Returns:
            True if the event was written, False if it was a duplicate.
        """
        key = f"{event.user_id}:{event.event_date.isoformat()}"
        with self._lock_for(event.user_id):
            path = self._events_path(event.user_id, event.event_date)
            entries = _read_json(path, default=[])
            if any(e["event_type"] == event.event_type.value for e in entries):
                logger.debug(
                    f"Skipping duplicate {event.event_type.value} event for {key}"
                )
                return False
            entries.append(_event_to_dict(event))
            _write_json(path, entries)
        return True


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    with open(path) as f:
        return json.load(f)


def _write_json(path: Path, data: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(data, indent=2))
    tmp.replace(path)


def _profile_to_dict(profile: RiskProfile) -> dict:
    return {
        "user_id": profile.user_id,
        "risk_per_trade_percent": profile.risk_per_trade_percent,
        "max_daily_loss_percent": profile.max_daily_loss_percent,
        "max_weekly_drawdown_percent": profile.max_weekly_drawdown_percent,
        "max_position_size_percent": profile.max_position_size_percent,
        "max_correlated_exposure": profile.max_correlated_exposure,
        "max_concurrent_positions": profile.max_concurrent_positions,
        "is_active": profile.is_active,
        "created_at": profile.created_at.isoformat(),
        "updated_at": profile.updated_at.isoformat(),
    }


def _dict_to_profile(data: dict) -> RiskProfile:
    return RiskProfile(
        user_id=data["user_id"],
        risk_per_trade_percent=data["risk_per_trade_percent"],
        max_daily_loss_percent=data["max_daily_loss_percent"],
        max_weekly_drawdown_percent=data["max_weekly_drawdown_percent"],
        max_position_size_percent=data["max_position_size_percent"],
        max_correlated_exposure=data["max_correlated_exposure"],
        max_concurrent_positions=data["max_concurrent_positions"],
        is_active=data["is_active"],
        created_at=datetime.fromisoformat(data["created_at"]),
        updated_at=datetime.fromisoformat(data["updated_at"]),
    )


def _snapshot_to_dict(snapshot: DailyRiskSnapshot) -> dict:
    return {
        "user_id": snapshot.user_id,
        "snapshot_date": snapshot.snapshot_date.isoformat(),
        "starting_balance": snapshot.starting_balance,
        "current_pnl": snapshot.current_pnl,
        "loss_limit_used_percent": snapshot.loss_limit_used_percent,
        "positions_open": snapshot.positions_open,
        "capital_deployed_percent": snapshot.capital_deployed_percent,
        "trading_allowed": snapshot.trading_allowed,
        "version": snapshot.version,
        "sealed": snapshot.sealed,
    }


def _dict_to_snapshot(data: dict) -> DailyRiskSnapshot:
    return DailyRiskSnapshot(
        user_id=data["user_id"],
        snapshot_date=date.fromisoformat(data["snapshot_date"]),
        starting_balance=data["starting_balance"],
        current_pnl=data["current_pnl"],
        loss_limit_used_percent=data["loss_limit_used_percent"],
        positions_open=data["positions_open"],
        capital_deployed_percent=data["capital_deployed_percent"],
        trading_allowed=data["trading_allowed"],
        version=data.get("version", 0),
        sealed=data.get("sealed", False),
    )


def _metadata_to_dict(metadata: RiskEventMetadata) -> dict:
    if isinstance(metadata, LossThresholdMetadata):
        fields = {
            "current_pnl": metadata.current_pnl,
            "daily_loss_limit": metadata.daily_loss_limit,
            "starting_balance": metadata.starting_balance,
        }
    elif isinstance(metadata, TradingStateMetadata):
        fields = {
            "previous_state": metadata.previous_state.value,
            "new_state": metadata.new_state.value,
        }
    elif isinstance(metadata, PositionLimitMetadata):
        fields = {
            "positions_open": metadata.positions_open,
            "max_concurrent_positions": metadata.max_concurrent_positions,
        }
    elif isinstance(metadata, CorrelationMetadata):
        fields = {
            "correlated_exposure": metadata.correlated_exposure,
            "max_correlated_exposure": metadata.max_correlated_exposure,
            "symbols": list(metadata.symbols),
        }
    else:
        raise TypeError(f"Unsupported event metadata: {type(metadata).__name__}")

    return {"kind": metadata.kind, "schema_version": metadata.schema_version, **fields}


def _dict_to_metadata(data: dict) -> RiskEventMetadata:
    kind = data["kind"]
    schema_version = data["schema_version"]
    if kind == "loss_threshold":
        return LossThresholdMetadata(
            current_pnl=data["current_pnl"],
            daily_loss_limit=data["daily_loss_limit"],
            starting_balance=data["starting_balance"],
            schema_version=schema_version,
        )
    if kind == "trading_state":
        return TradingStateMetadata(
            previous_state=DailyRiskState(data["previous_state"]),
            new_state=DailyRiskState(data["new_state"]),
            schema_version=schema_version,
        )
    if kind == "position_limit":
        return PositionLimitMetadata(
            positions_open=data["positions_open"],
            max_concurrent_positions=data["max_concurrent_positions"],
            schema_version=schema_version,
        )
    if kind == "correlation":
        return CorrelationMetadata(
            correlated_exposure=data["correlated_exposure"],
            max_correlated_exposure=data["max_correlated_exposure"],
            symbols=data.get("symbols", []),
            schema_version=schema_version,
        )
    raise ValueError(f"Unknown event metadata kind: {kind}")


def _event_to_dict(event: RiskEvent) -> dict:
    return {
        "user_id": event.user_id,
        "event_type": event.event_type.value,
        "event_date": event.event_date.isoformat(),
        "trigger_value": event.trigger_value,
        "threshold_value": event.threshold_value,
        "message": event.message,
        "metadata": _metadata_to_dict(event.metadata),
        "created_at": event.created_at.isoformat(),
    }


def _dict_to_event(data: dict) -> RiskEvent:
    return RiskEvent(
        user_id=data["user_id"],
        event_type=RiskEventType(data["event_type"]),
        event_date=date.fromisoformat(data["event_date"]),
        trigger_value=data["trigger_value"],
        threshold_value=data["threshold_value"],
        message=data["message"],
        metadata=_dict_to_metadata(data["metadata"]),
        created_at=datetime.fromisoformat(data["created_at"]),
    )
