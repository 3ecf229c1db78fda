"""Point-in-time context snapshots for resuming after an interruption."""
from __future__ import annotations

from dataclasses import replace

from searchctx.config.settings import SnapshotsConfig
from searchctx.core.time_context import Clock, local_now, time_of_day, to_epoch_ms
from searchctx.models import (
    ContextSnapshot,
    EnvironmentalContext,
    Location,
    SearchContext,
    SearchState,
    UserState,
)


class ContextPreservation:
    """Bounded, newest-first list of snapshots."""

    def __init__(
        self,
        config: SnapshotsConfig,
        context: SearchContext,
        *,
        clock: Clock = local_now,
    ) -> None:
        self._config = config
        self._context = context
        self._clock = clock
        self._snapshots: list[ContextSnapshot] = []

    def __len__(self) -> int:
        return len(self._snapshots)

    @property
    def snapshots(self) -> list[ContextSnapshot]:
        return self._snapshots

    def replace(self, snapshots: list[ContextSnapshot]) -> None:
        self._snapshots = list(snapshots[: self._config.max_snapshots])

    def create(
        self,
        location: Location,
        search_state: SearchState | None = None,
        user_state: UserState | None = None,
        environmental_context: EnvironmentalContext | None = None,
    ) -> ContextSnapshot:
        """Build a snapshot without storing it.

        Session duration, time of day and movement pattern always come from
        the live session, whatever the caller passed.
        """
        now = self._clock()
        now_ms = to_epoch_ms(now)
        session = self._context.current_session
        return ContextSnapshot(
            timestamp=now_ms,
            location=location,
            search_state=search_state or SearchState(),
            user_state=replace(
                user_state or UserState(),
                session_duration_ms=now_ms - session.start_time,
            ),
            environmental_context=replace(
                environmental_context or EnvironmentalContext(),
                time_context=time_of_day(now),
                movement_pattern=session.user_movement_pattern,
            ),
        )

    def add(self, snapshot: ContextSnapshot) -> None:
        self._snapshots.insert(0, snapshot)
        if len(self._snapshots) > self._config.max_snapshots:
            del self._snapshots[self._config.max_snapshots:]

    def get(self, timestamp: int | None = None) -> ContextSnapshot | None:
        if timestamp is not None:
            for snapshot in self._snapshots:
                if snapshot.timestamp == timestamp:
                    return snapshot
            return None
        return self._snapshots[0] if self._snapshots else None

    def resumable(self, max_age_seconds: float) -> ContextSnapshot | None:
        """Newest snapshot young enough to re-run its active query, if any."""
        now_ms = to_epoch_ms(self._clock())
        oldest_ms = now_ms - max_age_seconds * 1000
        for snapshot in self._snapshots:
            if snapshot.timestamp < oldest_ms:
                break
            if snapshot.search_state.active_query:
                return snapshot
        return None
