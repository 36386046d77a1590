"""Progression store: owns the UserStats snapshot and its persistence."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

import orjson
from pydantic import ValidationError

from klio.gamification.badges import get_badge
from klio.gamification.progression import DEFAULT_STATS, UserStats
from klio.state import StateContainer
from klio.storage import KeyValueStorage

logger = logging.getLogger(__name__)

STATS_KEY = "userStats"
SELECTED_TITLE_KEY = "selectedTitle"
UNLOCKED_BADGES_KEY = "unlockedBadges"


class ProgressionStore(StateContainer[UserStats]):
    """Single owner of the progression snapshot.

    ``update`` persists synchronously before notifying listeners. A failed
    write is logged and the in-memory snapshot still advances, so at most the
    latest mutation is lost if the process dies before the next write.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        super().__init__(DEFAULT_STATS)
        self._storage = storage
        self._selected_title: str | None = None

    @property
    def stats(self) -> UserStats:
        return self.state

    @property
    def selected_title(self) -> str | None:
        return self._selected_title

    def load(self) -> UserStats:
        """Read the last persisted snapshot, falling back to DEFAULT_STATS."""
        stats = self._read_stats()
        self._selected_title = self._read_selected_title()
        self._replace(stats)
        return stats

    def _read_stats(self) -> UserStats:
        raw = self._storage.get(STATS_KEY)
        if raw is None:
            return DEFAULT_STATS
        try:
            return UserStats.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError):
            logger.warning("Persisted user stats are corrupt, using defaults", exc_info=True)
            return DEFAULT_STATS

    def _read_selected_title(self) -> str | None:
        title = self._storage.get(SELECTED_TITLE_KEY)
        if title is None:
            return None
        if get_badge(title) is None:
            logger.warning("Ignoring unknown persisted title %r", title)
            return None
        return title

    def _persist(self, stats: UserStats) -> None:
        payload = orjson.dumps(stats.model_dump(mode="json", by_alias=True)).decode()
        try:
            self._storage.set(STATS_KEY, payload)
        except OSError:
            logger.warning("Failed to persist user stats", exc_info=True)

    def update(self, mutator: Callable[[UserStats], UserStats]) -> UserStats:
        """Apply a pure transformation, persist it, then publish it."""
        new_stats = mutator(self.state)
        if new_stats == self.state:
            return new_stats
        self._persist(new_stats)
        self._replace(new_stats)
        return new_stats

    def reconcile(self, remote: UserStats) -> bool:
        """Adopt a remote snapshot unless it would lose local XP. Returns True if adopted."""
        if remote.experience_points < self.state.experience_points:
            return False
        self.update(lambda _local: remote)
        return True

    def reset(self) -> UserStats:
        """Explicit reset, the only path that lowers experience points."""
        return self.update(lambda _stats: DEFAULT_STATS)

    def set_selected_title(self, badge_id: str | None) -> None:
        if badge_id is not None and get_badge(badge_id) is None:
            msg = f"Unknown title: {badge_id}"
            raise ValueError(msg)
        try:
            if badge_id is None:
                self._storage.remove(SELECTED_TITLE_KEY)
            else:
                self._storage.set(SELECTED_TITLE_KEY, badge_id)
        except OSError:
            logger.warning("Failed to persist selected title", exc_info=True)
        self._selected_title = badge_id


class BadgeLedger:
    """Persisted set of badge ids the user has already been told about.

    ``None`` (never recorded) and an empty set are different: the first means
    this installation has not evaluated badges yet.
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage

    def load(self) -> set[str] | None:
        raw = self._storage.get(UNLOCKED_BADGES_KEY)
        if raw is None:
            return None
        try:
            ids = orjson.loads(raw)
        except orjson.JSONDecodeError:
            logger.warning("Persisted badge ledger is corrupt, treating as empty")
            return set()
        if not isinstance(ids, list):
            logger.warning("Persisted badge ledger has unexpected shape, treating as empty")
            return set()
        return {i for i in ids if isinstance(i, str)}

    def record(self, badge_ids: Iterable[str]) -> set[str]:
        """Union ``badge_ids`` into the ledger and persist. Returns the new set."""
        known = self.load() or set()
        merged = known | set(badge_ids)
        if merged != known or self._storage.get(UNLOCKED_BADGES_KEY) is None:
            try:
                self._storage.set(UNLOCKED_BADGES_KEY, orjson.dumps(sorted(merged)).decode())
            except OSError:
                logger.warning("Failed to persist badge ledger", exc_info=True)
        return merged
