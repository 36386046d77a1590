"""Reading activity → XP/streak updates → badge detection → toast.

Also reconciles the local snapshot with the backend copy of the user's stats.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from klio.api.client import ApiError, KlioApiClient
from klio.api.schemas import RemoteStats
from klio.gamification.badges import BadgeContext, BadgeDefinition, eligible_badges, new_unlocks
from klio.gamification.progression import (
    UserStats,
    add_reading_minutes,
    apply_activity,
    award_xp,
    complete_book,
)
from klio.gamification.store import BadgeLedger, ProgressionStore
from klio.notifications.toast_queue import BadgeToastEvent, NotificationQueue, SchedulerUnavailableError
from klio.social.stores import SocialStatsStore

logger = logging.getLogger(__name__)


def stats_from_remote(remote: RemoteStats, local: UserStats) -> UserStats:
    """Backend stats carry no reading totals; keep the local ones."""
    return local.model_copy(update={
        "experience_points": remote.xp,
        "streak_days": remote.streak,
        "last_activity_date": remote.last_streak_date,
    })


def stats_to_remote(stats: UserStats, selected_title: str | None) -> RemoteStats:
    return RemoteStats(
        xp=stats.experience_points,
        level=stats.level,
        streak=stats.streak_days,
        last_streak_date=stats.last_activity_date,
        selected_title_id=selected_title,
    )


class ProgressionService:
    """Drives the progression store from reading events."""

    def __init__(
        self,
        store: ProgressionStore,
        ledger: BadgeLedger,
        toasts: NotificationQueue,
        social_stats: SocialStatsStore,
        api: KlioApiClient | None = None,
        xp_per_page: int = 10,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.toasts = toasts
        self.social_stats = social_stats
        self.api = api
        self.xp_per_page = xp_per_page
        self.book_progress: Sequence[float] = ()

    # --- Reading events ---

    def start_reading_session(self, today: date | None = None) -> UserStats:
        today = today or date.today()
        stats = self.store.update(lambda s: apply_activity(s, today))
        self.check_badges()
        return stats

    def record_progress(self, advanced: bool) -> UserStats:
        """Grant page XP when the reader moved forward. Going back earns nothing."""
        if not advanced:
            return self.store.stats
        stats = self.store.update(lambda s: award_xp(s, self.xp_per_page))
        self.check_badges()
        return stats

    def record_reading_minutes(self, minutes: int) -> UserStats:
        stats = self.store.update(lambda s: add_reading_minutes(s, minutes))
        self.check_badges()
        return stats

    def record_book_finished(self) -> UserStats:
        stats = self.store.update(complete_book)
        self.check_badges()
        return stats

    def set_book_progress(self, progress: Sequence[float]) -> None:
        """Library progress percentages, consulted by the book-count badges."""
        self.book_progress = tuple(progress)
        self.check_badges()

    # --- Badges ---

    def _context(self, stats: UserStats | None = None) -> BadgeContext:
        return BadgeContext(
            stats=stats if stats is not None else self.store.stats,
            book_progress=self.book_progress,
            social=self.social_stats.current,
        )

    def check_badges(self) -> list[BadgeDefinition]:
        """Record newly eligible badges and toast the first of them.

        On a fresh install (no ledger yet) the first evaluation only seeds the
        ledger and shows nothing.
        """
        ctx = self._context()
        unlocked = self.ledger.load()
        if unlocked is None:
            seeded = self.ledger.record(b.id for b in eligible_badges(ctx))
            logger.info("Seeded badge ledger with %d badges", len(seeded))
            return []

        fresh = new_unlocks(ctx, unlocked)
        if not fresh:
            return []

        first = fresh[0]
        try:
            self.toasts.push(BadgeToastEvent(badge_id=first.id, display_name=first.name, emoji=first.emoji))
        except SchedulerUnavailableError:
            # left out of the ledger so the next evaluation on a loop toasts it
            logger.warning("Badge %s unlocked outside the event loop, toast deferred", first.id)
            return []

        self.ledger.record(b.id for b in fresh)
        logger.info("Badge unlocked: %s (%d new)", first.id, len(fresh))
        return fresh

    # --- Remote reconciliation ---

    async def sync_from_remote(self) -> bool:
        """Best-effort pull of backend stats. Returns True if the remote snapshot was adopted."""
        if self.api is None:
            return False

        try:
            social = await self.api.get_social_stats()
        except ApiError as exc:
            logger.debug("Social stats refresh failed: %s", exc)
        else:
            self.social_stats.replace(social)

        try:
            remote = await self.api.get_stats()
        except ApiError as exc:
            logger.debug("Remote stats refresh failed: %s", exc)
            return False

        remote_stats = stats_from_remote(remote, self.store.stats)
        # badges earned on another device: record without a toast
        earned = {b.id for b in eligible_badges(self._context(remote_stats))}
        if self.ledger.load() is None:
            earned |= {b.id for b in eligible_badges(self._context())}
        self.ledger.record(earned)

        adopted = self.store.reconcile(remote_stats)
        if remote.selected_title_id:
            try:
                self.store.set_selected_title(remote.selected_title_id)
            except ValueError:
                logger.warning("Backend sent unknown title %r", remote.selected_title_id)
        return adopted

    async def push_to_remote(self) -> bool:
        """Best-effort upload of the local snapshot."""
        if self.api is None or not self.api.is_logged_in:
            return False
        try:
            await self.api.sync_stats(stats_to_remote(self.store.stats, self.store.selected_title))
        except ApiError as exc:
            logger.debug("Stats upload failed: %s", exc)
            return False
        return True
