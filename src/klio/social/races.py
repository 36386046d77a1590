"""Reading race lifecycle: create, join, finish, leaderboard refresh.

Each operation wraps exactly one backend call. User-initiated writes report
failure through the alert channel and never raise ``ApiError``; the
leaderboard refresh is best-effort and fails silently.

A race only becomes finished through a confirmed ``finish_race`` response;
this module never marks one finished locally.
"""

from __future__ import annotations

import structlog

from klio.alerts import AlertChannel
from klio.api.client import ApiError, KlioApiClient
from klio.social.stores import LeaderboardStore

logger = structlog.get_logger()

ERROR_TITLE = "Error"
CREATE_FALLBACK = "Could not create the race"
JOIN_FALLBACK = "Could not join the race"
FINISH_FALLBACK = "Could not finish the race"


class RaceSessionManager:
    """Translates race backend calls into leaderboard updates and alerts."""

    def __init__(
        self,
        api: KlioApiClient,
        leaderboard: LeaderboardStore,
        alerts: AlertChannel,
        winner_xp: int = 100,
    ) -> None:
        self.api = api
        self.leaderboard = leaderboard
        self.alerts = alerts
        self.winner_xp = winner_xp

    def _fail(self, exc: ApiError, fallback: str) -> None:
        self.alerts.error(ERROR_TITLE, exc.message or fallback)

    async def create_race(self, book_id: int) -> int | None:
        """Start a race on ``book_id``. Returns the race id, or None on failure."""
        try:
            res = await self.api.create_race(book_id)
        except ApiError as exc:
            logger.info("race_create_failed", book_id=book_id, error=exc.message, status=exc.status_code)
            self._fail(exc, CREATE_FALLBACK)
            return None

        logger.info("race_created", book_id=book_id, race_id=res.race_id)
        self.alerts.success("Race created", "A new reading race has started")
        return res.race_id

    async def join_race(self, race_id: int) -> bool:
        # Joining a finished race is rejected by the backend; no local status pre-check.
        try:
            await self.api.join_race(race_id)
        except ApiError as exc:
            logger.info("race_join_failed", race_id=race_id, error=exc.message, status=exc.status_code)
            self._fail(exc, JOIN_FALLBACK)
            return False

        logger.info("race_joined", race_id=race_id)
        self.alerts.success("Joined", "You have joined the race")
        return True

    async def load_leaderboard(self, race_id: int) -> None:
        """Replace the leaderboard snapshot. Keeps the previous one on any failure."""
        try:
            standings = await self.api.get_race_leaderboard(race_id)
        except ApiError as exc:
            logger.debug("leaderboard_refresh_failed", race_id=race_id, error=str(exc))
            return
        self.leaderboard.replace(standings)

    async def finish_race(self, race_id: int) -> None:
        """Report completion, then refresh the leaderboard from the confirmed state."""
        try:
            res = await self.api.finish_race(race_id)
        except ApiError as exc:
            logger.info("race_finish_failed", race_id=race_id, error=exc.message, status=exc.status_code)
            self._fail(exc, FINISH_FALLBACK)
            return

        logger.info("race_finished", race_id=race_id, is_winner=res.is_winner)
        if res.is_winner:
            self.alerts.success("You won!", f"You won the reading race (+{self.winner_xp} XP)")
        else:
            self.alerts.success("Completed", "You have finished the race")

        await self.load_leaderboard(race_id)
