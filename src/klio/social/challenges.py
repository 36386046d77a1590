"""One-to-one reading challenges."""

from __future__ import annotations

import structlog

from klio.alerts import AlertChannel
from klio.api.client import ApiError, KlioApiClient
from klio.api.schemas import ChallengeStatusResponse, ChallengeType
from klio.social.stores import ChallengeStore

logger = structlog.get_logger()

ERROR_TITLE = "Error"


class ChallengeManager:
    """Challenge writes alert on failure; reads are best-effort."""

    def __init__(self, api: KlioApiClient, store: ChallengeStore, alerts: AlertChannel) -> None:
        self.api = api
        self.store = store
        self.alerts = alerts

    async def load_challenges(self) -> None:
        try:
            challenges = await self.api.list_challenges()
        except ApiError as exc:
            logger.debug("challenges_refresh_failed", error=str(exc))
            return
        self.store.replace_challenges(challenges)

    async def load_pending_count(self) -> None:
        try:
            count = await self.api.get_pending_challenges_count()
        except ApiError as exc:
            logger.debug("pending_challenges_refresh_failed", error=str(exc))
            return
        self.store.set_pending_count(count)

    async def create_challenge(
        self,
        book_id: int,
        challenged_id: int,
        challenge_type: ChallengeType,
        target_chapters: int | None = None,
        target_days: int | None = None,
    ) -> int | None:
        try:
            res = await self.api.create_challenge(
                book_id,
                challenged_id,
                challenge_type,
                target_chapters=target_chapters,
                target_days=target_days,
            )
        except ApiError as exc:
            self.alerts.error(ERROR_TITLE, exc.message or "Could not create the challenge")
            return None

        logger.info("challenge_created", challenge_id=res.challenge_id, challenged_id=challenged_id)
        self.alerts.success("Challenge sent", "The challenge has been sent to the reader")
        await self.load_challenges()
        return res.challenge_id

    async def accept_challenge(self, challenge_id: int) -> bool:
        try:
            await self.api.accept_challenge(challenge_id)
        except ApiError as exc:
            self.alerts.error(ERROR_TITLE, exc.message or "Could not accept the challenge")
            return False

        self.store.set_status(challenge_id, "active")
        self.store.decrement_pending()
        self.alerts.success("Challenge accepted", "You have accepted the challenge")
        return True

    async def reject_challenge(self, challenge_id: int) -> bool:
        try:
            await self.api.reject_challenge(challenge_id)
        except ApiError as exc:
            self.alerts.error(ERROR_TITLE, exc.message or "Could not reject the challenge")
            return False

        self.store.remove(challenge_id)
        self.store.decrement_pending()
        return True

    async def check_status(self, challenge_id: int) -> ChallengeStatusResponse | None:
        try:
            return await self.api.get_challenge_status(challenge_id)
        except ApiError as exc:
            logger.debug("challenge_status_failed", challenge_id=challenge_id, error=str(exc))
            return None
