"""HTTP client for the Klio backend.

Every failure leaves this module as ``ApiError``: transport problems as
``ApiTransportError`` (no message), rejected requests with the backend's
``error`` text when it sent one.
"""

from __future__ import annotations

from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, TypeAdapter, ValidationError

from klio.api.schemas import (
    Challenge,
    ChallengeStatusResponse,
    ChallengeType,
    CreateChallengeResponse,
    CreateRaceResponse,
    FinishRaceResponse,
    PendingCountResponse,
    RaceLeaderboard,
    RemoteStats,
    SharedNote,
    SocialStats,
    ToggleSharedResponse,
)

logger = structlog.get_logger()

M = TypeVar("M", bound=BaseModel)

_shared_notes_adapter = TypeAdapter(list[SharedNote])
_challenges_adapter = TypeAdapter(list[Challenge])


class ApiError(Exception):
    """Request rejected by the backend, or a response we could not use."""

    def __init__(self, message: str | None, status_code: int | None = None) -> None:
        super().__init__(message or "API request failed")
        self.message = message
        self.status_code = status_code


class ApiTransportError(ApiError):
    """Backend unreachable (connect error, timeout, dropped connection)."""

    def __init__(self, cause: Exception) -> None:
        super().__init__(None)
        self.cause = cause

    def __str__(self) -> str:
        return f"transport failure: {self.cause!r}"


class KlioApiClient:
    """Async wrapper around the backend REST endpoints the engine consumes."""

    def __init__(
        self,
        base_url: str,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    @property
    def is_logged_in(self) -> bool:
        return self.token is not None

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, json: Any = None) -> Any:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._client.request(method, path, json=json, headers=headers)
        except httpx.TransportError as exc:
            logger.debug("api_transport_error", method=method, path=path, error=str(exc))
            raise ApiTransportError(exc) from exc

        if response.status_code == 401:
            self.token = None
            raise ApiError("Session expired", 401)

        if response.is_error:
            message = None
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            raise ApiError(message or f"Error {response.status_code}", response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("api_non_json_response", path=path, body=response.text[:500])
            raise ApiError(f"Invalid server response ({response.status_code})", response.status_code) from exc

    @staticmethod
    def _parse(model: type[M], payload: Any) -> M:
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise ApiError("Invalid server response (200)", 200) from exc

    # ── Races ──

    async def create_race(self, book_id: int) -> CreateRaceResponse:
        payload = await self._request("POST", f"/api/books/{book_id}/races")
        return self._parse(CreateRaceResponse, payload)

    async def join_race(self, race_id: int) -> None:
        await self._request("POST", f"/api/races/{race_id}/join")

    async def get_race_leaderboard(self, race_id: int) -> RaceLeaderboard:
        payload = await self._request("GET", f"/api/races/{race_id}/leaderboard")
        return self._parse(RaceLeaderboard, payload)

    async def finish_race(self, race_id: int) -> FinishRaceResponse:
        payload = await self._request("POST", f"/api/races/{race_id}/finish")
        return self._parse(FinishRaceResponse, payload)

    # ── Shared notes ──

    async def get_shared_notes(self, book_id: int) -> list[SharedNote]:
        payload = await self._request("GET", f"/api/books/{book_id}/shared-notes")
        try:
            return _shared_notes_adapter.validate_python(payload)
        except ValidationError as exc:
            raise ApiError("Invalid server response (200)", 200) from exc

    async def toggle_note_shared(self, note_id: int) -> ToggleSharedResponse:
        payload = await self._request("PUT", f"/api/notes/{note_id}/share")
        return self._parse(ToggleSharedResponse, payload)

    # ── Stats ──

    async def get_stats(self) -> RemoteStats:
        payload = await self._request("GET", "/api/user/stats")
        return self._parse(RemoteStats, payload)

    async def sync_stats(self, stats: RemoteStats) -> None:
        await self._request("PUT", "/api/user/stats", json=stats.model_dump(mode="json"))

    async def get_social_stats(self) -> SocialStats:
        payload = await self._request("GET", "/api/user/social-stats")
        return self._parse(SocialStats, payload)

    # ── Challenges ──

    async def create_challenge(
        self,
        book_id: int,
        challenged_id: int,
        challenge_type: ChallengeType,
        target_chapters: int | None = None,
        target_days: int | None = None,
    ) -> CreateChallengeResponse:
        body: dict[str, Any] = {"challenged_id": challenged_id, "challenge_type": challenge_type}
        if target_chapters is not None:
            body["target_chapters"] = target_chapters
        if target_days is not None:
            body["target_days"] = target_days
        payload = await self._request("POST", f"/api/books/{book_id}/challenges", json=body)
        return self._parse(CreateChallengeResponse, payload)

    async def list_challenges(self) -> list[Challenge]:
        payload = await self._request("GET", "/api/challenges")
        try:
            return _challenges_adapter.validate_python(payload)
        except ValidationError as exc:
            raise ApiError("Invalid server response (200)", 200) from exc

    async def get_pending_challenges_count(self) -> int:
        payload = await self._request("GET", "/api/challenges/pending/count")
        return self._parse(PendingCountResponse, payload).count

    async def accept_challenge(self, challenge_id: int) -> None:
        await self._request("POST", f"/api/challenges/{challenge_id}/accept")

    async def reject_challenge(self, challenge_id: int) -> None:
        await self._request("POST", f"/api/challenges/{challenge_id}/reject")

    async def get_challenge_status(self, challenge_id: int) -> ChallengeStatusResponse:
        payload = await self._request("GET", f"/api/challenges/{challenge_id}/status")
        return self._parse(ChallengeStatusResponse, payload)
