"""Engine composition: builds every store and manager with explicit wiring."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

import structlog

from klio.alerts import AlertChannel
from klio.api.client import KlioApiClient
from klio.config import Settings, get_settings
from klio.gamification.service import ProgressionService
from klio.gamification.store import BadgeLedger, ProgressionStore
from klio.logging_config import setup_logging
from klio.notifications.toast_queue import NotificationQueue, Scheduler
from klio.social.challenges import ChallengeManager
from klio.social.races import RaceSessionManager
from klio.social.shared_notes import SharedNotesSync
from klio.social.stores import (
    ChallengeStore,
    LeaderboardStore,
    NotesStore,
    SharedNotesStore,
    SocialStatsStore,
)
from klio.storage import JsonFileStorage, KeyValueStorage

logger = structlog.get_logger()


@dataclass
class Engine:
    """Owns every piece of engine state. Presentation reads the stores and calls the managers."""

    settings: Settings
    storage: KeyValueStorage
    api: KlioApiClient
    alerts: AlertChannel
    toasts: NotificationQueue
    progression_store: ProgressionStore
    badge_ledger: BadgeLedger
    leaderboard: LeaderboardStore
    notes: NotesStore
    shared_notes: SharedNotesStore
    challenge_store: ChallengeStore
    social_stats: SocialStatsStore
    progression: ProgressionService
    races: RaceSessionManager
    shared_notes_sync: SharedNotesSync
    challenges: ChallengeManager
    owns_api: bool = True

    async def aclose(self) -> None:
        self.toasts.close()
        if self.owns_api:
            await self.api.aclose()


def create_engine(
    settings: Settings | None = None,
    *,
    storage: KeyValueStorage | None = None,
    api: KlioApiClient | None = None,
    scheduler: Scheduler | None = None,
) -> Engine:
    """Wire the engine and load the persisted progression snapshot."""
    settings = settings or get_settings()
    storage = storage if storage is not None else JsonFileStorage(settings.resolved_state_path)
    owns_api = api is None
    if api is None:
        api = KlioApiClient(
            settings.api_url,
            token=settings.api_token,
            timeout=settings.api_timeout_seconds,
        )

    alerts = AlertChannel()
    toasts = NotificationQueue(
        enter_delay=settings.toast_enter_delay_ms / 1000,
        visible_duration=settings.toast_visible_ms / 1000,
        exit_duration=settings.toast_exit_ms / 1000,
        scheduler=scheduler,
    )
    progression_store = ProgressionStore(storage)
    badge_ledger = BadgeLedger(storage)
    leaderboard = LeaderboardStore()
    notes = NotesStore()
    shared_notes = SharedNotesStore()
    challenge_store = ChallengeStore()
    social_stats = SocialStatsStore()

    stats = progression_store.load()
    logger.info(
        "engine_initialized",
        xp=stats.experience_points,
        level=stats.level,
        streak=stats.streak_days,
        api_url=settings.api_url,
    )

    return Engine(
        settings=settings,
        storage=storage,
        api=api,
        alerts=alerts,
        toasts=toasts,
        progression_store=progression_store,
        badge_ledger=badge_ledger,
        leaderboard=leaderboard,
        notes=notes,
        shared_notes=shared_notes,
        challenge_store=challenge_store,
        social_stats=social_stats,
        progression=ProgressionService(
            progression_store,
            badge_ledger,
            toasts,
            social_stats,
            api=api,
            xp_per_page=settings.xp_per_page,
        ),
        races=RaceSessionManager(api, leaderboard, alerts, winner_xp=settings.race_winner_xp),
        shared_notes_sync=SharedNotesSync(api, shared_notes, notes, alerts),
        challenges=ChallengeManager(api, challenge_store, alerts),
        owns_api=owns_api,
    )


@asynccontextmanager
async def open_engine(
    settings: Settings | None = None,
    *,
    storage: KeyValueStorage | None = None,
    api: KlioApiClient | None = None,
    scheduler: Scheduler | None = None,
) -> AsyncGenerator[Engine, None]:
    """Startup and shutdown lifecycle."""
    settings = settings or get_settings()
    setup_logging(settings)
    engine = create_engine(settings, storage=storage, api=api, scheduler=scheduler)
    try:
        yield engine
    finally:
        await engine.aclose()
        logger.info("engine_closed")
