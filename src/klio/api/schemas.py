"""Pydantic models for remote backend responses.

Shapes match the PHP backend's JSON payloads; unknown keys are ignored.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


# ── Races ──


class CreateRaceResponse(_Wire):
    ok: bool = True
    race_id: int


class FinishRaceResponse(_Wire):
    ok: bool = True
    is_winner: bool = False


class Race(_Wire):
    id: int
    stored_file_id: int
    created_by: int
    status: Literal["active", "completed"]
    winner_user_id: int | None = None
    created_at: datetime | None = None

    @property
    def is_finished(self) -> bool:
        return self.status == "completed"


class LeaderboardEntry(_Wire):
    user_id: int
    username: str
    avatar: str | None = None
    joined_at: datetime | None = None
    finished_at: datetime | None = None
    progress_percent: float = 0.0
    rank: int | None = None


class RaceLeaderboard(_Wire):
    """Server-ordered standings. Entry order is authoritative and never re-sorted."""

    race: Race
    leaderboard: tuple[LeaderboardEntry, ...] = ()


# ── Notes ──


class Note(_Wire):
    id: int
    book_id: int
    chapter_index: int
    content: str
    highlight_text: str | None = None
    color: str = "yellow"
    is_shared: bool = False
    audio_path: str | None = None
    audio_duration: float | None = None
    created_at: datetime | None = None


class SharedNote(_Wire):
    id: int
    chapter_index: int
    content: str
    highlight_text: str | None = None
    color: str = "yellow"
    user_id: int
    username: str
    avatar: str | None = None
    has_audio: bool = False
    audio_duration: float | None = None
    created_at: datetime | None = None


class ToggleSharedResponse(_Wire):
    ok: bool = True
    is_shared: bool


# ── Stats ──


class RemoteStats(_Wire):
    xp: int = Field(default=0, ge=0)
    level: int = 1
    streak: int = Field(default=0, ge=0)
    last_streak_date: date | None = None
    selected_title_id: str | None = None


class SocialStats(_Wire):
    books_shared: int = 0
    races_won: int = 0
    races_participated: int = 0
    challenges_completed: int = 0
    challenges_created: int = 0
    shared_notes_count: int = 0


# ── Challenges ──

ChallengeType = Literal["chapters_in_days", "finish_before"]
ChallengeStatus = Literal["pending", "active", "completed", "failed", "expired", "rejected"]


class Challenge(_Wire):
    id: int
    stored_file_id: int
    challenger_id: int
    challenged_id: int
    challenge_type: ChallengeType
    target_chapters: int | None = None
    target_days: int | None = None
    deadline: datetime | None = None
    status: ChallengeStatus
    winner_user_id: int | None = None
    xp_reward: int = 0
    started_at: datetime | None = None
    completed_at: datetime | None = None
    created_at: datetime | None = None
    challenger_username: str | None = None
    challenged_username: str | None = None


class CreateChallengeResponse(_Wire):
    ok: bool = True
    challenge_id: int


class ParticipantProgress(_Wire):
    user_id: int
    username: str
    avatar: str | None = None
    progress_percent: float = 0.0
    current_chapter: int = 0
    current_page: int = 0
    last_read: datetime | None = None


class ChallengeStatusResponse(_Wire):
    challenge: Challenge
    challenger_progress: ParticipantProgress
    challenged_progress: ParticipantProgress


class PendingCountResponse(_Wire):
    count: int = 0
