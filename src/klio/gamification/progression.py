"""User progression snapshot and the pure transitions applied to it.

Nothing here performs I/O. Every transition returns a new ``UserStats``;
``level`` is a computed field, so it can never drift from ``experience_points``.
"""

from __future__ import annotations

from datetime import date, timedelta

from pydantic import BaseModel, ConfigDict, Field, computed_field

from klio.gamification.levels import level_for


class UserStats(BaseModel):
    """Persisted progression snapshot.

    Serialized with the keys the desktop client has always written
    (``xp``, ``streak``, ``lastReadDate``...).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    experience_points: int = Field(default=0, ge=0, alias="xp")
    streak_days: int = Field(default=0, ge=0, alias="streak")
    last_activity_date: date | None = Field(default=None, alias="lastReadDate")
    total_books_read: int = Field(default=0, ge=0, alias="totalBooksRead")
    total_minutes_read: int = Field(default=0, ge=0, alias="totalMinutesRead")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def level(self) -> int:
        return level_for(self.experience_points)


DEFAULT_STATS = UserStats()


def _require_positive_int(name: str, value: object) -> int:
    # bool is an int subclass; True must not count as 1 XP
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        msg = f"{name} must be a positive integer, got {value!r}"
        raise ValueError(msg)
    return value


def award_xp(stats: UserStats, amount: int) -> UserStats:
    """Add XP. Level follows automatically."""
    amount = _require_positive_int("amount", amount)
    return stats.model_copy(update={"experience_points": stats.experience_points + amount})


def apply_activity(stats: UserStats, activity_date: date) -> UserStats:
    """Apply the streak rule for a qualifying reading activity on ``activity_date``.

    Same day: unchanged. Next day: streak + 1. Any larger gap, or no previous
    activity: streak restarts at 1. An activity dated before the last recorded
    one (clock skew, replayed event) is ignored.
    """
    last = stats.last_activity_date
    if last == activity_date:
        return stats

    if last is None:
        streak = 1
    else:
        gap = (activity_date - last).days
        if gap < 0:
            return stats
        streak = stats.streak_days + 1 if gap == 1 else 1

    return stats.model_copy(update={"streak_days": streak, "last_activity_date": activity_date})


def add_reading_minutes(stats: UserStats, minutes: int) -> UserStats:
    minutes = _require_positive_int("minutes", minutes)
    return stats.model_copy(update={"total_minutes_read": stats.total_minutes_read + minutes})


def complete_book(stats: UserStats) -> UserStats:
    return stats.model_copy(update={"total_books_read": stats.total_books_read + 1})


def effective_streak(stats: UserStats, today: date) -> int:
    """Streak as it should be displayed on ``today``.

    The stored streak is only rewritten on the next activity, so a reader who
    skipped yesterday still has a non-zero ``streak_days`` until then.
    """
    last = stats.last_activity_date
    if last is None or today - last > timedelta(days=1):
        return 0
    return stats.streak_days
