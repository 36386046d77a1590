"""Progression model tests: XP, streak rule, derived level."""

from __future__ import annotations

from datetime import date

import pytest
from pydantic import ValidationError

from klio.gamification.progression import (
    DEFAULT_STATS,
    UserStats,
    add_reading_minutes,
    apply_activity,
    award_xp,
    complete_book,
    effective_streak,
)

MONDAY = date(2026, 2, 23)
TUESDAY = date(2026, 2, 24)
FRIDAY = date(2026, 2, 27)


class TestUserStats:
    def test_default_snapshot(self):
        assert DEFAULT_STATS.experience_points == 0
        assert DEFAULT_STATS.streak_days == 0
        assert DEFAULT_STATS.last_activity_date is None
        assert DEFAULT_STATS.level == 1

    def test_level_is_derived(self):
        assert UserStats(experience_points=450).level == 3

    def test_persisted_level_is_ignored(self):
        """A stale level written to disk never overrides the XP-derived one."""
        stats = UserStats.model_validate({"xp": 150, "level": 40})
        assert stats.level == 2

    def test_serializes_with_client_keys(self):
        stats = UserStats(experience_points=120, streak_days=2, last_activity_date=MONDAY)
        dumped = stats.model_dump(mode="json", by_alias=True)
        assert dumped["xp"] == 120
        assert dumped["streak"] == 2
        assert dumped["lastReadDate"] == "2026-02-23"
        assert dumped["level"] == 2

    def test_snapshot_is_immutable(self):
        with pytest.raises(ValidationError):
            DEFAULT_STATS.experience_points = 10  # type: ignore[misc]


class TestAwardXP:
    def test_adds_xp_and_recomputes_level(self):
        stats = award_xp(UserStats(experience_points=90), 10)
        assert stats.experience_points == 100
        assert stats.level == 2

    def test_does_not_touch_streak(self):
        before = UserStats(streak_days=4, last_activity_date=MONDAY)
        after = award_xp(before, 10)
        assert after.streak_days == 4
        assert after.last_activity_date == MONDAY

    @pytest.mark.parametrize("a,b", [(10, 10), (1, 99), (250, 1750), (7, 393)])
    def test_additive(self, a, b):
        two_steps = award_xp(award_xp(DEFAULT_STATS, a), b)
        one_step = award_xp(DEFAULT_STATS, a + b)
        assert two_steps.experience_points == one_step.experience_points
        assert two_steps.level == one_step.level

    @pytest.mark.parametrize("amount", [0, -5, 2.5, "10", True, None])
    def test_rejects_non_positive_or_non_integer(self, amount):
        with pytest.raises(ValueError, match="positive integer"):
            award_xp(DEFAULT_STATS, amount)  # type: ignore[arg-type]

    def test_input_snapshot_unchanged(self):
        award_xp(DEFAULT_STATS, 50)
        assert DEFAULT_STATS.experience_points == 0


class TestApplyActivity:
    def test_first_activity_starts_streak_at_one(self):
        stats = apply_activity(DEFAULT_STATS, MONDAY)
        assert stats.streak_days == 1
        assert stats.last_activity_date == MONDAY

    def test_same_day_is_idempotent(self):
        once = apply_activity(DEFAULT_STATS, MONDAY)
        twice = apply_activity(once, MONDAY)
        assert twice.streak_days == once.streak_days
        assert twice == once

    def test_next_day_increments(self):
        stats = UserStats(streak_days=3, last_activity_date=MONDAY)
        stats = apply_activity(stats, TUESDAY)
        assert stats.streak_days == 4
        assert stats.last_activity_date == TUESDAY

    def test_gap_resets_to_one_not_zero(self):
        stats = UserStats(streak_days=9, last_activity_date=MONDAY)
        stats = apply_activity(stats, FRIDAY)
        assert stats.streak_days == 1
        assert stats.last_activity_date == FRIDAY

    def test_month_boundary_counts_as_consecutive(self):
        stats = UserStats(streak_days=1, last_activity_date=date(2026, 2, 28))
        assert apply_activity(stats, date(2026, 3, 1)).streak_days == 2

    def test_earlier_date_ignored(self):
        stats = UserStats(streak_days=5, last_activity_date=TUESDAY)
        assert apply_activity(stats, MONDAY) == stats

    def test_does_not_touch_xp(self):
        stats = apply_activity(UserStats(experience_points=300), MONDAY)
        assert stats.experience_points == 300


class TestReadingTotals:
    def test_add_minutes(self):
        assert add_reading_minutes(DEFAULT_STATS, 25).total_minutes_read == 25

    def test_minutes_must_be_positive(self):
        with pytest.raises(ValueError):
            add_reading_minutes(DEFAULT_STATS, 0)

    def test_complete_book(self):
        assert complete_book(complete_book(DEFAULT_STATS)).total_books_read == 2


class TestEffectiveStreak:
    def test_active_today(self):
        stats = UserStats(streak_days=6, last_activity_date=TUESDAY)
        assert effective_streak(stats, TUESDAY) == 6

    def test_active_yesterday_still_counts(self):
        stats = UserStats(streak_days=6, last_activity_date=MONDAY)
        assert effective_streak(stats, TUESDAY) == 6

    def test_missed_a_day(self):
        stats = UserStats(streak_days=6, last_activity_date=MONDAY)
        assert effective_streak(stats, FRIDAY) == 0

    def test_never_active(self):
        assert effective_streak(DEFAULT_STATS, MONDAY) == 0
