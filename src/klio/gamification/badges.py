"""Badge catalogue and eligibility predicates.

Predicates only propose candidates. Which badges are already unlocked is
tracked by ``BadgeLedger``; filtering against it happens in ``new_unlocks``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field

from klio.api.schemas import SocialStats
from klio.gamification.progression import UserStats


@dataclass(frozen=True)
class BadgeContext:
    """Everything a predicate may look at. Built fresh for every evaluation."""

    stats: UserStats
    book_progress: Sequence[float] = ()
    social: SocialStats | None = None

    @property
    def books_finished(self) -> int:
        return sum(1 for p in self.book_progress if p >= 100)


@dataclass(frozen=True)
class BadgeDefinition:
    id: str
    name: str
    description: str
    emoji: str
    category: str
    rarity: str
    predicate: Callable[[BadgeContext], bool] = field(compare=False, repr=False)

    def is_eligible(self, ctx: BadgeContext) -> bool:
        return self.predicate(ctx)


def _social(ctx: BadgeContext, attr: str) -> int:
    if ctx.social is None:
        return 0
    return getattr(ctx.social, attr)


def _finished_books(threshold: int) -> Callable[[BadgeContext], bool]:
    return lambda ctx: max(ctx.books_finished, ctx.stats.total_books_read) >= threshold


def _streak(threshold: int) -> Callable[[BadgeContext], bool]:
    return lambda ctx: ctx.stats.streak_days >= threshold


def _level(threshold: int) -> Callable[[BadgeContext], bool]:
    return lambda ctx: ctx.stats.level >= threshold


def _minutes(threshold: int) -> Callable[[BadgeContext], bool]:
    return lambda ctx: ctx.stats.total_minutes_read >= threshold


def _social_count(attr: str, threshold: int = 1) -> Callable[[BadgeContext], bool]:
    return lambda ctx: _social(ctx, attr) >= threshold


BADGES: tuple[BadgeDefinition, ...] = (
    # --- Reading ---
    BadgeDefinition("first_page", "First Page", "Earn your first XP by turning a page", "📖",
                    "reading", "common", lambda ctx: ctx.stats.experience_points > 0),
    BadgeDefinition("first_book", "The End", "Finish your first book", "📕",
                    "reading", "common", _finished_books(1)),
    BadgeDefinition("bookworm", "Bookworm", "Finish 5 books", "🐛",
                    "reading", "rare", _finished_books(5)),
    BadgeDefinition("librarian", "Librarian", "Finish 10 books", "🏛️",
                    "reading", "epic", _finished_books(10)),
    BadgeDefinition("hour_reader", "Hour Reader", "Read for an hour in total", "⏱️",
                    "reading", "common", _minutes(60)),
    BadgeDefinition("marathon_reader", "Marathon Reader", "Read for 10 hours in total", "🏃",
                    "reading", "rare", _minutes(600)),
    # --- Streak ---
    BadgeDefinition("streak_3", "Warming Up", "Read 3 days in a row", "🔥",
                    "streak", "common", _streak(3)),
    BadgeDefinition("streak_7", "Week of Pages", "Read 7 days in a row", "📅",
                    "streak", "rare", _streak(7)),
    BadgeDefinition("streak_30", "Unstoppable", "Read 30 days in a row", "⚡",
                    "streak", "legendary", _streak(30)),
    # --- Level ---
    BadgeDefinition("level_5", "Avid Reader", "Reach level 5", "⭐",
                    "level", "rare", _level(5)),
    BadgeDefinition("level_10", "Sage", "Reach level 10", "🧙",
                    "level", "epic", _level(10)),
    # --- Social ---
    BadgeDefinition("race_participant", "On Your Marks", "Take part in a reading race", "🏁",
                    "social", "common", _social_count("races_participated")),
    BadgeDefinition("race_winner", "Speed Reader", "Win a reading race", "🏆",
                    "social", "epic", _social_count("races_won")),
    BadgeDefinition("note_sharer", "Margin Notes", "Share a note with other readers", "📝",
                    "social", "common", _social_count("shared_notes_count")),
    BadgeDefinition("book_sharer", "Lending Library", "Share a book with another reader", "🤝",
                    "social", "common", _social_count("books_shared")),
    BadgeDefinition("challenger", "Gauntlet Thrown", "Create a reading challenge", "🥊",
                    "social", "common", _social_count("challenges_created")),
    BadgeDefinition("challenge_champion", "Challenge Champion", "Complete 3 reading challenges", "🥇",
                    "social", "rare", _social_count("challenges_completed", 3)),
)

_BY_ID: dict[str, BadgeDefinition] = {b.id: b for b in BADGES}


def get_badge(badge_id: str) -> BadgeDefinition | None:
    return _BY_ID.get(badge_id)


def eligible_badges(ctx: BadgeContext) -> list[BadgeDefinition]:
    """All badges whose predicate holds for ``ctx``, in catalogue order."""
    return [badge for badge in BADGES if badge.is_eligible(ctx)]


def new_unlocks(ctx: BadgeContext, unlocked: Iterable[str]) -> list[BadgeDefinition]:
    """Eligible badges not yet in ``unlocked``.

    Idempotent: evaluating again with the result added to ``unlocked``
    returns an empty list.
    """
    known = set(unlocked)
    return [badge for badge in eligible_badges(ctx) if badge.id not in known]
