"""State containers for social data.

Remote reads replace these snapshots wholesale; nothing is merged field by field.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from klio.api.schemas import Challenge, ChallengeStatus, Note, RaceLeaderboard, SharedNote, SocialStats
from klio.state import StateContainer


class LeaderboardStore(StateContainer[RaceLeaderboard | None]):
    """Current race standings, exactly as the server ordered them."""

    def __init__(self) -> None:
        super().__init__(None)

    @property
    def current(self) -> RaceLeaderboard | None:
        return self.state

    def replace(self, leaderboard: RaceLeaderboard | None) -> None:
        self._replace(leaderboard)


class SharedNotesStore(StateContainer[tuple[SharedNote, ...]]):
    """Other readers' shared notes for the open book."""

    def __init__(self) -> None:
        super().__init__(())

    @property
    def notes(self) -> tuple[SharedNote, ...]:
        return self.state

    def replace(self, notes: list[SharedNote] | tuple[SharedNote, ...]) -> None:
        self._replace(tuple(notes))


class NotesStore(StateContainer[tuple[Note, ...]]):
    """The reader's own notes for the open book."""

    def __init__(self) -> None:
        super().__init__(())

    @property
    def notes(self) -> tuple[Note, ...]:
        return self.state

    def get(self, note_id: int) -> Note | None:
        return next((n for n in self.state if n.id == note_id), None)

    def replace(self, notes: list[Note] | tuple[Note, ...]) -> None:
        self._replace(tuple(notes))

    def set_shared(self, note_id: int, is_shared: bool) -> bool:
        """Set ``is_shared`` on one note, leaving the others untouched. False if not found."""
        found = False
        updated = []
        for note in self.state:
            if note.id == note_id:
                found = True
                note = note.model_copy(update={"is_shared": is_shared})
            updated.append(note)
        if found:
            self._replace(tuple(updated))
        return found


@dataclass(frozen=True)
class ChallengeSnapshot:
    challenges: tuple[Challenge, ...] = ()
    pending_count: int = 0


class ChallengeStore(StateContainer[ChallengeSnapshot]):
    def __init__(self) -> None:
        super().__init__(ChallengeSnapshot())

    @property
    def challenges(self) -> tuple[Challenge, ...]:
        return self.state.challenges

    @property
    def pending_count(self) -> int:
        return self.state.pending_count

    def replace_challenges(self, challenges: list[Challenge]) -> None:
        self._replace(dataclasses.replace(self.state, challenges=tuple(challenges)))

    def set_pending_count(self, count: int) -> None:
        self._replace(dataclasses.replace(self.state, pending_count=max(0, count)))

    def set_status(self, challenge_id: int, status: ChallengeStatus) -> None:
        challenges = tuple(
            c.model_copy(update={"status": status}) if c.id == challenge_id else c
            for c in self.state.challenges
        )
        self._replace(dataclasses.replace(self.state, challenges=challenges))

    def remove(self, challenge_id: int) -> None:
        challenges = tuple(c for c in self.state.challenges if c.id != challenge_id)
        self._replace(dataclasses.replace(self.state, challenges=challenges))

    def decrement_pending(self) -> None:
        self.set_pending_count(self.state.pending_count - 1)


class SocialStatsStore(StateContainer[SocialStats | None]):
    def __init__(self) -> None:
        super().__init__(None)

    @property
    def current(self) -> SocialStats | None:
        return self.state

    def replace(self, stats: SocialStats | None) -> None:
        self._replace(stats)
