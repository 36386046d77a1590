"""Shared/private visibility of the reader's notes."""

from __future__ import annotations

import logging

from klio.alerts import AlertChannel
from klio.api.client import ApiError, KlioApiClient
from klio.social.stores import NotesStore, SharedNotesStore

logger = logging.getLogger(__name__)

ERROR_TITLE = "Error"
TOGGLE_FALLBACK = "Could not change the note's visibility"


class SharedNotesSync:
    def __init__(
        self,
        api: KlioApiClient,
        shared_notes: SharedNotesStore,
        notes: NotesStore,
        alerts: AlertChannel,
    ) -> None:
        self.api = api
        self.shared_notes = shared_notes
        self.notes = notes
        self.alerts = alerts

    async def load_shared_notes(self, book_id: int) -> None:
        """Best-effort: replace the shared-notes snapshot, or keep it on failure."""
        try:
            notes = await self.api.get_shared_notes(book_id)
        except ApiError as exc:
            logger.debug("Shared notes refresh for book %s failed: %s", book_id, exc)
            return
        self.shared_notes.replace(notes)

    async def toggle_visibility(self, note_id: int) -> bool | None:
        """Flip a note's visibility on the backend.

        The local flag changes only after the backend confirms. Returns the
        confirmed value, or None if the call failed (an error alert is raised).
        """
        try:
            res = await self.api.toggle_note_shared(note_id)
        except ApiError as exc:
            logger.info("Toggling visibility of note %s failed: %s", note_id, exc)
            self.alerts.error(ERROR_TITLE, exc.message or TOGGLE_FALLBACK)
            return None

        if not self.notes.set_shared(note_id, res.is_shared):
            logger.debug("Note %s not in the local collection, nothing to update", note_id)
        return res.is_shared
