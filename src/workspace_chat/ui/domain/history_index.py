"""History index domain manager.

Keeps completed conversations keyed by session id. Records are created on
the first committed exchange of a fresh conversation and updated in place
afterwards; the core never deletes them.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterator, Sequence

from ...chat.errors import IndexConsistencyError, SessionNotFoundError
from ...chat.message_model import (
    PREVIEW_LENGTH,
    TITLE_LENGTH,
    SessionRecord,
    first_user_message,
    truncate_label,
)
from ..events import EventBus, SessionCommitted

if TYPE_CHECKING:  # pragma: no cover
    from ...chat.message_model import Message, MessageFactory

LOGGER = logging.getLogger(__name__)


class HistoryIndex:
    """Insertion-ordered set of :class:`SessionRecord` objects.

    Enumeration is newest-first by creation; updating a record replaces its
    messages and timestamp but keeps its position.

    Events Emitted:
        - SessionCommitted: When a record is created or updated
    """

    def __init__(
        self,
        event_bus: EventBus,
        factory: MessageFactory,
        *,
        title_length: int = TITLE_LENGTH,
        preview_length: int = PREVIEW_LENGTH,
    ) -> None:
        self._bus = event_bus
        self._factory = factory
        self._title_length = title_length
        self._preview_length = preview_length
        # Oldest first; enumeration reverses it.
        self._records: dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._records

    def __iter__(self) -> Iterator[SessionRecord]:
        return iter(self.sessions())

    def sessions(self) -> list[SessionRecord]:
        """Return all records, newest first."""
        return list(reversed(self._records.values()))

    def get(self, session_id: str) -> SessionRecord:
        """Return the record for ``session_id``.

        Raises:
            SessionNotFoundError: If the id is unknown.
        """
        try:
            return self._records[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def commit(
        self,
        active_session_id: str | None,
        messages: Sequence[Message],
        *,
        title: str | None = None,
        preview: str | None = None,
    ) -> str:
        """Create or update the record for the current conversation.

        Args:
            active_session_id: Record to update, or None to create a new one.
            messages: The full live log to store.
            title: Title override for new records.
            preview: Preview override for new records.

        Returns:
            The id of the created or updated record.

        Raises:
            ValueError: If ``messages`` is empty.
            IndexConsistencyError: If ``active_session_id`` is not indexed.

        Emits:
            SessionCommitted: With ``created`` telling both cases apart.
        """
        snapshot = tuple(messages)
        if not snapshot:
            raise ValueError("Cannot commit an empty conversation")

        now = self._factory.now()
        if active_session_id is None:
            session_id = self._factory.new_id()
            record = SessionRecord(
                id=session_id,
                title=title if title is not None else self._derive(snapshot, self._title_length),
                preview=preview if preview is not None else self._derive(snapshot, self._preview_length),
                timestamp=now,
                messages=snapshot,
            )
            self._records[session_id] = record
            created = True
        else:
            existing = self._records.get(active_session_id)
            if existing is None:
                raise IndexConsistencyError(active_session_id)
            session_id = active_session_id
            # Plain assignment to an existing key keeps its position.
            self._records[session_id] = SessionRecord(
                id=existing.id,
                title=existing.title,
                preview=existing.preview,
                timestamp=now,
                messages=snapshot,
            )
            created = False

        LOGGER.debug(
            "HistoryIndex.commit: session_id=%s, created=%s, messages=%d",
            session_id,
            created,
            len(snapshot),
        )
        self._bus.publish(
            SessionCommitted(session_id=session_id, created=created, message_count=len(snapshot))
        )
        return session_id

    def load(self, session_id: str) -> list[Message]:
        """Return a copy of the stored message log for ``session_id``.

        Raises:
            SessionNotFoundError: If the id is unknown.
        """
        return list(self.get(session_id).messages)

    @staticmethod
    def _derive(messages: Sequence[Message], limit: int) -> str:
        first = first_user_message(messages)
        if first is None:
            return ""
        return truncate_label(first.text, limit)


__all__ = ["HistoryIndex"]
