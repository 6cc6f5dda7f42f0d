"""Chat message and session record data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Sequence

from .identity import IdentityGenerator, select_identity_generator

TITLE_LENGTH = 30
PREVIEW_LENGTH = 50
ELLIPSIS = "..."

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""

    return datetime.now(timezone.utc)


@dataclass(frozen=True, slots=True)
class Message:
    """Represents a row inside the conversation log."""

    id: str
    text: str
    is_user: bool
    timestamp: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the message for presentation layers."""

        return {
            "id": self.id,
            "text": self.text,
            "is_user": self.is_user,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class SessionRecord:
    """Indexed snapshot of a conversation: metadata plus its full message log."""

    id: str
    title: str
    preview: str
    timestamp: datetime
    messages: tuple[Message, ...]

    def __post_init__(self) -> None:
        if not self.messages:
            raise ValueError("SessionRecord requires at least one message")
        object.__setattr__(self, "messages", tuple(self.messages))

    @property
    def message_count(self) -> int:
        return len(self.messages)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "preview": self.preview,
            "timestamp": self.timestamp.isoformat(),
            "messages": [message.to_dict() for message in self.messages],
        }


def truncate_label(text: str, limit: int) -> str:
    """Return the first ``limit`` characters of ``text``, marked when cut."""

    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def first_user_message(messages: Sequence[Message]) -> Message | None:
    """Return the earliest user-authored message, if any."""

    for message in messages:
        if message.is_user:
            return message
    return None


class MessageFactory:
    """Builds immutable :class:`Message` records with identity and timestamp.

    The identity generator is chosen once when the factory is constructed so
    the scheme stays fixed for the lifetime of the process.
    """

    def __init__(
        self,
        identity: IdentityGenerator | None = None,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._identity = identity or select_identity_generator()
        self._clock = clock or _utcnow

    @property
    def identity(self) -> IdentityGenerator:
        return self._identity

    def new_id(self) -> str:
        return self._identity.new_id()

    def now(self) -> datetime:
        return self._clock()

    def create(self, text: str, is_user: bool) -> Message:
        return Message(id=self.new_id(), text=text, is_user=is_user, timestamp=self.now())

    def user(self, text: str) -> Message:
        return self.create(text, True)

    def assistant(self, text: str) -> Message:
        return self.create(text, False)


__all__ = [
    "Clock",
    "ELLIPSIS",
    "Message",
    "MessageFactory",
    "PREVIEW_LENGTH",
    "SessionRecord",
    "TITLE_LENGTH",
    "first_user_message",
    "truncate_label",
]
