"""Event bus infrastructure for the conversation panel.

Domain components (session store, history index, request coordinator)
publish dataclass events here; presentation layers subscribe to the event
types they render instead of reaching into component state.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import (
    TYPE_CHECKING,
    Callable,
    Generic,
    TypeVar,
)
from weakref import WeakMethod

if TYPE_CHECKING:  # pragma: no cover - imports for type checking only
    from typing import DefaultDict

    from ..chat.message_model import Message
    from .models.chat_models import Notice, WorkspaceContext

logger = logging.getLogger(__name__)

E = TypeVar("E", bound="Event")

Handler = Callable[[E], None]


@dataclass(slots=True)
class Event:
    """Base class for all events published on the bus.

    Example::

        @dataclass(slots=True)
        class MessageAppended(Event):
            message: Message
            index: int
    """

    pass


# =============================================================================
# Conversation Events
# =============================================================================


@dataclass(slots=True)
class MessagesReset(Event):
    """Emitted when the live log is reset to a single greeting.

    Attributes:
        greeting: The synthesized greeting message.
        workspace_name: Name interpolated into the greeting, if any.
    """

    greeting: Message
    workspace_name: str | None = None


@dataclass(slots=True)
class MessageAppended(Event):
    """Emitted when a message is appended to the live log.

    Attributes:
        message: The appended message.
        index: Position of the message in the log.
    """

    message: Message
    index: int


@dataclass(slots=True)
class MessagesReplaced(Event):
    """Emitted when the live log is replaced by a stored session log."""

    messages: tuple[Message, ...]


@dataclass(slots=True)
class SendingStateChanged(Event):
    """Emitted when the advisory sending flag flips."""

    is_sending: bool


# =============================================================================
# Exchange Events
# =============================================================================


@dataclass(slots=True)
class ExchangeStarted(Event):
    """Emitted when a request is dispatched to the assistant.

    Attributes:
        sequence: Monotonic request number.
        kind: Call site ("message", "keyword_search" or "summary").
        text: The request text sent to the assistant.
    """

    sequence: int
    kind: str
    text: str


@dataclass(slots=True)
class ExchangeCompleted(Event):
    """Emitted after a reply was applied and the session committed."""

    sequence: int
    session_id: str
    reply: str
    created_session: bool


@dataclass(slots=True)
class ExchangeFailed(Event):
    """Emitted after the assistant call raised and an apology was appended."""

    sequence: int
    kind: str
    error: str


@dataclass(slots=True)
class ExchangeDiscarded(Event):
    """Emitted when a completion arrives after a newer one was applied."""

    sequence: int
    kind: str


# =============================================================================
# History Events
# =============================================================================


@dataclass(slots=True)
class SessionCommitted(Event):
    """Emitted when the history index creates or updates a session record.

    Attributes:
        session_id: The record's identifier.
        created: True for a new record, False for an in-place update.
        message_count: Number of messages stored on the record.
    """

    session_id: str
    created: bool
    message_count: int


@dataclass(slots=True)
class SessionLoaded(Event):
    """Emitted when a stored session replaces the live conversation."""

    session_id: str
    message_count: int


@dataclass(slots=True)
class ActiveSessionChanged(Event):
    """Emitted when the active session reference changes (None = fresh chat)."""

    session_id: str | None


# =============================================================================
# Workspace & Notice Events
# =============================================================================


@dataclass(slots=True)
class WorkspaceChanged(Event):
    """Emitted when the workspace context provider hands over a new context."""

    workspace: WorkspaceContext | None


@dataclass(slots=True)
class InputPrefilled(Event):
    """Emitted when a quick action pre-fills the outgoing message draft."""

    text: str


@dataclass(slots=True)
class NoticePosted(Event):
    """Emitted when a notice should be surfaced to the user out-of-band."""

    notice: Notice


# =============================================================================
# Event Bus
# =============================================================================


class EventBus(Generic[E]):
    """Central event dispatcher for decoupled component communication.

    Handlers are stored as weak references where possible (bound methods)
    so subscribers do not outlive their owners.

    Example::

        bus = EventBus()
        bus.subscribe(MessageAppended, lambda event: print(event.message.text))
        bus.publish(MessageAppended(message=message, index=0))

    Thread Safety:
        Not thread-safe. All operations run on the event loop thread.
    """

    __slots__ = ("_handlers",)

    def __init__(self) -> None:
        self._handlers: DefaultDict[type[Event], list[_HandlerRef]] = defaultdict(list)

    def subscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Register ``handler`` for events of exactly ``event_type``.

        Subscribing the same handler twice results in two invocations.
        """
        self._handlers[event_type].append(_HandlerRef.create(handler))
        logger.debug(
            "Subscribed handler %s to event type %s",
            _handler_name(handler),
            event_type.__name__,
        )

    def unsubscribe(self, event_type: type[E], handler: Handler[E]) -> None:
        """Remove the first registration of ``handler``; unknown handlers are ignored."""
        handlers = self._handlers.get(event_type)
        if handlers is None:
            return

        for i, handler_ref in enumerate(handlers):
            if handler_ref.matches(handler):
                handlers.pop(i)
                logger.debug(
                    "Unsubscribed handler %s from event type %s",
                    _handler_name(handler),
                    event_type.__name__,
                )
                return

    def publish(self, event: E) -> None:
        """Invoke every handler registered for the event's type.

        Handlers run synchronously in registration order. A handler that
        raises is logged and the remaining handlers still run.
        """
        event_type = type(event)
        handlers = self._handlers.get(event_type)

        if handlers is None:
            logger.debug("No handlers for event type %s", event_type.__name__)
            return

        logger.debug(
            "Publishing %s to %d handler(s)",
            event_type.__name__,
            len(handlers),
        )

        dead_indices: list[int] = []

        # Iterate over a copy so handlers may subscribe/unsubscribe while running
        for i, handler_ref in enumerate(list(handlers)):
            handler = handler_ref.resolve()
            if handler is None:
                dead_indices.append(i)
                continue

            try:
                handler(event)
            except Exception:
                logger.exception(
                    "Handler %s raised exception for event %s",
                    _handler_name(handler),
                    event_type.__name__,
                )

        for i in reversed(dead_indices):
            if i < len(handlers) and handlers[i].resolve() is None:
                handlers.pop(i)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        logger.debug("Cleared all event handlers")

    def handler_count(self, event_type: type[E] | None = None) -> int:
        """Return the handler count for ``event_type``, or across all types."""
        if event_type is not None:
            return len(self._handlers.get(event_type, []))
        return sum(len(handlers) for handlers in self._handlers.values())


class _HandlerRef:
    """Weak-or-strong reference to a handler.

    Bound methods are held through :class:`WeakMethod`; plain functions and
    lambdas are held strongly.
    """

    __slots__ = ("_ref", "_is_weak")

    def __init__(self, handler_ref: WeakMethod | Handler, is_weak: bool) -> None:
        self._ref = handler_ref
        self._is_weak = is_weak

    @classmethod
    def create(cls, handler: Handler) -> _HandlerRef:
        if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
            try:
                return cls(WeakMethod(handler), is_weak=True)
            except TypeError:
                pass
        return cls(handler, is_weak=False)

    def resolve(self) -> Handler | None:
        if not self._is_weak:
            return self._ref  # type: ignore[return-value]
        return self._ref()  # type: ignore[operator]

    def matches(self, handler: Handler) -> bool:
        resolved = self.resolve()
        if resolved is None:
            return False
        return resolved == handler


def _handler_name(handler: Handler) -> str:
    if hasattr(handler, "__self__") and hasattr(handler, "__func__"):
        cls_name = type(handler.__self__).__name__
        return f"{cls_name}.{handler.__func__.__name__}"
    if hasattr(handler, "__name__"):
        return handler.__name__
    return repr(handler)


__all__ = [
    # Core infrastructure
    "Event",
    "EventBus",
    "Handler",
    # Conversation events
    "MessagesReset",
    "MessageAppended",
    "MessagesReplaced",
    "SendingStateChanged",
    # Exchange events
    "ExchangeStarted",
    "ExchangeCompleted",
    "ExchangeFailed",
    "ExchangeDiscarded",
    # History events
    "SessionCommitted",
    "SessionLoaded",
    "ActiveSessionChanged",
    # Workspace & notice events
    "WorkspaceChanged",
    "InputPrefilled",
    "NoticePosted",
]
