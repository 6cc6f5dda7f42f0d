"""Session store domain manager.

Owns the ordered message log of the currently open conversation and the
advisory "sending" flag. Every mutation is published on the event bus.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from ..events import (
    EventBus,
    MessageAppended,
    MessagesReplaced,
    MessagesReset,
    SendingStateChanged,
)

if TYPE_CHECKING:  # pragma: no cover
    from ...chat.message_model import Message, MessageFactory
    from ..models.chat_models import WorkspaceContext

LOGGER = logging.getLogger(__name__)

GENERIC_GREETING = "Hello! I'm your CV assistant. How can I help you today?"
WORKSPACE_GREETING = 'Hello! I\'m your CV assistant for the "{name}" workspace. How can I help you today?'


def greeting_text(workspace: WorkspaceContext | None) -> str:
    """Return the greeting for ``workspace`` (generic when there is none)."""

    if workspace is None:
        return GENERIC_GREETING
    return WORKSPACE_GREETING.format(name=workspace.name)


class SessionStore:
    """Domain manager for the live conversation log.

    The log only ever grows through :meth:`append`; it is wholesale replaced
    by :meth:`replace_all` (history load) or by :meth:`reset`. It is never
    empty once initialized.

    Events Emitted:
        - MessagesReset: When the log is reset to a greeting
        - MessageAppended: For every appended message
        - MessagesReplaced: When a stored session replaces the log
        - SendingStateChanged: When the sending flag flips
    """

    def __init__(self, event_bus: EventBus, factory: MessageFactory) -> None:
        """Initialize the session store.

        Args:
            event_bus: The event bus for publishing events.
            factory: Builds the greeting messages.
        """
        self._bus = event_bus
        self._factory = factory
        self._messages: list[Message] = []
        self._is_sending = False

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def messages(self) -> tuple[Message, ...]:
        """Snapshot of the live log in append order."""
        return tuple(self._messages)

    @property
    def is_sending(self) -> bool:
        return self._is_sending

    def __len__(self) -> int:
        return len(self._messages)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def initialize(self, workspace: WorkspaceContext | None = None) -> Message:
        """Replace the log with a single greeting.

        Args:
            workspace: Workspace whose name is interpolated into the
                greeting, or None for the generic greeting.

        Returns:
            The greeting message.

        Emits:
            MessagesReset: With the new greeting.
        """
        greeting = self._factory.assistant(greeting_text(workspace))
        self._messages = [greeting]
        workspace_name = workspace.name if workspace is not None else None
        LOGGER.debug("SessionStore.initialize: workspace=%s", workspace_name)
        self._bus.publish(MessagesReset(greeting=greeting, workspace_name=workspace_name))
        return greeting

    def reset(self, workspace: WorkspaceContext | None = None) -> Message:
        """Start a fresh conversation; the caller clears its active session id."""
        return self.initialize(workspace)

    def append(self, message: Message) -> int:
        """Append ``message`` and return its index."""
        self._messages.append(message)
        index = len(self._messages) - 1
        LOGGER.debug(
            "SessionStore.append: index=%d, is_user=%s, id=%s",
            index,
            message.is_user,
            message.id,
        )
        self._bus.publish(MessageAppended(message=message, index=index))
        return index

    def replace_all(self, messages: Iterable[Message]) -> None:
        """Replace the log with ``messages`` (used when loading history).

        Raises:
            ValueError: If ``messages`` is empty.
        """
        replacement = list(messages)
        if not replacement:
            raise ValueError("Cannot replace the conversation with an empty log")
        self._messages = replacement
        LOGGER.debug("SessionStore.replace_all: %d message(s)", len(replacement))
        self._bus.publish(MessagesReplaced(messages=tuple(replacement)))

    def set_sending(self, flag: bool) -> None:
        flag = bool(flag)
        if flag == self._is_sending:
            return
        self._is_sending = flag
        LOGGER.debug("SessionStore.set_sending: %s", flag)
        self._bus.publish(SendingStateChanged(is_sending=flag))


__all__ = ["GENERIC_GREETING", "SessionStore", "WORKSPACE_GREETING", "greeting_text"]
