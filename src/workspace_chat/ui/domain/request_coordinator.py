"""Request coordinator domain service.

Drives one assistant round trip: optimistic user message, awaited remote
call, reply (or apology) append, and history commit. Results are reconciled
by sequence number so a completion that arrives after a newer one, or after
the conversation was reset or replaced, is discarded instead of being
appended to the wrong log.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ...ai.replies import NO_RESPONSE_TEXT, NO_SUMMARY_TEXT, extract_reply
from ...chat.errors import ErrorCode, ValidationError
from ..events import (
    EventBus,
    ExchangeCompleted,
    ExchangeDiscarded,
    ExchangeFailed,
    ExchangeStarted,
)
from ..models.chat_models import Notice, SendOutcome, SendStatus, Severity

if TYPE_CHECKING:  # pragma: no cover
    from ...ai.client import AssistantClient
    from ...chat.message_model import Message, MessageFactory
    from ...services.notifications import Notifier
    from ..models.chat_models import WorkspaceContext
    from .history_index import HistoryIndex
    from .session_store import SessionStore

LOGGER = logging.getLogger(__name__)

KIND_MESSAGE = "message"
KIND_KEYWORD_SEARCH = "keyword_search"
KIND_SUMMARY = "summary"

GENERIC_APOLOGY = "Sorry, I encountered an error processing your request. Please try again."
KEYWORD_APOLOGY = "Sorry, I encountered an error with the keyword search. Please try again."
SUMMARY_APOLOGY = (
    "Sorry, I encountered an error generating the summary. "
    "Please make sure the file is accessible."
)

KEYWORD_REQUEST_TEMPLATE = "Search for keyword: {keyword}"
SUMMARY_USER_TEXT = "Generate a summary of this resume"
SUMMARY_REQUEST_TEMPLATE = "Generate a summary of the resume at: {path}"
SUMMARY_SESSION_TITLE = "Resume Summary"
SUMMARY_SESSION_PREVIEW = "Generated summary of resume"

CHAT_SAVED_NOTICE = Notice("Chat saved", "Your conversation has been saved to history")
SUMMARY_CREATED_NOTICE = Notice("Summary generated", "Resume summary has been created")
MISSING_FILE_NOTICE = Notice(
    "Cannot summarize", "Please select a resume file first", Severity.DESTRUCTIVE
)


def _error_notice(description: str) -> Notice:
    return Notice("Error", description, Severity.DESTRUCTIVE)


def _rejected(status: SendStatus, code: str, message: str) -> SendOutcome:
    return SendOutcome(status, reason=code, error=ValidationError(message, error_code=code))


@dataclass(slots=True)
class _Exchange:
    """Per-call-site parameters of one round trip."""

    kind: str
    user_text: str
    request_text: str
    sentinel: str
    apology: str
    failure_description: str
    created_notice: Notice | None = None
    title: str | None = None
    preview: str | None = None


class RequestCoordinator:
    """Domain service mediating requests to the assistant.

    Each request gets a monotonically increasing sequence number. Applying a
    completion (reply or apology) for sequence ``n`` marks every sequence
    ``<= n`` as stale; :meth:`invalidate` marks every issued sequence as
    stale. Stale completions leave the conversation and the history index
    untouched.

    A completion commits to the ``active_session_id`` its caller passed. When
    the caller passed None and another exchange committed while this one was
    in flight, the completion joins the record that exchange created instead
    of creating a second one.

    Assistant failures never propagate: they become an apology message plus
    a destructive notice. ``asyncio.CancelledError`` is not absorbed.

    Events Emitted:
        - ExchangeStarted: When a request is dispatched
        - ExchangeCompleted: When a reply was applied and committed
        - ExchangeFailed: When the assistant call raised
        - ExchangeDiscarded: When a stale completion was dropped
    """

    def __init__(
        self,
        session_store: SessionStore,
        history_index: HistoryIndex,
        assistant: AssistantClient,
        event_bus: EventBus,
        *,
        factory: MessageFactory,
        notifier: Notifier | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            session_store: Live conversation log.
            history_index: Index receiving committed conversations.
            assistant: Remote assistant collaborator.
            event_bus: The event bus for publishing events.
            factory: Builds user, assistant and apology messages.
            notifier: Optional sink for user-facing notices.
        """
        self._store = session_store
        self._history = history_index
        self._assistant = assistant
        self._bus = event_bus
        self._factory = factory
        self._notifier = notifier
        self._next_sequence = 1
        self._stale_before = 1
        self._in_flight = 0
        self._commits = 0
        self._conversation_session_id: str | None = None

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def in_flight(self) -> int:
        """Number of requests awaiting the assistant."""
        return self._in_flight

    @property
    def conversation_session_id(self) -> str | None:
        """Session id committed by this coordinator for the live conversation."""
        return self._conversation_session_id

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def send(
        self,
        text: str,
        workspace: WorkspaceContext | None = None,
        active_session_id: str | None = None,
    ) -> SendOutcome:
        """Send a free-form message.

        Args:
            text: The user's message; whitespace-only input is ignored.
            workspace: Active workspace context (informational).
            active_session_id: Session to update, or None for a fresh one.

        Returns:
            The outcome of the exchange.
        """
        if not text or not text.strip():
            LOGGER.debug("RequestCoordinator.send: empty input ignored")
            return _rejected(SendStatus.SKIPPED, ErrorCode.EMPTY_INPUT, "Message is empty")
        exchange = _Exchange(
            kind=KIND_MESSAGE,
            user_text=text,
            request_text=text,
            sentinel=NO_RESPONSE_TEXT,
            apology=GENERIC_APOLOGY,
            failure_description="Failed to get response from assistant",
            created_notice=CHAT_SAVED_NOTICE,
        )
        return await self._run(exchange, workspace, active_session_id)

    async def send_keyword_search(
        self,
        keyword: str,
        workspace: WorkspaceContext | None = None,
        active_session_id: str | None = None,
    ) -> SendOutcome:
        """Ask the assistant to search the workspace for ``keyword``."""
        if not keyword or not keyword.strip():
            LOGGER.debug("RequestCoordinator.send_keyword_search: empty keyword ignored")
            return _rejected(SendStatus.SKIPPED, ErrorCode.EMPTY_INPUT, "Keyword is empty")
        text = KEYWORD_REQUEST_TEMPLATE.format(keyword=keyword)
        exchange = _Exchange(
            kind=KIND_KEYWORD_SEARCH,
            user_text=text,
            request_text=text,
            sentinel=NO_RESPONSE_TEXT,
            apology=KEYWORD_APOLOGY,
            failure_description="Failed to process keyword search",
        )
        return await self._run(exchange, workspace, active_session_id)

    async def send_summary_request(
        self,
        file_path: str | None,
        workspace: WorkspaceContext | None = None,
        active_session_id: str | None = None,
    ) -> SendOutcome:
        """Ask the assistant to summarize the resume at ``file_path``.

        An empty path is rejected locally with a destructive notice and no
        request is issued. New sessions created by a summary are titled
        "Resume Summary".
        """
        if not isinstance(file_path, str) or not file_path.strip():
            LOGGER.debug("RequestCoordinator.send_summary_request: missing file path")
            self._notify(MISSING_FILE_NOTICE)
            return _rejected(
                SendStatus.INVALID, ErrorCode.MISSING_FILE_PATH, MISSING_FILE_NOTICE.description
            )
        exchange = _Exchange(
            kind=KIND_SUMMARY,
            user_text=SUMMARY_USER_TEXT,
            request_text=SUMMARY_REQUEST_TEMPLATE.format(path=file_path),
            sentinel=NO_SUMMARY_TEXT,
            apology=SUMMARY_APOLOGY,
            failure_description="Failed to generate resume summary",
            created_notice=SUMMARY_CREATED_NOTICE,
            title=SUMMARY_SESSION_TITLE,
            preview=SUMMARY_SESSION_PREVIEW,
        )
        return await self._run(exchange, workspace, active_session_id)

    def inject_reply(self, text: str | None) -> Message | None:
        """Append an externally supplied assistant reply without a request.

        Empty text is ignored. Nothing is committed to history.
        """
        if not text or not text.strip():
            return None
        message = self._factory.assistant(text)
        self._store.append(message)
        LOGGER.debug("RequestCoordinator.inject_reply: id=%s", message.id)
        return message

    def invalidate(self, session_id: str | None = None) -> None:
        """Discard every in-flight request and rebind the live conversation.

        Called when the conversation is reset (``session_id`` None) or
        replaced by a stored session (``session_id`` set).
        """
        self._stale_before = self._next_sequence
        self._conversation_session_id = session_id
        LOGGER.debug(
            "RequestCoordinator.invalidate: stale_before=%d, in_flight=%d, session_id=%s",
            self._stale_before,
            self._in_flight,
            session_id,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _run(
        self,
        exchange: _Exchange,
        workspace: WorkspaceContext | None,
        active_session_id: str | None,
    ) -> SendOutcome:
        sequence = self._next_sequence
        self._next_sequence += 1
        commits_at_start = self._commits

        self._store.append(self._factory.user(exchange.user_text))
        self._in_flight += 1
        self._store.set_sending(True)
        LOGGER.debug(
            "RequestCoordinator._run: seq=%d, kind=%s, workspace=%s",
            sequence,
            exchange.kind,
            workspace.name if workspace is not None else None,
        )
        self._bus.publish(
            ExchangeStarted(sequence=sequence, kind=exchange.kind, text=exchange.request_text)
        )

        try:
            try:
                raw = await self._assistant.send_message(exchange.request_text)
            except Exception as exc:
                return self._apply_failure(sequence, exchange, exc, active_session_id)
            return self._apply_reply(
                sequence, exchange, raw, active_session_id, commits_at_start
            )
        finally:
            self._in_flight -= 1
            if self._in_flight <= 0:
                self._in_flight = 0
                self._store.set_sending(False)

    def _apply_reply(
        self,
        sequence: int,
        exchange: _Exchange,
        raw: object,
        active_session_id: str | None,
        commits_at_start: int,
    ) -> SendOutcome:
        if self._is_stale(sequence):
            return self._discard(sequence, exchange)
        self._stale_before = sequence + 1

        reply = extract_reply(raw)
        if reply is None:
            reply = exchange.sentinel
        self._store.append(self._factory.assistant(reply))

        target = active_session_id
        if target is None and self._commits != commits_at_start:
            target = self._conversation_session_id
        created = target is None
        session_id = self._history.commit(
            target,
            self._store.messages,
            title=exchange.title if created else None,
            preview=exchange.preview if created else None,
        )
        self._conversation_session_id = session_id
        self._commits += 1

        if created and exchange.created_notice is not None:
            self._notify(exchange.created_notice)
        self._bus.publish(
            ExchangeCompleted(
                sequence=sequence,
                session_id=session_id,
                reply=reply,
                created_session=created,
            )
        )
        return SendOutcome(SendStatus.COMPLETED, session_id=session_id, sequence=sequence)

    def _apply_failure(
        self,
        sequence: int,
        exchange: _Exchange,
        exc: Exception,
        active_session_id: str | None,
    ) -> SendOutcome:
        LOGGER.warning(
            "Assistant request failed (seq=%d, kind=%s): %s",
            sequence,
            exchange.kind,
            exc,
            exc_info=LOGGER.isEnabledFor(logging.DEBUG),
        )
        if self._is_stale(sequence):
            return self._discard(sequence, exchange)
        self._stale_before = sequence + 1

        self._store.append(self._factory.assistant(exchange.apology))
        self._notify(_error_notice(exchange.failure_description))
        self._bus.publish(ExchangeFailed(sequence=sequence, kind=exchange.kind, error=str(exc)))
        return SendOutcome(
            SendStatus.FAILED,
            session_id=active_session_id,
            reason=ErrorCode.ASSISTANT_REQUEST_FAILED,
            sequence=sequence,
        )

    def _is_stale(self, sequence: int) -> bool:
        return sequence < self._stale_before

    def _discard(self, sequence: int, exchange: _Exchange) -> SendOutcome:
        LOGGER.debug(
            "RequestCoordinator._discard: seq=%d older than %d",
            sequence,
            self._stale_before,
        )
        self._bus.publish(ExchangeDiscarded(sequence=sequence, kind=exchange.kind))
        return SendOutcome(SendStatus.STALE, sequence=sequence)

    def _notify(self, notice: Notice) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(notice)
        except Exception:
            LOGGER.exception("Notifier failed for notice %r", notice.title)


__all__ = [
    "GENERIC_APOLOGY",
    "KEYWORD_APOLOGY",
    "KIND_KEYWORD_SEARCH",
    "KIND_MESSAGE",
    "KIND_SUMMARY",
    "RequestCoordinator",
    "SUMMARY_APOLOGY",
    "SUMMARY_REQUEST_TEMPLATE",
    "SUMMARY_SESSION_PREVIEW",
    "SUMMARY_SESSION_TITLE",
    "SUMMARY_USER_TEXT",
]
