"""Workspace chat controller facade.

This module provides the WorkspaceChatController - a facade that wires the
domain managers together and exposes a single API to a presentation layer.

The controller:
- Owns the event bus and every domain manager
- Tracks the active session id, the outgoing draft and the workspace
- Invalidates in-flight requests whenever the live log is replaced
"""

from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

from ..ai.client import build_assistant_client
from ..chat.message_model import MessageFactory
from ..services.notifications import EventBusNotifier
from ..services.settings import Settings, SettingsStore
from ..utils.logging import setup_logging
from .domain import HistoryIndex, QuickActionDispatcher, RequestCoordinator, SessionStore
from .events import (
    ActiveSessionChanged,
    EventBus,
    InputPrefilled,
    SessionLoaded,
    WorkspaceChanged,
)
from .models.chat_models import SendStatus

if TYPE_CHECKING:  # pragma: no cover
    from ..ai.client import AssistantClient
    from ..chat.message_model import Message, SessionRecord
    from ..services.notifications import Notifier
    from .models.chat_models import (
        QuickAction,
        QuickActionOutcome,
        SendOutcome,
        WorkspaceContext,
    )

LOGGER = logging.getLogger(__name__)


class WorkspaceChatController:
    """Facade coordinating the conversation panel.

    Example:
        controller = WorkspaceChatController.create(
            assistant,
            workspace=WorkspaceContext("Jane Doe CV", WorkspaceType.RESUME, "/cv.pdf"),
        )
        controller.event_bus.subscribe(MessageAppended, render_message)

        await controller.send("What are my strongest skills?")
        await controller.quick_action("summarize")
        controller.new_chat()
        controller.load_session(controller.sessions()[0].id)
    """

    __slots__ = (
        "_event_bus",
        "_factory",
        "_session_store",
        "_history",
        "_coordinator",
        "_quick_actions",
        "_assistant",
        "_workspace",
        "_active_session_id",
        "_draft",
        "__weakref__",
    )

    def __init__(
        self,
        event_bus: EventBus,
        factory: MessageFactory,
        session_store: SessionStore,
        history_index: HistoryIndex,
        coordinator: RequestCoordinator,
        quick_actions: QuickActionDispatcher,
        *,
        assistant: AssistantClient | None = None,
        workspace: WorkspaceContext | None = None,
    ) -> None:
        self._event_bus = event_bus
        self._factory = factory
        self._session_store = session_store
        self._history = history_index
        self._coordinator = coordinator
        self._quick_actions = quick_actions
        self._assistant = assistant
        self._workspace = workspace
        self._active_session_id: str | None = None
        self._draft = ""
        event_bus.subscribe(InputPrefilled, self._on_input_prefilled)
        session_store.initialize(workspace)

    @classmethod
    def create(
        cls,
        assistant: AssistantClient | None = None,
        *,
        settings: Settings | None = None,
        settings_store: SettingsStore | None = None,
        notifier: Notifier | None = None,
        event_bus: EventBus | None = None,
        factory: MessageFactory | None = None,
        workspace: WorkspaceContext | None = None,
    ) -> "WorkspaceChatController":
        """Build a controller with all domain managers wired to one bus.

        Args:
            assistant: Remote assistant; built from ``settings`` when omitted.
            settings: Configuration for the assistant client and labels.
            settings_store: Source of settings when ``settings`` is omitted;
                defaults to the user settings file plus ``WORKSPACE_CHAT_*``
                environment overrides.
            notifier: Notice sink; defaults to publishing ``NoticePosted``.
            event_bus: Existing bus to publish on.
            factory: Message factory (identity + clock).
            workspace: Initial workspace context.
        """
        if settings is None:
            settings = (settings_store or SettingsStore()).load()
        if settings.debug_logging:
            setup_logging(logging.DEBUG)
        bus = event_bus or EventBus()
        factory = factory or MessageFactory()
        notifier = notifier or EventBusNotifier(bus)
        if assistant is None:
            assistant = build_assistant_client(settings)

        store = SessionStore(bus, factory)
        history = HistoryIndex(
            bus,
            factory,
            title_length=settings.title_length,
            preview_length=settings.preview_length,
        )
        coordinator = RequestCoordinator(
            store, history, assistant, bus, factory=factory, notifier=notifier
        )
        quick_actions = QuickActionDispatcher(coordinator, bus, notifier=notifier)
        return cls(
            bus,
            factory,
            store,
            history,
            coordinator,
            quick_actions,
            assistant=assistant,
            workspace=workspace,
        )

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    @property
    def history(self) -> HistoryIndex:
        return self._history

    @property
    def coordinator(self) -> RequestCoordinator:
        return self._coordinator

    @property
    def assistant(self) -> AssistantClient | None:
        return self._assistant

    @property
    def workspace(self) -> WorkspaceContext | None:
        return self._workspace

    @property
    def active_session_id(self) -> str | None:
        """Id of the history record the live conversation is bound to."""
        return self._active_session_id

    @property
    def draft(self) -> str:
        """Text waiting in the input box (set by quick actions)."""
        return self._draft

    @draft.setter
    def draft(self, value: str) -> None:
        self._draft = value or ""

    @property
    def messages(self) -> tuple[Message, ...]:
        return self._session_store.messages

    @property
    def is_sending(self) -> bool:
        return self._session_store.is_sending

    def sessions(self) -> list[SessionRecord]:
        """Stored conversations, newest first."""
        return self._history.sessions()

    # ------------------------------------------------------------------
    # Workspace
    # ------------------------------------------------------------------

    def set_workspace(self, workspace: WorkspaceContext | None) -> None:
        """Switch workspace and greet again; the active session id is kept."""
        self._workspace = workspace
        LOGGER.debug(
            "WorkspaceChatController.set_workspace: %s",
            workspace.name if workspace is not None else None,
        )
        self._event_bus.publish(WorkspaceChanged(workspace=workspace))
        self._session_store.initialize(workspace)
        self._coordinator.invalidate(self._active_session_id)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def send(self, text: str | None = None) -> SendOutcome:
        """Send ``text`` (or the current draft) to the assistant."""
        if text is None:
            text = self._draft
        if text and text.strip():
            self._draft = ""
        outcome = await self._coordinator.send(text, self._workspace, self._active_session_id)
        self._track(outcome)
        return outcome

    async def keyword_search(self, keyword: str) -> SendOutcome:
        outcome = await self._coordinator.send_keyword_search(
            keyword, self._workspace, self._active_session_id
        )
        self._track(outcome)
        return outcome

    async def quick_action(self, action: QuickAction | str) -> QuickActionOutcome:
        """Dispatch a quick action against the current workspace."""
        outcome = await self._quick_actions.dispatch(
            action, self._workspace, self._active_session_id
        )
        if outcome.send is not None:
            self._track(outcome.send)
        return outcome

    def inject_reply(self, text: str | None) -> Message | None:
        """Show an assistant reply produced outside the panel."""
        return self._coordinator.inject_reply(text)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def new_chat(self) -> None:
        """Start a fresh conversation; the current one stays in history."""
        self._coordinator.invalidate(None)
        self._session_store.reset(self._workspace)
        self._set_active(None)

    def load_session(self, session_id: str) -> None:
        """Replace the live conversation with a stored one.

        Raises:
            SessionNotFoundError: If ``session_id`` is not indexed.
        """
        messages = self._history.load(session_id)
        self._coordinator.invalidate(session_id)
        self._session_store.replace_all(messages)
        self._set_active(session_id)
        self._event_bus.publish(SessionLoaded(session_id=session_id, message_count=len(messages)))

    async def aclose(self) -> None:
        """Release the assistant client's resources, if it holds any."""
        close = getattr(self._assistant, "aclose", None)
        if close is None:
            return
        result = close()
        if inspect.isawaitable(result):
            await result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _track(self, outcome: SendOutcome) -> None:
        if outcome.status is SendStatus.COMPLETED and outcome.session_id is not None:
            self._set_active(outcome.session_id)

    def _set_active(self, session_id: str | None) -> None:
        if session_id == self._active_session_id:
            return
        self._active_session_id = session_id
        self._event_bus.publish(ActiveSessionChanged(session_id=session_id))

    def _on_input_prefilled(self, event: InputPrefilled) -> None:
        self._draft = event.text


__all__ = ["WorkspaceChatController"]
