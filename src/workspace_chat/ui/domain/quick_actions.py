"""Quick action dispatch for the conversation panel."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ...chat.errors import ErrorCode, ValidationError
from ..events import EventBus, InputPrefilled
from ..models.chat_models import (
    Notice,
    QuickAction,
    QuickActionOutcome,
    QuickActionStatus,
    Severity,
    WorkspaceType,
)
from .request_coordinator import MISSING_FILE_NOTICE

if TYPE_CHECKING:  # pragma: no cover
    from ...services.notifications import Notifier
    from ..models.chat_models import WorkspaceContext
    from .request_coordinator import RequestCoordinator

LOGGER = logging.getLogger(__name__)

MATCH_PREFILL: dict[WorkspaceType, str] = {
    WorkspaceType.RESUME: "Find job matches for this resume",
    WorkspaceType.JD: "Find candidate matches for this job",
}

WRONG_TYPE_NOTICE = Notice(
    "Cannot summarize",
    "Summaries are only available for resume workspaces",
    Severity.DESTRUCTIVE,
)


def _invalid_summary(code: str, notice: Notice) -> QuickActionOutcome:
    return QuickActionOutcome(
        QuickAction.SUMMARIZE,
        QuickActionStatus.INVALID,
        reason=code,
        error=ValidationError(notice.description, error_code=code),
    )


class QuickActionDispatcher:
    """Maps named shortcuts onto coordinator calls or draft pre-fills.

    ``summarize`` validates the workspace locally before delegating to
    :meth:`RequestCoordinator.send_summary_request`. ``match`` never sends;
    it publishes :class:`InputPrefilled` with a workspace-specific prompt.
    """

    def __init__(
        self,
        coordinator: RequestCoordinator,
        event_bus: EventBus,
        *,
        notifier: Notifier | None = None,
    ) -> None:
        self._coordinator = coordinator
        self._bus = event_bus
        self._notifier = notifier

    async def dispatch(
        self,
        action: QuickAction | str,
        workspace: WorkspaceContext | None,
        active_session_id: str | None = None,
    ) -> QuickActionOutcome:
        """Run ``action`` against ``workspace``.

        Raises:
            ValueError: If ``action`` names no known quick action.
        """
        action = QuickAction(action)
        LOGGER.debug(
            "QuickActionDispatcher.dispatch: action=%s, workspace_type=%s",
            action.value,
            workspace.type.value if workspace is not None else None,
        )
        if action is QuickAction.SUMMARIZE:
            return await self._summarize(workspace, active_session_id)
        return self._match(workspace)

    async def _summarize(
        self,
        workspace: WorkspaceContext | None,
        active_session_id: str | None,
    ) -> QuickActionOutcome:
        if workspace is None or workspace.type is not WorkspaceType.RESUME:
            self._notify(WRONG_TYPE_NOTICE)
            return _invalid_summary(ErrorCode.WRONG_WORKSPACE_TYPE, WRONG_TYPE_NOTICE)
        if not workspace.has_file:
            self._notify(MISSING_FILE_NOTICE)
            return _invalid_summary(ErrorCode.MISSING_FILE_PATH, MISSING_FILE_NOTICE)
        outcome = await self._coordinator.send_summary_request(
            workspace.file_path, workspace, active_session_id
        )
        return QuickActionOutcome(QuickAction.SUMMARIZE, QuickActionStatus.SENT, send=outcome)

    def _match(self, workspace: WorkspaceContext | None) -> QuickActionOutcome:
        text = MATCH_PREFILL.get(workspace.type) if workspace is not None else None
        if text is None:
            return QuickActionOutcome(QuickAction.MATCH, QuickActionStatus.NOOP)
        self._bus.publish(InputPrefilled(text=text))
        return QuickActionOutcome(QuickAction.MATCH, QuickActionStatus.PREFILLED, text=text)

    def _notify(self, notice: Notice) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify(notice)
        except Exception:
            LOGGER.exception("Notifier failed for notice %r", notice.title)


__all__ = ["MATCH_PREFILL", "QuickActionDispatcher"]
