"""Shared pytest fixtures."""

from __future__ import annotations

import pytest

from tests.helpers import SequentialIdentity, TickingClock
from workspace_chat.chat.message_model import MessageFactory
from workspace_chat.services.notifications import RecordingNotifier
from workspace_chat.ui.events import EventBus
from workspace_chat.ui.models.chat_models import WorkspaceContext, WorkspaceType


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def factory() -> MessageFactory:
    return MessageFactory(SequentialIdentity(), clock=TickingClock())


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def resume_workspace() -> WorkspaceContext:
    return WorkspaceContext("Jane Doe CV", WorkspaceType.RESUME, "/files/jane.pdf")


@pytest.fixture
def jd_workspace() -> WorkspaceContext:
    return WorkspaceContext("Backend Engineer", WorkspaceType.JD, "/files/backend.md")
