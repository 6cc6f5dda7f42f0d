"""Shared test helpers and stub classes.

This module contains reusable test stubs that are used across multiple test files.
Import from here instead of duplicating these classes in individual test files.
"""

from __future__ import annotations

import asyncio
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any, Callable

from workspace_chat.ui.events import Event, EventBus


class SequentialIdentity:
    """Deterministic identity generator: id-1, id-2, ..."""

    name = "sequential"

    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def new_id(self) -> str:
        return f"{self._prefix}-{next(self._counter)}"


class TickingClock:
    """Clock advancing one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self._current = start or datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        value = self._current
        self._current += timedelta(seconds=1)
        return value


class MockAssistant:
    """Assistant collaborator returning a fixed response or raising.

    Example:
        from tests.helpers import MockAssistant

        assistant = MockAssistant(response={"data": {"reply": "Hi"}})
    """

    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = {"response": "Assistant reply"} if response is None else response
        self.error = error
        self.calls: list[str] = []

    async def send_message(self, text: str) -> Any:
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.response


class GatedAssistant:
    """Assistant whose calls block until released individually, in any order."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self._gates: list[asyncio.Future[Any]] = []

    async def send_message(self, text: str) -> Any:
        self.calls.append(text)
        gate: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
        self._gates.append(gate)
        return await gate

    def release(self, index: int, response: Any) -> None:
        self._gates[index].set_result(response)

    def fail(self, index: int, error: Exception) -> None:
        self._gates[index].set_exception(error)


class EventRecorder:
    """Collects published events of the given types in order."""

    def __init__(self, bus: EventBus, *event_types: type[Event]) -> None:
        self.events: list[Event] = []
        for event_type in event_types:
            bus.subscribe(event_type, self.events.append)

    def of_type(self, event_type: type[Event]) -> list[Any]:
        return [event for event in self.events if isinstance(event, event_type)]


async def settle(predicate: Callable[[], bool], *, attempts: int = 50) -> None:
    """Yield to the loop until ``predicate`` holds."""

    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")
