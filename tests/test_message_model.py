"""Tests for message and session record models."""

from __future__ import annotations

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

import pytest

from tests.helpers import SequentialIdentity, TickingClock
from workspace_chat.chat.message_model import (
    Message,
    MessageFactory,
    SessionRecord,
    first_user_message,
    truncate_label,
)


class TestMessage:
    """Tests for the Message record."""

    def test_is_immutable(self) -> None:
        """Messages cannot be mutated after creation."""
        message = Message(id="m1", text="hi", is_user=True)
        with pytest.raises(FrozenInstanceError):
            message.text = "changed"  # type: ignore[misc]

    def test_default_timestamp_is_timezone_aware(self) -> None:
        message = Message(id="m1", text="hi", is_user=False)
        assert message.timestamp.tzinfo is not None

    def test_to_dict(self) -> None:
        stamp = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        message = Message(id="m1", text="hi", is_user=True, timestamp=stamp)
        assert message.to_dict() == {
            "id": "m1",
            "text": "hi",
            "is_user": True,
            "timestamp": "2024-05-01T12:00:00+00:00",
        }


class TestSessionRecord:
    """Tests for SessionRecord."""

    def test_rejects_empty_messages(self) -> None:
        with pytest.raises(ValueError):
            SessionRecord(
                id="s1",
                title="t",
                preview="p",
                timestamp=datetime.now(timezone.utc),
                messages=(),
            )

    def test_coerces_messages_to_tuple(self) -> None:
        message = Message(id="m1", text="hi", is_user=True)
        record = SessionRecord(
            id="s1",
            title="t",
            preview="p",
            timestamp=message.timestamp,
            messages=[message],  # type: ignore[arg-type]
        )
        assert record.messages == (message,)
        assert record.message_count == 1


class TestTruncateLabel:
    """Tests for title/preview truncation."""

    def test_short_text_unchanged(self) -> None:
        assert truncate_label("Hello", 30) == "Hello"

    def test_exact_length_has_no_ellipsis(self) -> None:
        text = "a" * 30
        assert truncate_label(text, 30) == text

    def test_long_text_truncated_with_ellipsis(self) -> None:
        text = "a" * 31
        assert truncate_label(text, 30) == "a" * 30 + "..."

    def test_counts_code_points(self) -> None:
        """Length counts characters, not bytes."""
        text = "é" * 31
        assert truncate_label(text, 30) == "é" * 30 + "..."


class TestFirstUserMessage:
    def test_skips_assistant_messages(self) -> None:
        greeting = Message(id="g", text="Hello!", is_user=False)
        question = Message(id="q", text="Question", is_user=True)
        assert first_user_message([greeting, question]) is question

    def test_returns_none_without_user_messages(self) -> None:
        assert first_user_message([Message(id="g", text="Hello!", is_user=False)]) is None


class TestMessageFactory:
    """Tests for MessageFactory."""

    def test_uses_injected_identity_and_clock(self) -> None:
        clock = TickingClock()
        factory = MessageFactory(SequentialIdentity("msg"), clock=clock)

        first = factory.user("hi")
        second = factory.assistant("hello")

        assert (first.id, first.is_user) == ("msg-1", True)
        assert (second.id, second.is_user) == ("msg-2", False)
        assert second.timestamp > first.timestamp

    def test_default_identity_is_selected_once(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """The identity scheme is chosen at construction, never per call."""
        calls: list[int] = []

        def fake_select():
            calls.append(1)
            return SequentialIdentity()

        monkeypatch.setattr(
            "workspace_chat.chat.message_model.select_identity_generator", fake_select
        )
        factory = MessageFactory()
        for _ in range(5):
            factory.user("x")

        assert len(calls) == 1
        assert factory.identity.name == "sequential"

    def test_ids_are_unique(self) -> None:
        factory = MessageFactory()
        ids = {factory.user("x").id for _ in range(500)}
        assert len(ids) == 500
