"""Tests for identifier generators."""

from __future__ import annotations

import logging
import random
import uuid

import pytest

from workspace_chat.chat import identity
from workspace_chat.chat.identity import (
    IdentityGenerator,
    TimestampIdentityGenerator,
    UuidIdentityGenerator,
    select_identity_generator,
    strong_randomness_available,
)


class TestUuidIdentityGenerator:
    def test_produces_uuid4(self) -> None:
        value = UuidIdentityGenerator().new_id()
        assert uuid.UUID(value).version == 4

    def test_satisfies_protocol(self) -> None:
        assert isinstance(UuidIdentityGenerator(), IdentityGenerator)


class TestTimestampIdentityGenerator:
    """Tests for the best-effort fallback scheme."""

    def test_prefix_is_base36_milliseconds(self) -> None:
        generator = TimestampIdentityGenerator(
            rng=random.Random(1), time_source=lambda: 1.0, suffix_length=4
        )
        value = generator.new_id()
        # 1000 ms == "rs" in base 36
        assert value.startswith("rs")
        assert len(value) == 2 + 4

    def test_unique_in_tight_loop(self) -> None:
        """Ids minted within the same millisecond still differ."""
        generator = TimestampIdentityGenerator(time_source=lambda: 1_700_000_000.0)
        ids = {generator.new_id() for _ in range(1000)}
        assert len(ids) == 1000

    def test_only_base36_characters(self) -> None:
        value = TimestampIdentityGenerator().new_id()
        assert value.isalnum()
        assert value == value.lower()


class TestSelection:
    """Tests for select_identity_generator."""

    def test_prefers_uuid_when_randomness_available(self) -> None:
        assert isinstance(select_identity_generator(lambda: True), UuidIdentityGenerator)

    def test_falls_back_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="workspace_chat.chat.identity"):
            generator = select_identity_generator(lambda: False)

        assert isinstance(generator, TimestampIdentityGenerator)
        assert "low concurrency" in caplog.text

    def test_probe_detects_missing_urandom(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def broken(_size: int) -> bytes:
            raise NotImplementedError

        monkeypatch.setattr(identity.os, "urandom", broken)
        assert strong_randomness_available() is False
