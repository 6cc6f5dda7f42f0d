"""Identifier generators for messages and session records.

Two schemes exist and they are not interchangeable:

``UuidIdentityGenerator``
    Random version 4 UUIDs drawn from the operating system's randomness
    source. Collision resistant.

``TimestampIdentityGenerator``
    Best-effort identifiers built from the current time in milliseconds and a
    pseudo-random suffix. They are unique under low concurrency only and offer
    no collision resistance; use them solely when OS randomness is missing.

:func:`select_identity_generator` probes the environment once and returns
the scheme to use for the rest of the process.
"""

from __future__ import annotations

import logging
import os
import random
import time
import uuid
from typing import Callable, Protocol, runtime_checkable

LOGGER = logging.getLogger(__name__)

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"


@runtime_checkable
class IdentityGenerator(Protocol):
    """Produces opaque string identifiers."""

    name: str

    def new_id(self) -> str:
        ...


class UuidIdentityGenerator:
    """Strong identifiers backed by :func:`uuid.uuid4`."""

    name = "uuid4"

    def new_id(self) -> str:
        return str(uuid.uuid4())


class TimestampIdentityGenerator:
    """Fallback identifiers: base-36 milliseconds plus a pseudo-random suffix.

    Uniqueness holds only under low concurrency. Two ids minted in the same
    millisecond differ only by the suffix drawn from :mod:`random`, which is
    neither cryptographically strong nor coordinated across processes.
    """

    name = "timestamp"

    def __init__(
        self,
        *,
        rng: random.Random | None = None,
        time_source: Callable[[], float] | None = None,
        suffix_length: int = 11,
    ) -> None:
        self._rng = rng or random.Random()
        self._time = time_source or time.time
        self._suffix_length = max(1, suffix_length)

    def new_id(self) -> str:
        millis = int(self._time() * 1000)
        suffix = "".join(self._rng.choice(_BASE36_ALPHABET) for _ in range(self._suffix_length))
        return _to_base36(millis) + suffix


def strong_randomness_available() -> bool:
    """Return True when the OS randomness source backing uuid4 is usable."""

    try:
        os.urandom(16)
    except NotImplementedError:
        return False
    return True


def select_identity_generator(
    probe: Callable[[], bool] | None = None,
) -> IdentityGenerator:
    """Pick the identifier scheme for this process.

    Args:
        probe: Capability check; defaults to :func:`strong_randomness_available`.

    Returns:
        A :class:`UuidIdentityGenerator` when strong randomness is available,
        otherwise a :class:`TimestampIdentityGenerator`.
    """

    check = probe or strong_randomness_available
    if check():
        return UuidIdentityGenerator()
    LOGGER.warning(
        "OS randomness unavailable; falling back to timestamp-based identifiers "
        "(unique under low concurrency only)."
    )
    return TimestampIdentityGenerator()


def _to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_ALPHABET[remainder])
    return "".join(reversed(digits))


__all__ = [
    "IdentityGenerator",
    "TimestampIdentityGenerator",
    "UuidIdentityGenerator",
    "select_identity_generator",
    "strong_randomness_available",
]
