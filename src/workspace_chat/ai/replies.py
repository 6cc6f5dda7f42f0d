"""Normalization of assistant responses.

The assistant service is not strictly typed at the boundary. A response is
one of:

* a legacy payload carrying a ``response`` field of unknown type, or
* a structured payload carrying ``data.reply``.

:func:`parse_response` classifies a raw payload into that tagged union and
:func:`extract_reply` returns the usable reply text, or ``None`` when no
non-empty string reply is present. Callers fall back to a sentinel text in
that case.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Union

LOGGER = logging.getLogger(__name__)

NO_RESPONSE_TEXT = "No response available"
NO_SUMMARY_TEXT = "No summary available"

_MISSING = object()


@dataclass(frozen=True, slots=True)
class LegacyReply:
    """Payload shaped as ``{"response": <anything>}``."""

    response: Any


@dataclass(frozen=True, slots=True)
class StructuredReply:
    """Payload shaped as ``{"data": {"reply": <str>}}``."""

    reply: Any


@dataclass(frozen=True, slots=True)
class UnrecognizedReply:
    """Payload matching neither known shape."""

    raw: Any


AssistantReply = Union[LegacyReply, StructuredReply, UnrecognizedReply]


def parse_response(raw: Any) -> AssistantReply:
    """Classify ``raw`` into one of the known response shapes.

    Mappings and plain objects are both accepted. When both shapes are
    present, a usable legacy ``response`` string wins; otherwise the
    structured ``data.reply`` is preferred.
    """

    response = _lookup(raw, "response")
    if _is_usable(response):
        return LegacyReply(response=response)

    data = _lookup(raw, "data")
    if data is not _MISSING and data is not None:
        reply = _lookup(data, "reply")
        if reply is not _MISSING:
            return StructuredReply(reply=reply)

    if response is not _MISSING:
        return LegacyReply(response=response)
    return UnrecognizedReply(raw=raw)


def extract_reply(raw: Any) -> str | None:
    """Return the reply text carried by ``raw``, or None when there is none.

    Only non-empty strings count as replies; ``None``, empty strings and
    non-string values are treated as "no reply".
    """

    parsed = parse_response(raw)
    if isinstance(parsed, LegacyReply):
        candidate = parsed.response
    elif isinstance(parsed, StructuredReply):
        candidate = parsed.reply
    else:
        LOGGER.debug("Unrecognized assistant response shape: %s", type(raw).__name__)
        return None

    if _is_usable(candidate):
        return candidate

    LOGGER.debug(
        "Assistant response carried no usable reply (shape=%s, type=%s)",
        type(parsed).__name__,
        type(candidate).__name__,
    )
    return None


def reply_or_sentinel(raw: Any, sentinel: str = NO_RESPONSE_TEXT) -> str:
    """Return the extracted reply or ``sentinel``."""

    reply = extract_reply(raw)
    return reply if reply is not None else sentinel


def _is_usable(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _lookup(container: Any, key: str) -> Any:
    if container is None:
        return _MISSING
    if isinstance(container, Mapping):
        return container.get(key, _MISSING)
    return getattr(container, key, _MISSING)


__all__ = [
    "AssistantReply",
    "LegacyReply",
    "NO_RESPONSE_TEXT",
    "NO_SUMMARY_TEXT",
    "StructuredReply",
    "UnrecognizedReply",
    "extract_reply",
    "parse_response",
    "reply_or_sentinel",
]
