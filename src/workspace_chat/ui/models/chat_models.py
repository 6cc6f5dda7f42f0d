"""Conversation panel state models.

These dataclasses and enums describe the workspace the panel is scoped to,
the notices surfaced to the user, and the outcomes returned by the domain
layer (RequestCoordinator, QuickActionDispatcher).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from ...chat.errors import ValidationError


class WorkspaceType(str, Enum):
    """Kind of subject document a workspace is built around."""

    RESUME = "resume"
    JD = "jd"
    OTHER = "other"

    @classmethod
    def coerce(cls, value: "WorkspaceType | str | None") -> "WorkspaceType":
        """Map loose input onto a member; unknown values become OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True, slots=True)
class WorkspaceContext:
    """Read-only description of the active workspace.

    Attributes:
        name: Display name interpolated into the greeting.
        type: Workspace kind; drives which quick actions apply.
        file_path: Path of the underlying document, when one is selected.
    """

    name: str
    type: WorkspaceType = WorkspaceType.OTHER
    file_path: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "type", WorkspaceType.coerce(self.type))

    @property
    def has_file(self) -> bool:
        return isinstance(self.file_path, str) and bool(self.file_path.strip())


class Severity(str, Enum):
    """Visual weight of a notice."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True, slots=True)
class Notice:
    """Out-of-band notification for the user (toast payload)."""

    title: str
    description: str
    severity: Severity = Severity.DEFAULT


class SendStatus(Enum):
    """Result of one RequestCoordinator invocation.

    Values:
        COMPLETED: Reply appended and session committed.
        FAILED: Assistant call raised; apology appended, nothing committed.
        INVALID: Local validation failed before any request.
        SKIPPED: Empty input; nothing happened.
        STALE: Completion arrived after a newer one and was discarded.
    """

    COMPLETED = "completed"
    FAILED = "failed"
    INVALID = "invalid"
    SKIPPED = "skipped"
    STALE = "stale"


@dataclass(frozen=True, slots=True)
class SendOutcome:
    """What a send did, for callers that need to react to it."""

    status: SendStatus
    session_id: str | None = None
    reason: str | None = None
    sequence: int | None = None
    error: ValidationError | None = None

    @property
    def ok(self) -> bool:
        return self.status is SendStatus.COMPLETED


class QuickAction(str, Enum):
    """Named shortcuts offered by the panel."""

    SUMMARIZE = "summarize"
    MATCH = "match"


class QuickActionStatus(Enum):
    SENT = "sent"
    PREFILLED = "prefilled"
    INVALID = "invalid"
    NOOP = "noop"


@dataclass(frozen=True, slots=True)
class QuickActionOutcome:
    """Result of dispatching a quick action.

    Attributes:
        action: The dispatched action.
        status: What happened.
        text: Pre-filled draft text (match action only).
        reason: Error code when status is INVALID.
        send: Underlying send outcome when a request was issued.
        error: The rejected input, as a ValidationError, when status is INVALID.
    """

    action: QuickAction
    status: QuickActionStatus
    text: str | None = None
    reason: str | None = None
    send: SendOutcome | None = None
    error: ValidationError | None = None


__all__ = [
    "Notice",
    "QuickAction",
    "QuickActionOutcome",
    "QuickActionStatus",
    "SendOutcome",
    "SendStatus",
    "Severity",
    "WorkspaceContext",
    "WorkspaceType",
]
