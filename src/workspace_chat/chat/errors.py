"""Error types raised by the conversation core.

Rejected input is reported as a ValidationError on the returned outcome
rather than raised. Transport failures are absorbed by the request
coordinator and turned into conversation content plus a notice. The lookup
and consistency errors below propagate to callers.
"""

from __future__ import annotations

from typing import Any


class ErrorCode:
    """Constants for machine-readable error codes."""

    EMPTY_INPUT = "empty_input"
    MISSING_FILE_PATH = "missing_file_path"
    WRONG_WORKSPACE_TYPE = "wrong_workspace_type"
    ASSISTANT_REQUEST_FAILED = "assistant_request_failed"
    SESSION_NOT_FOUND = "session_not_found"
    INDEX_CONSISTENCY = "index_consistency"


class ChatError(Exception):
    """Base exception for the conversation core.

    Attributes:
        error_code: Machine-readable error identifier.
        message: Human-readable description.
        details: Additional structured information.
    """

    default_code = "chat_error"

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = dict(details) if details else {}

    def __str__(self) -> str:
        return self.message


class ValidationError(ChatError):
    """Input rejected before any request was issued."""

    default_code = "validation_error"


class AssistantRequestError(ChatError):
    """The assistant service could not be reached or answered with an error."""

    default_code = ErrorCode.ASSISTANT_REQUEST_FAILED

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details=details)
        self.status_code = status_code


class SessionNotFoundError(ChatError, KeyError):
    """Raised when a session id is absent from the history index."""

    default_code = ErrorCode.SESSION_NOT_FOUND

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Session '{session_id}' not found",
            details={"session_id": session_id},
        )
        self.session_id = session_id

    def __str__(self) -> str:
        return self.message


class IndexConsistencyError(ChatError):
    """Commit targeted an active session that the index does not hold."""

    default_code = ErrorCode.INDEX_CONSISTENCY

    def __init__(self, session_id: str) -> None:
        super().__init__(
            f"Active session '{session_id}' is not present in the history index",
            details={"session_id": session_id},
        )
        self.session_id = session_id


__all__ = [
    "AssistantRequestError",
    "ChatError",
    "ErrorCode",
    "IndexConsistencyError",
    "SessionNotFoundError",
    "ValidationError",
]
