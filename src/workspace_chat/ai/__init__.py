"""Assistant clients and reply normalization."""

from .client import (
    AssistantClient,
    ClientSettings,
    HttpAssistantClient,
    OpenAIAssistantClient,
    build_assistant_client,
)
from .replies import extract_reply, parse_response

__all__ = [
    "AssistantClient",
    "ClientSettings",
    "HttpAssistantClient",
    "OpenAIAssistantClient",
    "build_assistant_client",
    "extract_reply",
    "parse_response",
]
