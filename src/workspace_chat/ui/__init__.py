"""UI package holding the conversation panel's state and controllers."""

from .events import EventBus

__all__ = [
    # Event Bus
    "EventBus",
]
