"""Domain layer for the conversation panel.

This package contains domain managers that encapsulate conversation state
and the request lifecycle, independent of rendering. Each manager is
responsible for a specific domain area and communicates via the event bus.

Domain Managers:
    - SessionStore: Live conversation log and sending flag
    - HistoryIndex: Completed conversations keyed by session id
    - RequestCoordinator: Assistant round trips and reconciliation
    - QuickActionDispatcher: Named shortcuts (summarize, match)

All domain managers:
    - Receive dependencies via constructor injection
    - Emit events to notify other layers of state changes
    - Have no dependencies on presentation code
"""

from __future__ import annotations

from .session_store import SessionStore
from .history_index import HistoryIndex
from .request_coordinator import RequestCoordinator
from .quick_actions import QuickActionDispatcher

__all__: list[str] = [
    "SessionStore",
    "HistoryIndex",
    "RequestCoordinator",
    "QuickActionDispatcher",
]
