"""Service layer helpers (settings, notifications)."""

from .notifications import EventBusNotifier, LoggingNotifier, Notifier, RecordingNotifier
from .settings import SecretVault, Settings, SettingsStore

__all__ = [
    "EventBusNotifier",
    "LoggingNotifier",
    "Notifier",
    "RecordingNotifier",
    "SecretVault",
    "Settings",
    "SettingsStore",
]
