"""Persisted display preference (light/dark)."""

from .ambient import AmbientSignal, environment_prefers_dark, never_dark
from .display import ClassListTarget, ConsoleThemeTarget, DisplayTarget
from .storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from .store import PreferenceStore
from .theme import Theme

__all__ = [
    "AmbientSignal",
    "ClassListTarget",
    "ConsoleThemeTarget",
    "DisplayTarget",
    "JsonFileStorage",
    "KeyValueStorage",
    "MemoryStorage",
    "PreferenceStore",
    "Theme",
    "environment_prefers_dark",
    "never_dark",
]
