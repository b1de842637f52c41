"""
Persisted light/dark preference.

The persisted entry is the source of truth. ``initialize()`` reconciles the
in-memory value from it (falling back to the ambient signal, then the
default); ``set()`` and ``toggle()`` apply the display side effect, store the
value and persist it before returning. Persistence is best effort: when the
storage is unavailable the preference still works for this process and
reverts to the ambient/default value on the next start.
"""

import logging
from typing import Optional, Union

from ..errors import ErrorBoundary, ErrorCategory, format_error_for_log, safe_execute
from ..lifecycle import StateContainer
from .ambient import AmbientSignal, environment_prefers_dark
from .display import DisplayTarget
from .storage import KeyValueStorage
from .theme import Theme

logger = logging.getLogger(__name__)


class PreferenceStore(StateContainer[Theme]):
    """Current theme, its persisted copy and its display side effect."""

    def __init__(
        self,
        storage: KeyValueStorage,
        ambient: AmbientSignal = environment_prefers_dark,
        target: Optional[DisplayTarget] = None,
        storage_key: Optional[str] = None,
        default: Optional[Union[Theme, str]] = None,
    ):
        """
        Initialize the store. Call ``initialize()`` before reading ``value``.

        Args:
            storage: Durable key-value storage holding the entry
            ambient: One-shot "prefers dark" query
            target: Display side effect, applied on every transition
            storage_key: Entry key (defaults to theme.storage_key)
            default: Value when nothing is stored and ambient says light
        """
        if storage_key is None or default is None:
            from ..config import get_config
            theme_config = get_config().theme
            storage_key = storage_key or theme_config.storage_key
            if default is None:
                default = theme_config.default

        self.default = Theme.coerce(default)
        super().__init__(self.default)

        self.storage = storage
        self.ambient = ambient
        self.target = target
        self.storage_key = storage_key
        self.initialized = False

    @property
    def value(self) -> Theme:
        return self.state

    def initialize(self) -> Theme:
        """Adopt the stored value, else the ambient signal, else the default."""
        raw = None
        with ErrorBoundary(
            "read_preference",
            logger=logger,
            log_level=logging.DEBUG,
            default_category=ErrorCategory.STORAGE,
        ):
            raw = self.storage.get(self.storage_key)

        theme = Theme.from_stored(raw)
        if theme is None:
            if raw is not None:
                logger.debug(f"Ignoring invalid stored preference {raw!r}")
            theme = Theme.DARK if self._ambient_prefers_dark() else self.default

        self._commit(theme)
        self.initialized = True
        return theme

    def set(self, value: Union[Theme, str]) -> Theme:
        """Make ``value`` current, persist it and apply it.

        Raises:
            ValueError: if ``value`` is not "light" or "dark"
        """
        theme = Theme.coerce(value)
        self._commit(theme)

        with ErrorBoundary(
            "persist_preference",
            logger=logger,
            default_category=ErrorCategory.STORAGE,
        ):
            self.storage.set(self.storage_key, theme.value)

        return theme

    def toggle(self) -> Theme:
        return self.set(self.value.complement())

    def _ambient_prefers_dark(self) -> bool:
        result = safe_execute(
            lambda: bool(self.ambient()),
            "read_ambient_signal",
            on_error=lambda context: logger.debug(format_error_for_log(context)),
        )
        return result.unwrap_or(False)

    def _commit(self, theme: Theme) -> None:
        if self.target is not None:
            self.target.apply(theme.is_dark)
        self._transition(theme)
