"""The display preference value."""

from enum import Enum
from typing import Optional, Union


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"

    @property
    def is_dark(self) -> bool:
        return self is Theme.DARK

    def complement(self) -> "Theme":
        return Theme.LIGHT if self is Theme.DARK else Theme.DARK

    @classmethod
    def coerce(cls, value: Union["Theme", str]) -> "Theme":
        """Accept a Theme or its string value; anything else is a ValueError."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            return cls(value)
        raise ValueError(f"{value!r} is not a valid Theme")

    @classmethod
    def from_stored(cls, raw: Optional[str]) -> Optional["Theme"]:
        """Parse a persisted entry; missing or unknown values give None."""
        if raw is None:
            return None
        try:
            return cls(raw.strip().lower())
        except (ValueError, AttributeError):
            return None
