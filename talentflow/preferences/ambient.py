"""
Ambient dark-appearance signal.

Read once when the preference store initializes. There is no live
subscription to environment changes.
"""

import os
from typing import Callable, Mapping, Optional

AmbientSignal = Callable[[], bool]

_TRUTHY = {"1", "true", "yes", "on", "dark"}
_FALSY = {"0", "false", "no", "off", "light"}

# COLORFGBG background indexes that are dark in the 16-colour palette
_DARK_BACKGROUNDS = {0, 1, 2, 3, 4, 5, 6, 8}


def _background_is_dark(colorfgbg: str) -> Optional[bool]:
    """Interpret a COLORFGBG value such as ``"15;0"`` (fg;bg or fg;x;bg)."""
    last = colorfgbg.split(";")[-1].strip()
    if not last.isdigit():
        return None
    return int(last) in _DARK_BACKGROUNDS


def environment_prefers_dark(environ: Optional[Mapping[str, str]] = None) -> bool:
    """
    Does the environment prefer a dark appearance?

    ``TALENTFLOW_PREFERS_DARK`` wins when it holds a recognisable boolean;
    otherwise the terminal's ``COLORFGBG`` background decides. No signal
    means False.
    """
    env = os.environ if environ is None else environ

    explicit = env.get("TALENTFLOW_PREFERS_DARK", "").strip().lower()
    if explicit in _TRUTHY:
        return True
    if explicit in _FALSY:
        return False

    colorfgbg = env.get("COLORFGBG")
    if colorfgbg:
        dark = _background_is_dark(colorfgbg)
        if dark is not None:
            return dark

    return False


def never_dark() -> bool:
    """Ambient signal for environments with no appearance preference."""
    return False
