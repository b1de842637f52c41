"""
Display side effect of the preference.

A target receives ``apply(dark)`` synchronously on every preference
transition. ``ClassListTarget`` mirrors a document root's class list;
``ConsoleThemeTarget`` swaps the rich theme of a console.
"""

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set

from rich.console import Console
from rich.theme import Theme as RichTheme


class DisplayTarget(ABC):
    """Something whose appearance follows the preference."""

    @abstractmethod
    def apply(self, dark: bool) -> None:
        ...


class ClassListTarget(DisplayTarget):
    """A root element's class list; ``dark`` present means dark mode."""

    def __init__(self, classes: Optional[Iterable[str]] = None, flag: str = "dark"):
        self.classes: Set[str] = set(classes or ())
        self.flag = flag

    @property
    def is_dark(self) -> bool:
        return self.flag in self.classes

    def apply(self, dark: bool) -> None:
        if dark:
            self.classes.add(self.flag)
        else:
            self.classes.discard(self.flag)


LIGHT_STYLES = RichTheme({
    "text": "black",
    "muted": "grey37",
    "accent": "blue",
    "success": "green4",
    "warning": "dark_orange3",
})

DARK_STYLES = RichTheme({
    "text": "grey93",
    "muted": "grey62",
    "accent": "bright_cyan",
    "success": "bright_green",
    "warning": "yellow",
})


class ConsoleThemeTarget(DisplayTarget):
    """Keeps exactly one talentflow theme pushed on a rich console."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self._pushed = False
        self.dark: Optional[bool] = None

    def apply(self, dark: bool) -> None:
        if self._pushed:
            self.console.pop_theme()
        self.console.push_theme(DARK_STYLES if dark else LIGHT_STYLES)
        self._pushed = True
        self.dark = dark
