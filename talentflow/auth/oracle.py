"""
Session oracle interface.

The oracle is the identity provider as seen by the client: a one-shot
"is there a session" call plus a stream of change notifications. Providers
implement ``SessionOracle``; ``InMemorySessionOracle`` is a scriptable
implementation for tests and offline demos.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ..errors import ErrorCategory, ErrorContext, ErrorSeverity, Result, SubscriptionError
from ..lifecycle import Subscription
from .user import AuthUser

logger = logging.getLogger(__name__)


class AuthEvent(str, Enum):
    """Change notifications a provider can emit."""
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"

    @classmethod
    def parse(cls, value) -> Optional["AuthEvent"]:
        """Map a provider event name to an AuthEvent, or None if unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            return None


@dataclass(frozen=True)
class SessionPresence:
    """Whether a live session exists, and for whom."""
    present: bool
    user: Optional[AuthUser] = None
    access_token: Optional[str] = None

    @classmethod
    def absent(cls) -> "SessionPresence":
        return cls(present=False)

    @classmethod
    def for_user(cls, user: AuthUser, access_token: Optional[str] = None) -> "SessionPresence":
        return cls(present=True, user=user, access_token=access_token)


SessionHandler = Callable[[str, Optional[SessionPresence]], None]


class SessionOracle(ABC):
    """Abstract identity-provider session capability."""

    @abstractmethod
    async def get_current_session(self) -> Result[SessionPresence]:
        """Check for a current session.

        Provider-reported errors come back as error results; transport
        failures may also raise. Callers treat both the same way.
        """
        ...

    @abstractmethod
    def on_session_change(self, handler: SessionHandler) -> Subscription:
        """Register ``handler(event, session_or_none)`` for provider changes.

        Raises:
            SubscriptionError: if the registration cannot be established
        """
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session at the provider."""
        ...

    @abstractmethod
    async def get_user(self) -> Optional[AuthUser]:
        """Fetch the current user afresh from the provider."""
        ...


class InMemorySessionOracle(SessionOracle):
    """
    Scriptable oracle.

    ``hold_checks()`` makes ``get_current_session`` wait until
    ``release_checks()``; ``check_error`` makes it raise; ``check_result``
    overrides the returned result entirely.
    """

    def __init__(self, session: Optional[SessionPresence] = None):
        self._session = session
        self._handlers: List[SessionHandler] = []
        self._gate: Optional[asyncio.Event] = None
        self.check_error: Optional[BaseException] = None
        self.check_result: Optional[Result[SessionPresence]] = None
        self.fail_subscriptions = False
        self.check_calls = 0

    @property
    def handler_count(self) -> int:
        return len(self._handlers)

    def hold_checks(self) -> None:
        self._gate = asyncio.Event()

    def release_checks(self) -> None:
        if self._gate is not None:
            self._gate.set()

    async def get_current_session(self) -> Result[SessionPresence]:
        self.check_calls += 1
        if self._gate is not None:
            await self._gate.wait()
        if self.check_error is not None:
            raise self.check_error
        if self.check_result is not None:
            return self.check_result
        return Result.ok(self._session or SessionPresence.absent())

    def on_session_change(self, handler: SessionHandler) -> Subscription:
        if self.fail_subscriptions:
            raise SubscriptionError("change notifications unavailable")
        self._handlers.append(handler)

        def _remove() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return Subscription(_remove)

    def emit(self, event, session: Optional[SessionPresence]) -> None:
        """Deliver a notification to every registered handler, in order."""
        name = event.value if isinstance(event, AuthEvent) else str(event)
        for handler in list(self._handlers):
            handler(name, session)

    def sign_in(self, user: AuthUser, access_token: Optional[str] = None) -> SessionPresence:
        self._session = SessionPresence.for_user(user, access_token)
        self.emit(AuthEvent.SIGNED_IN, self._session)
        return self._session

    async def sign_out(self) -> None:
        self._session = None
        self.emit(AuthEvent.SIGNED_OUT, None)

    async def get_user(self) -> Optional[AuthUser]:
        if self._session is None:
            return None
        return self._session.user


def oracle_error(operation: str, message: str) -> ErrorContext:
    """Build the ErrorContext a provider returns for a failed session call."""
    return ErrorContext(
        category=ErrorCategory.AUTH,
        severity=ErrorSeverity.MEDIUM,
        operation=operation,
        technical_message=message,
    )
