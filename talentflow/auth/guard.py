"""
Route-level session guard.

One ``SessionGuard`` belongs to one mounted protected view. It subscribes
to the oracle's change stream, runs a single session check, and exposes a
gate that says whether to show a loading placeholder, render the protected
content, or stay blank while a redirect is underway.

State machine::

    INITIALIZING --check: live session-------------> VERIFIED
    INITIALIZING --check: no session / error / timeout--> ABSENT
    VERIFIED     --notification: signed out---------> ABSENT

ABSENT is terminal for the mount. The subscription is registered before the
check is awaited so a sign-out that lands mid-check is not lost. After
``release()`` nothing is applied: late check results and stray
notifications are dropped.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, List, Optional, Tuple

from ..errors import (
    ErrorBoundary,
    ErrorCategory,
    Result,
    VerificationError,
    exception_to_context,
    format_error_for_log,
)
from ..lifecycle import StateContainer, Subscription
from .oracle import AuthEvent, SessionOracle, SessionPresence
from .routes import RoutePolicy
from .user import AuthUser

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """Authentication status of one mounted view."""
    INITIALIZING = "initializing"
    VERIFIED = "verified"
    ABSENT = "absent"


class GateDecision(Enum):
    """What a protected view should show."""
    LOADING = "loading"
    RENDER = "render"
    REDIRECT = "redirect"


class Signal(Enum):
    """Inputs to the guard state machine."""
    CHECK_LIVE = "check_live"
    CHECK_ABSENT = "check_absent"
    CHECK_FAILED = "check_failed"
    NOTIFY_LIVE = "notify_live"
    NOTIFY_ABSENT = "notify_absent"


_CHECK_SIGNALS = (Signal.CHECK_LIVE, Signal.CHECK_ABSENT, Signal.CHECK_FAILED)


@dataclass(frozen=True)
class Redirect:
    """One-way navigation command."""
    target: str
    reason: str


class Navigator(ABC):
    """Receives navigation commands emitted by guards."""

    @abstractmethod
    def navigate(self, redirect: Redirect) -> None:
        """Move the visible route to ``redirect.target``. Must be idempotent."""
        ...


class RecordingNavigator(Navigator):
    """Navigator that keeps the commands it was given; the last one is current."""

    def __init__(self):
        self.history: List[Redirect] = []

    @property
    def current(self) -> Optional[str]:
        return self.history[-1].target if self.history else None

    def navigate(self, redirect: Redirect) -> None:
        logger.debug(f"navigate -> {redirect.target} ({redirect.reason})")
        self.history.append(redirect)


def transition(
    state: SessionState,
    signal: Signal,
    pathname: str,
    policy: RoutePolicy,
) -> Tuple[SessionState, Optional[Redirect]]:
    """
    Pure transition function for the guard.

    Returns the next state and the navigation command to emit, if any.
    Check results only count while INITIALIZING; an absent-session
    notification always lands in ABSENT and re-issues the redirect.
    """
    if signal in _CHECK_SIGNALS:
        if state is not SessionState.INITIALIZING:
            return state, None
        if signal is Signal.CHECK_LIVE:
            target = policy.redirect_for(pathname, authenticated=True)
            return SessionState.VERIFIED, Redirect(target, "already signed in") if target else None
        target = policy.redirect_for(pathname, authenticated=False)
        reason = "verification failed" if signal is Signal.CHECK_FAILED else "no session"
        return SessionState.ABSENT, Redirect(target, reason) if target else None

    if signal is Signal.NOTIFY_ABSENT:
        target = policy.redirect_for(pathname, authenticated=False)
        return SessionState.ABSENT, Redirect(target, "signed out") if target else None

    # NOTIFY_LIVE never resolves INITIALIZING nor revives ABSENT
    if state is SessionState.VERIFIED:
        target = policy.redirect_for(pathname, authenticated=True)
        return state, Redirect(target, "signed in") if target else None
    return state, None


class SessionGuard(StateContainer[SessionState]):
    """Session check, change subscription and render gate for one view."""

    def __init__(
        self,
        oracle: SessionOracle,
        navigator: Navigator,
        pathname: str = "/dashboard",
        policy: Optional[RoutePolicy] = None,
        verify_timeout: Optional[float] = None,
        loading_message: Optional[str] = None,
    ):
        """
        Initialize the guard.

        Args:
            oracle: Identity provider session capability
            navigator: Receiver for redirect commands
            pathname: Route of the view being guarded
            policy: Route rules (defaults to configuration)
            verify_timeout: Bound on the session check in seconds,
                <= 0 for none (defaults to configuration)
            loading_message: Placeholder while INITIALIZING
        """
        super().__init__(SessionState.INITIALIZING)

        if policy is None or verify_timeout is None or loading_message is None:
            from ..config import get_config
            auth_config = get_config().auth
            policy = policy or RoutePolicy.from_config(auth_config)
            if verify_timeout is None:
                verify_timeout = auth_config.verify_timeout
            if loading_message is None:
                loading_message = auth_config.loading_message

        self._oracle = oracle
        self._navigator = navigator
        self.pathname = pathname
        self.policy = policy
        self.verify_timeout = verify_timeout
        self.loading_message = loading_message

        self.session: Optional[SessionPresence] = None
        self.user: Optional[AuthUser] = None
        self.live_updates = False
        self._subscription: Optional[Subscription] = None
        self._released = False

    # -- derived view state --------------------------------------------

    @property
    def released(self) -> bool:
        return self._released

    @property
    def is_loading(self) -> bool:
        return self.state is SessionState.INITIALIZING

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.VERIFIED

    def gate(self) -> GateDecision:
        if self.state is SessionState.INITIALIZING:
            return GateDecision.LOADING
        if self.state is SessionState.VERIFIED:
            return GateDecision.RENDER
        return GateDecision.REDIRECT

    def render(self, content: Any, fallback: Any = None) -> Any:
        """Return what the view should show for the current gate."""
        decision = self.gate()
        if decision is GateDecision.RENDER:
            return content
        if decision is GateDecision.LOADING:
            return fallback if fallback is not None else self.loading_message
        return None

    # -- lifecycle -----------------------------------------------------

    def subscribe(self) -> bool:
        """
        Register for change notifications.

        Returns False when registration failed; the guard then works from the
        one-shot check alone.
        """
        if self._released or self._subscription is not None:
            return self.live_updates

        with ErrorBoundary(
            "subscribe_session_changes",
            logger=logger,
            log_level=logging.DEBUG,
            default_category=ErrorCategory.AUTH,
        ) as boundary:
            self._subscription = self._oracle.on_session_change(self._handle_change)

        if boundary.has_error:
            logger.warning(
                f"Live sign-out detection disabled for {self.pathname}: "
                f"{boundary.error_context.technical_message}"
            )
            self.live_updates = False
        else:
            self.live_updates = True
        return self.live_updates

    async def check(self) -> SessionState:
        """
        Ask the oracle for the current session once.

        Errors and timeouts count as "no session". Nothing is raised and
        nothing is retried. Results that arrive after ``release()`` are
        discarded.
        """
        if self._released:
            return self.state

        result: Optional[Result[SessionPresence]] = None
        failure: Optional[BaseException] = None
        try:
            pending = self._oracle.get_current_session()
            if self.verify_timeout and self.verify_timeout > 0:
                result = await asyncio.wait_for(pending, timeout=self.verify_timeout)
            else:
                result = await pending
        except asyncio.TimeoutError:
            failure = VerificationError(
                f"session check timed out after {self.verify_timeout}s"
            )
        except Exception as e:
            failure = e

        if self._released:
            logger.debug(f"Discarding session check for released view {self.pathname}")
            return self.state

        if failure is not None:
            context = exception_to_context(
                failure, "get_current_session", default_category=ErrorCategory.AUTH
            )
            logger.warning(format_error_for_log(context))
            self._apply(Signal.CHECK_FAILED)
        elif result is None or result.is_err:
            if result is not None:
                logger.warning(format_error_for_log(result.error))
            self._apply(Signal.CHECK_FAILED)
        elif result.value is not None and result.value.present:
            if self.state is SessionState.INITIALIZING:
                self._remember(result.value)
            self._apply(Signal.CHECK_LIVE)
        else:
            self._apply(Signal.CHECK_ABSENT)

        return self.state

    async def mount(self) -> SessionState:
        """Subscribe, then check. The caller owns the matching ``release()``."""
        self.subscribe()
        return await self.check()

    @asynccontextmanager
    async def mounted(self) -> AsyncIterator["SessionGuard"]:
        """Mount for the duration of the block; released on every exit path."""
        try:
            await self.mount()
            yield self
        finally:
            self.release()

    def release(self) -> None:
        """Stop reacting to the oracle. Later calls are no-ops."""
        if self._released:
            return
        self._released = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        logger.debug(f"Session guard released for {self.pathname}")

    # -- internals -----------------------------------------------------

    def _handle_change(self, event: str, session: Optional[SessionPresence]) -> None:
        if self._released:
            return

        parsed = AuthEvent.parse(event)
        signed_out = parsed in (AuthEvent.SIGNED_OUT, AuthEvent.USER_DELETED)
        live = session is not None and session.present and not signed_out

        logger.debug(f"Session change {event} on {self.pathname} (live={live})")

        if live:
            if self.state is not SessionState.ABSENT:
                self._remember(session)
            self._apply(Signal.NOTIFY_LIVE)
        else:
            self.session = None
            self.user = None
            self._apply(Signal.NOTIFY_ABSENT)

    def _remember(self, session: SessionPresence) -> None:
        self.session = session
        self.user = session.user

    def _apply(self, signal: Signal) -> None:
        new_state, redirect = transition(self.state, signal, self.pathname, self.policy)
        if new_state is not self.state:
            logger.info(f"Session {self.state.value} -> {new_state.value} on {self.pathname}")
            self._transition(new_state)
        if redirect is not None:
            self._navigator.navigate(redirect)
