"""
Application-level auth context.

Holds what every view shares: the oracle, the navigator and the route
policy. Each protected view gets its own guard from ``guard()``; the
context itself only carries the current user for navbars and profile
menus, plus sign-out. It follows provider change notifications for as
long as it is open.
"""

import logging
from typing import Optional

from ..errors import ErrorBoundary, ErrorCategory
from ..lifecycle import Subscription
from .guard import Navigator, Redirect, SessionGuard
from .oracle import AuthEvent, SessionOracle, SessionPresence
from .routes import RoutePolicy
from .user import AuthUser

logger = logging.getLogger(__name__)


class AuthContext:
    """Shared auth collaborators and user-level actions.

    Usage:
        with AuthContext(oracle, navigator) as context:
            async with context.guard("/dashboard").mounted() as guard:
                ...
    """

    def __init__(
        self,
        oracle: SessionOracle,
        navigator: Navigator,
        policy: Optional[RoutePolicy] = None,
    ):
        if policy is None:
            from ..config import get_config
            policy = RoutePolicy.from_config(get_config().auth)

        self.oracle = oracle
        self.navigator = navigator
        self.policy = policy
        self.user: Optional[AuthUser] = None
        self.session: Optional[SessionPresence] = None
        self._subscription: Optional[Subscription] = None

        with ErrorBoundary(
            "auth_context_subscribe",
            default_category=ErrorCategory.AUTH,
        ) as boundary:
            self._subscription = oracle.on_session_change(self._handle_change)

        if boundary.has_error:
            logger.warning(
                f"Shared user will not follow session changes: "
                f"{boundary.error_context.technical_message}"
            )

    @property
    def closed(self) -> bool:
        return self._subscription is None or self._subscription.closed

    def close(self) -> None:
        """Stop following session changes. Safe to call more than once."""
        if self._subscription is not None:
            self._subscription.unsubscribe()

    def __enter__(self) -> "AuthContext":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    def _handle_change(self, event: str, session: Optional[SessionPresence]) -> None:
        signed_out = AuthEvent.parse(event) in (AuthEvent.SIGNED_OUT, AuthEvent.USER_DELETED)
        if signed_out or session is None or not session.present:
            self.session = None
            self.user = None
        else:
            self.session = session
            self.user = session.user

    def guard(self, pathname: str, **kwargs) -> SessionGuard:
        """Build a guard for one view. Keyword arguments go to SessionGuard."""
        return SessionGuard(
            self.oracle,
            self.navigator,
            pathname=pathname,
            policy=self.policy,
            **kwargs
        )

    def adopt(self, guard: SessionGuard) -> None:
        """Copy a guard's verified user into the shared context."""
        self.session = guard.session
        self.user = guard.user

    async def sign_out(self) -> None:
        """Sign out at the provider and return to the landing page.

        Local state is cleared and the redirect is issued even when the
        provider call fails.
        """
        try:
            await self.oracle.sign_out()
        except Exception as e:
            logger.warning(f"Provider sign-out failed, clearing local session anyway: {e}")

        self.user = None
        self.session = None
        self.navigator.navigate(Redirect(self.policy.landing_route, "signed out"))

    async def refresh_user(self) -> Optional[AuthUser]:
        """Re-read the user from the provider; keeps the old one on failure."""
        try:
            user = await self.oracle.get_user()
        except Exception as e:
            logger.warning(f"Could not refresh user: {e}")
            return self.user

        if user is not None:
            self.user = user
        return self.user
