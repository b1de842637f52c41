"""
Route classification for the session guard.

A route is *public* when it can be viewed without a session, and an *auth
route* when a signed-in visitor should be sent on to the home route (the
sign-in page). Everything else is protected.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from ..config import AuthConfig


def _matches(pathname: str, routes: Iterable[str]) -> bool:
    return any(
        pathname == route or pathname.startswith(f"{route}?")
        for route in routes
    )


@dataclass(frozen=True)
class RoutePolicy:
    """Which routes need a session and where to send visitors who don't fit."""
    public_routes: Tuple[str, ...] = ("/", "/sign-in", "/privacy-policy")
    auth_routes: Tuple[str, ...] = ("/sign-in",)
    sign_in_route: str = "/sign-in"
    home_route: str = "/dashboard"
    landing_route: str = field(default="/")

    @classmethod
    def from_config(cls, config: AuthConfig) -> "RoutePolicy":
        return cls(
            public_routes=tuple(config.public_routes),
            auth_routes=tuple(config.auth_routes),
            sign_in_route=config.sign_in_route,
            home_route=config.home_route,
            landing_route=config.landing_route,
        )

    def is_public(self, pathname: str) -> bool:
        return _matches(pathname, self.public_routes)

    def is_auth_route(self, pathname: str) -> bool:
        return _matches(pathname, self.auth_routes)

    def is_protected(self, pathname: str) -> bool:
        return not self.is_public(pathname)

    def redirect_for(self, pathname: str, authenticated: bool) -> Optional[str]:
        """Target to navigate to for this route and session status, if any."""
        if authenticated:
            return self.home_route if self.is_auth_route(pathname) else None
        return None if self.is_public(pathname) else self.sign_in_route
