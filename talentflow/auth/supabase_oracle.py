"""
Supabase-backed session oracle.

Wraps the ``auth`` namespace of an async Supabase client. Provider session
objects are converted to ``SessionPresence`` at this boundary so nothing
past it depends on the Supabase types.
"""

import logging
from typing import Any, Optional

from ..config import SupabaseConfig
from ..errors import ConfigurationError, Result, SubscriptionError
from ..lifecycle import Subscription
from .oracle import SessionHandler, SessionOracle, SessionPresence
from .user import AuthUser, parse_user

logger = logging.getLogger(__name__)


def to_presence(session: Any) -> SessionPresence:
    """Convert a provider session (or None) to a SessionPresence."""
    if session is None:
        return SessionPresence.absent()
    return SessionPresence.for_user(
        parse_user(getattr(session, "user", None)),
        access_token=getattr(session, "access_token", None),
    )


class SupabaseSessionOracle(SessionOracle):
    """Session oracle over ``AsyncClient.auth``."""

    def __init__(self, client: Any):
        """
        Args:
            client: An async Supabase client (``supabase.AsyncClient``)
        """
        self._auth = client.auth

    async def get_current_session(self) -> Result[SessionPresence]:
        session = await self._auth.get_session()
        return Result.ok(to_presence(session))

    def on_session_change(self, handler: SessionHandler) -> Subscription:
        def _callback(event: Any, session: Any) -> None:
            handler(str(event), None if session is None else to_presence(session))

        try:
            provider_subscription = self._auth.on_auth_state_change(_callback)
        except Exception as e:
            raise SubscriptionError(f"on_auth_state_change failed: {e}") from e

        return Subscription(provider_subscription.unsubscribe)

    async def sign_out(self) -> None:
        await self._auth.sign_out()

    async def get_user(self) -> Optional[AuthUser]:
        response = await self._auth.get_user()
        if response is None or getattr(response, "user", None) is None:
            return None
        return parse_user(response.user)


async def create_supabase_oracle(config: Optional[SupabaseConfig] = None) -> SupabaseSessionOracle:
    """Create an oracle for the configured Supabase project.

    Raises:
        ConfigurationError: if the project URL or anon key is missing
    """
    if config is None:
        from ..config import get_config
        config = get_config().supabase

    if not config.is_configured:
        raise ConfigurationError(
            "Supabase is not configured; set SUPABASE_URL and SUPABASE_ANON_KEY"
        )

    from supabase import acreate_client

    logger.info(f"Connecting session oracle to {config.url}")
    client = await acreate_client(config.url, config.anon_key)
    return SupabaseSessionOracle(client)


