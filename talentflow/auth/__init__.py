"""Session guard, session oracles and route rules."""

from .context import AuthContext
from .guard import (
    GateDecision,
    Navigator,
    RecordingNavigator,
    Redirect,
    SessionGuard,
    SessionState,
    Signal,
    transition,
)
from .oracle import AuthEvent, InMemorySessionOracle, SessionOracle, SessionPresence
from .routes import RoutePolicy
from .supabase_oracle import SupabaseSessionOracle, create_supabase_oracle
from .user import AuthUser, parse_user

__all__ = [
    "AuthContext",
    "AuthEvent",
    "AuthUser",
    "GateDecision",
    "InMemorySessionOracle",
    "Navigator",
    "RecordingNavigator",
    "Redirect",
    "RoutePolicy",
    "SessionGuard",
    "SessionOracle",
    "SessionPresence",
    "SessionState",
    "Signal",
    "SupabaseSessionOracle",
    "create_supabase_oracle",
    "parse_user",
    "transition",
]
