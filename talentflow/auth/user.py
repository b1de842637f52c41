"""Projection of an identity-provider user onto the fields the app shows."""

from dataclasses import dataclass
from typing import Any, Mapping, Optional


@dataclass(frozen=True)
class AuthUser:
    """The signed-in user as consumed by views."""
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    avatar_url: Optional[str] = None


def _field(source: Any, name: str, default: Any = None) -> Any:
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def _first(metadata: Mapping[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = metadata.get(key)
        if value:
            return value
    return None


def parse_user(provider_user: Any) -> Optional[AuthUser]:
    """
    Build an AuthUser from a provider user object or dict.

    The display name comes from ``display_name``, ``name`` or ``full_name``
    metadata (first non-empty wins); the avatar from ``avatar_url`` or
    ``picture``.
    """
    if provider_user is None:
        return None

    metadata = _field(provider_user, "user_metadata") or {}
    return AuthUser(
        id=str(_field(provider_user, "id")),
        email=_field(provider_user, "email") or None,
        name=_first(metadata, "display_name", "name", "full_name"),
        avatar_url=_first(metadata, "avatar_url", "picture"),
    )
