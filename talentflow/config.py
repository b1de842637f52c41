"""
Configuration management for talentflow.

Loads configuration from multiple sources in order of priority:
1. Environment variables (TALENTFLOW_*, SUPABASE_*)
2. User config (~/.config/talentflow/config.toml)
3. System config (/etc/talentflow/config.toml)
4. Default config (bundled with package)
"""

import os
import sys
from pathlib import Path
from typing import Any, List, Literal, Optional

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError


class AuthConfig(BaseModel):
    """Session guard and route configuration."""
    sign_in_route: str = Field(default="/sign-in", description="Where signed-out visitors are sent")
    home_route: str = Field(default="/dashboard", description="Where signed-in visitors leave auth pages for")
    landing_route: str = Field(default="/", description="Where sign-out lands")
    public_routes: List[str] = Field(
        default_factory=lambda: ["/", "/sign-in", "/privacy-policy"],
        description="Routes viewable without a session"
    )
    auth_routes: List[str] = Field(
        default_factory=lambda: ["/sign-in"],
        description="Routes that bounce an authenticated visitor to home_route"
    )
    verify_timeout: float = Field(
        default=10.0,
        description="Seconds to wait for the initial session check (<= 0 disables)"
    )
    loading_message: str = Field(
        default="Verifying authentication...",
        description="Placeholder shown while the session check is pending"
    )


class ThemeConfig(BaseModel):
    """Display preference configuration."""
    storage_key: str = Field(default="talentflow-theme", description="Persisted preference key")
    storage_path: str = Field(
        default="~/.config/talentflow/preferences.json",
        description="File backing the durable key-value storage"
    )
    default: Literal["light", "dark"] = Field(
        default="light",
        description="Preference used when nothing is stored and no ambient signal exists"
    )


class SupabaseConfig(BaseModel):
    """Identity provider project settings."""
    url: Optional[str] = Field(default=None, description="Supabase project URL")
    anon_key: Optional[str] = Field(default=None, description="Supabase anon (public) key")

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.anon_key)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = Field(default="info", description="Log level")


class TalentflowConfig(BaseModel):
    """Main talentflow configuration."""
    auth: AuthConfig = Field(default_factory=AuthConfig)
    theme: ThemeConfig = Field(default_factory=ThemeConfig)
    supabase: SupabaseConfig = Field(default_factory=SupabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_config_paths() -> list[Path]:
    """Get configuration file paths in order of priority."""
    paths = []

    # User config (highest priority)
    paths.append(Path.home() / ".config" / "talentflow" / "config.toml")

    # System config
    paths.append(Path("/etc/talentflow/config.toml"))

    # Default config bundled inside the package
    paths.append(Path(__file__).parent / "data" / "default.toml")

    return paths


def load_toml_config(path: Path) -> dict[str, Any]:
    """Load configuration from a TOML file."""
    if path.exists():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def merge_configs(base: dict, override: dict) -> dict:
    """Deep merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_env_overrides() -> dict[str, Any]:
    """Load configuration overrides from environment variables."""
    overrides: dict[str, Any] = {}

    url = os.environ.get("TALENTFLOW_SUPABASE_URL") or os.environ.get("SUPABASE_URL")
    if url:
        overrides.setdefault("supabase", {})["url"] = url

    anon_key = (
        os.environ.get("TALENTFLOW_SUPABASE_ANON_KEY")
        or os.environ.get("SUPABASE_ANON_KEY")
    )
    if anon_key:
        overrides.setdefault("supabase", {})["anon_key"] = anon_key

    timeout = os.environ.get("TALENTFLOW_VERIFY_TIMEOUT")
    if timeout:
        overrides.setdefault("auth", {})["verify_timeout"] = timeout

    if os.environ.get("TALENTFLOW_DEBUG"):
        overrides.setdefault("logging", {})["level"] = "debug"

    return overrides


def load_config() -> TalentflowConfig:
    """Load configuration from all sources."""
    config_data: dict[str, Any] = {}

    # Load from files (lowest to highest priority)
    for path in reversed(get_config_paths()):
        file_config = load_toml_config(path)
        config_data = merge_configs(config_data, file_config)

    # Apply environment overrides (highest priority)
    config_data = merge_configs(config_data, load_env_overrides())

    try:
        return TalentflowConfig(**config_data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


# Global config instance
_config: Optional[TalentflowConfig] = None


def get_config() -> TalentflowConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reset_config() -> None:
    """Reset the global configuration (useful for testing)."""
    global _config
    _config = None
