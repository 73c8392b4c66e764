"""
Aura Configuration — loads and merges config from multiple sources.

Precedence (highest to lowest):
1. Explicit overrides (passed in code)
2. Environment variables (AURA_*)
3. Project config (./aura.toml)
4. User config (~/.aura/config.toml)
5. Defaults (hardcoded)

Environment variable mapping:
    AURA_BACKEND_BASE_URL → backend.base_url
    AURA_USER_ID → user.user_id
    AURA_TENANT_ID → user.tenant_id
    AURA_SCHEDULER_STORAGE_PATH → scheduler.storage_path
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from aura.core.errors import ConfigError

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Config Sub-Models
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class BackendConfig(BaseModel):
    """Assistant API connection."""

    base_url: str = "http://localhost:8000/api/v1"
    chat_path: str = "/orcha/chat"
    search_path: str = "/orcha/web-search"
    api_key: str = ""
    timeout: float = 120.0  # seconds; backends can take a while


class UserConfig(BaseModel):
    """Identity the scheduled requests are sent on behalf of."""

    user_id: str = ""
    tenant_id: str | None = None


class SchedulerConfig(BaseModel):
    """Scheduler configuration."""

    enabled: bool = True
    storage_path: str = "~/.aura/agent_tasks.db"
    poll_interval: int = 60  # seconds


class SearchConfig(BaseModel):
    """Web-search task settings."""

    max_results: int = 5


class NotificationConfig(BaseModel):
    """Notification display configuration."""

    display_seconds: float = 20.0
    log_path: str = "~/.aura/notifications.log"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Main Config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


class AuraConfig(BaseModel):
    """Root configuration for Aura."""

    backend: BackendConfig = Field(default_factory=BackendConfig)
    user: UserConfig = Field(default_factory=UserConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)

    @staticmethod
    def load(
        overrides: dict[str, Any] | None = None,
        project_path: Path | None = None,
        user_path: Path | None = None,
    ) -> AuraConfig:
        """
        Load configuration from all sources and merge.

        Precedence: overrides > env vars > project toml > user toml > defaults
        """
        merged: dict[str, Any] = {}

        # Layer 1: User config (~/.aura/config.toml)
        user_config_path = user_path or Path.home() / ".aura" / "config.toml"
        if user_config_path.exists():
            _deep_merge(merged, _load_toml(user_config_path))

        # Layer 2: Project config (./aura.toml)
        project_config_path = project_path or Path.cwd() / "aura.toml"
        if project_config_path.exists():
            _deep_merge(merged, _load_toml(project_config_path))

        # Layer 3: Environment variables
        _deep_merge(merged, _load_from_env())

        # Layer 4: Explicit overrides
        if overrides:
            _deep_merge(merged, overrides)

        _substitute_env_vars(merged)

        try:
            return AuraConfig(**merged)
        except Exception as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

    def get_storage_path(self) -> Path:
        """Resolved path of the task database."""
        return Path(self.scheduler.storage_path).expanduser()

    def get_notification_log_path(self) -> Path:
        return Path(self.notifications.log_path).expanduser()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Internal Helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━


def _load_toml(path: Path) -> dict[str, Any]:
    """Load a TOML file."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except Exception as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e


# Values that must stay strings even when they look numeric
_STRING_KEYS = {("user", "user_id"), ("user", "tenant_id"), ("backend", "api_key")}


def _load_from_env() -> dict[str, Any]:
    """Load configuration from AURA_* environment variables."""
    result: dict[str, Any] = {}

    env_mapping = {
        "AURA_BACKEND_BASE_URL": ("backend", "base_url"),
        "AURA_BACKEND_API_KEY": ("backend", "api_key"),
        "AURA_BACKEND_TIMEOUT": ("backend", "timeout"),
        "AURA_USER_ID": ("user", "user_id"),
        "AURA_TENANT_ID": ("user", "tenant_id"),
        "AURA_SCHEDULER_ENABLED": ("scheduler", "enabled"),
        "AURA_SCHEDULER_STORAGE_PATH": ("scheduler", "storage_path"),
        "AURA_SCHEDULER_POLL_INTERVAL": ("scheduler", "poll_interval"),
        "AURA_SEARCH_MAX_RESULTS": ("search", "max_results"),
        "AURA_NOTIFICATIONS_DISPLAY_SECONDS": ("notifications", "display_seconds"),
        "AURA_NOTIFICATIONS_LOG_PATH": ("notifications", "log_path"),
    }

    for env_var, (section, key) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            if section not in result:
                result[section] = {}
            if (section, key) in _STRING_KEYS:
                result[section][key] = value
            else:
                result[section][key] = _convert_value(value)

    return result


def _convert_value(value: str) -> Any:
    """Convert string value to appropriate type."""
    if value.lower() in ("true", "yes"):
        return True
    if value.lower() in ("false", "no"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value


def _deep_merge(base: dict, override: dict) -> None:
    """Deep merge override into base (mutates base)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def _substitute_env_vars(data: dict) -> None:
    """Recursively substitute ${ENV_VAR} patterns in string values."""
    pattern = re.compile(r"\$\{([^}]+)\}")

    for key, value in data.items():
        if isinstance(value, dict):
            _substitute_env_vars(value)
        elif isinstance(value, str):
            for var_name in pattern.findall(value):
                value = value.replace(f"${{{var_name}}}", os.environ.get(var_name, ""))
            data[key] = value
