"""
Process settings.

Settings can be configured via:
1. Environment variables (highest priority)
2. Project .env file
3. Default values

Settings are read once when a Settings object is constructed. The values
that seed a brand new ~/.toybox.json are handed to the schema layer as a
DefaultOptions struct rather than looked up from the environment there.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from toybox_mcp.constants import (
    CONFIG_FILE_NAME,
    TEMPLATE_OWNER,
    TEMPLATE_REPO,
    TOYBOX_DIR_NAME,
)

LOG_LEVELS = ("debug", "info", "warning", "error")


@dataclass(frozen=True)
class DefaultOptions:
    """Process-wide inputs used when a default configuration is synthesized."""
    debug: bool = False
    local_template_path: str | None = None


def _get_env_file_path() -> Path:
    """Get the project .env file path."""
    return Path(__file__).parent.parent / ".env"


def _load_env_file() -> dict[str, str]:
    """Load settings from .env file."""
    env_path = _get_env_file_path()
    env_vars = {}

    if env_path.exists():
        with open(env_path) as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith("#") and "=" in line:
                    key, value = line.split("=", 1)
                    env_vars[key.strip()] = value.strip()

    return env_vars


class Settings:
    """
    Process settings with layered configuration.

    Priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values
    """

    def __init__(self):
        self._env = dict(os.environ)
        self._env_file = _load_env_file()

    def _get(self, key: str, default=None):
        """Get a config value from the layered config sources."""
        if key in self._env:
            return self._env[key]

        if key in self._env_file:
            return self._env_file[key]

        return default

    def _get_bool(self, key: str, default: bool = False) -> bool:
        """Get a boolean config value."""
        value = self._get(key, default)
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            return value.lower() in ("true", "1", "yes")
        return bool(value)

    def _get_int(self, key: str, default: int = 0) -> int:
        """Get an integer config value."""
        value = self._get(key, default)
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def _get_float(self, key: str, default: float = 0.0) -> float:
        value = self._get(key, default)
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    # ==========================================
    # Paths
    # ==========================================

    @property
    def config_path(self) -> Path:
        """The registry document (~/.toybox.json unless overridden)."""
        override = self._get("TOYBOX_CONFIG_PATH")
        if override:
            return Path(override).expanduser()
        return Path.home() / CONFIG_FILE_NAME

    @property
    def toybox_dir(self) -> Path:
        """Directory holding the local working copies."""
        override = self._get("TOYBOX_DIR")
        if override:
            return Path(override).expanduser()
        return Path.home() / TOYBOX_DIR_NAME

    @property
    def log_dir(self) -> Path:
        override = self._get("TOYBOX_LOG_DIR")
        if override:
            return Path(override).expanduser()
        return self.toybox_dir / "logs"

    @property
    def local_template_path(self) -> str | None:
        return self._get("TOYBOX_LOCAL_TEMPLATE_PATH") or None

    # ==========================================
    # Debug / Logging
    # ==========================================

    @property
    def debug(self) -> bool:
        return self._get_bool("TOYBOX_DEBUG", False)

    @property
    def log_level(self) -> str:
        level = str(self._get("TOYBOX_LOG_LEVEL", "") or "").lower()
        if level == "warn":
            level = "warning"
        if level in LOG_LEVELS:
            return level
        return "debug" if self.debug else "info"

    @property
    def debug_logging(self) -> bool:
        """File logging is only enabled in debug mode."""
        return self.debug or self.log_level == "debug"

    # ==========================================
    # GitHub Settings
    # ==========================================

    @property
    def github_token(self) -> str:
        return self._get("GITHUB_TOKEN") or self._get("GH_TOKEN") or ""

    @property
    def template_owner(self) -> str:
        return self._get("TOYBOX_TEMPLATE_OWNER") or TEMPLATE_OWNER

    @property
    def template_repo(self) -> str:
        return self._get("TOYBOX_TEMPLATE_REPO") or TEMPLATE_REPO

    # ==========================================
    # Config Store Settings
    # ==========================================

    @property
    def lock_retries(self) -> int:
        return max(0, self._get_int("TOYBOX_LOCK_RETRIES", 5))

    @property
    def lock_stale_seconds(self) -> float:
        return self._get_float("TOYBOX_LOCK_STALE_SECONDS", 5.0)

    # ==========================================
    # Helper Methods
    # ==========================================

    def default_options(self) -> DefaultOptions:
        """Inputs for seeding a freshly synthesized configuration."""
        return DefaultOptions(
            debug=self.debug,
            local_template_path=self.local_template_path,
        )
