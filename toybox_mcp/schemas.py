"""
Pydantic schemas for the persisted registry document (~/.toybox.json).

The on-disk format is camelCase JSON; attributes are snake_case and the
aliases carry the file names. Optional fields that are unset are left out
of the file entirely. Scalar fields are strict: a mistyped value is a
validation failure, never a coercion.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, model_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from toybox_mcp.config import DefaultOptions
from toybox_mcp.constants import CONFIG_VERSION, DEFAULT_COMMIT_MESSAGE, USER_REPO_NAME
from toybox_mcp.exceptions import ConfigValidationError

logger = logging.getLogger(__name__)


def utc_now_iso() -> str:
    """Current UTC time as ISO-8601 with millisecond precision, e.g. 2025-01-01T12:00:00.000Z."""
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def later_timestamp(current: str | None, candidate: str) -> str:
    """Return whichever timestamp is later; timestamps only ever move forward."""
    if current is None:
        return candidate
    try:
        current_dt = datetime.fromisoformat(current.replace("Z", "+00:00"))
        candidate_dt = datetime.fromisoformat(candidate.replace("Z", "+00:00"))
    except ValueError:
        return candidate
    return candidate if candidate_dt >= current_dt else current


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==========================================
# Repository Record
# ==========================================

class RepositoryRecord(_CamelModel):
    """One managed local working copy and its remote."""
    name: StrictStr
    local_path: StrictStr
    remote_url: Optional[StrictStr] = None
    published_url: Optional[StrictStr] = None
    created_at: StrictStr  # ISO timestamp
    last_used_at: StrictStr  # ISO timestamp
    is_active: StrictBool = False  # Mirror of Configuration.active_repository
    metadata: Optional[dict[str, Any]] = None  # Reserved, never interpreted


# ==========================================
# Configuration Document
# ==========================================

class Preferences(_CamelModel):
    """User defaults."""
    default_repo_name: StrictStr = USER_REPO_NAME
    auto_commit: StrictBool = True
    commit_message: StrictStr = DEFAULT_COMMIT_MESSAGE


class Configuration(_CamelModel):
    """The whole persisted document."""
    version: StrictStr = CONFIG_VERSION
    repositories: list[RepositoryRecord] = Field(default_factory=list)
    active_repository: Optional[StrictStr] = None  # Repository name
    debug: StrictBool = False
    local_template_path: Optional[StrictStr] = None
    last_updated: StrictStr  # ISO timestamp, rewritten on every write
    preferences: Preferences = Field(default_factory=Preferences)

    @model_validator(mode="after")
    def _unique_names(self) -> "Configuration":
        seen = set()
        for repo in self.repositories:
            if repo.name in seen:
                raise ValueError(f"duplicate repository name '{repo.name}'")
            seen.add(repo.name)
        return self

    def find_repository(self, name: str) -> RepositoryRecord | None:
        for repo in self.repositories:
            if repo.name == name:
                return repo
        return None

    def to_json_dict(self) -> dict:
        """Serialize to the on-disk shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ==========================================
# Validation / Defaults
# ==========================================

def _error_fields(error: PydanticValidationError, raw: Any) -> list[str]:
    fields = []
    for err in error.errors():
        loc = ".".join(str(part) for part in err["loc"])
        if not loc:
            # Only the duplicate-name check fails at model level on a dict
            loc = "repositories" if isinstance(raw, dict) else "document"
        if loc not in fields:
            fields.append(loc)
    return fields


def validate(raw: Any) -> Configuration:
    """
    Validate a parsed JSON value against the Configuration shape.

    Declared defaults are applied to absent optional fields.

    Raises:
        ConfigValidationError: carrying the list of violated fields.
    """
    if isinstance(raw, Configuration):
        raw = raw.model_dump(by_alias=True, warnings=False)
    try:
        return Configuration.model_validate(raw)
    except PydanticValidationError as e:
        raise ConfigValidationError(_error_fields(e, raw)) from e


def create_default(options: DefaultOptions | None = None) -> Configuration:
    """A valid empty configuration, seeded from the process options."""
    options = options or DefaultOptions()
    return Configuration(
        version=CONFIG_VERSION,
        repositories=[],
        debug=options.debug,
        local_template_path=options.local_template_path,
        last_updated=utc_now_iso(),
        preferences=Preferences(),
    )


# ==========================================
# Migrations
# ==========================================

# (target version, transform) in ascending order. A document older than the
# target is passed through the transform. Transforms must keep repositories.
MIGRATIONS: list[tuple[str, Callable[[Configuration], Configuration]]] = []


def _version_key(version: str) -> tuple[int, ...]:
    parts = []
    for part in version.split("-", 1)[0].split("."):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(0)
    return tuple(parts)


def migrate(config: Configuration) -> Configuration:
    """Bring a validated configuration forward to CONFIG_VERSION."""
    if config.version == CONFIG_VERSION:
        return config

    logger.info("Migrating configuration from version %s to %s", config.version, CONFIG_VERSION)
    current = _version_key(config.version)
    for target, transform in MIGRATIONS:
        if current < _version_key(target):
            config = transform(config)
    config.version = CONFIG_VERSION
    return config


def resync_active_flags(config: Configuration) -> Configuration:
    """
    Make the per-record isActive flags agree with active_repository.

    The pointer is authoritative. A document with no pointer but a flagged
    record adopts the first flagged record as the pointer.
    """
    if config.active_repository is None:
        flagged = next((r for r in config.repositories if r.is_active), None)
        if flagged is not None:
            config.active_repository = flagged.name

    for repo in config.repositories:
        repo.is_active = repo.name == config.active_repository
    return config
