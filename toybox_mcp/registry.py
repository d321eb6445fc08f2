"""
Repository registry operations on top of ConfigStore.

This is the surface the tool handlers use to answer "which working copy do
I operate on". Every mutation runs inside a single ConfigStore.update() call
so the per-record isActive flags and the activeRepository pointer always
change together.
"""

import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from toybox_mcp.exceptions import ConfigValidationError, RepositoryNotFoundError
from toybox_mcp.schemas import Configuration, RepositoryRecord, later_timestamp, utc_now_iso
from toybox_mcp.storage import ConfigStore, Updater

logger = logging.getLogger(__name__)

# Never changed by a merge: the key, the derived flag and the creation time
_PROTECTED_FIELDS = frozenset({"name", "is_active", "created_at"})


def normalize_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Map camelCase or snake_case keys to RepositoryRecord attribute names, dropping unknown keys."""
    by_key = {}
    for attr, info in RepositoryRecord.model_fields.items():
        by_key[attr] = attr
        if info.alias:
            by_key[info.alias] = attr
    return {by_key[key]: value for key, value in fields.items() if key in by_key}


def _activate(config: Configuration, name: str) -> None:
    for repo in config.repositories:
        repo.is_active = repo.name == name
    config.active_repository = name


class RepositoryRegistry:
    """Registry of TOYBOX repositories stored in the configuration document."""

    def __init__(self, store: ConfigStore):
        self._store = store

    @property
    def store(self) -> ConfigStore:
        return self._store

    # ==========================================
    # Store pass-through
    # ==========================================

    async def read(self) -> Configuration:
        return await self._store.read()

    async def update(self, fn: Updater) -> Configuration:
        return await self._store.update(fn)

    async def exists(self) -> bool:
        return await self._store.exists()

    # ==========================================
    # Queries
    # ==========================================

    async def get_repositories(self) -> list[RepositoryRecord]:
        """All repositories in insertion order."""
        config = await self._store.read()
        return config.repositories

    async def get_repository(self, name: str) -> RepositoryRecord | None:
        config = await self._store.read()
        return config.find_repository(name)

    async def get_active_repository(self) -> RepositoryRecord | None:
        """
        The active repository, or None when none is selected.

        None is a normal state, including when the pointer names a
        repository that no longer exists.
        """
        config = await self._store.read()
        if config.active_repository is None:
            return next((r for r in config.repositories if r.is_active), None)
        return config.find_repository(config.active_repository)

    # ==========================================
    # Mutations
    # ==========================================

    async def set_active_repository(self, name: str) -> None:
        """
        Make a repository the active one.

        Raises:
            RepositoryNotFoundError: no repository with that name.
        """
        def apply(config: Configuration) -> Configuration:
            if config.find_repository(name) is None:
                raise RepositoryNotFoundError(name)
            _activate(config, name)
            return config

        await self._store.update(apply)
        logger.info("Active repository set to %s", name)

    async def upsert_repository(self, record: RepositoryRecord | dict[str, Any]) -> None:
        """
        Add a repository, or merge new fields over an existing one with the same name.

        Missing timestamps default to now. The first repository added to an
        empty registry becomes active.

        Raises:
            ConfigValidationError: a new record is missing required fields.
        """
        if isinstance(record, RepositoryRecord):
            fields = record.model_dump(include=record.model_fields_set)
        else:
            fields = normalize_fields(record)
        name = fields.get("name")
        if not isinstance(name, str) or not name:
            raise ConfigValidationError(["name"])

        def apply(config: Configuration) -> Configuration:
            now = utc_now_iso()
            was_empty = not config.repositories
            existing = config.find_repository(name)

            if existing is not None:
                for key, value in fields.items():
                    if key in _PROTECTED_FIELDS or key == "last_used_at":
                        continue
                    setattr(existing, key, value)
                existing.last_used_at = later_timestamp(existing.last_used_at, now)
            else:
                data = {k: v for k, v in fields.items() if k != "is_active"}
                data.setdefault("created_at", now)
                data["last_used_at"] = later_timestamp(data.get("last_used_at"), now)
                try:
                    config.repositories.append(RepositoryRecord.model_validate(data))
                except PydanticValidationError as e:
                    fields_in_error = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
                    raise ConfigValidationError(fields_in_error) from e

            if was_empty:
                _activate(config, name)
            return config

        await self._store.update(apply)
        logger.info("Upserted repository %s", name)

    async def remove_repository(self, name: str) -> None:
        """
        Drop a repository from the registry.

        Files on disk are not touched. If the removed repository was active,
        the first remaining one becomes active.
        """
        def apply(config: Configuration) -> Configuration:
            config.repositories = [r for r in config.repositories if r.name != name]

            if config.active_repository == name:
                config.active_repository = None
                if config.repositories:
                    _activate(config, config.repositories[0].name)
            return config

        await self._store.update(apply)
        logger.info("Removed repository %s from configuration", name)

    async def touch_repository(self, name: str) -> None:
        """Refresh last_used_at. No-op for an unknown name."""
        def apply(config: Configuration) -> Configuration:
            repo = config.find_repository(name)
            if repo is not None:
                repo.last_used_at = later_timestamp(repo.last_used_at, utc_now_iso())
            return config

        await self._store.update(apply)

    async def update_repository(self, name: str, fields: dict[str, Any]) -> None:
        """
        Merge fields onto an existing repository and refresh last_used_at.

        No-op if the repository is absent. Mistyped values are rejected by
        the store's validation before anything is written.
        """
        updates = normalize_fields(fields)

        def apply(config: Configuration) -> Configuration:
            repo = config.find_repository(name)
            if repo is None:
                return config
            for key, value in updates.items():
                if key in _PROTECTED_FIELDS or key == "last_used_at":
                    continue
                setattr(repo, key, value)
            repo.last_used_at = later_timestamp(repo.last_used_at, utc_now_iso())
            return config

        await self._store.update(apply)
