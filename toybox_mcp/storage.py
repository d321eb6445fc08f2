"""
Durable storage for the registry document.

The document lives in a single JSON file (~/.toybox.json by default):

- read() never fails on a missing or corrupt file; it synthesizes a default
  document, persists it under the lock and returns it.
- write() validates and then persists via write-to-temp + atomic rename,
  so a reader never observes a half-written file.
- update() is the only sanctioned way to mutate the document: it holds the
  cross-process lock across read, mutation and write.

File I/O runs in worker threads so the event loop is never blocked.
"""

import asyncio
import inspect
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Awaitable, Callable, Union

from toybox_mcp.config import DefaultOptions
from toybox_mcp.exceptions import ConfigIOError, ConfigValidationError
from toybox_mcp.locking import ConfigLock, LockOptions
from toybox_mcp.schemas import (
    Configuration,
    create_default,
    migrate,
    resync_active_flags,
    utc_now_iso,
    validate,
)

logger = logging.getLogger(__name__)

Updater = Callable[[Configuration], Union[Configuration, Awaitable[Configuration]]]


class ConfigStore:
    """Owns one configuration file path. Construct one per path and pass it around."""

    def __init__(
        self,
        config_path: Path,
        default_options: DefaultOptions | None = None,
        lock_options: LockOptions | None = None,
    ):
        self._config_path = Path(config_path)
        self._default_options = default_options or DefaultOptions()
        self._lock_options = lock_options or LockOptions()

    @property
    def config_path(self) -> Path:
        return self._config_path

    # ==========================================
    # Disk helpers (run in worker threads)
    # ==========================================

    def _temp_path(self) -> Path:
        return self._config_path.with_name(f"{self._config_path.name}.{uuid.uuid4().hex[:8]}.tmp")

    def _write_file(self, data: dict) -> None:
        temp_path = self._temp_path()
        try:
            self._config_path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, self._config_path)
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            logger.error("Failed to write configuration %s: %s", self._config_path, e)
            raise ConfigIOError(f"Failed to write configuration: {e}") from e

    def _read_file(self) -> bytes | None:
        try:
            return self._config_path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ConfigIOError(f"Failed to read configuration: {e}") from e

    # ==========================================
    # Public API
    # ==========================================

    async def exists(self) -> bool:
        """Whether the file exists. Never creates it."""
        return await asyncio.to_thread(self._config_path.exists)

    async def _load(self) -> tuple[Configuration | None, Exception | None]:
        """
        Parse the file as it currently is on disk, without repairing it.

        Returns (document, None) for a valid file, (None, None) for a missing
        one and (None, error) for one that is unparsable or invalid.
        """
        raw = await asyncio.to_thread(self._read_file)
        if raw is None:
            return None, None

        try:
            config = validate(json.loads(raw.decode("utf-8")))
        except (UnicodeDecodeError, json.JSONDecodeError, ConfigValidationError) as e:
            return None, e

        return resync_active_flags(migrate(config)), None

    def _log_fault(self, error: Exception | None) -> None:
        if error is None:
            logger.info("No configuration at %s, creating default", self._config_path)
        elif isinstance(error, ConfigValidationError):
            logger.warning("Invalid configuration format in %s (fields: %s), resetting to defaults",
                           self._config_path, ", ".join(error.fields))
        else:
            logger.warning("Configuration %s is not valid JSON (%s), resetting to defaults",
                           self._config_path, error)

    async def read(self) -> Configuration:
        """
        Read, validate and migrate the document.

        A missing or corrupt file is replaced by a persisted default document.
        The replacement is written under the lock, and only if the file is
        still missing or corrupt once the lock is held; otherwise the document
        committed in the meantime is returned.
        This is a best-effort snapshot: never base an unguarded write() on it.
        """
        config, _ = await self._load()
        if config is not None:
            return config

        lock = ConfigLock(self._config_path, self._lock_options)
        async with lock.hold():
            config, error = await self._load()
            if config is not None:
                return config

            self._log_fault(error)
            config = create_default(self._default_options)
            await self.write(config)
            return config

    async def write(self, config: Configuration) -> None:
        """
        Persist a configuration.

        Stamps last_updated, re-validates, then writes atomically.

        Raises:
            ConfigValidationError: the object does not match the schema.
            ConfigIOError: the file could not be written.
        """
        config.last_updated = utc_now_iso()
        validated = validate(config)
        await asyncio.to_thread(self._write_file, validated.to_json_dict())
        logger.debug("Wrote configuration to %s", self._config_path)

    async def update(self, fn: Updater) -> Configuration:
        """
        Read-modify-write under the cross-process lock.

        fn receives the current document and returns the document to persist;
        it may be a coroutine function. The lock is released on every exit path.
        A corrupt file is logged and fn starts from a default document; the
        repair is the write of fn's result. fn must not call read().

        Raises:
            LockTimeoutError: the lock could not be acquired.
        """
        lock = ConfigLock(self._config_path, self._lock_options)
        async with lock.hold():
            # The lock is not reentrant, so read() cannot be used here
            current, error = await self._load()
            if current is None:
                if error is not None:
                    self._log_fault(error)
                current = create_default(self._default_options)

            updated = fn(current)
            if inspect.isawaitable(updated):
                updated = await updated

            await self.write(updated)
            return updated
