"""
Logging setup for the server process.

stdout carries the MCP stdio transport, so log records only ever go to
stderr and, in debug mode, to a per-session file.
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path

from toybox_mcp.config import Settings
from toybox_mcp.constants import SERVER_NAME, SERVER_VERSION

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _session_header(settings: Settings, started: datetime) -> str:
    return (
        "=== TOYBOX MCP Server Log Session ===\n"
        f"Started: {started.isoformat()}\n"
        f"Version: {SERVER_NAME} {SERVER_VERSION}\n"
        f"Process ID: {os.getpid()}\n"
        f"Working Directory: {os.getcwd()}\n"
        f"Log Level: {settings.log_level}\n"
        f"Debug Mode: {settings.debug}\n"
        "=====================================\n\n"
    )


def configure_logging(settings: Settings) -> Path | None:
    """
    Install handlers on the toybox_mcp logger.

    Returns the session log file path in debug mode, otherwise None.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    root = logging.getLogger("toybox_mcp")
    root.setLevel(level)
    root.handlers.clear()
    root.propagate = False

    formatter = logging.Formatter(LOG_FORMAT)
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    root.addHandler(stream)

    if not settings.debug_logging:
        return None

    started = datetime.now()
    log_path = settings.log_dir / f"{started:%y%m%d_%H%M%S}.log"
    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        log_path.write_text(_session_header(settings, started), encoding="utf-8")
    except OSError as e:
        root.warning("Could not create log file %s: %s", log_path, e)
        return None

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)
    root.debug("Writing session log to %s", log_path)
    return log_path
