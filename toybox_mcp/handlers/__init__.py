"""
Tool handlers.

Each handler takes a HandlerContext plus its parameters and returns a
result model. Domain failures come back as ``success=False`` results.
"""

from toybox_mcp.handlers.base import HandlerContext
from toybox_mcp.handlers.config import get_config, update_config
from toybox_mcp.handlers.init import initialize_toybox
from toybox_mcp.handlers.list import list_artifacts
from toybox_mcp.handlers.publish import publish_artifact
from toybox_mcp.handlers.repository import (
    get_active_repository,
    list_repositories,
    remove_repository,
    switch_repository,
)
from toybox_mcp.handlers.setup_remote import setup_remote

__all__ = [
    "HandlerContext",
    "get_active_repository",
    "get_config",
    "initialize_toybox",
    "list_artifacts",
    "list_repositories",
    "publish_artifact",
    "remove_repository",
    "setup_remote",
    "switch_repository",
    "update_config",
]
