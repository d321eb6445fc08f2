"""
MCP server exposing the TOYBOX tools over stdio.
"""

import logging
from typing import Awaitable, Optional

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from toybox_mcp import handlers
from toybox_mcp.config import Settings
from toybox_mcp.constants import SERVER_NAME, SERVER_VERSION, TEMPLATE_OWNER, TEMPLATE_REPO, USER_REPO_NAME
from toybox_mcp.handlers import HandlerContext
from toybox_mcp.locking import LockOptions
from toybox_mcp.logging_config import configure_logging
from toybox_mcp.models import (
    ArtifactMetadata,
    InitializeToyboxParams,
    PublishArtifactParams,
    SetupRemoteParams,
    SiteConfigUpdate,
    ToolResult,
)
from toybox_mcp.registry import RepositoryRegistry
from toybox_mcp.storage import ConfigStore

logger = logging.getLogger(__name__)

INSTRUCTIONS = (
    "TOYBOX publishes Claude artifacts to a personal GitHub Pages gallery. "
    "Run initialize_toybox once, then publish_artifact for each artifact."
)


def build_context(settings: Settings) -> HandlerContext:
    """One store and registry per process, shared by every tool call."""
    store = ConfigStore(
        settings.config_path,
        default_options=settings.default_options(),
        lock_options=LockOptions(retries=settings.lock_retries, stale=settings.lock_stale_seconds),
    )
    return HandlerContext(registry=RepositoryRegistry(store), settings=settings)


async def _respond(tool: str, call: Awaitable[ToolResult]) -> str:
    try:
        result = await call
    except Exception as e:
        logger.exception("Error executing %s", tool)
        raise ToolError(f"Error executing {tool}: {e}") from e
    logger.info("%s completed (success=%s)", tool, result.success)
    return result.to_json()


def create_server(settings: Optional[Settings] = None, context: Optional[HandlerContext] = None) -> FastMCP:
    """Create the MCP server with every TOYBOX tool registered."""
    settings = settings or Settings()
    ctx = context or build_context(settings)
    mcp = FastMCP(SERVER_NAME, instructions=INSTRUCTIONS)

    @mcp.tool()
    async def initialize_toybox(
        repo_name: str = USER_REPO_NAME,
        template_owner: str = TEMPLATE_OWNER,
        template_repo: str = TEMPLATE_REPO,
        config: Optional[SiteConfigUpdate] = None,
        debug: Optional[bool] = None,
        local_template_path: Optional[str] = None,
        create_remote: bool = True,
        is_private: bool = False,
    ) -> str:
        """Initialize a complete TOYBOX with local repository, GitHub remote, and Pages setup."""
        params = InitializeToyboxParams(
            repo_name=repo_name,
            template_owner=template_owner,
            template_repo=template_repo,
            config=config,
            debug=debug,
            local_template_path=local_template_path,
            create_remote=create_remote,
            is_private=is_private,
        )
        return await _respond("initialize_toybox", handlers.initialize_toybox(ctx, params))

    @mcp.tool()
    async def publish_artifact(code: str, metadata: ArtifactMetadata) -> str:
        """
        Publish an artifact to the active TOYBOX.

        code is the React component source (no React import; the new JSX
        transform is used). The artifact id is the metadata slug plus a short
        random suffix.
        """
        params = PublishArtifactParams(code=code, metadata=metadata)
        return await _respond("publish_artifact", handlers.publish_artifact(ctx, params))

    @mcp.tool()
    async def list_artifacts() -> str:
        """List all published artifacts in the active TOYBOX."""
        return await _respond("list_artifacts", handlers.list_artifacts(ctx))

    @mcp.tool()
    async def get_config() -> str:
        """Show the active TOYBOX site configuration (title, theme, layout, etc.)."""
        return await _respond("get_config", handlers.get_config(ctx))

    @mcp.tool()
    async def update_config(config: SiteConfigUpdate) -> str:
        """Update the active TOYBOX site configuration (title, theme, layout, etc.)."""
        return await _respond("update_config", handlers.update_config(ctx, config))

    @mcp.tool()
    async def setup_remote(repo_name: str, is_private: bool = False, enable_pages: bool = True) -> str:
        """Set up a GitHub remote repository for an existing local TOYBOX (one-time setup)."""
        params = SetupRemoteParams(repo_name=repo_name, is_private=is_private, enable_pages=enable_pages)
        return await _respond("setup_remote", handlers.setup_remote(ctx, params))

    @mcp.tool()
    async def list_repositories() -> str:
        """List every registered TOYBOX repository."""
        return await _respond("list_repositories", handlers.list_repositories(ctx))

    @mcp.tool()
    async def switch_repository(repo_name: str) -> str:
        """Make another registered TOYBOX repository the active one."""
        return await _respond("switch_repository", handlers.switch_repository(ctx, repo_name))

    @mcp.tool()
    async def remove_repository(repo_name: str) -> str:
        """Remove a repository from the registry. Files on disk are kept."""
        return await _respond("remove_repository", handlers.remove_repository(ctx, repo_name))

    @mcp.tool()
    async def get_active_repository() -> str:
        """Show the active TOYBOX repository."""
        return await _respond("get_active_repository", handlers.get_active_repository(ctx))

    logger.info("%s %s initialized (config: %s)", SERVER_NAME, SERVER_VERSION, settings.config_path)
    return mcp


def main():
    """Console entry point: serve over stdio."""
    settings = Settings()
    log_path = configure_logging(settings)
    if log_path:
        logger.info("Session log: %s", log_path)

    mcp = create_server(settings)
    logger.info("Starting %s on stdio", SERVER_NAME)
    mcp.run()


if __name__ == "__main__":
    main()
