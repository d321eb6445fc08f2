"""
Tools for managing the registry of TOYBOX repositories.
"""

import logging

from toybox_mcp.constants import NO_ACTIVE_REPOSITORY_MESSAGE
from toybox_mcp.exceptions import RepositoryNotFoundError, ToyboxError
from toybox_mcp.handlers.base import HandlerContext, failure_message
from toybox_mcp.models import ListRepositoriesResult, RepositoryResult, RepositorySummary, ToolResult
from toybox_mcp.schemas import RepositoryRecord

logger = logging.getLogger(__name__)


def _summary(record: RepositoryRecord) -> RepositorySummary:
    return RepositorySummary(
        name=record.name,
        local_path=record.local_path,
        remote_url=record.remote_url,
        published_url=record.published_url,
        is_active=record.is_active,
        last_used_at=record.last_used_at,
    )


async def list_repositories(ctx: HandlerContext) -> ListRepositoriesResult:
    try:
        repositories = await ctx.registry.get_repositories()
    except ToyboxError as e:
        logger.error("Failed to list repositories: %s", e)
        return ListRepositoriesResult(success=False, error=failure_message("list repositories", e))

    return ListRepositoriesResult(
        success=True,
        repositories=[_summary(r) for r in repositories],
    )


async def switch_repository(ctx: HandlerContext, repo_name: str) -> ToolResult:
    """Make repo_name active, provided its working copy is still on disk."""
    try:
        repo = await ctx.registry.get_repository(repo_name)
        if repo is None:
            return ToolResult(success=False, error=str(RepositoryNotFoundError(repo_name)))

        if not await ctx.git(repo.local_path).repository_exists():
            return ToolResult(
                success=False,
                error=f"Repository path '{repo.local_path}' no longer exists",
            )

        await ctx.registry.set_active_repository(repo_name)
    except RepositoryNotFoundError as e:
        # Removed by another process between the lookup and the switch
        return ToolResult(success=False, error=str(e))
    except ToyboxError as e:
        logger.error("Failed to switch repository to %s: %s", repo_name, e)
        return ToolResult(success=False, error=failure_message("switch repository", e))

    return ToolResult(
        success=True,
        message=f"Switched to repository '{repo_name}' at {repo.local_path}",
    )


async def remove_repository(ctx: HandlerContext, repo_name: str) -> ToolResult:
    """Forget a repository. Its files are left on disk."""
    try:
        repo = await ctx.registry.get_repository(repo_name)
        if repo is None:
            return ToolResult(success=False, error=str(RepositoryNotFoundError(repo_name)))
        await ctx.registry.remove_repository(repo_name)
    except ToyboxError as e:
        logger.error("Failed to remove repository %s: %s", repo_name, e)
        return ToolResult(success=False, error=failure_message("remove repository", e))

    return ToolResult(
        success=True,
        message=(
            f"Removed repository '{repo_name}' from configuration. "
            f"Note: The repository files at '{repo.local_path}' were not deleted."
        ),
    )


async def get_active_repository(ctx: HandlerContext) -> RepositoryResult:
    try:
        active = await ctx.registry.get_active_repository()
    except ToyboxError as e:
        logger.error("Failed to get active repository: %s", e)
        return RepositoryResult(success=False, error=failure_message("get active repository", e))

    if active is None:
        return RepositoryResult(success=False, error=NO_ACTIVE_REPOSITORY_MESSAGE)
    return RepositoryResult(success=True, repository=_summary(active))
