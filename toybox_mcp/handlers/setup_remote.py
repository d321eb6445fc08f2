"""
setup_remote: connect a local-only TOYBOX to a new GitHub repository.
"""

import logging

from toybox_mcp.constants import DEFAULT_BRANCH, NO_ACTIVE_REPOSITORY_MESSAGE, NOT_AUTHENTICATED_MESSAGE
from toybox_mcp.exceptions import GitHubError, ToyboxError
from toybox_mcp.handlers.base import HandlerContext, failure_message, run_sync
from toybox_mcp.models import SetupRemoteParams, SetupRemoteResult

logger = logging.getLogger(__name__)


async def setup_remote(ctx: HandlerContext, params: SetupRemoteParams) -> SetupRemoteResult:
    repo_name = params.repo_name
    try:
        github = ctx.github()
        auth = await run_sync(github.check_auth_status)
        if not auth.authenticated:
            return SetupRemoteResult(success=False, error=NOT_AUTHENTICATED_MESSAGE)
        owner = auth.user or await run_sync(github.get_current_user)

        if await run_sync(github.repository_exists, repo_name):
            return SetupRemoteResult(
                success=False,
                error=f"Repository '{repo_name}' already exists. Choose a different name or use the existing repository.",
            )

        active = await ctx.registry.get_active_repository()
        if active is None:
            return SetupRemoteResult(success=False, error=NO_ACTIVE_REPOSITORY_MESSAGE)

        git = ctx.git(active.local_path)
        if not await git.repository_exists():
            return SetupRemoteResult(
                success=False,
                error=f"Local repository not found at {active.local_path}. Please ensure you have an initialized TOYBOX.",
            )

        logger.info("Creating GitHub repository %s for %s", repo_name, active.name)
        repo_url = await run_sync(github.create_empty_repository, repo_name, params.is_private)
        clone_url = await run_sync(github.get_clone_url, repo_name, True)

        await git.add_remote("origin", clone_url)
        await git.push("origin", DEFAULT_BRANCH, set_upstream=True)

        pages_url = ""
        if params.enable_pages:
            pages_url = await run_sync(github.enable_pages, repo_name, owner)
            try:
                await run_sync(github.trigger_workflow, repo_name, owner=owner)
            except GitHubError as e:
                logger.warning("Could not trigger deploy workflow, Pages should deploy on push: %s", e)

        fields = {"remoteUrl": repo_url}
        if pages_url:
            fields["publishedUrl"] = pages_url
        await ctx.registry.update_repository(active.name, fields)
    except (ToyboxError, OSError) as e:
        logger.error("Failed to set up remote %s: %s", repo_name, e)
        return SetupRemoteResult(success=False, error=failure_message("setup GitHub remote", e))

    lines = [
        "GitHub remote repository set up successfully!",
        "",
        f"Repository: {repo_url}",
        f"Local path: {active.local_path}",
        f"Clone URL: {clone_url}",
    ]
    if pages_url:
        lines.append(f"Published URL: {pages_url}")
    lines += ["", "Your local TOYBOX is now connected to GitHub! You can continue publishing artifacts."]

    return SetupRemoteResult(
        success=True,
        repository_url=repo_url,
        clone_url=clone_url,
        pages_url=pages_url or None,
        message="\n".join(lines),
    )
