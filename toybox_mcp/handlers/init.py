"""
initialize_toybox: create a working copy, optionally on GitHub, and register it.

Three ways to get the site files:
- create_remote: a new GitHub repository generated from the template, cloned locally
- a local template directory (parameter or configured localTemplatePath)
- otherwise a plain clone of the public template with its origin removed
"""

import logging
from pathlib import Path

from toybox_mcp.constants import DEFAULT_BRANCH, DEV_SERVER_URL, NOT_AUTHENTICATED_MESSAGE
from toybox_mcp.exceptions import GitCommandError, ToyboxError
from toybox_mcp.handlers.base import HandlerContext, failure_message, run_sync
from toybox_mcp.models import InitializeToyboxParams, InitResult, ToyboxRepository
from toybox_mcp.services.github_client import GitHubClient
from toybox_mcp.services.template import copy_local_template, personalize_template

logger = logging.getLogger(__name__)

LOCAL_USER = "toybox-user"
INITIAL_COMMIT_MESSAGE = "feat: Initial TOYBOX setup"


def _build_message(repository: ToyboxRepository, remote: bool, debug: bool) -> str:
    if remote:
        lines = [
            "TOYBOX initialized successfully with GitHub integration!",
            "",
            f"Repository: {repository.remote_url}",
            f"Local path: {repository.local_path}",
            f"Published URL: {repository.published_url}",
            "",
            "Your TOYBOX is ready! You can now publish artifacts using the publish_artifact command.",
        ]
    elif debug:
        lines = [
            "TOYBOX initialized successfully in debug mode!",
            "",
            f"Local path: {repository.local_path}",
            f"Development URL: {repository.published_url}",
            "",
            "Run 'npm run dev' in the repository to start the local preview.",
        ]
    else:
        lines = [
            "TOYBOX initialized locally!",
            "",
            f"Local path: {repository.local_path}",
            "",
            "Use the setup_remote command to add GitHub integration later if needed.",
        ]
    return "\n".join(lines)


async def _create_from_github(
    github: GitHubClient,
    ctx: HandlerContext,
    params: InitializeToyboxParams,
    owner: str,
    local_path: Path,
) -> str:
    repo_url = await run_sync(
        github.create_repository,
        params.repo_name,
        params.template_owner,
        params.template_repo,
        params.is_private,
    )
    info = await run_sync(github.get_repository_info, params.repo_name, owner)
    await ctx.git(local_path).clone_repository(info.clone_url, local_path)
    return repo_url


async def _create_local(
    ctx: HandlerContext,
    params: InitializeToyboxParams,
    template_path: str | None,
    username: str,
    local_path: Path,
) -> str:
    git = ctx.git(local_path)
    if template_path:
        await run_sync(
            copy_local_template,
            template_path,
            local_path,
            {"{{REPO_NAME}}": params.repo_name, "{{USERNAME}}": username},
        )
        await git.init_repository()
    else:
        template_url = f"https://github.com/{params.template_owner}/{params.template_repo}.git"
        await git.clone_repository(template_url, local_path)
        try:
            await git.remove_remote("origin")
        except GitCommandError:
            logger.debug("Template clone had no origin remote")
    return local_path.as_uri()


async def initialize_toybox(ctx: HandlerContext, params: InitializeToyboxParams) -> InitResult:
    repo_name = params.repo_name
    local_path = ctx.settings.toybox_dir / repo_name
    logger.info("Initializing TOYBOX %s (create_remote=%s)", repo_name, params.create_remote)

    try:
        stored = await ctx.registry.read()
        debug = params.debug if params.debug is not None else (ctx.settings.debug or stored.debug)
        template_path = (
            params.local_template_path
            or stored.local_template_path
            or ctx.settings.local_template_path
        )

        if local_path.exists() and any(local_path.iterdir()):
            return InitResult(
                success=False,
                error=f"Local path {local_path} already exists. Choose a different repository name.",
            )

        github = None
        username = LOCAL_USER
        if params.create_remote:
            github = ctx.github()
            auth = await run_sync(github.check_auth_status)
            if not auth.authenticated:
                return InitResult(success=False, error=NOT_AUTHENTICATED_MESSAGE)
            username = auth.user or await run_sync(github.get_current_user)

            if await run_sync(github.repository_exists, repo_name):
                return InitResult(
                    success=False,
                    error=f"Repository '{repo_name}' already exists. Choose a different name or use an existing repository.",
                )

        if github is not None:
            remote_url = await _create_from_github(github, ctx, params, username, local_path)
        else:
            remote_url = await _create_local(ctx, params, template_path, username, local_path)

        git = ctx.git(local_path)
        await git.configure_user(username, f"{username}@users.noreply.github.com")
        await run_sync(personalize_template, local_path, username, repo_name)

        if params.config and params.config.changes():
            await run_sync(ctx.artifacts(local_path).update_site_config, params.config)

        await git.add_files(["."])
        if await git.has_uncommitted_changes():
            if await git.get_current_branch() != DEFAULT_BRANCH:
                await git.create_branch(DEFAULT_BRANCH)
            await git.commit(INITIAL_COMMIT_MESSAGE)
            if github is not None:
                await git.push("origin", DEFAULT_BRANCH, set_upstream=True)

        if github is not None:
            published_url = await run_sync(github.enable_pages, repo_name, username)
        else:
            published_url = DEV_SERVER_URL if debug else ""

        await ctx.registry.upsert_repository({
            "name": repo_name,
            "localPath": str(local_path),
            "remoteUrl": remote_url,
            "publishedUrl": published_url or None,
            "isActive": True,
        })
        await ctx.registry.set_active_repository(repo_name)

    except (ToyboxError, OSError) as e:
        logger.error("TOYBOX initialization failed for %s: %s", repo_name, e)
        return InitResult(success=False, error=failure_message("initialize TOYBOX", e))

    repository = ToyboxRepository(
        name=repo_name,
        local_path=str(local_path),
        remote_url=remote_url,
        published_url=published_url,
    )
    logger.info("TOYBOX %s initialized at %s", repo_name, local_path)
    return InitResult(
        success=True,
        repository=repository,
        message=_build_message(repository, remote=github is not None, debug=debug),
    )
