"""
get_config / update_config: the active TOYBOX's TOYBOX_CONFIG.json.
"""

import json
import logging

from toybox_mcp.constants import NO_ACTIVE_REPOSITORY_MESSAGE, SITE_CONFIG_FILE_NAME
from toybox_mcp.exceptions import GitCommandError, ToyboxError
from toybox_mcp.handlers.base import HandlerContext, failure_message, has_remote
from toybox_mcp.models import SiteConfig, SiteConfigResult, SiteConfigUpdate

logger = logging.getLogger(__name__)


def _describe(config: SiteConfig) -> list[str]:
    return [
        f"- Title: {config.title}",
        f"- Description: {config.description}",
        f"- Theme: {config.theme}",
        f"- Layout: {config.layout}",
        f"- Show Footer: {config.show_footer}",
    ]


async def get_config(ctx: HandlerContext) -> SiteConfigResult:
    try:
        active = await ctx.registry.get_active_repository()
        if active is None:
            return SiteConfigResult(success=False, error=NO_ACTIVE_REPOSITORY_MESSAGE)
        config = ctx.artifacts(active.local_path).read_site_config()
    except (ToyboxError, OSError) as e:
        logger.error("Failed to read site configuration: %s", e)
        return SiteConfigResult(success=False, error=failure_message("read configuration", e))

    return SiteConfigResult(
        success=True,
        config=config,
        message="\n".join(["Current TOYBOX configuration:", ""] + _describe(config)),
    )


async def update_config(ctx: HandlerContext, update: SiteConfigUpdate) -> SiteConfigResult:
    """Merge update into the site configuration, then commit and push it."""
    changes = update.changes()
    try:
        active = await ctx.registry.get_active_repository()
        if active is None:
            return SiteConfigResult(success=False, error=NO_ACTIVE_REPOSITORY_MESSAGE)

        git = ctx.git(active.local_path)
        artifacts = ctx.artifacts(active.local_path)
        remote = has_remote(active)

        if remote:
            try:
                await git.pull()
            except GitCommandError as e:
                logger.warning("Could not pull changes, proceeding with local state: %s", e)

        previous = artifacts.read_site_config().model_dump(by_alias=True)
        updated = artifacts.update_site_config(update)

        await git.add_files([SITE_CONFIG_FILE_NAME])
        if await git.has_uncommitted_changes():
            summary = "\n".join(f"- {key}: {json.dumps(value)}" for key, value in changes.items())
            await git.commit(["feat: Update TOYBOX configuration", f"Configuration changes:\n{summary}"])
            if remote:
                await git.push()
    except (ToyboxError, OSError, ValueError) as e:
        logger.error("Failed to update site configuration: %s", e)
        return SiteConfigResult(success=False, error=failure_message("update configuration", e))

    diff = [
        f"- {key}: {json.dumps(previous.get(key))} -> {json.dumps(value)}"
        for key, value in changes.items()
        if previous.get(key) != value
    ]
    lines = ["TOYBOX configuration updated successfully!", "", "Changes:"]
    lines += diff or ["No changes detected"]
    lines += ["", "Current configuration:"] + _describe(updated)
    lines += ["", "Your changes will be visible on the next site deployment."]

    return SiteConfigResult(success=True, config=updated, message="\n".join(lines))
