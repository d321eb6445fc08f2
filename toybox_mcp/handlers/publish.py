"""
publish_artifact: write an artifact into the active TOYBOX and push it.
"""

import logging

from toybox_mcp.constants import NO_ACTIVE_REPOSITORY_MESSAGE
from toybox_mcp.exceptions import GitCommandError, ToyboxError
from toybox_mcp.handlers.base import HandlerContext, failure_message, has_remote, site_base_url
from toybox_mcp.models import ArtifactMetadata, PublishArtifactParams, PublishResult

logger = logging.getLogger(__name__)


def _commit_message(metadata: ArtifactMetadata) -> list[str]:
    details = [
        f"- Type: {metadata.type}",
        f"- Tags: {', '.join(metadata.tags) or 'none'}",
    ]
    if metadata.description:
        details.append(f"- Description: {metadata.description}")
    details += [
        f"- Created: {metadata.created_at}",
        f"- Updated: {metadata.updated_at}",
    ]
    return [f'feat: Add/update artifact "{metadata.title}"', "\n".join(details)]


async def publish_artifact(ctx: HandlerContext, params: PublishArtifactParams) -> PublishResult:
    metadata = params.metadata
    logger.info("Publishing artifact %r (%s)", metadata.title, metadata.type)

    try:
        active = await ctx.registry.get_active_repository()
        if active is None:
            logger.error("No active TOYBOX repository")
            return PublishResult(success=False, error=NO_ACTIVE_REPOSITORY_MESSAGE)

        await ctx.registry.touch_repository(active.name)
        git = ctx.git(active.local_path)
        artifacts = ctx.artifacts(active.local_path)

        validation = artifacts.validate_artifact_code(params.code)
        if not validation.valid:
            logger.error("Code validation failed: %s", validation.issues)
            return PublishResult(
                success=False,
                error=f"Code validation failed: {', '.join(validation.issues)}",
            )

        artifact_id = artifacts.generate_artifact_id(metadata.slug)
        content = artifacts.generate_artifact_file(params.code, metadata)
        logger.info("Generated artifact id %s", artifact_id)

        remote = has_remote(active)
        if remote:
            try:
                await git.pull()
            except GitCommandError as e:
                logger.warning("Could not pull changes, proceeding with local state: %s", e)

        try:
            file_path = artifacts.save_artifact(artifact_id, content)
        except FileExistsError:
            logger.info("Artifact %s exists, updating", artifact_id)
            file_path = artifacts.update_artifact(artifact_id, content)

        await git.add_files([str(file_path.relative_to(active.local_path))])
        if not await git.has_uncommitted_changes():
            logger.warning("No changes detected for artifact %s", artifact_id)
            return PublishResult(
                success=False,
                artifact_id=artifact_id,
                error="No changes detected. Artifact may already be up to date.",
            )

        commit_hash = await git.commit(_commit_message(metadata))
        logger.info("Committed artifact %s as %s", artifact_id, commit_hash)
        if remote:
            await git.push()

    except (ToyboxError, OSError) as e:
        logger.error("Failed to publish artifact %r: %s", metadata.title, e)
        return PublishResult(success=False, error=failure_message("publish artifact", e))

    base_url = site_base_url(active)
    artifact_url = artifacts.generate_artifact_url(artifact_id, base_url)
    lines = [
        "Artifact published successfully!",
        "",
        f"Title: {metadata.title}",
        f"ID: {artifact_id}",
        f"URL: {artifact_url}",
        f"Gallery: {base_url}",
        "",
    ]
    if remote:
        lines.append("Your artifact is now live! It may take a few minutes for GitHub Pages to update.")
    else:
        lines.append("Committed locally. Use setup_remote to publish this TOYBOX to GitHub.")

    return PublishResult(
        success=True,
        artifact_id=artifact_id,
        artifact_url=artifact_url,
        message="\n".join(lines),
    )
