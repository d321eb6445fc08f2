"""
list_artifacts: everything published in the active TOYBOX.
"""

import logging
from datetime import datetime, timezone

from toybox_mcp.constants import NO_ACTIVE_REPOSITORY_MESSAGE
from toybox_mcp.exceptions import ToyboxError
from toybox_mcp.handlers.base import HandlerContext, failure_message, site_base_url
from toybox_mcp.models import ArtifactListing, ListArtifactsResult

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "General"


def _age_text(updated_at: str, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    try:
        updated = datetime.fromisoformat(updated_at.replace("Z", "+00:00"))
    except ValueError:
        return "at an unknown time"
    if updated.tzinfo is None:
        updated = updated.replace(tzinfo=timezone.utc)

    days = (now - updated).days
    if days <= 0:
        return "today"
    if days == 1:
        return "yesterday"
    return f"{days} days ago"


def group_by_folder(artifacts: list[ArtifactListing]) -> dict[str, list[ArtifactListing]]:
    grouped: dict[str, list[ArtifactListing]] = {}
    for artifact in artifacts:
        grouped.setdefault(artifact.metadata.folder or DEFAULT_FOLDER, []).append(artifact)
    return grouped


def format_artifact_list(artifacts: list[ArtifactListing], base_url: str) -> str:
    if not artifacts:
        return (
            f"Your TOYBOX is empty\n\nGallery: {base_url}\n\n"
            "Publish your first artifact using the publish_artifact command!"
        )

    count = len(artifacts)
    lines = [f"Your TOYBOX contains {count} artifact{'' if count == 1 else 's'}", "", f"Gallery: {base_url}", ""]

    grouped = group_by_folder(artifacts)
    for folder in sorted(grouped):
        if len(grouped) > 1:
            lines.append(f"[{folder}]")
        for artifact in grouped[folder]:
            meta = artifact.metadata
            lines.append(f"  - {meta.title} ({meta.type})")
            lines.append(f"    {artifact.url}")
            if meta.description:
                lines.append(f"    {meta.description}")
            if meta.tags:
                lines.append(f"    Tags: {', '.join(meta.tags)}")
            lines.append(f"    Updated {_age_text(meta.updated_at)}")
            lines.append("")

    return "\n".join(lines).strip()


async def list_artifacts(ctx: HandlerContext) -> ListArtifactsResult:
    try:
        active = await ctx.registry.get_active_repository()
        if active is None:
            return ListArtifactsResult(success=False, error=NO_ACTIVE_REPOSITORY_MESSAGE)

        await ctx.registry.touch_repository(active.name)
        service = ctx.artifacts(active.local_path)
        found = service.list_artifacts()
    except (ToyboxError, OSError) as e:
        logger.error("Failed to list artifacts: %s", e)
        return ListArtifactsResult(success=False, error=failure_message("list artifacts", e))

    base_url = site_base_url(active)
    listings = [
        ArtifactListing(
            id=artifact.id,
            metadata=artifact.metadata,
            url=service.generate_artifact_url(artifact.id, base_url),
            standalone_url=f"{base_url.rstrip('/')}/standalone/{artifact.id}",
        )
        for artifact in found
    ]
    logger.info("Listed %d artifacts in %s", len(listings), active.name)

    return ListArtifactsResult(
        success=True,
        artifacts=listings,
        gallery_url=base_url,
        total_count=len(listings),
        message=format_artifact_list(listings, base_url),
    )
