"""
Shared plumbing for the tool handlers.

A HandlerContext bundles the registry with factories for the per-call
services, so tests can swap any collaborator without patching imports.
"""

import asyncio
import functools
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, TypeVar

from toybox_mcp.config import Settings
from toybox_mcp.constants import PLACEHOLDER_SITE_URL
from toybox_mcp.registry import RepositoryRegistry
from toybox_mcp.schemas import RepositoryRecord
from toybox_mcp.services.artifacts import ArtifactService
from toybox_mcp.services.git import GitService
from toybox_mcp.services.github_client import GitHubClient

T = TypeVar("T")


@dataclass
class HandlerContext:
    registry: RepositoryRegistry
    settings: Settings = field(default_factory=Settings)
    git_factory: Callable[[Path], GitService] = GitService
    artifact_factory: Callable[[Path], ArtifactService] = ArtifactService
    github_factory: Optional[Callable[[], GitHubClient]] = None

    def git(self, path: Path | str) -> GitService:
        return self.git_factory(Path(path))

    def artifacts(self, path: Path | str) -> ArtifactService:
        return self.artifact_factory(Path(path))

    def github(self) -> GitHubClient:
        if self.github_factory is not None:
            return self.github_factory()
        return GitHubClient(self.settings.github_token)


async def run_sync(fn: Callable[..., T], *args, **kwargs) -> T:
    """Run a blocking call (PyGithub, file I/O) in a worker thread."""
    return await asyncio.to_thread(functools.partial(fn, *args, **kwargs))


def has_remote(record: RepositoryRecord) -> bool:
    """Whether the working copy has a GitHub remote to push to."""
    return bool(record.remote_url) and not record.remote_url.startswith("file://")


def site_base_url(record: RepositoryRecord) -> str:
    return record.published_url or PLACEHOLDER_SITE_URL.format(name=record.name)


def failure_message(operation: str, error: Exception) -> str:
    return f"Failed to {operation}: {error}"
