"""
Services for TOYBOX.

This module provides the collaborators the tool handlers drive:
- git: local git operations on a working copy
- github_client: GitHub API integration (repositories, Pages, workflows)
- artifacts: artifact files and TOYBOX_CONFIG.json inside a working copy
- template: copying a local site template
"""

from toybox_mcp.services.artifacts import ArtifactFile, ArtifactService, CodeValidation
from toybox_mcp.services.git import GitService
from toybox_mcp.services.github_client import GitHubAuthStatus, GitHubClient, RepositoryInfo

__all__ = [
    # Working copy
    "ArtifactFile",
    "ArtifactService",
    "CodeValidation",
    "GitService",
    # GitHub
    "GitHubAuthStatus",
    "GitHubClient",
    "RepositoryInfo",
]
