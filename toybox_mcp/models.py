"""
Pydantic models for the MCP tools.

Parameters arrive from the client as JSON and results go back as JSON text,
both in camelCase. Artifact metadata and the site configuration mirror the
shapes the site template reads.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from toybox_mcp.constants import SITE_CONFIG_DEFAULTS, TEMPLATE_OWNER, TEMPLATE_REPO, USER_REPO_NAME

ArtifactType = Literal["react", "svg", "mermaid"]
Theme = Literal["auto", "light", "dark"]
Layout = Literal["grid", "list"]

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class ToolModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ToolResult(ToolModel):
    """Base for every tool result."""
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True, indent=2)


# ==========================================
# Artifacts
# ==========================================

class ArtifactMetadata(ToolModel):
    """Metadata block written at the end of every artifact file."""
    title: str  # Free text, emojis allowed
    slug: str = Field(pattern=SLUG_PATTERN)  # Lowercase kebab-case
    description: Optional[str] = None
    type: ArtifactType
    tags: list[str] = Field(default_factory=list)
    folder: Optional[str] = None
    created_at: str  # ISO date
    updated_at: str  # ISO date


class PublishArtifactParams(ToolModel):
    code: str  # React component source, no React import
    metadata: ArtifactMetadata


class PublishResult(ToolResult):
    artifact_id: str = ""
    artifact_url: str = ""


class ArtifactListing(ToolModel):
    id: str
    metadata: ArtifactMetadata
    url: str
    standalone_url: str


class ListArtifactsResult(ToolResult):
    artifacts: list[ArtifactListing] = Field(default_factory=list)
    gallery_url: str = ""
    total_count: int = 0


# ==========================================
# Site Configuration (TOYBOX_CONFIG.json)
# ==========================================

class SiteConfig(ToolModel):
    title: str = SITE_CONFIG_DEFAULTS["title"]
    description: str = SITE_CONFIG_DEFAULTS["description"]
    theme: Theme = SITE_CONFIG_DEFAULTS["theme"]
    layout: Layout = SITE_CONFIG_DEFAULTS["layout"]
    show_footer: bool = SITE_CONFIG_DEFAULTS["showFooter"]


class SiteConfigUpdate(ToolModel):
    """Partial site configuration; unset fields are left alone."""
    title: Optional[str] = None
    description: Optional[str] = None
    theme: Optional[Theme] = None
    layout: Optional[Layout] = None
    show_footer: Optional[bool] = None

    def changes(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class SiteConfigResult(ToolResult):
    config: Optional[SiteConfig] = None


# ==========================================
# Initialization / Remote Setup
# ==========================================

class InitializeToyboxParams(ToolModel):
    repo_name: str = USER_REPO_NAME
    template_owner: str = TEMPLATE_OWNER
    template_repo: str = TEMPLATE_REPO
    config: Optional[SiteConfigUpdate] = None
    debug: Optional[bool] = None  # None means the process setting
    local_template_path: Optional[str] = None
    create_remote: bool = True
    is_private: bool = False


class ToyboxRepository(ToolModel):
    name: str
    local_path: str
    remote_url: str = ""
    published_url: str = ""


class InitResult(ToolResult):
    repository: Optional[ToyboxRepository] = None


class SetupRemoteParams(ToolModel):
    repo_name: str
    is_private: bool = False
    enable_pages: bool = True


class SetupRemoteResult(ToolResult):
    repository_url: Optional[str] = None
    clone_url: Optional[str] = None
    pages_url: Optional[str] = None


# ==========================================
# Repository Registry
# ==========================================

class RepositorySummary(ToolModel):
    name: str
    local_path: str
    remote_url: Optional[str] = None
    published_url: Optional[str] = None
    is_active: Optional[bool] = None
    last_used_at: str


class ListRepositoriesResult(ToolResult):
    repositories: list[RepositorySummary] = Field(default_factory=list)


class RepositoryResult(ToolResult):
    repository: Optional[RepositorySummary] = None
