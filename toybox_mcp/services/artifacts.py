"""
Artifact files and site configuration inside a TOYBOX working copy.

Artifacts are React components stored as ``src/artifacts/<id>.tsx``. Each
file ends with an ``export const metadata = {...} as const;`` block that
the site reads to build its gallery. The block is written one
``key: <json value>,`` entry per line, which is also how it is read back:
artifact code is never evaluated.
"""

import json
import logging
import re
import uuid
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import ValidationError

from toybox_mcp.constants import ARTIFACTS_DIR, SITE_CONFIG_FILE_NAME
from toybox_mcp.models import ArtifactMetadata, SiteConfig, SiteConfigUpdate

logger = logging.getLogger(__name__)

_EXISTING_METADATA = re.compile(r"export\s+const\s+metadata\s*[:=].*?;", re.DOTALL)
_COMPONENT_NAME = re.compile(r"(?:function|const)\s+([A-Z][a-zA-Z0-9]*)")
_METADATA_START = re.compile(r"export\s+const\s+metadata\s*=\s*\{")
_METADATA_ENTRY = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*:\s*(.+?)\s*,?$")
_ID_SUFFIX = re.compile(r"-[0-9a-f]{8}$")

DANGEROUS_PATTERNS = [
    re.compile(r"eval\s*\(", re.IGNORECASE),
    re.compile(r"Function\s*\(", re.IGNORECASE),
    re.compile(r"document\.write", re.IGNORECASE),
    re.compile(r"innerHTML\s*=", re.IGNORECASE),
    re.compile(r"outerHTML\s*=", re.IGNORECASE),
    re.compile(r"dangerouslySetInnerHTML", re.IGNORECASE),
]

REQUIRED_METADATA_FIELDS = ("title", "type", "createdAt", "updatedAt")


@dataclass
class ArtifactFile:
    id: str
    metadata: ArtifactMetadata
    file_path: Path


@dataclass
class CodeValidation:
    valid: bool
    issues: list[str] = field(default_factory=list)


class MetadataError(ValueError):
    """An artifact file has no readable metadata block."""


class ArtifactService:
    """Artifact and site-config operations rooted at one working copy."""

    def __init__(self, repo_path: Path | str):
        self.repo_path = Path(repo_path)

    @property
    def artifacts_dir(self) -> Path:
        return self.repo_path.joinpath(*ARTIFACTS_DIR)

    @property
    def site_config_path(self) -> Path:
        return self.repo_path / SITE_CONFIG_FILE_NAME

    def _artifact_path(self, artifact_id: str) -> Path:
        return self.artifacts_dir / f"{artifact_id}.tsx"

    # ==========================================
    # Generation
    # ==========================================

    @staticmethod
    def generate_artifact_id(slug: str) -> str:
        """Slug plus a short random suffix, e.g. ``todo-app-1a2b3c4d``."""
        return f"{slug}-{uuid.uuid4().hex[:8]}"

    @staticmethod
    def generate_artifact_file(code: str, metadata: ArtifactMetadata) -> str:
        """
        Build the file content for an artifact.

        Any metadata export already in the code is dropped, a default export
        is added when the code defines a capitalised component without one,
        and the metadata block is appended.
        """
        clean_code = _EXISTING_METADATA.sub("", code).strip()

        if "export default" not in clean_code:
            match = _COMPONENT_NAME.search(clean_code)
            if match:
                clean_code += f"\n\nexport default {match.group(1)};"

        entries = [("title", metadata.title)]
        if metadata.description:
            entries.append(("description", metadata.description))
        entries += [("type", metadata.type), ("tags", metadata.tags)]
        if metadata.folder:
            entries.append(("folder", metadata.folder))
        entries += [("createdAt", metadata.created_at), ("updatedAt", metadata.updated_at)]

        lines = [f"  {key}: {json.dumps(value, ensure_ascii=False)}," for key, value in entries]
        block = "\n".join(lines)
        return f"{clean_code}\n\nexport const metadata = {{\n{block}\n}} as const;\n"

    @staticmethod
    def generate_artifact_url(artifact_id: str, base_url: str) -> str:
        return f"{base_url.rstrip('/')}/a/{artifact_id}"

    @staticmethod
    def validate_artifact_code(code: str) -> CodeValidation:
        """Flag unsafe DOM/eval patterns and a missing default export."""
        issues = [
            f"Potentially unsafe pattern detected: {pattern.pattern}"
            for pattern in DANGEROUS_PATTERNS
            if pattern.search(code)
        ]
        if "export default" not in code:
            issues.append("Artifact should export a default component")
        return CodeValidation(valid=not issues, issues=issues)

    # ==========================================
    # Files
    # ==========================================

    def save_artifact(self, artifact_id: str, content: str) -> Path:
        """
        Write a new artifact.

        Raises:
            FileExistsError: an artifact with that id already exists.
        """
        path = self._artifact_path(artifact_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(path, "x", encoding="utf-8") as f:
                f.write(content)
        except FileExistsError:
            raise FileExistsError(
                f"Artifact {artifact_id} already exists. "
                "Use a different title or update the existing artifact."
            ) from None
        return path

    def update_artifact(self, artifact_id: str, content: str) -> Path:
        """
        Overwrite an existing artifact.

        Raises:
            FileNotFoundError: no artifact with that id.
        """
        path = self._artifact_path(artifact_id)
        if not path.exists():
            raise FileNotFoundError(
                f"Artifact {artifact_id} does not exist. Use publish to create a new artifact."
            )
        path.write_text(content, encoding="utf-8")
        return path

    def delete_artifact(self, artifact_id: str) -> None:
        self._artifact_path(artifact_id).unlink(missing_ok=True)

    def list_artifacts(self) -> list[ArtifactFile]:
        """All readable artifacts, most recently updated first."""
        if not self.artifacts_dir.is_dir():
            return []

        artifacts = []
        for path in sorted(self.artifacts_dir.glob("*.tsx")):
            artifact_id = path.stem
            if artifact_id.startswith(".") or artifact_id == "index":
                continue
            try:
                metadata = self.extract_metadata(path)
            except (OSError, MetadataError) as e:
                logger.error("Failed to read metadata from %s: %s", path.name, e)
                continue
            artifacts.append(ArtifactFile(id=artifact_id, metadata=metadata, file_path=path))

        artifacts.sort(key=lambda a: a.metadata.updated_at, reverse=True)
        return artifacts

    def extract_metadata(self, path: Path) -> ArtifactMetadata:
        """
        Parse the metadata block of an artifact file.

        The slug is recovered from the file name. Raises MetadataError when
        the block is missing, malformed or lacks a required field.
        """
        content = path.read_text(encoding="utf-8")
        start = _METADATA_START.search(content)
        if start is None:
            raise MetadataError("No metadata found in artifact file")

        raw = {}
        for line in content[start.end():].splitlines():
            line = line.strip()
            if line.startswith("}"):
                break
            if not line:
                continue
            match = _METADATA_ENTRY.match(line)
            if match is None:
                raise MetadataError(f"Failed to parse metadata line: {line}")
            key, value = match.groups()
            try:
                raw[key] = json.loads(value)
            except json.JSONDecodeError as e:
                raise MetadataError(f"Failed to parse metadata value for {key}: {e}") from e

        missing = [name for name in REQUIRED_METADATA_FIELDS if not raw.get(name)]
        if missing:
            raise MetadataError(f"Missing required metadata fields: {', '.join(missing)}")

        raw.setdefault("slug", _ID_SUFFIX.sub("", path.stem))
        try:
            return ArtifactMetadata.model_validate(raw)
        except ValidationError as e:
            raise MetadataError(f"Invalid metadata: {e.error_count()} error(s)") from e

    # ==========================================
    # Site Configuration
    # ==========================================

    def read_site_config(self) -> SiteConfig:
        """TOYBOX_CONFIG.json merged over defaults; defaults if unreadable."""
        if not self.site_config_path.exists():
            return SiteConfig()
        try:
            data = json.loads(self.site_config_path.read_text(encoding="utf-8"))
            return SiteConfig.model_validate({**SiteConfig().model_dump(by_alias=True), **data})
        except (OSError, ValueError, TypeError) as e:
            logger.warning("Failed to read %s, using defaults: %s", self.site_config_path, e)
            return SiteConfig()

    def update_site_config(self, update: SiteConfigUpdate | dict) -> SiteConfig:
        """Merge the set fields over the current config and write it back."""
        if isinstance(update, dict):
            update = SiteConfigUpdate.model_validate(update)
        current = self.read_site_config().model_dump(by_alias=True)
        merged = SiteConfig.model_validate({**current, **update.changes()})

        self.site_config_path.write_text(
            json.dumps(merged.model_dump(by_alias=True), indent=2) + "\n",
            encoding="utf-8",
        )
        return merged
