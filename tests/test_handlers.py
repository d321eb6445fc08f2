"""
Tests for the tool handlers.

Handlers run against a real registry and artifact service in a temp
directory; git and GitHub are mocked.

Tests cover:
- Repository tools (list, switch, remove, get active)
- publish_artifact (validation, save, commit, push, no-change detection)
- list_artifacts and its text formatting
- get_config / update_config
- setup_remote
- initialize_toybox (GitHub, local template, debug)
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from toybox_mcp import handlers
from toybox_mcp.constants import DEV_SERVER_URL, NO_ACTIVE_REPOSITORY_MESSAGE, NOT_AUTHENTICATED_MESSAGE
from toybox_mcp.exceptions import GitCommandError, GitHubError
from toybox_mcp.handlers import HandlerContext
from toybox_mcp.handlers.list import _age_text, format_artifact_list
from toybox_mcp.models import (
    ArtifactListing,
    ArtifactMetadata,
    InitializeToyboxParams,
    PublishArtifactParams,
    SetupRemoteParams,
    SiteConfigUpdate,
)
from toybox_mcp.services.artifacts import ArtifactService
from toybox_mcp.services.git import GitService
from toybox_mcp.services.github_client import GitHubAuthStatus, GitHubClient, RepositoryInfo

COMPONENT = "export default function Clock() {\n  return <div>12:00</div>;\n}"


def make_metadata(**overrides) -> ArtifactMetadata:
    data = {
        "title": "Clock",
        "slug": "clock",
        "type": "react",
        "tags": ["time"],
        "createdAt": "2025-01-01T00:00:00.000Z",
        "updatedAt": "2025-01-01T00:00:00.000Z",
    }
    data.update(overrides)
    return ArtifactMetadata.model_validate(data)


@pytest.fixture
def mock_git():
    """A GitService whose commands all succeed."""
    git = MagicMock(spec=GitService)
    git.repository_exists.return_value = True
    git.has_uncommitted_changes.return_value = True
    git.commit.return_value = "abc1234"
    git.get_current_branch.return_value = "main"

    async def clone(url, target=None):
        Path(target).mkdir(parents=True, exist_ok=True)
        return Path(target)

    git.clone_repository.side_effect = clone
    return git


@pytest.fixture
def mock_github():
    """An authenticated GitHubClient."""
    github = MagicMock(spec=GitHubClient)
    github.check_auth_status.return_value = GitHubAuthStatus(authenticated=True, user="octocat")
    github.get_current_user.return_value = "octocat"
    github.repository_exists.return_value = False
    github.create_repository.return_value = "https://github.com/octocat/toybox"
    github.create_empty_repository.return_value = "https://github.com/octocat/toybox"
    github.get_repository_info.return_value = RepositoryInfo(
        url="https://github.com/octocat/toybox",
        clone_url="git@github.com:octocat/toybox.git",
    )
    github.get_clone_url.return_value = "git@github.com:octocat/toybox.git"
    github.enable_pages.return_value = "https://octocat.github.io/toybox/"
    return github


@pytest.fixture
def settings(tmp_path):
    mock = MagicMock()
    mock.toybox_dir = tmp_path / "toybox"
    mock.debug = False
    mock.local_template_path = None
    return mock


@pytest.fixture
def ctx(registry, settings, mock_git, mock_github):
    return HandlerContext(
        registry=registry,
        settings=settings,
        git_factory=lambda path: mock_git,
        github_factory=lambda: mock_github,
    )


async def add_repo(registry, tmp_path, name="toybox", **fields):
    """Register a working copy that exists on disk."""
    local_path = tmp_path / "copies" / name
    local_path.mkdir(parents=True, exist_ok=True)
    record = {"name": name, "localPath": str(local_path)}
    record.update(fields)
    await registry.upsert_repository(record)
    return local_path


# ===========================================
# Repository tools
# ===========================================


class TestRepositoryTools:
    """Tests for list/switch/remove/get_active_repository."""

    @pytest.mark.asyncio
    async def test_list_empty(self, ctx):
        """Test an empty registry lists nothing."""
        result = await handlers.list_repositories(ctx)

        assert result.success is True
        assert result.repositories == []

    @pytest.mark.asyncio
    async def test_list_marks_active(self, ctx, registry, tmp_path):
        """Test the summaries carry the active flag."""
        await add_repo(registry, tmp_path, "a")
        await add_repo(registry, tmp_path, "b")

        result = await handlers.list_repositories(ctx)

        assert [(r.name, r.is_active) for r in result.repositories] == [("a", True), ("b", False)]
        assert "lastUsedAt" in json.loads(result.to_json())["repositories"][0]

    @pytest.mark.asyncio
    async def test_switch(self, ctx, registry, tmp_path):
        """Test switching to an existing working copy."""
        await add_repo(registry, tmp_path, "a")
        await add_repo(registry, tmp_path, "b")

        result = await handlers.switch_repository(ctx, "b")

        assert result.success is True
        assert "Switched to repository 'b'" in result.message
        assert (await registry.get_active_repository()).name == "b"

    @pytest.mark.asyncio
    async def test_switch_unknown(self, ctx):
        """Test switching to an unregistered name fails."""
        result = await handlers.switch_repository(ctx, "ghost")

        assert result.success is False
        assert result.error == "Repository 'ghost' not found in configuration"

    @pytest.mark.asyncio
    async def test_switch_missing_directory(self, ctx, registry, tmp_path, mock_git):
        """Test switching fails when the working copy was deleted."""
        await add_repo(registry, tmp_path, "a")
        await add_repo(registry, tmp_path, "b")
        mock_git.repository_exists.return_value = False

        result = await handlers.switch_repository(ctx, "b")

        assert result.success is False
        assert "no longer exists" in result.error
        assert (await registry.get_active_repository()).name == "a"

    @pytest.mark.asyncio
    async def test_remove_keeps_files(self, ctx, registry, tmp_path):
        """Test removal forgets the repository but leaves its directory."""
        local_path = await add_repo(registry, tmp_path, "a")

        result = await handlers.remove_repository(ctx, "a")

        assert result.success is True
        assert "were not deleted" in result.message
        assert local_path.exists()
        assert await registry.get_repositories() == []

    @pytest.mark.asyncio
    async def test_remove_unknown(self, ctx):
        """Test removing an unregistered name fails."""
        result = await handlers.remove_repository(ctx, "ghost")

        assert result.success is False

    @pytest.mark.asyncio
    async def test_get_active(self, ctx, registry, tmp_path):
        """Test the active repository is returned."""
        await add_repo(registry, tmp_path, "a")

        result = await handlers.get_active_repository(ctx)

        assert result.success is True
        assert result.repository.name == "a"

    @pytest.mark.asyncio
    async def test_get_active_none(self, ctx):
        """Test no active repository is reported."""
        result = await handlers.get_active_repository(ctx)

        assert result.success is False
        assert result.error == NO_ACTIVE_REPOSITORY_MESSAGE


# ===========================================
# publish_artifact
# ===========================================


class TestPublishArtifact:
    """Tests for publish_artifact."""

    @pytest.mark.asyncio
    async def test_publish_with_remote(self, ctx, registry, tmp_path, mock_git):
        """Test the artifact is written, committed and pushed."""
        local_path = await add_repo(
            registry, tmp_path,
            remoteUrl="https://github.com/octocat/toybox",
            publishedUrl="https://octocat.github.io/toybox/",
        )

        result = await handlers.publish_artifact(ctx, PublishArtifactParams(code=COMPONENT, metadata=make_metadata()))

        assert result.success is True
        assert result.artifact_id.startswith("clock-")
        assert result.artifact_url == f"https://octocat.github.io/toybox/a/{result.artifact_id}"
        assert (local_path / "src" / "artifacts" / f"{result.artifact_id}.tsx").exists()
        mock_git.pull.assert_awaited_once()
        mock_git.add_files.assert_awaited_once_with([f"src/artifacts/{result.artifact_id}.tsx"])
        message = mock_git.commit.await_args.args[0]
        assert message[0] == 'feat: Add/update artifact "Clock"'
        mock_git.push.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publish_local_only(self, ctx, registry, tmp_path, mock_git):
        """Test a local-only repository commits without pull or push."""
        local_path = await add_repo(registry, tmp_path, remoteUrl=(tmp_path / "copies" / "toybox").as_uri())

        result = await handlers.publish_artifact(ctx, PublishArtifactParams(code=COMPONENT, metadata=make_metadata()))

        assert result.success is True
        assert "Committed locally" in result.message
        assert result.artifact_url.startswith("https://example.github.io/toybox/a/")
        mock_git.pull.assert_not_awaited()
        mock_git.push.assert_not_awaited()
        assert local_path.exists()

    @pytest.mark.asyncio
    async def test_pull_failure_is_not_fatal(self, ctx, registry, tmp_path, mock_git):
        """Test a failed pull still publishes."""
        await add_repo(registry, tmp_path, remoteUrl="https://github.com/octocat/toybox")
        mock_git.pull.side_effect = GitCommandError("Failed to pull: offline")

        result = await handlers.publish_artifact(ctx, PublishArtifactParams(code=COMPONENT, metadata=make_metadata()))

        assert result.success is True

    @pytest.mark.asyncio
    async def test_no_active_repository(self, ctx):
        """Test publishing without an active repository fails."""
        result = await handlers.publish_artifact(ctx, PublishArtifactParams(code=COMPONENT, metadata=make_metadata()))

        assert result.success is False
        assert result.error == NO_ACTIVE_REPOSITORY_MESSAGE

    @pytest.mark.asyncio
    async def test_unsafe_code_rejected(self, ctx, registry, tmp_path, mock_git):
        """Test unsafe code is refused before anything is written."""
        local_path = await add_repo(registry, tmp_path)
        code = "export default function X() { eval('1'); return null; }"

        result = await handlers.publish_artifact(ctx, PublishArtifactParams(code=code, metadata=make_metadata()))

        assert result.success is False
        assert result.error.startswith("Code validation failed")
        assert not (local_path / "src" / "artifacts").exists()
        mock_git.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_changes(self, ctx, registry, tmp_path, mock_git):
        """Test an unchanged tree is reported and nothing is committed."""
        await add_repo(registry, tmp_path)
        mock_git.has_uncommitted_changes.return_value = False

        result = await handlers.publish_artifact(ctx, PublishArtifactParams(code=COMPONENT, metadata=make_metadata()))

        assert result.success is False
        assert "No changes detected" in result.error
        mock_git.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_push_failure(self, ctx, registry, tmp_path, mock_git):
        """Test a failed push is reported."""
        await add_repo(registry, tmp_path, remoteUrl="https://github.com/octocat/toybox")
        mock_git.push.side_effect = GitCommandError("Failed to push: rejected")

        result = await handlers.publish_artifact(ctx, PublishArtifactParams(code=COMPONENT, metadata=make_metadata()))

        assert result.success is False
        assert result.error == "Failed to publish artifact: Failed to push: rejected"

    @pytest.mark.asyncio
    async def test_touches_repository(self, ctx, registry, tmp_path):
        """Test publishing refreshes lastUsedAt."""
        await add_repo(registry, tmp_path)

        def backdate(config):
            config.repositories[0].last_used_at = "2020-01-01T00:00:00.000Z"
            return config

        await registry.update(backdate)
        await handlers.publish_artifact(ctx, PublishArtifactParams(code=COMPONENT, metadata=make_metadata()))

        assert (await registry.get_repository("toybox")).last_used_at > "2020-01-01T00:00:00.000Z"


# ===========================================
# list_artifacts
# ===========================================


class TestListArtifacts:
    """Tests for list_artifacts and its formatting."""

    @pytest.mark.asyncio
    async def test_lists_with_urls(self, ctx, registry, tmp_path):
        """Test listings carry gallery and standalone URLs."""
        local_path = await add_repo(registry, tmp_path, publishedUrl="https://octocat.github.io/toybox/")
        service = ArtifactService(local_path)
        service.save_artifact("clock-0000abcd", service.generate_artifact_file(COMPONENT, make_metadata()))

        result = await handlers.list_artifacts(ctx)

        assert result.success is True
        assert result.total_count == 1
        listing = result.artifacts[0]
        assert listing.id == "clock-0000abcd"
        assert listing.url == "https://octocat.github.io/toybox/a/clock-0000abcd"
        assert listing.standalone_url == "https://octocat.github.io/toybox/standalone/clock-0000abcd"
        assert result.gallery_url == "https://octocat.github.io/toybox/"
        data = json.loads(result.to_json())
        assert data["totalCount"] == 1
        assert data["artifacts"][0]["metadata"]["createdAt"] == "2025-01-01T00:00:00.000Z"

    @pytest.mark.asyncio
    async def test_empty(self, ctx, registry, tmp_path):
        """Test an empty TOYBOX says so."""
        await add_repo(registry, tmp_path)

        result = await handlers.list_artifacts(ctx)

        assert result.success is True
        assert result.artifacts == []
        assert "Your TOYBOX is empty" in result.message

    @pytest.mark.asyncio
    async def test_no_active_repository(self, ctx):
        """Test listing without an active repository fails."""
        result = await handlers.list_artifacts(ctx)

        assert result.success is False

    def test_age_text(self):
        """Test relative ages."""
        now = datetime(2025, 1, 10, tzinfo=timezone.utc)

        assert _age_text("2025-01-10T00:00:00.000Z", now) == "today"
        assert _age_text("2025-01-09T00:00:00.000Z", now) == "yesterday"
        assert _age_text("2025-01-01T00:00:00.000Z", now) == "9 days ago"
        assert _age_text("not a date", now) == "at an unknown time"

    def test_groups_by_folder(self):
        """Test folders get headers only when there is more than one."""
        def listing(artifact_id, folder):
            return ArtifactListing(
                id=artifact_id,
                metadata=make_metadata(title=artifact_id, folder=folder),
                url=f"https://x/a/{artifact_id}",
                standalone_url=f"https://x/standalone/{artifact_id}",
            )

        text = format_artifact_list([listing("one", "Games"), listing("two", None)], "https://x")

        assert "Your TOYBOX contains 2 artifacts" in text
        assert "[Games]" in text
        assert "[General]" in text

        single = format_artifact_list([listing("one", None)], "https://x")
        assert "contains 1 artifact\n" in single
        assert "[General]" not in single


# ===========================================
# get_config / update_config
# ===========================================


class TestSiteConfigTools:
    """Tests for get_config and update_config."""

    @pytest.mark.asyncio
    async def test_get_defaults(self, ctx, registry, tmp_path):
        """Test a working copy without TOYBOX_CONFIG.json shows defaults."""
        await add_repo(registry, tmp_path)

        result = await handlers.get_config(ctx)

        assert result.success is True
        assert result.config.title == "My TOYBOX"
        assert "- Theme: auto" in result.message

    @pytest.mark.asyncio
    async def test_update_commits_and_pushes(self, ctx, registry, tmp_path, mock_git):
        """Test an update is written, committed and pushed."""
        local_path = await add_repo(registry, tmp_path, remoteUrl="https://github.com/octocat/toybox")

        result = await handlers.update_config(ctx, SiteConfigUpdate(title="Playground", theme="dark"))

        assert result.success is True
        assert json.loads((local_path / "TOYBOX_CONFIG.json").read_text())["title"] == "Playground"
        assert '- title: "My TOYBOX" -> "Playground"' in result.message
        mock_git.add_files.assert_awaited_once_with(["TOYBOX_CONFIG.json"])
        assert mock_git.commit.await_args.args[0][0] == "feat: Update TOYBOX configuration"
        mock_git.push.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_update_without_changes(self, ctx, registry, tmp_path, mock_git):
        """Test an update that changes nothing does not commit."""
        await add_repo(registry, tmp_path)
        mock_git.has_uncommitted_changes.return_value = False

        result = await handlers.update_config(ctx, SiteConfigUpdate(layout="grid"))

        assert result.success is True
        assert "No changes detected" in result.message
        mock_git.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_no_active_repository(self, ctx):
        """Test updating without an active repository fails."""
        result = await handlers.update_config(ctx, SiteConfigUpdate(title="x"))

        assert result.success is False
        assert result.error == NO_ACTIVE_REPOSITORY_MESSAGE


# ===========================================
# setup_remote
# ===========================================


class TestSetupRemote:
    """Tests for setup_remote."""

    @pytest.mark.asyncio
    async def test_connects_local_repository(self, ctx, registry, tmp_path, mock_git, mock_github):
        """Test the repository is created, pushed and recorded."""
        await add_repo(registry, tmp_path)

        result = await handlers.setup_remote(ctx, SetupRemoteParams(repo_name="toybox"))

        assert result.success is True
        assert result.repository_url == "https://github.com/octocat/toybox"
        assert result.pages_url == "https://octocat.github.io/toybox/"
        mock_git.add_remote.assert_awaited_once_with("origin", "git@github.com:octocat/toybox.git")
        mock_git.push.assert_awaited_once_with("origin", "main", set_upstream=True)
        mock_github.trigger_workflow.assert_called_once()
        repo = await registry.get_repository("toybox")
        assert repo.remote_url == "https://github.com/octocat/toybox"
        assert repo.published_url == "https://octocat.github.io/toybox/"

    @pytest.mark.asyncio
    async def test_without_pages(self, ctx, registry, tmp_path, mock_github):
        """Test Pages is skipped and publishedUrl left alone."""
        await add_repo(registry, tmp_path, publishedUrl="http://localhost:5173/")

        result = await handlers.setup_remote(ctx, SetupRemoteParams(repo_name="toybox", enable_pages=False))

        assert result.success is True
        assert result.pages_url is None
        mock_github.enable_pages.assert_not_called()
        assert (await registry.get_repository("toybox")).published_url == "http://localhost:5173/"

    @pytest.mark.asyncio
    async def test_workflow_failure_is_not_fatal(self, ctx, registry, tmp_path, mock_github):
        """Test a failed workflow dispatch still succeeds."""
        await add_repo(registry, tmp_path)
        mock_github.trigger_workflow.side_effect = GitHubError("no workflow")

        result = await handlers.setup_remote(ctx, SetupRemoteParams(repo_name="toybox"))

        assert result.success is True

    @pytest.mark.asyncio
    async def test_not_authenticated(self, ctx, registry, tmp_path, mock_github, mock_git):
        """Test nothing happens without GitHub auth."""
        await add_repo(registry, tmp_path)
        mock_github.check_auth_status.return_value = GitHubAuthStatus(authenticated=False)

        result = await handlers.setup_remote(ctx, SetupRemoteParams(repo_name="toybox"))

        assert result.success is False
        assert result.error == NOT_AUTHENTICATED_MESSAGE
        mock_git.add_remote.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_github_repository(self, ctx, registry, tmp_path, mock_github):
        """Test an existing GitHub repository name is refused."""
        await add_repo(registry, tmp_path)
        mock_github.repository_exists.return_value = True

        result = await handlers.setup_remote(ctx, SetupRemoteParams(repo_name="toybox"))

        assert result.success is False
        assert "already exists" in result.error
        mock_github.create_empty_repository.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_active_repository(self, ctx):
        """Test setup fails without an active repository."""
        result = await handlers.setup_remote(ctx, SetupRemoteParams(repo_name="toybox"))

        assert result.success is False
        assert result.error == NO_ACTIVE_REPOSITORY_MESSAGE


# ===========================================
# initialize_toybox
# ===========================================


@pytest.fixture
def template_dir(tmp_path):
    root = tmp_path / "template"
    (root / "src").mkdir(parents=True)
    (root / "package.json").write_text('{"name": "{{REPO_NAME}}"}')
    (root / "TOYBOX_CONFIG.json").write_text("{}")
    (root / "TEMPLATE_README.md").write_text("template docs")
    return root


class TestInitializeToybox:
    """Tests for initialize_toybox."""

    @pytest.mark.asyncio
    async def test_with_github(self, ctx, registry, settings, mock_git, mock_github):
        """Test a GitHub-backed TOYBOX is created, pushed and registered as active."""
        result = await handlers.initialize_toybox(ctx, InitializeToyboxParams(repo_name="toybox"))

        assert result.success is True
        local_path = settings.toybox_dir / "toybox"
        assert result.repository.local_path == str(local_path)
        assert result.repository.remote_url == "https://github.com/octocat/toybox"
        assert result.repository.published_url == "https://octocat.github.io/toybox/"
        mock_github.create_repository.assert_called_once_with("toybox", "isnbh0", "toybox-template", False)
        mock_git.clone_repository.assert_awaited_once_with("git@github.com:octocat/toybox.git", local_path)
        mock_git.push.assert_awaited_once_with("origin", "main", set_upstream=True)
        assert json.loads((local_path / "github.config.json").read_text())["username"] == "octocat"

        active = await registry.get_active_repository()
        assert active.name == "toybox"
        assert active.remote_url == "https://github.com/octocat/toybox"

    @pytest.mark.asyncio
    async def test_local_template(self, ctx, registry, settings, template_dir, mock_git, mock_github):
        """Test a local-only TOYBOX from a template directory."""
        params = InitializeToyboxParams(
            repo_name="sandbox",
            create_remote=False,
            local_template_path=str(template_dir),
            config=SiteConfigUpdate(title="Sandbox"),
        )

        result = await handlers.initialize_toybox(ctx, params)

        assert result.success is True
        local_path = settings.toybox_dir / "sandbox"
        assert json.loads((local_path / "package.json").read_text()) == {"name": "sandbox"}
        assert json.loads((local_path / "TOYBOX_CONFIG.json").read_text())["title"] == "Sandbox"
        assert not (local_path / "TEMPLATE_README.md").exists()
        assert result.repository.remote_url == local_path.as_uri()
        assert result.repository.published_url == ""
        assert "setup_remote" in result.message
        mock_git.init_repository.assert_awaited_once()
        mock_git.push.assert_not_awaited()
        mock_github.check_auth_status.assert_not_called()

        active = await registry.get_active_repository()
        assert active.name == "sandbox"
        assert active.published_url is None

    @pytest.mark.asyncio
    async def test_debug_uses_dev_server(self, ctx, template_dir):
        """Test debug mode publishes to the local dev server URL."""
        params = InitializeToyboxParams(
            repo_name="dev", create_remote=False, debug=True, local_template_path=str(template_dir),
        )

        result = await handlers.initialize_toybox(ctx, params)

        assert result.success is True
        assert result.repository.published_url == DEV_SERVER_URL
        assert "debug mode" in result.message

    @pytest.mark.asyncio
    async def test_public_template_clone(self, ctx, mock_git):
        """Test without a template path the public template is cloned and detached."""
        result = await handlers.initialize_toybox(ctx, InitializeToyboxParams(repo_name="x", create_remote=False))

        assert result.success is True
        assert mock_git.clone_repository.await_args.args[0] == "https://github.com/isnbh0/toybox-template.git"
        mock_git.remove_remote.assert_awaited_once_with("origin")

    @pytest.mark.asyncio
    async def test_creates_main_branch(self, ctx, template_dir, mock_git):
        """Test a working copy on another branch gets a main branch before the first commit."""
        mock_git.get_current_branch.return_value = "master"

        await handlers.initialize_toybox(ctx, InitializeToyboxParams(
            repo_name="x", create_remote=False, local_template_path=str(template_dir),
        ))

        mock_git.create_branch.assert_awaited_once_with("main")
        mock_git.commit.assert_awaited_once_with("feat: Initial TOYBOX setup")

    @pytest.mark.asyncio
    async def test_existing_local_path(self, ctx, settings, registry):
        """Test a non-empty target directory is refused."""
        existing = settings.toybox_dir / "toybox"
        existing.mkdir(parents=True)
        (existing / "keep.txt").write_text("mine")

        result = await handlers.initialize_toybox(ctx, InitializeToyboxParams())

        assert result.success is False
        assert "already exists" in result.error
        assert (existing / "keep.txt").exists()
        assert await registry.get_repositories() == []

    @pytest.mark.asyncio
    async def test_not_authenticated(self, ctx, mock_github, mock_git):
        """Test GitHub mode requires auth."""
        mock_github.check_auth_status.return_value = GitHubAuthStatus(authenticated=False)

        result = await handlers.initialize_toybox(ctx, InitializeToyboxParams())

        assert result.success is False
        assert result.error == NOT_AUTHENTICATED_MESSAGE
        mock_git.clone_repository.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_github_repository(self, ctx, mock_github):
        """Test an existing GitHub repository name is refused."""
        mock_github.repository_exists.return_value = True

        result = await handlers.initialize_toybox(ctx, InitializeToyboxParams())

        assert result.success is False
        mock_github.create_repository.assert_not_called()

    @pytest.mark.asyncio
    async def test_github_failure(self, ctx, registry, mock_github):
        """Test an API failure is reported and nothing is registered."""
        mock_github.create_repository.side_effect = GitHubError("Failed to create repository: 422")

        result = await handlers.initialize_toybox(ctx, InitializeToyboxParams())

        assert result.success is False
        assert result.error.startswith("Failed to initialize TOYBOX")
        assert await registry.get_repositories() == []

    @pytest.mark.asyncio
    async def test_second_toybox_becomes_active(self, ctx, registry, template_dir):
        """Test a newly initialized TOYBOX is made active even when another exists."""
        for name in ("first", "second"):
            await handlers.initialize_toybox(ctx, InitializeToyboxParams(
                repo_name=name, create_remote=False, local_template_path=str(template_dir),
            ))

        assert (await registry.get_active_repository()).name == "second"
        assert len(await registry.get_repositories()) == 2
