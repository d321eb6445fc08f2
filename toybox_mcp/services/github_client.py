"""
GitHub client service for creating and publishing TOYBOX repositories.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass, field

from github import Auth, Github, GithubException, UnknownObjectException
from github.Repository import Repository

from toybox_mcp.constants import DEFAULT_BRANCH, DEPLOY_WORKFLOW
from toybox_mcp.exceptions import GitHubError

logger = logging.getLogger(__name__)


@dataclass
class GitHubAuthStatus:
    authenticated: bool
    user: str | None = None
    scopes: list[str] = field(default_factory=list)


@dataclass
class RepositoryInfo:
    url: str
    clone_url: str
    pages_url: str | None = None


def resolve_github_token(configured: str | None = None) -> str:
    """
    Token from settings, falling back to the gh CLI's stored login.

    Returns an empty string when neither is available.
    """
    if configured:
        return configured
    if not shutil.which("gh"):
        return ""
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("gh auth token failed: %s", e)
        return ""
    if result.returncode != 0:
        return ""
    return result.stdout.strip()


class GitHubClient:
    """Client for the repository and Pages parts of the GitHub API."""

    def __init__(self, token: str | None = None):
        self._token = resolve_github_token(token)
        if self._token:
            self._github = Github(auth=Auth.Token(self._token))
        else:
            self._github = Github()
        self._login: str | None = None

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    # ==========================================
    # Account
    # ==========================================

    def check_auth_status(self) -> GitHubAuthStatus:
        """Whether the token works, and for whom. Never raises."""
        if not self._token:
            logger.warning("No GitHub token configured")
            return GitHubAuthStatus(authenticated=False)
        try:
            login = self.get_current_user()
        except GitHubError as e:
            logger.warning("GitHub authentication failed: %s", e)
            return GitHubAuthStatus(authenticated=False)

        scopes = self._github.oauth_scopes or []
        logger.info("Authenticated with GitHub as %s", login)
        return GitHubAuthStatus(authenticated=True, user=login, scopes=list(scopes))

    def get_current_user(self) -> str:
        """Login of the authenticated user (cached)."""
        if self._login is None:
            try:
                self._login = self._github.get_user().login
            except GithubException as e:
                raise GitHubError(f"Failed to get current user: {e}") from e
        return self._login

    def _full_name(self, name: str, owner: str | None = None) -> str:
        return f"{owner or self.get_current_user()}/{name}"

    def _get_repo(self, name: str, owner: str | None = None) -> Repository:
        return self._github.get_repo(self._full_name(name, owner))

    # ==========================================
    # Repositories
    # ==========================================

    def repository_exists(self, name: str, owner: str | None = None) -> bool:
        try:
            self._get_repo(name, owner)
        except UnknownObjectException:
            return False
        except GithubException as e:
            raise GitHubError(f"Failed to look up repository: {e}") from e
        return True

    def create_repository(
        self,
        name: str,
        template_owner: str,
        template_repo: str,
        private: bool = False,
    ) -> str:
        """Create a repository from the site template. Returns its html URL."""
        logger.info("Creating repository %s from template %s/%s", name, template_owner, template_repo)
        try:
            template = self._github.get_repo(f"{template_owner}/{template_repo}")
            repo = self._github.get_user().create_repo_from_template(name, template, private=private)
        except GithubException as e:
            raise GitHubError(f"Failed to create repository: {e}") from e
        return repo.html_url

    def create_empty_repository(self, name: str, private: bool = False) -> str:
        """Create an empty repository. Returns its html URL."""
        logger.info("Creating empty repository %s (private=%s)", name, private)
        try:
            repo = self._github.get_user().create_repo(name, private=private)
        except GithubException as e:
            raise GitHubError(f"Failed to create repository: {e}") from e
        return repo.html_url

    def get_repository_info(self, name: str, owner: str | None = None) -> RepositoryInfo:
        try:
            repo = self._get_repo(name, owner)
        except GithubException as e:
            raise GitHubError(f"Failed to get repository info: {e}") from e

        return RepositoryInfo(
            url=repo.html_url,
            clone_url=repo.ssh_url or repo.html_url,
            pages_url=self._get_pages_url(repo.full_name),
        )

    def get_clone_url(self, name: str, use_ssh: bool = True, owner: str | None = None) -> str:
        try:
            repo = self._get_repo(name, owner)
        except GithubException as e:
            raise GitHubError(f"Failed to get clone URL: {e}") from e
        return repo.ssh_url if use_ssh else repo.clone_url

    # ==========================================
    # Pages / Workflows
    # ==========================================

    def _get_pages_url(self, full_name: str) -> str | None:
        """Pages URL, or None when Pages is not enabled yet."""
        try:
            _, data = self._github.requester.requestJsonAndCheck("GET", f"/repos/{full_name}/pages")
        except GithubException:
            return None
        return data.get("html_url")

    def enable_pages(self, name: str, owner: str | None = None) -> str:
        """
        Enable Pages built by GitHub Actions. Returns the Pages URL.

        If Pages is already enabled its URL is returned. If the URL cannot be
        read back yet, the conventional https://<owner>.github.io/<repo>/ is
        returned; the deploy workflow finishes the setup.
        """
        owner = owner or self.get_current_user()
        full_name = f"{owner}/{name}"
        try:
            _, data = self._github.requester.requestJsonAndCheck(
                "POST",
                f"/repos/{full_name}/pages",
                input={"build_type": "workflow", "source": {"branch": DEFAULT_BRANCH, "path": "/"}},
            )
            if data and data.get("html_url"):
                logger.info("Enabled GitHub Pages for %s", full_name)
                return data["html_url"]
        except GithubException as e:
            logger.warning("Enabling Pages for %s failed (%s), checking for existing site", full_name, e)

        pages_url = self._get_pages_url(full_name)
        if pages_url:
            return pages_url

        fallback = f"https://{owner}.github.io/{name}/"
        logger.info("Pages URL for %s not available yet, using %s", full_name, fallback)
        return fallback

    def trigger_workflow(
        self,
        name: str,
        workflow_file: str = DEPLOY_WORKFLOW,
        owner: str | None = None,
        ref: str = DEFAULT_BRANCH,
    ) -> None:
        try:
            workflow = self._get_repo(name, owner).get_workflow(workflow_file)
            dispatched = workflow.create_dispatch(ref)
        except GithubException as e:
            raise GitHubError(f"Failed to trigger workflow: {e}") from e
        if not dispatched:
            raise GitHubError(f"Failed to trigger workflow: {workflow_file} was not dispatched")
