"""
Git operations on a local working copy.

Every call shells out to the ``git`` CLI with asyncio subprocesses; a
non-zero exit is raised as GitCommandError carrying git's stderr.
"""

import asyncio
import logging
import shutil
from pathlib import Path

from toybox_mcp.constants import DEFAULT_BRANCH
from toybox_mcp.exceptions import GitCommandError

logger = logging.getLogger(__name__)


class GitService:
    """Runs git commands inside one repository directory."""

    def __init__(self, repo_path: Path | str):
        self.repo_path = Path(repo_path)

    async def run_command(
        self,
        cmd: str,
        args: list[str],
        cwd: Path | str | None = None,
    ) -> str:
        """
        Run an arbitrary command and return its stdout.

        Raises:
            GitCommandError: the command could not be started or exited non-zero.
        """
        workdir = Path(cwd) if cwd else self.repo_path
        logger.debug("Running %s %s in %s", cmd, " ".join(args), workdir)
        try:
            process = await asyncio.create_subprocess_exec(
                cmd,
                *args,
                cwd=str(workdir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, NotADirectoryError) as e:
            raise GitCommandError(f"Failed to run {cmd}: {e}") from e

        stdout, stderr = await process.communicate()
        out = stdout.decode("utf-8", errors="replace")
        err = stderr.decode("utf-8", errors="replace").strip()

        if process.returncode != 0:
            logger.debug("%s %s exited %s: %s", cmd, args[0] if args else "", process.returncode, err)
            raise GitCommandError(err or f"{cmd} exited with status {process.returncode}",
                                  stderr=err, returncode=process.returncode)
        return out

    async def _git(self, operation: str, *args: str, cwd: Path | None = None) -> str:
        try:
            return await self.run_command("git", list(args), cwd=cwd)
        except GitCommandError as e:
            raise GitCommandError(f"Failed to {operation}: {e}", stderr=e.stderr,
                                  returncode=e.returncode) from e

    # ==========================================
    # Repository
    # ==========================================

    async def repository_exists(self) -> bool:
        """Whether the working copy directory exists on disk."""
        return await asyncio.to_thread(self.repo_path.exists)

    async def is_git_repository(self) -> bool:
        try:
            await self.run_command("git", ["rev-parse", "--git-dir"])
        except GitCommandError:
            return False
        return True

    async def clone_repository(self, repo_url: str, target_path: Path | str | None = None) -> Path:
        """Clone into target_path (default: this repository's path), replacing whatever is there."""
        clone_path = Path(target_path) if target_path else self.repo_path
        clone_path.parent.mkdir(parents=True, exist_ok=True)
        if clone_path.exists():
            await asyncio.to_thread(shutil.rmtree, clone_path)

        await self._git("clone repository", "clone", repo_url, str(clone_path), cwd=clone_path.parent)
        self.repo_path = clone_path
        logger.info("Cloned %s into %s", repo_url, clone_path)
        return clone_path

    async def init_repository(self) -> None:
        self.repo_path.mkdir(parents=True, exist_ok=True)
        await self._git("initialize repository", "init")

    async def get_repository_root(self) -> str:
        return (await self._git("get repository root", "rev-parse", "--show-toplevel")).strip()

    async def configure_user(self, name: str, email: str) -> None:
        await self._git("configure user", "config", "user.name", name)
        await self._git("configure user", "config", "user.email", email)

    # ==========================================
    # Changes
    # ==========================================

    async def add_files(self, patterns: list[str] | None = None) -> None:
        await self._git("add files", "add", *(patterns or ["."]))

    async def commit(self, message: str | list[str]) -> str:
        """
        Commit staged changes.

        A list message becomes one paragraph per entry. Returns the short
        (7 character) commit hash.
        """
        paragraphs = message if isinstance(message, list) else [message]
        args = ["commit"]
        for paragraph in paragraphs:
            args += ["-m", paragraph]
        await self._git("commit", *args)

        commit_hash = await self._git("commit", "rev-parse", "HEAD")
        return commit_hash.strip()[:7]

    async def get_status(self) -> str:
        return await self._git("get status", "status", "--porcelain")

    async def has_uncommitted_changes(self) -> bool:
        return bool((await self.get_status()).strip())

    # ==========================================
    # Branches
    # ==========================================

    async def get_current_branch(self) -> str:
        return (await self._git("get current branch", "branch", "--show-current")).strip()

    async def create_branch(self, branch_name: str) -> None:
        await self._git("create branch", "checkout", "-b", branch_name)

    async def checkout_branch(self, branch_name: str) -> None:
        await self._git("checkout branch", "checkout", branch_name)

    # ==========================================
    # Remotes
    # ==========================================

    async def add_remote(self, name: str, url: str) -> None:
        """Point a remote at url, replacing an existing remote of the same name."""
        try:
            await self.run_command("git", ["remote", "remove", name])
        except GitCommandError:
            logger.debug("No existing remote %s to replace", name)
        await self._git("add remote", "remote", "add", name, url)

    async def remove_remote(self, name: str) -> None:
        await self._git("remove remote", "remote", "remove", name)

    async def push(self, remote: str = "origin", branch: str = DEFAULT_BRANCH, set_upstream: bool = False) -> None:
        args = ["push", "--set-upstream", remote, branch] if set_upstream else ["push", remote, branch]
        await self._git("push", *args)

    async def pull(self, remote: str = "origin", branch: str | None = None) -> None:
        """Pull from remote; branch defaults to the current one."""
        target = branch or await self.get_current_branch()
        await self._git("pull", "pull", remote, target)
