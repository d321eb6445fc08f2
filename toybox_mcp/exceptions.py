"""
Exception types raised by the configuration store and its collaborators.

Corruption and a missing file are repaired inside the store and never
surface. Everything here is propagated to the tool handlers, which turn
it into a failure payload.
"""

from pathlib import Path


class ToyboxError(Exception):
    """Base class for all TOYBOX errors."""


class ConfigValidationError(ToyboxError):
    """A configuration document does not match the schema."""

    def __init__(self, fields: list[str], message: str | None = None):
        self.fields = fields
        super().__init__(message or f"Invalid configuration: {', '.join(fields) or 'document'}")


class RepositoryNotFoundError(ToyboxError):
    """A repository name is not present in the registry."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Repository '{name}' not found in configuration")


class LockTimeoutError(ToyboxError):
    """The configuration lock could not be acquired within the retry budget."""

    def __init__(self, lock_path: Path, attempts: int):
        self.lock_path = lock_path
        self.attempts = attempts
        super().__init__(f"Could not acquire lock {lock_path} after {attempts} attempts")


class ConfigIOError(ToyboxError):
    """Reading, writing or renaming the configuration file failed."""


class GitCommandError(ToyboxError):
    """A git subprocess exited with a non-zero status."""

    def __init__(self, message: str, stderr: str = "", returncode: int | None = None):
        self.stderr = stderr
        self.returncode = returncode
        super().__init__(message)


class GitHubError(ToyboxError):
    """A GitHub API call failed."""
