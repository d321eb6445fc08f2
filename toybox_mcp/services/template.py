"""
Local site template handling.

Used when a TOYBOX is created from a template directory on disk instead of
from the GitHub template repository.
"""

import json
import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)

IGNORED_DIRS = {".git", "node_modules"}

REQUIRED_TEMPLATE_FILES = (
    "package.json",
    "vite.config.ts",
    "index.html",
    "src",
    "TOYBOX_CONFIG.json",
)

TEMPLATE_ONLY_FILES = ("TEMPLATE_README.md", "github.config.json.example")

# Files that may contain placeholders such as {{REPO_NAME}}
REPLACEMENT_TARGETS = (
    "package.json",
    "vite.config.ts",
    "vite.config.js",
    "src/components/AboutPage.tsx",
    "index.html",
    "public/404.html",
)


def copy_local_template(
    template_path: Path | str,
    destination: Path | str,
    replacements: dict[str, str] | None = None,
) -> None:
    """
    Copy a template directory, skipping VCS and dependency folders.

    Placeholders in REPLACEMENT_TARGETS are replaced literally afterwards.

    Raises:
        FileNotFoundError: the template directory does not exist.
    """
    src = Path(template_path).expanduser()
    dest = Path(destination)
    if not src.is_dir():
        raise FileNotFoundError(f"Template directory not found: {src}")

    logger.info("Copying local template %s to %s", src, dest)
    shutil.copytree(
        src,
        dest,
        ignore=shutil.ignore_patterns(*IGNORED_DIRS),
        dirs_exist_ok=True,
    )

    if replacements:
        apply_replacements(dest, replacements)


def apply_replacements(directory: Path, replacements: dict[str, str]) -> None:
    for relative in REPLACEMENT_TARGETS:
        path = directory / relative
        if not path.is_file():
            continue
        content = path.read_text(encoding="utf-8")
        for placeholder, value in replacements.items():
            content = content.replace(placeholder, value)
        path.write_text(content, encoding="utf-8")


def validate_template(template_path: Path | str) -> bool:
    """Whether the directory has every file a TOYBOX site needs."""
    root = Path(template_path).expanduser()
    missing = [name for name in REQUIRED_TEMPLATE_FILES if not (root / name).exists()]
    if missing:
        logger.warning("Template %s is missing: %s", root, ", ".join(missing))
        return False
    return True


def personalize_template(repo_path: Path | str, username: str, repo_name: str) -> None:
    """
    Point a freshly created working copy at its owner.

    Updates github.config.json (the deploy base path comes from it) and
    drops the files that only make sense in the template repository.
    """
    root = Path(repo_path)
    github_config_path = root / "github.config.json"

    github_config = {}
    if github_config_path.exists():
        try:
            github_config = json.loads(github_config_path.read_text(encoding="utf-8"))
        except ValueError as e:
            logger.warning("Could not parse %s, rewriting it: %s", github_config_path, e)
    github_config.update({
        "username": username,
        "repository": repo_name,
        "description": f"Configuration for {username}'s TOYBOX deployment",
    })
    github_config_path.write_text(json.dumps(github_config, indent=2) + "\n", encoding="utf-8")

    for name in TEMPLATE_ONLY_FILES:
        (root / name).unlink(missing_ok=True)

    logger.info("Personalized template for %s/%s", username, repo_name)
