"""
Shared default values.

Everything user-facing that has a default lives here so the handlers,
the tool schemas and the persisted configuration agree with each other.
"""

from toybox_mcp import __version__

SERVER_NAME = "toybox-mcp-server"
SERVER_VERSION = __version__

# Template the user's site is created from
TEMPLATE_OWNER = "isnbh0"
TEMPLATE_REPO = "toybox-template"

USER_REPO_NAME = "toybox"

# Working copies live in ~/.toybox/<repo-name>
TOYBOX_DIR_NAME = ".toybox"

# Registry document, ~/.toybox.json
CONFIG_FILE_NAME = ".toybox.json"
CONFIG_VERSION = "1.0.0"

DEFAULT_COMMIT_MESSAGE = "feat: Add new artifact via TOYBOX"

# Site configuration stored inside each working copy
SITE_CONFIG_FILE_NAME = "TOYBOX_CONFIG.json"
SITE_CONFIG_DEFAULTS = {
    "title": "My TOYBOX",
    "description": "A collection of my creative artifacts",
    "theme": "auto",
    "layout": "grid",
    "showFooter": True,
}

ARTIFACTS_DIR = ("src", "artifacts")
DEPLOY_WORKFLOW = "deploy.yml"
DEFAULT_BRANCH = "main"

NO_ACTIVE_REPOSITORY_MESSAGE = (
    "No active TOYBOX repository found. "
    "Please run initialize_toybox first or set an active repository."
)

NOT_AUTHENTICATED_MESSAGE = (
    "Not authenticated with GitHub. Set GITHUB_TOKEN or run: gh auth login"
)

# Vite dev server used for local previews in debug mode
DEV_SERVER_URL = "http://localhost:5173/"

# Gallery base used before a repository has a published URL
PLACEHOLDER_SITE_URL = "https://example.github.io/{name}"
