"""
TOYBOX MCP server.

Publishes Claude-generated artifacts into a personal static-site repository
and keeps a registry of those repositories in ~/.toybox.json.
"""

__version__ = "1.0.3"
