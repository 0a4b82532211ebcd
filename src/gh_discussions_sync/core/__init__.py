"""GitHub GraphQL client functionality shared between CLI and MCP server."""

from .async_utils import run_sync
from .client import GitHubAPIError, GitHubClient

__all__ = ["GitHubAPIError", "GitHubClient", "run_sync"]
