"""Lifespan management for MCP server startup and shutdown."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv

from ..config import Config, load_config
from ..config_loader import (
    discover_config_files,
    load_hierarchical_config,
)
from ..config_schema import build_config, to_yaml_fallbacks
from ..core.async_utils import init_semaphore
from ..core.client import GitHubClient
from ..sync.engine import DiscussionSync
from ..sync.prompt import create_prompt
from ..sync.service import DiscussionService
from ..sync.store import DocumentStore

logger = logging.getLogger(__name__)


def _stderr_print(msg: str) -> None:
    """Print message to stderr for user feedback (safe in MCP mode)."""
    print(msg, file=sys.stderr, flush=True)


def resolve_config(config_overrides: dict[str, Any] | None = None) -> Config:
    """Merge CLI overrides, env vars, .env and YAML into a ``Config``.

    Raises:
        ValueError: If required settings are missing or invalid.
    """
    # .env first so ${VAR} interpolation in YAML can see its values
    load_dotenv()

    yaml_fallbacks: dict[str, Any] | None = None
    if discover_config_files():
        yaml_fallbacks = to_yaml_fallbacks(
            build_config(load_hierarchical_config())
        )

    overrides = config_overrides or {}
    return load_config(
        token=overrides.get("token"),
        owner=overrides.get("owner"),
        repository=overrides.get("repository"),
        discussions_folder=overrides.get("discussions_folder"),
        conflict_policy=overrides.get("conflict_policy"),
        debug=overrides.get("debug", False),
        yaml_fallbacks=yaml_fallbacks,
    )


def build_sync(config: Config, client: GitHubClient) -> DiscussionSync:
    """Wire service, store and prompt into a ``DiscussionSync``."""
    return DiscussionSync(
        service=DiscussionService(client),
        store=DocumentStore(config.discussions_folder),
        prompt=create_prompt(config.conflict_policy),
        page_size=config.page_size,
        decision_timeout=config.decision_timeout,
    )


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """
    Manage server startup and shutdown lifecycle.

    On startup:
    - Load .env, then YAML config fallbacks, then merge all sources via
      load_config(): CLI > env vars > .env > YAML > defaults
    - Create GitHubClient and validate the token
    - Fail fast if GitHub is unreachable

    Args:
        config_overrides: Optional dict with config values from CLI
            (token, owner, repository, discussions_folder, conflict_policy)

    Yields:
        Dict with 'sync' (DiscussionSync) and 'config' keys

    Raises:
        RuntimeError: If configuration is invalid or the connection fails.
    """
    logger.info("MCP server starting...")
    _stderr_print("GitHub Discussions MCP Server starting...")

    try:
        config = resolve_config(config_overrides)
        logger.info(
            "Repository: %s/%s, folder: %s",
            config.owner,
            config.repository,
            config.discussions_folder,
        )
        _stderr_print(f"  Repository: {config.owner}/{config.repository}")
        _stderr_print(f"  Discussions folder: {config.discussions_folder}")
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        raise RuntimeError(
            f"Configuration error: {e}. Ensure GITHUB_TOKEN, GITHUB_OWNER, GITHUB_REPOSITORY are set."
        ) from e

    logger.info("Validating GitHub connection...")
    _stderr_print("  Validating GitHub connection...")
    try:
        init_semaphore(config.max_parallel_requests)
        client = GitHubClient(config)
        sync = build_sync(config, client)
        login = await sync.service.validate_connection()
        logger.info("Authenticated as %s", login)
        _stderr_print(f"  Authenticated as {login}")
        _stderr_print(
            "Server ready. Waiting for MCP client connection..."
        )
    except Exception as e:
        logger.error("Failed to connect to GitHub: %s", e)
        _stderr_print("ERROR: GitHub connection failed.")
        _stderr_print(f"  {e}")
        raise RuntimeError(
            f"GitHub connection failed: {e}. Check GITHUB_TOKEN and DISCUSSIONS_API_URL."
        ) from e

    yield {"sync": sync, "config": config}

    logger.info("MCP server shutting down")
    _stderr_print("GitHub Discussions MCP Server shutting down.")
