"""Unified configuration schema for gh_discussions_sync.

Defines Pydantic models for the YAML config structure with dedicated
sections for the GitHub connection, sync behaviour and logging. Includes
adapter functions that flatten the unified config into fallbacks for the
``Config`` dataclass.

Usage:
    from gh_discussions_sync.config_schema import (
        UnifiedConfig, build_config, to_yaml_fallbacks,
    )

    raw = load_hierarchical_config()
    unified = build_config(raw)
    fallbacks = to_yaml_fallbacks(unified)
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class GitHubConfig(BaseModel):
    """GitHub connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    token: str | None = Field(
        default=None, description="GitHub personal access token"
    )
    owner: str | None = Field(
        default=None, description="Repository owner login"
    )
    repository: str | None = Field(
        default=None, description="Repository name"
    )
    api_url: str | None = Field(
        default=None, description="GraphQL endpoint override"
    )
    max_parallel_requests: int = Field(
        default=4,
        ge=1,
        le=32,
        description="Maximum concurrent GitHub API calls (1-32)",
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Local mirror settings.

    Attributes:
        discussions_folder: Folder for ``discussion-{number}.md`` files.
        page_size: Discussions fetched per listing page.
        conflict_policy: How conflicts are decided when nobody is asked.
        decision_timeout: Seconds to wait for a decision before failing
            closed. ``None`` waits forever.
    """

    discussions_folder: str | None = Field(
        default=None, description="Local discussions folder"
    )
    page_size: int = Field(
        default=20, ge=1, le=100, description="Listing page size (1-100)"
    )
    conflict_policy: Literal[
        "interactive", "always-proceed", "never-proceed"
    ] = Field(default="never-proceed", description="Conflict policy")
    decision_timeout: float | None = Field(
        default=None, gt=0, description="Decision timeout in seconds"
    )

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str = Field(default="INFO", description="Log level")
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()``
    (zero-config) is always valid.
    """

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Factory function
# ---------------------------------------------------------------------------


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Missing sections get defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


# ---------------------------------------------------------------------------
# Adapter: UnifiedConfig -> load_config() fallbacks
# ---------------------------------------------------------------------------


def to_yaml_fallbacks(unified: UnifiedConfig) -> dict:
    """Flatten the ``github`` and ``sync`` sections for ``load_config()``.

    ``None`` values are dropped so they never shadow built-in defaults.
    """
    merged = {
        **unified.github.model_dump(),
        **unified.sync.model_dump(),
    }
    return {k: v for k, v in merged.items() if v is not None}
