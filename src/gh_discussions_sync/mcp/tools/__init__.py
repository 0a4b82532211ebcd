"""MCP tool handlers for GitHub Discussions sync.

This package contains MCP tool implementations that wrap the sync
orchestrator with async handlers and structured error responses.
"""

from .discussions import DISCUSSION_READ_SPECS, DISCUSSION_WRITE_SPECS
from .errors import build_error_response, translate_api_error
from .registry import ToolRegistry, ToolSpec

ALL_SPECS: list[ToolSpec] = DISCUSSION_READ_SPECS + DISCUSSION_WRITE_SPECS

__all__ = [
    "build_error_response",
    "translate_api_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    # Spec lists
    "ALL_SPECS",
    "DISCUSSION_READ_SPECS",
    "DISCUSSION_WRITE_SPECS",
]
