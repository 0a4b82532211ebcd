"""ToolSpec and ToolRegistry for read-only tool filtering.

Key concepts:
- ToolSpec: Immutable dataclass linking a Tool definition, whether it is
  safe in read-only mode, and an async handler with standardized
  signature (sync, args) -> CallToolResult.
- ToolRegistry: Filters specs at construction time (``read_only=True``
  drops every tool that mutates GitHub), then provides list_tools() and
  call_tool() dispatch with error translation.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import mcp.types as types
import requests

from ...core.client import GitHubAPIError
from ...sync.engine import DiscussionSync

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolSpec:
    """Immutable specification for a single MCP tool.

    Attributes:
        tool: The MCP Tool definition (name, description, inputSchema).
        read_only: ``True`` if the tool never mutates GitHub. Local file
            writes do not count as mutations.
        handler: Async handler with signature (sync, args) -> CallToolResult.
    """

    tool: types.Tool
    read_only: bool
    handler: Callable[
        [DiscussionSync, dict], Awaitable[types.CallToolResult]
    ]


class ToolRegistry:
    """Registry of ToolSpecs, optionally limited to read-only tools."""

    def __init__(self, specs: list[ToolSpec], read_only: bool = False):
        self._specs: dict[str, ToolSpec] = {}
        for spec in specs:
            if not read_only or spec.read_only:
                self._specs[spec.tool.name] = spec

    def list_tools(self) -> list[types.Tool]:
        """Return list of types.Tool for all registered specs."""
        return [spec.tool for spec in self._specs.values()]

    def tool_count(self) -> int:
        """Return number of registered tools."""
        return len(self._specs)

    async def call_tool(
        self,
        name: str,
        arguments: dict | None,
        sync: DiscussionSync,
    ) -> types.CallToolResult:
        """Dispatch tool call to registered handler.

        Translates GitHub API errors, validation errors, and unexpected
        exceptions into structured CallToolResult responses.

        Raises:
            ValueError: If tool name is not registered (unknown or filtered out).
        """
        from .errors import build_error_response, translate_api_error

        spec = self._specs.get(name)
        if spec is None:
            raise ValueError(f"Unknown tool: {name}")
        args = arguments or {}
        try:
            return await spec.handler(sync, args)
        except GitHubAPIError as e:
            logger.warning("GitHub API error in %s: %s", name, e)
            number = args.get("number")
            return translate_api_error(
                e, number if isinstance(number, int) else None
            )
        except requests.RequestException as e:
            logger.warning("Transport error in %s: %s", name, e)
            return build_error_response(
                "server_error",
                str(e),
                "Check network connectivity to GitHub and retry.",
            )
        except ValueError as e:
            return build_error_response(
                "validation_error",
                str(e),
                "Check parameter values and retry.",
            )
        except Exception as e:
            logger.exception("Unexpected error in tool %s", name)
            return build_error_response(
                "server_error",
                str(e),
                "Retry later or check the server log.",
            )
