"""MCP Server for GitHub Discussions sync using stdio transport.

This module implements the Model Context Protocol server that lets AI
agents pull, edit, and push GitHub Discussions as local Markdown files.

Transport: stdio
Protocol: JSON-RPC 2.0 over MCP
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..config import CONFLICT_POLICIES
from ..logger import setup_logging
from ..sync.engine import DiscussionSync
from .lifespan import server_lifespan
from .tools import ALL_SPECS, ToolRegistry, build_error_response
from .tools.registry import ToolSpec

logger = logging.getLogger(__name__)

# Initialize server instance
server = Server("gh-discussions-sync")

# Global orchestrator instance (initialized in lifespan)
_sync: DiscussionSync | None = None

# Global registry instance (initialized in main)
_registry: ToolRegistry | None = None


# ---------------------------------------------------------------------------
# Ping tool (always available)
# ---------------------------------------------------------------------------


async def _handle_ping(
    sync: DiscussionSync, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- test GitHub connectivity."""
    try:
        login = await sync.service.validate_connection()
        config = sync.service.config
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=(
                        f"GitHub Discussions MCP server connected as {login}. "
                        f"Repository: {config.owner}/{config.repository}, "
                        f"folder: {config.discussions_folder}"
                    ),
                )
            ]
        )
    except Exception as e:
        return types.CallToolResult(
            content=[
                types.TextContent(
                    type="text",
                    text=f"GitHub connection failed: {e}. Check GITHUB_TOKEN.",
                )
            ],
            isError=True,
        )


PING_SPEC = ToolSpec(
    tool=types.Tool(
        name="ping",
        description="Test GitHub connectivity and show the authenticated user and target repository",
        inputSchema={
            "type": "object",
            "properties": {},
            "required": [],
        },
    ),
    read_only=True,
    handler=_handle_ping,
)


# ---------------------------------------------------------------------------
# Global accessors
# ---------------------------------------------------------------------------


def get_sync() -> DiscussionSync:
    """Get the global DiscussionSync instance.

    Raises:
        RuntimeError: If the orchestrator is not initialized
    """
    if _sync is None:
        raise RuntimeError(
            "DiscussionSync not initialized. Server lifespan not started."
        )
    return _sync


def set_sync(sync: DiscussionSync | None) -> None:
    """Set the global DiscussionSync instance, or None to clear."""
    global _sync
    _sync = sync


def get_registry() -> ToolRegistry:
    """Get the global ToolRegistry instance.

    Raises:
        RuntimeError: If registry is not initialized
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    """Set the global ToolRegistry instance, or None to clear."""
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# MCP protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """List the registered discussion tools."""
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Handle tool execution via ToolRegistry dispatch."""
    sync = get_sync()
    try:
        return await get_registry().call_tool(name, arguments, sync)
    except ValueError as e:
        # Unknown or filtered-out tool name
        return build_error_response(
            "unknown_tool",
            str(e),
            "Use list_tools to see available tools.",
        )


# ---------------------------------------------------------------------------
# Server lifecycle
# ---------------------------------------------------------------------------


def build_registry(read_only: bool = False) -> ToolRegistry:
    """Build the tool registry, optionally without GitHub write tools."""
    all_specs = [PING_SPEC] + ALL_SPECS
    registry = ToolRegistry(all_specs, read_only=read_only)
    logger.info(
        "Registered %d tools (of %d total)",
        registry.tool_count(),
        len(all_specs),
    )
    return registry


async def main(config_overrides: dict | None = None):
    """Run the MCP server with stdio transport.

    Logging is set up for MCP mode (file only, never stdout) before the
    stdio transport starts, so nothing contaminates protocol output.

    Args:
        config_overrides: Optional dict with config values to override
            (token, owner, repository, discussions_folder,
            conflict_policy, log_file, read_only)
    """
    overrides = dict(config_overrides or {})
    log_file = overrides.pop("log_file", None)
    read_only = overrides.pop("read_only", False)

    setup_logging(mode="mcp", log_file=log_file)

    registry = build_registry(read_only)
    if read_only:
        print(
            f"Read-only mode: {registry.tool_count()} tools enabled",
            file=sys.stderr,
        )
    set_registry(registry)

    # set_sync() is called here rather than inside the lifespan so that
    # running as `python -m gh_discussions_sync.mcp.server` updates this
    # module's globals and not a second imported copy of it.
    async with server_lifespan(config_overrides=overrides) as ctx:
        set_sync(ctx["sync"])
        try:
            async with mcp.server.stdio.stdio_server() as (
                read_stream,
                write_stream,
            ):
                init_options = InitializationOptions(
                    server_name="gh-discussions-sync",
                    server_version=__version__,
                    capabilities=server.get_capabilities(
                        notification_options=NotificationOptions(),
                        experimental_capabilities={},
                    ),
                )
                await server.run(
                    read_stream, write_stream, init_options
                )
        finally:
            set_sync(None)
            set_registry(None)


def run() -> None:
    """Entry point that handles errors gracefully and parses CLI arguments."""
    parser = argparse.ArgumentParser(
        description="GitHub Discussions MCP Server - sync discussions with local Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run with default config (from .env or .gh_discussions/config.yml)
  gh-discussions-mcp

  # Override the target repository
  gh-discussions-mcp --owner octo-org --repository octo-repo

  # Store files elsewhere and overwrite on conflicts
  gh-discussions-mcp --folder docs/discussions --conflict-policy always-proceed

  # Expose only tools that never write to GitHub
  gh-discussions-mcp --read-only

Note: This server uses stdio transport for JSON-RPC communication with MCP clients.
All user-facing messages are written to stderr.
        """,
    )

    parser.add_argument(
        "--token",
        help="Override GitHub token (visible in process list -- prefer GITHUB_TOKEN env var)",
    )
    parser.add_argument(
        "--owner",
        help="Override repository owner (takes precedence over GITHUB_OWNER and config files)",
    )
    parser.add_argument(
        "--repository",
        help="Override repository name (takes precedence over GITHUB_REPOSITORY and config files)",
    )
    parser.add_argument(
        "--folder",
        help="Override the local discussions folder (default: Discussions)",
    )
    parser.add_argument(
        "--conflict-policy",
        choices=[p for p in CONFLICT_POLICIES if p != "interactive"],
        help="How conflicts are decided (default: never-proceed)",
    )
    parser.add_argument(
        "--log-file",
        default="/tmp/gh-discussions-sync.log",
        help="Log file path (default: /tmp/gh-discussions-sync.log)",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        help="Hide tools that modify GitHub (push, comment, create)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"gh-discussions-mcp version {__version__}",
    )

    args = parser.parse_args()

    config_overrides: dict = {}
    if args.token:
        config_overrides["token"] = args.token
    if args.owner:
        config_overrides["owner"] = args.owner
    if args.repository:
        config_overrides["repository"] = args.repository
    if args.folder:
        config_overrides["discussions_folder"] = args.folder
    if args.conflict_policy:
        config_overrides["conflict_policy"] = args.conflict_policy
    if args.log_file:
        config_overrides["log_file"] = args.log_file
    if args.read_only:
        config_overrides["read_only"] = True

    overridden = [
        k for k in config_overrides if k not in ("token", "log_file")
    ]
    if overridden:
        print(
            f"Config overrides from CLI: {', '.join(overridden)}",
            file=sys.stderr,
        )

    try:
        asyncio.run(main(config_overrides=config_overrides))
    except RuntimeError:
        # Error already printed to stderr by lifespan manager
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
