"""Command-line interface: ``gh-discussions``.

Runs the same sync operations as the MCP tools from a terminal. Conflicts
are asked about interactively unless ``--conflict-policy`` or ``--yes``
says otherwise.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import __version__
from .config import CONFLICT_POLICIES
from .config_loader import ensure_config
from .core.async_utils import init_semaphore
from .core.client import GitHubClient
from .logger import setup_logging
from .mcp.lifespan import build_sync, resolve_config
from .sync.document import format_instant
from .sync.engine import DiscussionSync
from .sync.models import SyncOutcome
from .sync.pagination import walk_pages
from .sync.prompt import AlwaysProceedPrompt
from .sync.reporter import format_outcome, format_sync_report

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gh-discussions",
        description="Sync GitHub Discussions with local Markdown files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gh-discussions init-config
  gh-discussions list
  gh-discussions pull 42
  gh-discussions pull-all --yes
  gh-discussions push 42
  gh-discussions repair 42
  gh-discussions comment 42 --body "Thanks!"
  gh-discussions create --category Ideas --title "New idea" --body-file idea.md
        """,
    )
    parser.add_argument("--token", help="Override GitHub token")
    parser.add_argument("--owner", help="Override repository owner")
    parser.add_argument("--repository", help="Override repository name")
    parser.add_argument("--folder", help="Override the local discussions folder")
    parser.add_argument(
        "--conflict-policy",
        choices=list(CONFLICT_POLICIES),
        default="interactive",
        help="How conflicts are decided (default: interactive)",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Proceed on every conflict (same as --conflict-policy always-proceed)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"gh-discussions version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-config", help="Write a starter config file if none exists")
    sub.add_parser("list", help="List discussions")
    sub.add_parser("categories", help="List discussion categories")

    for name, help_text in (
        ("pull", "Pull one discussion into its local file"),
        ("push", "Push local title and body to GitHub"),
        ("repair", "Rebuild a local file's metadata from GitHub"),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("number", type=int, help="Discussion number")

    pull_all = sub.add_parser("pull-all", help="Pull every discussion")
    pull_all.add_argument(
        "--page-size", type=int, help="Discussions per listing page"
    )

    comment = sub.add_parser("comment", help="Comment on a discussion")
    comment.add_argument("number", type=int, help="Discussion number")
    comment.add_argument("--body", required=True, help="Comment body")
    comment.add_argument("--reply-to", help="Node id of the comment to reply to")

    create = sub.add_parser("create", help="Create a discussion")
    create.add_argument("--category", required=True, help="Category name or id")
    create.add_argument("--title", required=True, help="Discussion title")
    body = create.add_mutually_exclusive_group(required=True)
    body.add_argument("--body", help="Discussion body")
    body.add_argument("--body-file", type=Path, help="Read the body from a file")

    return parser


def _print_outcome(outcome: SyncOutcome) -> int:
    print(format_outcome(outcome))
    return 0 if outcome.success else 1


async def _run_command(args: argparse.Namespace, sync: DiscussionSync) -> int:
    match args.command:
        case "list":
            records = await walk_pages(
                sync.service.get_discussions, sync.page_size
            )
            for r in records:
                print(
                    f"#{r.number}\t{format_instant(r.updated_at)}\t"
                    f"{r.category.name}\t{r.title}"
                )
            return 0
        case "categories":
            for c in await sync.service.get_categories():
                print(f"{c.id}\t{c.name}")
            return 0
        case "pull":
            return _print_outcome(await sync.materialize(args.number))
        case "push":
            return _print_outcome(await sync.push(args.number))
        case "repair":
            return _print_outcome(await sync.repair(args.number))
        case "pull-all":
            report = await sync.materialize_all(args.page_size)
            print(format_sync_report(report))
            return 1 if report.errors else 0
        case "comment":
            return _print_outcome(
                await sync.comment(args.number, args.body, args.reply_to)
            )
        case "create":
            body = (
                args.body_file.read_text(encoding="utf-8")
                if args.body_file
                else args.body
            )
            return _print_outcome(
                await sync.create(args.category, args.title, body)
            )
        case _:
            raise ValueError(f"Unknown command: {args.command}")


async def _main(args: argparse.Namespace) -> int:
    overrides = {
        "token": args.token,
        "owner": args.owner,
        "repository": args.repository,
        "discussions_folder": args.folder,
        "conflict_policy": args.conflict_policy,
        "debug": args.debug,
    }
    config = resolve_config(overrides)
    init_semaphore(config.max_parallel_requests)
    sync = build_sync(config, GitHubClient(config))
    if args.yes:
        sync = sync.with_prompt(AlwaysProceedPrompt())
    return await _run_command(args, sync)


def main(argv: list[str] | None = None) -> int:
    """Console script entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)
    setup_logging(mode="cli", debug=args.debug, log_file=args.log_file)
    if args.command == "init-config":
        print(ensure_config())
        return 0
    try:
        return asyncio.run(_main(args))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    except Exception as e:
        logger.debug("Command failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
