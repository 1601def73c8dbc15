"""Command-line entry point for the interactive commit workflow."""

import argparse
import asyncio
import sys
from typing import List, Optional, Sequence

from commit_assistant import __version__
from commit_assistant.config import CommitSettings
from commit_assistant.errors import CommitAssistantError
from commit_assistant.logging_config import get_logger, set_run_id, setup_logging
from commit_assistant.modules.issue_id import POSITIONS, STYLES
from commit_assistant.ui import ConsoleSelector
from commit_assistant.workflow import build_service

logger = get_logger(__name__)


def _split_patterns(values: Optional[List[str]]) -> Optional[List[str]]:
    """Flatten repeated and comma-separated pattern arguments."""
    if values is None:
        return None
    return [item.strip() for value in values for item in value.split(",") if item.strip()]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="commit-assistant",
        description="Stage changes and commit with an AI-suggested message",
        epilog="Settings can also come from COMMIT_* environment variables; flags win.",
    )
    parser.add_argument("-v", "--version", action="version", version=f"%(prog)s {__version__}")

    # Providers
    parser.add_argument("--providers", type=str, metavar="NAMES", help="Comma-separated providers to ask (default: all configured)")
    parser.add_argument("--timeout", type=float, metavar="SECONDS", help="Per-provider timeout")
    parser.add_argument("--prompt", type=str, metavar="TEMPLATE", help="Custom prompt with {diff}, {branch}, {files} and {format}")
    parser.add_argument("--first", action=argparse.BooleanOptionalAction, default=None, help="Use the first provider that answers")
    parser.add_argument("--multi-line", action=argparse.BooleanOptionalAction, default=None, help="Ask for a subject plus body")

    # Workflow
    parser.add_argument("--auto", action=argparse.BooleanOptionalAction, default=None, help="Commit a suggestion without asking")
    parser.add_argument("--dry-run", action=argparse.BooleanOptionalAction, default=None, help="Do not commit, push or tag")
    parser.add_argument("--push", action=argparse.BooleanOptionalAction, default=None, help="Push after committing")
    parser.add_argument("--tag", type=str.lower, choices=["major", "minor", "patch"], help="Create the next version tag")

    # Staging
    parser.add_argument("-e", "--exclude", action="append", metavar="PATTERN", help="Do not stage matching paths (repeatable)")
    parser.add_argument("-i", "--include-only", action="append", metavar="PATTERN", help="Stage only matching paths (repeatable)")
    parser.add_argument("--use-global-gitignore", action=argparse.BooleanOptionalAction, default=None, help="Honour core.excludesFile")
    parser.add_argument("--max-diff-size", type=int, metavar="BYTES", help="Size limit of the diff sent to providers")

    # Issue ID
    parser.add_argument("--issue-position", choices=POSITIONS, help="Where to add the branch issue ID")
    parser.add_argument("--issue-style", choices=STYLES, help="How to write the branch issue ID")

    # Runtime
    parser.add_argument("-C", "--repo", type=str, metavar="PATH", help="Run in PATH instead of the current directory")
    parser.add_argument("--env-file", type=str, metavar="FILE", help="Load environment variables from FILE")
    parser.add_argument("--log-level", type=str.upper, choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    parser.add_argument("--json-logs", action="store_true", help="Emit logs as JSON")
    return parser


def apply_args(settings: CommitSettings, args: argparse.Namespace) -> CommitSettings:
    """Override environment settings with the flags that were given."""
    if args.providers is not None:
        settings.providers = [name.strip() for name in args.providers.split(",") if name.strip()]

    overrides = {
        "timeout": args.timeout,
        "custom_prompt": args.prompt,
        "first": args.first,
        "multi_line": args.multi_line,
        "auto": args.auto,
        "dry_run": args.dry_run,
        "push": args.push,
        "tag": args.tag,
        "exclude": _split_patterns(args.exclude),
        "include_only": _split_patterns(args.include_only),
        "use_global_gitignore": args.use_global_gitignore,
        "max_diff_size_bytes": args.max_diff_size,
        "issue_position": args.issue_position,
        "issue_style": args.issue_style,
        "log_level": args.log_level,
        "repo_path": args.repo,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(settings, name, value)

    settings.validate()
    return settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the commit workflow.

    Exit codes:
    - 0: Committed, nothing to commit, dry run or cancelled
    - 1: Workflow or configuration error
    - 2: Unexpected failure
    """
    args = build_parser().parse_args(argv)

    try:
        settings = apply_args(CommitSettings.from_env(args.env_file), args)
    except CommitAssistantError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging(log_level=settings.log_level, use_json=args.json_logs, stream="stderr")
    set_run_id()

    try:
        service = build_service(settings, selector=ConsoleSelector(), logger=logger)
        outcome = asyncio.run(service.execute())
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 0
    except CommitAssistantError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Unexpected error", extra={"error": str(e)})
        return 2

    if outcome.merge_request_url:
        print(outcome.merge_request_url)
    return 0


if __name__ == "__main__":
    sys.exit(main())
