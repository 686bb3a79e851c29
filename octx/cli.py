"""CLI entry point for octx."""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta, timezone

from octx.config import get_config
from octx.exceptions import ConfigurationError, OctxError
from octx.logging_utils import get_logger, setup_logging
from octx.models import ErrorPolicy, ResourceKind
from octx.pipeline import ExportRequest, run_export

logger = get_logger(__name__)

# (flag, kind, help)
TARGETS = [
    ("--issues", ResourceKind.ISSUES, "Issues and pull requests (state=all)"),
    ("--comments", ResourceKind.COMMENTS, "Issue comments"),
    ("--events", ResourceKind.EVENTS, "Issue events"),
    ("--commits", ResourceKind.COMMITS, "Commits"),
    ("--pull-request-files", ResourceKind.PULL_REQUEST_FILES, "Files changed by each pull request"),
    ("--reviews", ResourceKind.REVIEWS, "Reviews of each pull request"),
    ("--labels", ResourceKind.LABELS, "Labels"),
    ("--releases", ResourceKind.RELEASES, "Releases"),
    ("--workflows", ResourceKind.WORKFLOWS, "Actions workflows"),
    ("--runs", ResourceKind.RUNS, "Workflow runs (all workflows unless --workflow-file)"),
    ("--jobs", ResourceKind.JOBS, "Run jobs (all runs unless --run-id)"),
    ("--users", ResourceKind.USERS, "All users of the instance"),
    ("--users-detailed", ResourceKind.USERS_DETAILED, "All users, with one detail request each"),
]


def parse_since(value: str) -> datetime:
    """ISO 8601 date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid ISO 8601 date: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def parse_days_ago(value: str) -> int:
    try:
        days = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid number of days: {value!r}") from e
    if days < 0:
        raise argparse.ArgumentTypeError("--days-ago cannot be negative")
    return days


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="octx",
        description="Export GitHub repository metadata as CSV",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  octx --issues octocat hello-world > issues.csv
  octx --events --days-ago 7 octocat hello-world
  octx --runs --workflow-file ci.yml octocat hello-world
  octx --jobs --steps --output steps.csv octocat hello-world
  octx --users
        """,
    )

    target = parser.add_mutually_exclusive_group(required=True)
    for flag, kind, help_text in TARGETS:
        target.add_argument(flag, dest="kind", action="store_const", const=kind, help=help_text)

    parser.add_argument("owner", nargs="?", help="Repository owner")
    parser.add_argument("name", nargs="?", help="Repository name")

    since = parser.add_mutually_exclusive_group()
    since.add_argument("--since-date", type=parse_since, help="Only walk items newer than this date (ISO 8601)")
    since.add_argument("--days-ago", type=parse_days_ago, help="Only walk items from the last N days")

    parser.add_argument("--workflow-file", help="Workflow file name or id (with --runs)")
    parser.add_argument("--run-id", help="Workflow run id (with --jobs)")
    parser.add_argument("--steps", action="store_true", help="One row per job step (with --jobs)")
    parser.add_argument("--output", "-o", help="Write CSV to this file instead of stdout")
    parser.add_argument(
        "--on-row-error",
        choices=[p.value for p in ErrorPolicy],
        default=None,
        help="What to do with items that cannot be converted (default: ON_ROW_ERROR or abort)",
    )
    parser.add_argument("--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default=None)
    parser.add_argument("--log-format", choices=["json", "text"], default="text")
    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = build_parser()
    parsed = parser.parse_args(argv)

    if parsed.kind.repository_scoped and not (parsed.owner and parsed.name):
        parser.error(f"owner and name are required for --{parsed.kind.value}")
    if parsed.workflow_file and parsed.kind is not ResourceKind.RUNS:
        parser.error("--workflow-file can only be used with --runs")
    if (parsed.run_id or parsed.steps) and parsed.kind is not ResourceKind.JOBS:
        parser.error("--run-id and --steps can only be used with --jobs")

    return parsed


def resolve_since(args: argparse.Namespace, now: datetime | None = None) -> datetime | None:
    if args.since_date is not None:
        return args.since_date
    if args.days_ago is not None:
        now = now or datetime.now(timezone.utc)
        return now - timedelta(days=args.days_ago)
    return None


def _export(config, request: ExportRequest, output: str | None) -> None:
    if output:
        with open(output, "w", encoding="utf-8", newline="") as stream:
            run_export(config, request, stream)
    else:
        if hasattr(sys.stdout, "reconfigure"):
            sys.stdout.reconfigure(encoding="utf-8")
        run_export(config, request, sys.stdout)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for CLI execution."""
    args = parse_args(argv)
    setup_logging(level=args.log_level or "INFO", json_format=(args.log_format == "json"))

    try:
        config = get_config()
        if args.log_level is None and config.log_level != "INFO":
            setup_logging(level=config.log_level, json_format=(args.log_format == "json"))

        request = ExportRequest(
            kind=args.kind,
            owner=args.owner,
            repo=args.name,
            since=resolve_since(args),
            workflow=args.workflow_file,
            run_id=args.run_id,
            denormalize_steps=args.steps,
            error_policy=ErrorPolicy(args.on_row_error) if args.on_row_error else config.on_row_error,
        )
        _export(config, request, args.output)
        return 0

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1
    except OctxError as e:
        logger.error(f"Export failed: {e}")
        return 1
    except OSError as e:
        logger.error(f"Cannot write output: {e}")
        return 1
    except KeyboardInterrupt:
        logger.warning("Export interrupted by user")
        return 130
    except Exception as e:
        logger.exception(f"Unexpected error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
