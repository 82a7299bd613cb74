"""
Command-line entry point for stale-branches.
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from dotenv import load_dotenv
import structlog

from stalebranches import __version__
from stalebranches.config import Settings, load_settings
from stalebranches.core import StaleBranchReconciler
from stalebranches.models import StaleReport
from stalebranches.providers import BranchHost, factory as provider_factory
from stalebranches.reporting import export_report, log_totals, write_step_outputs
from stalebranches.utils.errors import ConfigurationError, StaleBranchesError

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO", fmt: str = "console") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
        format="%(message)s",
        force=True,
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stale-branches",
        description="Track stale branches with issues and delete them after a grace period.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--repository", help="owner/repo (default: GITHUB_REPOSITORY).")
    parser.add_argument("--days-before-stale", type=int, help="Days without commits before a branch is stale.")
    parser.add_argument("--days-before-delete", type=int, help="Days without commits before a stale branch is deleted.")
    parser.add_argument("--max-issues", type=int, help="Maximum number of open tracking issues.")
    parser.add_argument("--stale-branch-label", help="Label identifying tracking issues.")
    parser.add_argument(
        "--tag-last-committer",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Mention the last committer in tracking issues.",
    )
    parser.add_argument("--comment-updates", help="Update comments on existing issues: off, brief or full.")
    parser.add_argument("--compare-branches", help="Base ref branches are compared against (default: repository default branch).")
    parser.add_argument("--compare-mode", help="off, info or save (save keeps branches that are ahead of the base).")
    parser.add_argument("--report-path", help="Write the report here ('-' for stdout).")
    parser.add_argument("--report-format", help="csv or json.")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR.")
    parser.add_argument(
        "--log-format",
        choices=["console", "json"],
        default=os.getenv("SB_LOG_FORMAT", "console"),
        help="Log renderer.",
    )
    return parser


async def run(settings: Settings, provider: Optional[BranchHost] = None) -> StaleReport:
    """Reconcile the configured repository once."""
    provider = provider or provider_factory.get_provider("github", settings)
    if provider is None:
        raise ConfigurationError("Unsupported provider", field="provider")
    logger.info(
        "Starting stale branch run",
        repository=settings.repository,
        days_before_stale=settings.days_before_stale,
        days_before_delete=settings.days_before_delete,
        max_issues=settings.max_issues,
    )
    return await StaleBranchReconciler(provider, settings).run()


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    load_dotenv()
    configure_logging(args.log_level or os.getenv("SB_LOG_LEVEL", "INFO"), args.log_format)

    try:
        settings = load_settings(overrides=vars(args))
    except ConfigurationError as exc:
        logger.error("Invalid inputs", message=exc.message, details=exc.details)
        return 2
    configure_logging(settings.log_level, args.log_format)

    try:
        report = asyncio.run(run(settings))
    except StaleBranchesError as exc:
        logger.error("Run failed", message=exc.message, details=exc.details)
        return 1

    log_totals(report)
    try:
        if settings.report_path:
            export_report(report, settings.report_path, settings.report_format)
        write_step_outputs(report)
    except OSError as exc:
        logger.error("Failed to write report", path=str(settings.report_path or ""), error=str(exc))
        return 1
    return 1 if report.failed else 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
