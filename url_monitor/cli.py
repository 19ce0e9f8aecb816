"""Command line entry point: sample URLs, test them and write reports.

Usage:
    url-monitor                                   # urls.json + config.json, reports in ./reports
    url-monitor --urls urls.json --config config.json --reports-dir public
    url-monitor --count 3 --seed 42               # reproducible sample of 3 URLs
    python -m url_monitor --headed
"""

import argparse
import asyncio
import logging
import random
import sys
from typing import Optional

import structlog

from .config import ConfigError, MonitorSettings, load_run_config, load_settings, load_urls
from .reporting.report_generator import ReportGenerator, RunSummary, build_run_summary
from .ui_testing.runner import UITestRunner

logger = structlog.get_logger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging for the process."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="ISO"),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="url-monitor",
        description="Load a random subset of URLs, record console/network errors and probe elements.",
    )
    parser.add_argument("--urls", default="urls.json", help="JSON/YAML document with a 'urls' list")
    parser.add_argument("--config", default="config.json", help="Run configuration (JSON/YAML)")
    parser.add_argument("--settings", default=None, help="Settings YAML (default: $URL_MONITOR_CONFIG)")
    parser.add_argument("--reports-dir", default=None, help="Directory for reports")
    parser.add_argument("--count", type=int, default=None, help="Override randomUrlCount")
    parser.add_argument("--seed", type=int, default=None, help="Seed for URL sampling")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--log-level", default=None, help="Logging level (default from settings)")
    return parser


def print_summary(summary: RunSummary, report_name: str) -> None:
    """Print a short run summary to stdout."""
    print("\n" + "=" * 50)
    print("URL TEST RESULTS SUMMARY")
    print("=" * 50)
    print(f"URLs loaded: {summary.successful_loads}/{summary.total_random_urls}")
    print(f"Elements found: {summary.elements_found}/{summary.total_element_tests}")
    print(f"Console errors: {summary.total_console_errors}")
    print(f"Network errors: {summary.total_network_errors}")
    print(f"Redirects: {summary.total_redirects}")

    if summary.failed_loads > 0:
        print("\nFAILED URLS:")
        for result in summary.random_url_results:
            if not result.success:
                print(f"- {result.url}: {result.error}")

    print(f"\nReport saved: {report_name}")


async def run(args: argparse.Namespace, settings: MonitorSettings) -> RunSummary:
    """Run the whole pipeline. Configuration problems raise ConfigError."""
    urls = load_urls(args.urls)
    run_config = load_run_config(args.config)
    if args.count is not None:
        run_config.random_url_count = max(0, args.count)

    rng = random.Random(args.seed) if args.seed is not None else None

    logger.info(
        "Starting URL test run",
        candidates=len(urls),
        random_url_count=run_config.random_url_count,
        element_tests=len(run_config.element_tests),
    )

    async with UITestRunner(settings) as runner:
        results = await runner.run(urls, run_config, rng=rng)

    summary = build_run_summary(results.random_url_results, results.element_test_results)
    paths = ReportGenerator(settings).write_reports(summary)
    print_summary(summary, paths["html"].name)
    return summary


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        settings = load_settings(args.settings)
    except ConfigError as e:
        configure_logging(args.log_level or "INFO")
        logger.error("Invalid settings", error=str(e))
        return 1

    if args.reports_dir:
        settings.reports_directory = args.reports_dir
    if args.headed:
        settings.browser_headless = False
    configure_logging(args.log_level or settings.log_level)

    try:
        asyncio.run(run(args, settings))
    except ConfigError as e:
        logger.error("Configuration error", error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.warning("Test run interrupted by user")
        return 1
    except Exception as e:
        logger.exception("Error running tests", error=str(e))
        return 1

    logger.info("Testing complete", reports_dir=settings.reports_directory)
    return 0


if __name__ == "__main__":
    sys.exit(main())
