"""Report generation for URL test runs."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import MonitorSettings, get_settings
from ..ui_testing.models import DiagnosticResult, ElementProbeResult
from .report_index import JSON_PREFIX, HTML_PREFIX, format_stamp, scan_reports

logger = structlog.get_logger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

LATEST_JSON = "results.json"
LATEST_HTML = "latest.html"
INDEX_HTML = "index.html"


def categorize_error(error_message: str) -> str:
    """Categorize navigation error messages into types."""
    error_lower = error_message.lower()

    if "timeout" in error_lower:
        return "timeout"
    elif "err_name_not_resolved" in error_lower or "getaddrinfo" in error_lower:
        return "dns"
    elif "invalid url" in error_lower or "cannot navigate to invalid" in error_lower:
        return "invalid_url"
    elif "connection" in error_lower or "err_connection" in error_lower:
        return "connection"
    else:
        return "unknown"


@dataclass
class RunSummary:
    """Aggregated view over every result of one run."""

    timestamp: datetime
    random_url_results: list[DiagnosticResult] = field(default_factory=list)
    element_test_results: list[ElementProbeResult] = field(default_factory=list)

    @property
    def total_random_urls(self) -> int:
        return len(self.random_url_results)

    @property
    def successful_loads(self) -> int:
        return sum(1 for r in self.random_url_results if r.success)

    @property
    def failed_loads(self) -> int:
        return self.total_random_urls - self.successful_loads

    @property
    def total_console_errors(self) -> int:
        return sum(len(r.console_errors) for r in self.random_url_results)

    @property
    def total_network_errors(self) -> int:
        return sum(len(r.network_errors) for r in self.random_url_results)

    @property
    def total_redirects(self) -> int:
        return sum(len(r.redirects) for r in self.random_url_results)

    @property
    def elements_found(self) -> int:
        return sum(1 for r in self.element_test_results if r.exists)

    @property
    def total_element_tests(self) -> int:
        return len(self.element_test_results)

    @property
    def success_rate(self) -> float:
        total = self.total_random_urls
        return (self.successful_loads / total * 100) if total > 0 else 0

    @property
    def element_found_rate(self) -> float:
        total = self.total_element_tests
        return (self.elements_found / total * 100) if total > 0 else 0

    @property
    def average_load_time_ms(self) -> Optional[float]:
        times = [r.load_time_ms for r in self.random_url_results if r.load_time_ms is not None]
        return sum(times) / len(times) if times else None

    def failure_groups(self) -> dict[str, list[str]]:
        """Failed URLs grouped by error category."""
        groups: dict[str, list[str]] = {}
        for result in self.random_url_results:
            if not result.success and result.error:
                groups.setdefault(categorize_error(result.error), []).append(result.url)
        return groups

    def counts(self) -> dict[str, Any]:
        return {
            "total_random_urls": self.total_random_urls,
            "successful_loads": self.successful_loads,
            "failed_loads": self.failed_loads,
            "total_console_errors": self.total_console_errors,
            "total_network_errors": self.total_network_errors,
            "total_redirects": self.total_redirects,
            "elements_found": self.elements_found,
            "total_element_tests": self.total_element_tests,
            "success_rate": self.success_rate,
            "element_found_rate": self.element_found_rate,
            "average_load_time_ms": self.average_load_time_ms,
        }

    def to_dict(self) -> dict[str, Any]:
        groups = self.failure_groups()
        return {
            "timestamp": self.timestamp.isoformat(),
            "summary": self.counts(),
            "failure_analysis": {
                "failure_groups": groups,
                "most_common_error": max(groups, key=lambda k: len(groups[k])) if groups else None,
            },
            "random_url_results": [r.to_dict() for r in self.random_url_results],
            "element_test_results": [r.to_dict() for r in self.element_test_results],
        }


def build_run_summary(
    random_url_results: list[DiagnosticResult],
    element_test_results: list[ElementProbeResult],
    timestamp: Optional[datetime] = None,
) -> RunSummary:
    return RunSummary(
        timestamp=timestamp or datetime.now(timezone.utc),
        random_url_results=list(random_url_results),
        element_test_results=list(element_test_results),
    )


class ReportGenerator:
    """Writes JSON and HTML reports for a run and keeps the index page current."""

    def __init__(self, settings: Optional[MonitorSettings] = None, reports_dir: Optional[str] = None):
        self.settings = settings or get_settings()
        self.reports_dir = Path(reports_dir or self.settings.reports_directory)

        self.jinja_env = Environment(
            loader=FileSystemLoader(str(TEMPLATE_DIR)),
            autoescape=select_autoescape(["html"]),
        )

    def render_html_report(self, summary: RunSummary) -> str:
        template = self.jinja_env.get_template("report.html")
        return template.render(summary=summary, counts=summary.counts())

    def generate_index_page(self) -> str:
        """Render the list of historical reports, newest first.

        Never raises on storage problems: an unreadable directory yields an
        error page and an empty one a "no reports" page.
        """
        template = self.jinja_env.get_template("index.html")
        try:
            entries = scan_reports(self.reports_dir)
        except OSError as e:
            logger.warning("Could not generate index page", reports_dir=str(self.reports_dir), error=str(e))
            return template.render(reports=[], error="Error loading reports list.")
        return template.render(reports=entries, error=None)

    def write_reports(self, summary: RunSummary) -> dict[str, Path]:
        """Persist the run as timestamped JSON + HTML, the latest aliases and the index."""
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        stamp = format_stamp(summary.timestamp)

        report_data = summary.to_dict()
        json_text = json.dumps(report_data, indent=2, default=str)
        html_text = self.render_html_report(summary)

        paths = {
            "json": self.reports_dir / f"{JSON_PREFIX}{stamp}.json",
            "html": self.reports_dir / f"{HTML_PREFIX}{stamp}.html",
            "latest_json": self.reports_dir / LATEST_JSON,
            "latest_html": self.reports_dir / LATEST_HTML,
            "index": self.reports_dir / INDEX_HTML,
        }

        # Write timestamped files first so the index picks up this run
        paths["json"].write_text(json_text, encoding="utf-8")
        paths["html"].write_text(html_text, encoding="utf-8")
        paths["index"].write_text(self.generate_index_page(), encoding="utf-8")
        paths["latest_json"].write_text(json_text, encoding="utf-8")
        paths["latest_html"].write_text(html_text, encoding="utf-8")

        logger.info(
            "Generated run reports",
            report=paths["html"].name,
            total_random_urls=summary.total_random_urls,
            success_rate=summary.success_rate,
        )
        return paths
