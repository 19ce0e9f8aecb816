"""Reporting module for URL test runs."""

from .report_generator import ReportGenerator, RunSummary, build_run_summary
from .report_index import ReportIndexEntry, scan_reports

__all__ = ["ReportGenerator", "RunSummary", "build_run_summary", "ReportIndexEntry", "scan_reports"]
