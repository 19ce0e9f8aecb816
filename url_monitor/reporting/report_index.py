"""Discovery and ordering of previously written run reports."""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

# Filename stamp, e.g. report-2024-06-28T12-30-45.html
STAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"
DISPLAY_FORMAT = "%Y-%m-%d %H:%M:%S UTC"

HTML_PREFIX = "report-"
JSON_PREFIX = "results-"


@dataclass(frozen=True)
class ReportIndexEntry:
    filename: str
    timestamp: datetime
    display: str


def format_stamp(timestamp: datetime) -> str:
    return timestamp.astimezone(timezone.utc).strftime(STAMP_FORMAT)


def parse_stamp(stamp: str) -> datetime:
    """Inverse of format_stamp. Raises ValueError on anything else."""
    return datetime.strptime(stamp, STAMP_FORMAT).replace(tzinfo=timezone.utc)


def _timestamp_from_json(path: Path) -> datetime | None:
    """Read the run timestamp stored inside a JSON report, if it is usable."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f).get("timestamp")
        parsed = datetime.fromisoformat(raw)
    except (OSError, ValueError, TypeError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_report_timestamp(reports_dir: Path, filename: str) -> datetime | None:
    """Timestamp for an HTML report.

    The sibling JSON report's own timestamp wins; the filename stamp is the
    fallback for reports whose JSON is missing or unreadable.
    """
    stamp = filename[len(HTML_PREFIX):-len(".html")]
    from_json = _timestamp_from_json(reports_dir / f"{JSON_PREFIX}{stamp}.json")
    if from_json is not None:
        return from_json
    try:
        return parse_stamp(stamp)
    except ValueError:
        return None


def scan_reports(reports_dir: str | Path) -> list[ReportIndexEntry]:
    """List HTML reports in ``reports_dir``, newest first.

    Raises OSError if the directory cannot be read.
    """
    reports_dir = Path(reports_dir)
    entries = []
    for name in sorted(p.name for p in reports_dir.iterdir()):
        if not (name.startswith(HTML_PREFIX) and name.endswith(".html")):
            continue
        timestamp = resolve_report_timestamp(reports_dir, name)
        if timestamp is None:
            logger.warning("Skipping report with unknown timestamp", filename=name)
            continue
        entries.append(ReportIndexEntry(
            filename=name,
            timestamp=timestamp,
            display=timestamp.astimezone(timezone.utc).strftime(DISPLAY_FORMAT),
        ))

    entries.sort(key=lambda e: e.timestamp, reverse=True)
    return entries
