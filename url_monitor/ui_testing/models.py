"""Result types produced by page tests."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any

FAILED_STATUS = "FAILED"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class ConsoleError:
    text: str
    location: dict[str, Any] = field(default_factory=dict)


@dataclass
class NetworkError:
    url: str
    status: int | str  # HTTP status, or FAILED_STATUS when no response arrived
    status_text: str = ""


@dataclass
class Redirect:
    from_url: str
    to_url: str
    status: int
    status_text: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_url,
            "to": self.to_url,
            "status": self.status,
            "status_text": self.status_text,
        }


@dataclass
class DiagnosticResult:
    """Outcome of loading one URL and watching its console and network traffic."""

    url: str
    success: bool
    final_url: str
    title: str | None = None
    error: str | None = None
    load_time_ms: int | None = None
    console_errors: list[ConsoleError] = field(default_factory=list)
    network_errors: list[NetworkError] = field(default_factory=list)
    redirects: list[Redirect] = field(default_factory=list)
    screenshot_path: str | None = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        """Convert the result to a JSON friendly dictionary."""
        return {
            "url": self.url,
            "success": self.success,
            "title": self.title,
            "error": self.error,
            "load_time_ms": self.load_time_ms,
            "final_url": self.final_url,
            "console_errors": [asdict(e) for e in self.console_errors],
            "network_errors": [asdict(e) for e in self.network_errors],
            "redirects": [r.to_dict() for r in self.redirects],
            "screenshot_path": self.screenshot_path,
            "timestamp": self.timestamp,
        }


@dataclass
class ElementInfo:
    tag_name: str
    visible: bool
    text_content: str | None = None


@dataclass
class ElementProbeResult:
    """Outcome of looking for a selector on a page."""

    url: str
    selector: str
    description: str
    exists: bool
    success: bool
    element_info: ElementInfo | None = None
    error: str | None = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "url": self.url,
            "selector": self.selector,
            "description": self.description,
            "exists": self.exists,
            "element_info": asdict(self.element_info) if self.element_info else None,
            "success": self.success,
            "error": self.error,
            "timestamp": self.timestamp,
        }
