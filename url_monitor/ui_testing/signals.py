"""Per-test capture of console errors, network errors and redirects."""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

import structlog
from playwright.async_api import ConsoleMessage, Page, Request, Response

from ..config import ErrorWhitelist
from .models import FAILED_STATUS, ConsoleError, NetworkError, Redirect
from .whitelist import is_whitelisted

logger = structlog.get_logger(__name__)


def _is_ok_status(status: int) -> bool:
    # 0 is reported for opaque/cached responses; 3xx hops are tracked as redirects instead.
    return status == 0 or 200 <= status < 400


class SignalCollector:
    """Collects diagnostic signals for a single page test.

    A collector is built fresh for every test and attached to the page only
    for the duration of that test. Whitelist filtering and deduplication happen
    when an event is observed, so the lists are final as soon as the page is
    detached.
    """

    def __init__(self, whitelist: ErrorWhitelist | None = None):
        self.whitelist = whitelist or ErrorWhitelist()
        self.console_errors: list[ConsoleError] = []
        self.network_errors: list[NetworkError] = []
        self.redirects: list[Redirect] = []
        self._seen_console: set[str] = set()
        self._seen_network: set[str] = set()
        self._page: Page | None = None

    @property
    def attached(self) -> bool:
        return self._page is not None

    def attach(self, page: Page) -> None:
        """Start listening to the page's console, response and requestfailed events."""
        if self._page is not None:
            raise RuntimeError("SignalCollector is already attached to a page")
        page.on("console", self.on_console)
        page.on("response", self.on_response)
        page.on("requestfailed", self.on_request_failed)
        self._page = page

    def detach(self) -> None:
        """Stop listening. Safe to call more than once."""
        page = self._page
        if page is None:
            return
        page.remove_listener("console", self.on_console)
        page.remove_listener("response", self.on_response)
        page.remove_listener("requestfailed", self.on_request_failed)
        self._page = None

    def on_console(self, msg: ConsoleMessage) -> None:
        if msg.type != "error":
            return
        text = msg.text
        if is_whitelisted(text, self.whitelist.console_errors):
            logger.debug("Ignoring whitelisted console error", text=text)
            return
        if text in self._seen_console:
            return
        self._seen_console.add(text)
        self.console_errors.append(ConsoleError(text=text, location=dict(msg.location or {})))

    def on_response(self, response: Response) -> None:
        status = response.status
        response_url = response.url

        if 300 <= status < 400:
            from_url = response.request.url
            location = (response.headers or {}).get("location")
            self.redirects.append(Redirect(
                from_url=from_url,
                to_url=urljoin(from_url, location) if location else response_url,
                status=status,
                status_text=response.status_text,
            ))

        if not _is_ok_status(status):
            self._record_network_error(
                key=f"{status}-{response_url}",
                url=response_url,
                status=status,
                status_text=response.status_text,
            )

    def on_request_failed(self, request: Request) -> None:
        failed_url = request.url
        self._record_network_error(
            key=f"{FAILED_STATUS}-{failed_url}",
            url=failed_url,
            status=FAILED_STATUS,
            status_text=request.failure or "Request failed",
        )

    def _record_network_error(self, key: str, url: str, status: int | str, status_text: str) -> None:
        if is_whitelisted(url, self.whitelist.network_errors):
            logger.debug("Ignoring whitelisted network error", url=url, status=status)
            return
        if key in self._seen_network:
            return
        self._seen_network.add(key)
        self.network_errors.append(NetworkError(url=url, status=status, status_text=status_text))

    def snapshot(self) -> dict[str, Any]:
        """Copies of the collected lists, keyed like the result fields."""
        return {
            "console_errors": list(self.console_errors),
            "network_errors": list(self.network_errors),
            "redirects": list(self.redirects),
        }
