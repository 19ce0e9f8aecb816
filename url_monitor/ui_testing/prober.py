"""Single-tab page tests: load diagnostics and element probes."""

from __future__ import annotations

import re
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

import structlog
from playwright.async_api import Error as PlaywrightError, Page

from ..config import ErrorWhitelist, MonitorSettings
from .models import DiagnosticResult, ElementInfo, ElementProbeResult
from .signals import SignalCollector

logger = structlog.get_logger(__name__)

TEXT_CONTENT_LIMIT = 100

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


class PageProber:
    """Drives one browser tab through diagnostic and element tests.

    Tests are meant to run one after another on the same page. Only one
    SignalCollector is ever attached to the page at a time.
    """

    def __init__(self, settings: MonitorSettings):
        self.settings = settings
        self._active_collector: SignalCollector | None = None

    @property
    def timeout_ms(self) -> int:
        return self.settings.navigation_timeout * 1000

    @contextmanager
    def observe(self, page: Page, whitelist: ErrorWhitelist | None = None) -> Iterator[SignalCollector]:
        """Attach a fresh collector to ``page`` for the duration of the block."""
        self._release_collector()
        collector = SignalCollector(whitelist)
        collector.attach(page)
        self._active_collector = collector
        try:
            yield collector
        finally:
            self._release_collector()

    def _release_collector(self) -> None:
        if self._active_collector is not None:
            self._active_collector.detach()
            self._active_collector = None

    async def _navigate(self, page: Page, url: str) -> None:
        await page.goto(url, wait_until="networkidle", timeout=self.timeout_ms)
        await self.dismiss_cookie_banner(page)

    async def dismiss_cookie_banner(self, page: Page) -> bool:
        """Best effort: click the first visible cookie accept button.

        Never raises. Returns True if a banner was dismissed.
        """
        for selector in self.settings.cookie_accept_selectors:
            try:
                element = await page.query_selector(selector)
                if element and await element.is_visible():
                    await element.click()
                    await page.wait_for_timeout(self.settings.cookie_dismiss_pause_ms)
                    logger.debug("Dismissed cookie banner", selector=selector)
                    return True
            except Exception as e:
                logger.debug("Cookie banner dismissal failed", selector=selector, error=str(e))
        return False

    async def test_url(self, page: Page, url: str, whitelist: ErrorWhitelist | None = None) -> DiagnosticResult:
        """Load ``url`` and report timing, title and the errors seen on the way."""
        logger.info("Testing URL", url=url)

        with self.observe(page, whitelist) as collector:
            start_time = time.perf_counter()
            try:
                await self._navigate(page, url)
                load_time_ms = int((time.perf_counter() - start_time) * 1000)
                title = await page.title()
                final_url = page.url
            except PlaywrightError as e:
                error_msg = str(e)
                logger.warning("URL failed to load", url=url, error=error_msg)
                screenshot_path = None
                if self.settings.screenshot_on_failure:
                    screenshot_path = await self._take_screenshot(page, url)
                return DiagnosticResult(
                    url=url,
                    success=False,
                    error=error_msg,
                    final_url=url,
                    screenshot_path=screenshot_path,
                    **collector.snapshot(),
                )

        result = DiagnosticResult(
            url=url,
            success=True,
            title=title,
            load_time_ms=load_time_ms,
            final_url=final_url,
            **collector.snapshot(),
        )
        logger.info(
            "URL loaded",
            url=url,
            load_time_ms=load_time_ms,
            console_errors=len(result.console_errors),
            network_errors=len(result.network_errors),
            redirects=len(result.redirects),
        )
        return result

    async def test_element_exists(self, page: Page, url: str, selector: str, description: str) -> ElementProbeResult:
        """Load ``url`` and look for the first element matching ``selector``."""
        logger.info("Testing element", url=url, selector=selector, description=description)
        self._release_collector()

        try:
            await self._navigate(page, url)
            element = await page.query_selector(selector)
            element_info = None
            if element is not None:
                text_content = await element.text_content()
                element_info = ElementInfo(
                    tag_name=await element.evaluate("el => el.tagName"),
                    visible=await element.is_visible(),
                    text_content=text_content[:TEXT_CONTENT_LIMIT] if text_content is not None else None,
                )
        except PlaywrightError as e:
            logger.warning("Element test failed", url=url, selector=selector, error=str(e))
            return ElementProbeResult(
                url=url,
                selector=selector,
                description=description,
                exists=False,
                success=False,
                error=str(e),
            )

        logger.info("Element test finished", url=url, selector=selector, exists=element_info is not None)
        return ElementProbeResult(
            url=url,
            selector=selector,
            description=description,
            exists=element_info is not None,
            element_info=element_info,
            success=True,
        )

    async def _take_screenshot(self, page: Page, url: str) -> str | None:
        """Take a screenshot and return the file path."""
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        name = _UNSAFE_FILENAME_RE.sub("_", url)[:80]
        screenshot_path = Path(self.settings.reports_directory) / "screenshots" / f"{name}_{timestamp}.png"
        screenshot_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            await page.screenshot(path=str(screenshot_path), full_page=True)
        except PlaywrightError as e:
            logger.warning("Screenshot failed", url=url, error=str(e))
            return None
        return str(screenshot_path)
