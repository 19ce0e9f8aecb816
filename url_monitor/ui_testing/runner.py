"""Browser session that runs a full set of page tests using Playwright."""

import os
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from ..config import MonitorSettings, RunConfig, get_settings
from .models import DiagnosticResult, ElementProbeResult
from .prober import PageProber
from .sampler import get_random_urls

logger = structlog.get_logger(__name__)

CHROMIUM_CANDIDATES = [
    "/usr/bin/chromium",
    "/usr/bin/chromium-browser",
    "/usr/bin/google-chrome",
    "/usr/bin/google-chrome-stable",
    "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
]


def find_chromium_executable(explicit: Optional[str] = None) -> Optional[str]:
    """Locate a system Chromium, or None to use Playwright's bundled browser."""
    env_path = explicit or os.getenv("CHROMIUM_PATH")
    if env_path and Path(env_path).exists():
        return env_path

    for path in CHROMIUM_CANDIDATES:
        if Path(path).exists():
            return path
    return None


@dataclass
class RunResults:
    random_url_results: list[DiagnosticResult] = field(default_factory=list)
    element_test_results: list[ElementProbeResult] = field(default_factory=list)


class UITestRunner:
    """Owns the browser, its context and the single page every test runs on."""

    def __init__(self, settings: Optional[MonitorSettings] = None):
        self.settings = settings or get_settings()
        self.prober = PageProber(self.settings)
        self.playwright: Optional[Playwright] = None
        self.browser: Optional[Browser] = None
        self.context: Optional[BrowserContext] = None
        self.page: Optional[Page] = None

    async def __aenter__(self):
        """Async context manager entry."""
        try:
            await self.start()
        except BaseException:
            await self.stop()
            raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.stop()

    async def start(self):
        """Initialize the browser, context and page."""
        logger.info("Starting browser session", headless=self.settings.browser_headless)

        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(
            headless=self.settings.browser_headless,
            executable_path=find_chromium_executable(self.settings.chromium_executable),
            args=["--no-sandbox", "--disable-dev-shm-usage"],
        )
        self.context = await self.browser.new_context(user_agent=self.settings.user_agent)
        self.page = await self.context.new_page()

    async def stop(self):
        """Cleanup browser resources."""
        logger.info("Stopping browser session")

        context, browser, playwright = self.context, self.browser, self.playwright
        self.context = self.browser = self.playwright = self.page = None
        try:
            if context:
                await context.close()
        finally:
            try:
                if browser:
                    await browser.close()
            finally:
                if playwright:
                    await playwright.stop()

    async def run(
        self,
        urls: Sequence[str],
        run_config: RunConfig,
        rng: Optional[random.Random] = None,
    ) -> RunResults:
        """Sample URLs, run a diagnostic test on each, then every element test.

        Tests run strictly one after another on the same page.
        """
        if self.page is None:
            raise RuntimeError("Browser session is not started")

        selected = get_random_urls(urls, run_config.random_url_count, rng=rng)
        logger.info(
            "Running URL tests",
            random_urls=len(selected),
            candidates=len(urls),
            element_tests=len(run_config.element_tests),
        )

        results = RunResults()
        for url in selected:
            result = await self.prober.test_url(self.page, url, run_config.error_whitelist)
            results.random_url_results.append(result)

        for element_test in run_config.element_tests:
            result = await self.prober.test_element_exists(
                self.page, element_test.url, element_test.selector, element_test.description
            )
            results.element_test_results.append(result)

        passed = sum(1 for r in results.random_url_results if r.success)
        found = sum(1 for r in results.element_test_results if r.exists)
        logger.info(
            "URL tests completed",
            loaded=passed,
            total=len(results.random_url_results),
            elements_found=found,
            element_tests=len(results.element_test_results),
        )
        return results
