from __future__ import annotations

import threading
from http.server import BaseHTTPRequestHandler, HTTPServer

import pytest
import pytest_asyncio
from playwright.async_api import Error as PlaywrightError

from url_monitor.config import ErrorWhitelist, MonitorSettings
from url_monitor.ui_testing.runner import UITestRunner

pytestmark = pytest.mark.browser


class _Handler(BaseHTTPRequestHandler):
    def log_message(self, format: str, *args) -> None:  # noqa: A002
        return

    def do_GET(self) -> None:  # noqa: N802
        routes: dict[str, tuple[int, str]] = {
            "/ok": (
                200,
                "<!doctype html><html><head><title>OK Page</title></head>"
                "<body><h1>Everything is fine</h1></body></html>",
            ),
            "/console": (
                200,
                "<!doctype html><html><head><title>Console Page</title></head><body>"
                "<script>console.error('Something broke'); console.error('Something broke');"
                "console.error('ad request blocked by client'); console.log('fine');</script>"
                "<img src='/missing.png'><img src='/missing.png?again'>"
                "</body></html>",
            ),
            "/cookies": (
                200,
                "<!doctype html><html><head><title>Cookies</title></head><body>"
                "<div id='banner'><button id='onetrust-accept-btn-handler' "
                "onclick=\"document.getElementById('banner').remove()\">Accept</button></div>"
                "<p class='content'>Content</p></body></html>",
            ),
        }

        if self.path == "/redirect":
            self.send_response(302)
            self.send_header("Location", "/ok")
            self.send_header("Content-Length", "0")
            self.end_headers()
            return

        status, body = routes.get(self.path, (404, "Not Found"))
        body_bytes = body.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "text/html; charset=utf-8" if status == 200 else "text/plain")
        self.send_header("Content-Length", str(len(body_bytes)))
        self.end_headers()
        self.wfile.write(body_bytes)


@pytest.fixture(scope="module")
def local_server_base_url() -> str:
    httpd = HTTPServer(("127.0.0.1", 0), _Handler)
    host, port = httpd.server_address
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()

    try:
        yield f"http://{host}:{port}"
    finally:
        httpd.shutdown()
        thread.join(timeout=5)
        httpd.server_close()


@pytest_asyncio.fixture
async def session(tmp_path):
    settings = MonitorSettings(navigation_timeout=10, cookie_dismiss_pause_ms=100, reports_directory=str(tmp_path))
    runner = UITestRunner(settings)
    try:
        await runner.start()
    except PlaywrightError as e:
        await runner.stop()
        pytest.skip(f"No chromium available for Playwright: {e}")
    try:
        yield runner
    finally:
        await runner.stop()


@pytest.mark.asyncio
async def test_console_and_network_errors_are_deduplicated(session: UITestRunner, local_server_base_url: str) -> None:
    url = f"{local_server_base_url}/console"
    result = await session.prober.test_url(session.page, url, ErrorWhitelist(consoleErrors=["blocked"]))

    assert result.success is True
    assert result.title == "Console Page"
    texts = [e.text for e in result.console_errors]
    assert texts.count("Something broke") == 1
    assert not any("blocked" in t for t in texts)
    missing = [e for e in result.network_errors if e.url.endswith("/missing.png")]
    assert len(missing) == 1
    assert missing[0].status == 404


@pytest.mark.asyncio
async def test_redirect_recorded_when_final_page_loads(session: UITestRunner, local_server_base_url: str) -> None:
    url = f"{local_server_base_url}/redirect"
    result = await session.prober.test_url(session.page, url)

    assert result.success is True
    assert result.final_url == f"{local_server_base_url}/ok"
    assert len(result.redirects) == 1
    assert result.redirects[0].status == 302
    assert result.redirects[0].to_url == f"{local_server_base_url}/ok"


@pytest.mark.asyncio
async def test_unreachable_url_is_a_failed_result(session: UITestRunner) -> None:
    result = await session.prober.test_url(session.page, "http://127.0.0.1:9/")

    assert result.success is False
    assert result.error
    assert result.final_url == "http://127.0.0.1:9/"


@pytest.mark.asyncio
async def test_element_probe_against_real_page(session: UITestRunner, local_server_base_url: str) -> None:
    found = await session.prober.test_element_exists(session.page, f"{local_server_base_url}/ok", "h1", "Heading")
    assert found.exists is True
    assert found.element_info.tag_name == "H1"
    assert found.element_info.text_content == "Everything is fine"

    missing = await session.prober.test_element_exists(session.page, f"{local_server_base_url}/ok", ".missing", "x")
    assert missing.exists is False
    assert missing.success is True
    assert missing.element_info is None


@pytest.mark.asyncio
async def test_cookie_banner_dismissed_before_probe(session: UITestRunner, local_server_base_url: str) -> None:
    result = await session.prober.test_element_exists(
        session.page, f"{local_server_base_url}/cookies", "#banner", "Cookie banner"
    )
    assert result.success is True
    assert result.exists is False
