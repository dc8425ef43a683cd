# File: tests/test_renderer.py
from typing import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import web
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout

from docs_crawler.crawler.renderer import PageRenderer, RenderError, RenderTimeout


@pytest.mark.asyncio()
async def test_render_requires_started_browser():
    renderer = PageRenderer(user_agent="test-agent")
    with pytest.raises(RenderError, match="not started"):
        await renderer.render("http://localhost/")


@pytest.mark.asyncio()
async def test_close_without_start_is_harmless():
    renderer = PageRenderer(user_agent="test-agent")
    await renderer.close()
    assert renderer.get_stats()['pages_rendered'] == 0


class FakePage:
    """Stands in for a Playwright page; ``goto`` raises ``error`` when set."""

    def __init__(self, html: str = "<html></html>", error: Exception = None):
        self.html = html
        self.error = error
        self.visited = []
        self.closed = False

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append((url, wait_until, timeout))
        if self.error is not None:
            raise self.error

    async def content(self):
        return self.html

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, page: FakePage):
        self.page = page
        self.user_agents = []

    async def new_page(self, user_agent=None):
        self.user_agents.append(user_agent)
        return self.page


def renderer_with(page: FakePage) -> PageRenderer:
    renderer = PageRenderer(user_agent="test-agent", render_timeout=5, settle_delay=0)
    renderer._browser = FakeBrowser(page)
    return renderer


@pytest.mark.asyncio()
async def test_render_returns_html_and_closes_page():
    page = FakePage(html="<html><body>ok</body></html>")
    renderer = renderer_with(page)

    html = await renderer.render("https://developer.apple.com/documentation/foo")

    assert html == "<html><body>ok</body></html>"
    assert page.visited == [("https://developer.apple.com/documentation/foo", "networkidle", 5000)]
    assert renderer._browser.user_agents == ["test-agent"]
    assert page.closed
    assert renderer.get_stats()['pages_rendered'] == 1


@pytest.mark.asyncio()
async def test_navigation_timeout_becomes_render_timeout():
    page = FakePage(error=PlaywrightTimeout("Timeout 5000ms exceeded"))
    renderer = renderer_with(page)

    with pytest.raises(RenderTimeout):
        await renderer.render("https://developer.apple.com/documentation/foo")

    assert page.closed
    assert renderer.get_stats() == {'pages_rendered': 0, 'render_failures': 0, 'render_timeouts': 1}


@pytest.mark.asyncio()
async def test_navigation_error_becomes_render_error():
    page = FakePage(error=PlaywrightError("net::ERR_NAME_NOT_RESOLVED"))
    renderer = renderer_with(page)

    with pytest.raises(RenderError) as excinfo:
        await renderer.render("https://developer.apple.com/documentation/foo")

    assert not isinstance(excinfo.value, RenderTimeout)
    assert "ERR_NAME_NOT_RESOLVED" in str(excinfo.value)
    assert page.closed
    assert renderer.get_stats()['render_failures'] == 1


@pytest_asyncio.fixture()
async def script_site(unused_tcp_port: int) -> AsyncIterator[str]:
    """A page whose article is inserted by client-side script."""

    async def handler(_request):
        return web.Response(content_type="text/html", text=(
            "<html><body><main id='root'></main><script>"
            "document.getElementById('root').innerHTML = '<article><h1>Rendered</h1></article>';"
            "</script></body></html>"
        ))

    app = web.Application()
    app.router.add_get("/documentation/foo/page", handler)
    runner = web.AppRunner(app)
    await runner.setup()
    await web.TCPSite(runner, "localhost", unused_tcp_port).start()
    try:
        yield f"http://localhost:{unused_tcp_port}"
    finally:
        await runner.cleanup()


@pytest.mark.slow
@pytest.mark.asyncio()
async def test_render_returns_script_generated_dom(script_site):
    renderer = PageRenderer(user_agent="test-agent", render_timeout=10, settle_delay=0)
    try:
        await renderer.start()
    except PlaywrightError as e:
        pytest.skip(f"Chromium is not available: {e}")

    try:
        html = await renderer.render(f"{script_site}/documentation/foo/page")
    finally:
        await renderer.close()

    assert "<h1>Rendered</h1>" in html
    assert renderer.get_stats()['pages_rendered'] == 1
