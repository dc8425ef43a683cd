"""
Headless-browser page renderer built on Playwright.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from playwright.async_api import Browser, Page, Playwright, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeout


class RenderError(Exception):
    """Raised when a page cannot be navigated or rendered."""
    pass


class RenderTimeout(RenderError):
    """Raised when a page does not reach network idle in time."""
    pass


class PageRenderer:
    """
    Renders pages in a shared Chromium instance.

    Each render gets its own isolated page, closed on every exit path. The
    browser itself is launched once by ``start()`` and released once by
    ``close()``.
    """

    def __init__(self, user_agent: str, render_timeout: float = 30.0,
                 settle_delay: float = 2.0, headless: bool = True,
                 browser_args: Optional[List[str]] = None):
        self.user_agent = user_agent
        self.render_timeout = render_timeout
        self.settle_delay = settle_delay
        self.headless = headless
        self.browser_args = browser_args or []

        self.logger = logging.getLogger(__name__)

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

        self.stats = {
            'pages_rendered': 0,
            'render_failures': 0,
            'render_timeouts': 0
        }

    async def start(self):
        """Launch the browser. Failure here is fatal to the crawl."""
        if self._browser is not None:
            return

        self._playwright = await async_playwright().start()
        try:
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=self.browser_args
            )
        except PlaywrightError:
            await self._playwright.stop()
            self._playwright = None
            raise

        self.logger.info("Browser launched")

    async def close(self):
        """Release the browser."""
        if self._browser:
            await self._browser.close()
            self._browser = None
        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
            self.logger.info("Browser closed")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Page]:
        """Open an isolated page that is closed on every exit path."""
        if self._browser is None:
            raise RenderError("Renderer not started")

        page = await self._browser.new_page(user_agent=self.user_agent)
        try:
            yield page
        finally:
            try:
                await page.close()
            except PlaywrightError as e:
                self.logger.debug(f"Error closing page: {e}")

    async def render(self, url: str) -> str:
        """
        Render ``url`` until network idle and return the final HTML.

        Raises:
            RenderTimeout: navigation did not settle within render_timeout
            RenderError: any other navigation or browser failure
        """
        async with self.session() as page:
            try:
                await page.goto(
                    url,
                    wait_until='networkidle',
                    timeout=self.render_timeout * 1000
                )
                # Let client-side rendering finish after the network settles
                await asyncio.sleep(self.settle_delay)
                html = await page.content()

            except PlaywrightTimeout as e:
                self.stats['render_timeouts'] += 1
                raise RenderTimeout(f"Timed out after {self.render_timeout}s: {url}") from e

            except PlaywrightError as e:
                self.stats['render_failures'] += 1
                raise RenderError(f"Navigation failed: {e}") from e

        self.stats['pages_rendered'] += 1
        return html

    def get_stats(self):
        """Get renderer statistics."""
        return self.stats.copy()
