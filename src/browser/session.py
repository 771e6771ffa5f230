"""Shared browser for the marketplace adapters, using patchright.

Rules:
  - The browser launches lazily on the first page request, so an idle queue
    trigger never starts one.
  - One browser + context per run; each adapter gets its own page so the
    adapters can run concurrently.
"""

import asyncio
import logging
from types import TracebackType

from patchright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from src.core.config import BrowserConfig

logger = logging.getLogger(__name__)

_LAUNCH_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
)


class BrowserSession:
    """Async context manager owning one patchright browser and context.

    Usage::

        async with BrowserSession(config) as session:
            page = await session.new_page()
            try:
                await page.goto("https://...")
            finally:
                await page.close()
    """

    def __init__(self, config: BrowserConfig) -> None:
        self._config = config
        self._lock = asyncio.Lock()
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    @property
    def started(self) -> bool:
        return self._context is not None

    async def new_page(self) -> Page:
        """Open a fresh page, launching the browser on first use."""
        async with self._lock:
            if self._context is None:
                await self._start()
        assert self._context is not None
        return await self._context.new_page()

    async def _start(self) -> None:
        self._playwright = await async_playwright().start()
        self._browser = await self._playwright.chromium.launch(
            headless=self._config.headless,
            args=list(_LAUNCH_ARGS),
        )
        self._context = await self._browser.new_context(
            user_agent=self._config.user_agent,
            viewport={
                "width": self._config.viewport_width,
                "height": self._config.viewport_height,
            },
        )
        self._context.set_default_timeout(self._config.timeout_ms)
        logger.info("Browser launched (headless=%s)", self._config.headless)

    async def close(self) -> None:
        if self._context is not None:
            await self._context.close()
        if self._browser is not None:
            await self._browser.close()
        if self._playwright is not None:
            await self._playwright.stop()
        self._context = self._browser = self._playwright = None

    async def __aenter__(self) -> "BrowserSession":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
