"""Playwright browser handle shared across one scrape run.

One browser process is launched per run and torn down at the end (or on
interruption). Stores flagged ``stealth`` get a context with automation
signals masked; everything else uses a plain context.
"""

import asyncio
from typing import Dict, Optional

import structlog
from playwright.async_api import Browser, BrowserContext, Error as PlaywrightError, Page, Playwright, async_playwright

from fashion.config import settings
from fashion.scrapers.base import StoreConfig

logger = structlog.get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
)

LAUNCH_ARGS = (
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
    "--no-sandbox",
)

# Init script for anti-bot stores: hide the webdriver flag and fill in the
# navigator fields headless Chromium leaves empty
STEALTH_JS = """
(() => {
  const define = (obj, key, value) =>
    Object.defineProperty(obj, key, { get: () => value, configurable: true });

  define(navigator, 'webdriver', undefined);
  define(navigator, 'languages', ['en-GB', 'en', 'nl']);
  define(navigator, 'hardwareConcurrency', 8);
  define(navigator, 'plugins', [1, 2, 3]);
  window.chrome = window.chrome || { runtime: {} };

  const query = navigator.permissions && navigator.permissions.query;
  if (query) {
    navigator.permissions.query = (params) =>
      params && params.name === 'notifications'
        ? Promise.resolve({ state: Notification.permission })
        : query.call(navigator.permissions, params);
  }
})();
"""


class BrowserManager:
    """Scoped Playwright browser with one context per scrape method.

    Use as an async context manager so the browser is closed even when the
    run is cancelled:

        async with BrowserManager() as browser:
            page = await browser.new_page(store)
    """

    def __init__(self, headless: Optional[bool] = None):
        self.headless = settings.BROWSER_HEADLESS if headless is None else headless
        self._runtime: Optional[Playwright] = None
        self._chromium: Optional[Browser] = None
        self._by_method: Dict[str, BrowserContext] = {}
        self._guard = asyncio.Lock()

    async def __aenter__(self) -> "BrowserManager":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()

    async def start(self) -> None:
        """Launch Chromium unless it is already up."""
        async with self._guard:
            if self._chromium is not None:
                return
            self._runtime = await async_playwright().start()
            self._chromium = await self._runtime.chromium.launch(
                headless=self.headless,
                args=list(LAUNCH_ARGS),
            )
            logger.info("browser_started", headless=self.headless)

    async def _close_contexts(self) -> None:
        contexts, self._by_method = self._by_method, {}
        for method, context in contexts.items():
            try:
                await context.close()
            except PlaywrightError as e:
                logger.debug("browser_context_close_failed", scrape_method=method, error=str(e))

    async def stop(self) -> None:
        """Close every context, then the browser and the Playwright runtime."""
        async with self._guard:
            await self._close_contexts()
            if self._chromium is not None:
                await self._chromium.close()
                self._chromium = None
            if self._runtime is not None:
                await self._runtime.stop()
                self._runtime = None
            logger.info("browser_stopped")

    async def get_context(self, scrape_method: str = "browser") -> BrowserContext:
        """Context for ``scrape_method``, created on first use."""
        context = self._by_method.get(scrape_method)
        if context is not None:
            return context

        if self._chromium is None:
            await self.start()

        context = await self._chromium.new_context(
            user_agent=USER_AGENT,
            viewport={"width": 1440, "height": 900},
            locale="en-GB",
            extra_http_headers={"Accept-Language": "en-GB,en;q=0.9,nl;q=0.8"},
        )
        if scrape_method == "stealth":
            await context.add_init_script(STEALTH_JS)

        self._by_method[scrape_method] = context
        logger.info("browser_context_created", scrape_method=scrape_method)
        return context

    async def new_page(self, store: StoreConfig) -> Page:
        """Open a page in the context matching the store's scrape method."""
        context = await self.get_context(store.scrape_method)
        return await context.new_page()
