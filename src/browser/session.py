"""Browser session management using patchright.

Rules:
  - One browser + context + page per session; never shared between accounts
  - The session is handed around by reference and closed exactly once
  - close() must run on every exit path, or browser processes leak
"""

import logging
from types import TracebackType

from patchright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from src.core.config import BrowserConfig
from src.core.schemas import COOKIE_JAR_ADAPTER, CookieJar

logger = logging.getLogger(__name__)


class BrowserSession:
    """Owns one patchright browser + context + page.

    Usage::

        session = BrowserSession(config, account_id="acme")
        await session.start()
        try:
            await session.page.goto("https://...")
        finally:
            await session.close()

    or as an async context manager (``async with BrowserSession(config)``).
    """

    def __init__(self, config: BrowserConfig, account_id: str | None = None) -> None:
        self._config = config
        self.account_id = account_id
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def page(self) -> Page:
        """The single page for this session. Raises if not started."""
        if self._page is None:
            msg = "BrowserSession not started — call start() or use 'async with'"
            raise RuntimeError(msg)
        return self._page

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            msg = "BrowserSession not started — call start() or use 'async with'"
            raise RuntimeError(msg)
        return self._context

    @property
    def is_open(self) -> bool:
        return self._page is not None

    async def start(self) -> "BrowserSession":
        if self._page is not None:
            return self
        pw = await async_playwright().start()
        self._playwright = pw
        try:
            self._browser = await pw.chromium.launch(headless=self._config.headless)
            self._context = await self._browser.new_context()
            self._context.set_default_timeout(self._config.timeout_ms)
            self._page = await self._context.new_page()
        except BaseException:
            await self.close()
            raise
        logger.debug("Browser session started (account=%s)", self.account_id)
        return self

    async def add_cookies(self, jar: CookieJar) -> None:
        await self.context.add_cookies([c.to_browser() for c in jar])  # type: ignore[arg-type]

    async def cookies(self) -> CookieJar:
        raw = await self.context.cookies()
        return COOKIE_JAR_ADAPTER.validate_python(raw)

    async def close(self) -> None:
        """Release context, browser and driver. Safe to call more than once."""
        context, browser, pw = self._context, self._browser, self._playwright
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        try:
            if context is not None:
                await context.close()
        finally:
            try:
                if browser is not None:
                    await browser.close()
            finally:
                if pw is not None:
                    await pw.stop()
                    logger.debug("Browser session closed (account=%s)", self.account_id)

    async def __aenter__(self) -> "BrowserSession":
        return await self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()
