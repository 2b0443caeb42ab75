"""Playwright-backed loader — probes from inside a real Chromium page.

The page is loaded from an HTTP(S) origin first; extension-resource security
checks only behave consistently for pages served over HTTP(S), never for
``file://`` or ``about:blank``.
"""

from __future__ import annotations

from urllib.parse import urlparse

import structlog
from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from extprobe.exceptions import ConfigError, LoaderStartError

log = structlog.get_logger("extprobe.engine")

_LOAD_IMAGE_JS = """
url => new Promise((resolve, reject) => {
  const image = new Image();
  image.onload = () => resolve(true);
  image.onerror = () => reject(new Error(`image load failed: ${url}`));
  image.src = url;
})
"""

_CHECK_EXISTS_JS = """
url => fetch(url, { method: "HEAD", mode: "no-cors", cache: "no-cache" }).then(() => true)
"""


class BrowserResourceLoader:
    """Run image loads and no-cors HEAD fetches through ``page.evaluate``.

    With *user_data_dir* a persistent context is launched so the extensions
    installed in that profile are live; otherwise a fresh browser is used.
    """

    def __init__(
        self,
        origin_url: str,
        *,
        headless: bool = True,
        user_data_dir: str | None = None,
        channel: str | None = None,
    ) -> None:
        if urlparse(origin_url).scheme not in ("http", "https"):
            raise ConfigError(f"browser origin must be an http(s) URL, got {origin_url!r}")
        self.origin_url = origin_url
        self.headless = headless
        self.user_data_dir = user_data_dir
        self.channel = channel
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def start(self) -> None:
        """Launch Chromium and open the origin page.

        Anything already started is closed again on failure; ordinary errors
        are re-raised as :class:`LoaderStartError`.
        """
        try:
            await self._launch()
        except Exception as exc:
            log.error("browser.start_failed", origin=self.origin_url, error=str(exc))
            await self.aclose()
            raise LoaderStartError(f"browser failed to start: {exc}") from exc
        except BaseException:
            await self.aclose()
            raise
        log.info("browser.ready", origin=self.origin_url, persistent=bool(self.user_data_dir))

    async def _launch(self) -> None:
        self._playwright = await async_playwright().start()
        chromium = self._playwright.chromium
        if self.user_data_dir:
            self._context = await chromium.launch_persistent_context(
                self.user_data_dir, headless=self.headless, channel=self.channel
            )
        else:
            self._browser = await chromium.launch(headless=self.headless, channel=self.channel)
            self._context = await self._browser.new_context()
        self._page = await self._context.new_page()
        await self._page.goto(self.origin_url, wait_until="domcontentloaded")

    async def aclose(self) -> None:
        if self._context is not None:
            await self._context.close()
            self._context = None
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None
        self._page = None

    async def __aenter__(self) -> BrowserResourceLoader:
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    # ── public ─────────────────────────────────────────────────────────────

    async def load_image(self, url: str) -> None:
        await self._require_page().evaluate(_LOAD_IMAGE_JS, url)

    async def check_exists(self, url: str) -> None:
        await self._require_page().evaluate(_CHECK_EXISTS_JS, url)

    def _require_page(self) -> Page:
        if self._page is None:
            raise RuntimeError("BrowserResourceLoader used before start()")
        return self._page
