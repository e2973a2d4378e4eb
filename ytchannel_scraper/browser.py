import enum
import logging
from typing import Callable, Optional

from playwright.sync_api import Browser, BrowserContext, Page, Playwright, sync_playwright

from .config import ScraperConfig
from .errors import BrowserLaunchError, NotInitializedError

VIEWPORT = {"width": 800, "height": 1024}
DEVICE_SCALE_FACTOR = 2
NAVIGATION_TIMEOUT_MS = 45_000
ACTION_TIMEOUT_MS = 20_000
LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--force-color-profile=srgb",
]


class SessionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    CLOSED = "closed"


class BrowserSession:
    """
    Owns the Playwright driver, one Chromium process and one context.

    The context (cookies, storage, viewport, color scheme) is shared by every
    page opened during the run.
    """

    def __init__(self, logger: Optional[logging.LoggerAdapter] = None,
                 playwright_factory: Callable = sync_playwright):
        self.log = logger or logging.getLogger(__name__)
        self._factory = playwright_factory
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self.state = SessionState.UNINITIALIZED

    def initialize(self, config: ScraperConfig) -> None:
        if self.state is SessionState.READY:
            self.log.debug("Browser session already initialized")
            return
        headless = False if config.interactive else config.headless
        settings = config.browser
        self.log.info("Initializing browser (headless=%s)", headless)
        try:
            self._playwright = self._factory().start()
            self._browser = self._playwright.chromium.launch(headless=headless, args=LAUNCH_ARGS)
            self._context = self._browser.new_context(
                viewport=VIEWPORT,
                device_scale_factor=DEVICE_SCALE_FACTOR,
                user_agent=settings.user_agent,
                color_scheme="dark" if config.dark_mode else "light",
                locale=settings.locale,
                extra_http_headers={"Accept-Language": settings.accept_language},
            )
            self._context.set_default_navigation_timeout(NAVIGATION_TIMEOUT_MS)
            self._context.set_default_timeout(ACTION_TIMEOUT_MS)
        except Exception as e:
            self.cleanup()
            raise BrowserLaunchError(f"Browser launch failed: {e}") from e

        try:
            self._context.add_cookies([{
                "name": "CONSENT", "value": settings.consent_value,
                "domain": ".youtube.com", "path": "/",
            }])
        except Exception as e:
            self.log.debug("Could not pre-seed consent cookie: %s", e)

        self.state = SessionState.READY
        self.log.info("Browser initialized")

    def get_context(self) -> BrowserContext:
        if self.state is not SessionState.READY or self._context is None:
            raise NotInitializedError("Browser context not initialized. Call initialize() first.")
        return self._context

    def get_browser(self) -> Browser:
        if self.state is not SessionState.READY or self._browser is None:
            raise NotInitializedError("Browser not initialized. Call initialize() first.")
        return self._browser

    def new_page(self) -> Page:
        return self.get_context().new_page()

    def is_initialized(self) -> bool:
        return self.state is SessionState.READY

    def cleanup(self) -> None:
        if self._context is None and self._browser is None and self._playwright is None:
            if self.state is SessionState.READY:
                self.state = SessionState.CLOSED
            return
        self.log.info("Cleaning up browser resources")
        if self._context is not None:
            try:
                self._context.close()
            except Exception as e:
                self.log.debug("Context close failed: %s", e)
            self._context = None
        if self._browser is not None:
            try:
                self._browser.close()
            except Exception as e:
                self.log.debug("Browser close failed: %s", e)
            self._browser = None
        if self._playwright is not None:
            try:
                self._playwright.stop()
            except Exception as e:
                self.log.debug("Playwright stop failed: %s", e)
            self._playwright = None
        self.state = SessionState.CLOSED

    def __enter__(self) -> "BrowserSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.cleanup()
