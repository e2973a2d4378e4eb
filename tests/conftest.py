"""In-memory stand-ins for the Playwright objects the scraper drives."""
from typing import Any, Dict, List, Optional

import pytest

from ytchannel_scraper.config import ScraperConfig
from ytchannel_scraper.log import RunClock, get_run_logger


class FakeLocator:
    def __init__(self, page: "FakePage", selectors: List[str]):
        self.page = page
        self.selectors = selectors

    @property
    def first(self) -> "FakeLocator":
        return self

    def or_(self, other: "FakeLocator") -> "FakeLocator":
        return FakeLocator(self.page, self.selectors + other.selectors)

    def _visible(self) -> bool:
        return any(s in self.page.visible for s in self.selectors)

    def wait_for(self, state: str = "visible", timeout: Optional[float] = None) -> None:
        if not self._visible():
            raise TimeoutError(f"{self.selectors} not visible within {timeout}ms")

    def is_visible(self) -> bool:
        return self._visible()

    def is_enabled(self) -> bool:
        return not any(s in self.page.disabled for s in self.selectors)

    def click(self, timeout: Optional[float] = None) -> None:
        for s in self.selectors:
            if s in self.page.click_errors:
                raise RuntimeError(f"click on {s} intercepted")
        self.page.clicked.extend(self.selectors)


class FakeKeyboard:
    def __init__(self):
        self.pressed: List[str] = []

    def press(self, key: str) -> None:
        self.pressed.append(key)


class FakePage:
    """
    evaluate() answers by script: pass {SCRIPT_CONSTANT: value} in
    `scripts`; a value that is an Exception is raised instead.
    `fail` maps a method name to the exception it raises.
    """

    def __init__(self, url: str = "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
                 visible: Optional[List[str]] = None, scripts: Optional[Dict[str, Any]] = None,
                 html: str = "<html><head><title>t</title></head><body><h1>t</h1></body></html>",
                 fail: Optional[Dict[str, Exception]] = None):
        self.url = url
        self.visible = set(visible or [])
        self.disabled: set = set()
        self.click_errors: set = set()
        self.scripts = scripts or {}
        self.html = html
        self.fail = fail or {}
        self.clicked: List[str] = []
        self.evaluated: List[str] = []
        self.visited: List[str] = []
        self.waits: List[float] = []
        self.style_tags: List[str] = []
        self.media: Dict[str, Any] = {}
        self.screenshots: List[str] = []
        self.keyboard = FakeKeyboard()
        self.frames = [self]
        self.closed = False

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise self.fail[name]

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, [selector])

    def goto(self, url: str, wait_until: str = "load", timeout: Optional[float] = None) -> None:
        self._maybe_fail("goto")
        self.visited.append(url)
        self.url = url

    def wait_for_timeout(self, ms: float) -> None:
        self.waits.append(ms)

    def wait_for_selector(self, selector: str, state: str = "visible", timeout: Optional[float] = None) -> None:
        self._maybe_fail("wait_for_selector")

    def evaluate(self, script: str, *args: Any) -> Any:
        self._maybe_fail("evaluate")
        self.evaluated.append(script)
        value = self.scripts.get(script)
        if isinstance(value, Exception):
            raise value
        return value

    def emulate_media(self, **kwargs: Any) -> None:
        self._maybe_fail("emulate_media")
        self.media.update(kwargs)

    def add_style_tag(self, content: str = "") -> None:
        self._maybe_fail("add_style_tag")
        self.style_tags.append(content)

    def screenshot(self, path: Optional[str] = None, full_page: bool = False, type: str = "png") -> bytes:
        self._maybe_fail("screenshot")
        data = b"\x89PNG fake"
        if path:
            with open(path, "wb") as f:
                f.write(data)
            self.screenshots.append(path)
        return data

    def content(self) -> str:
        self._maybe_fail("content")
        return self.html

    def close(self) -> None:
        self.closed = True


class FakeContext:
    def __init__(self, pages: Optional[List[FakePage]] = None):
        self._queue = list(pages or [])
        self.pages: List[FakePage] = []
        self.cookies: List[Dict[str, Any]] = []
        self.closed = False

    def new_page(self) -> FakePage:
        page = self._queue.pop(0) if self._queue else FakePage()
        self.pages.append(page)
        return page

    def add_cookies(self, cookies: List[Dict[str, Any]]) -> None:
        self.cookies.extend(cookies)

    def set_default_navigation_timeout(self, ms: float) -> None:
        self.navigation_timeout = ms

    def set_default_timeout(self, ms: float) -> None:
        self.timeout = ms

    def close(self) -> None:
        self.closed = True


class FakeSession:
    """BrowserSession double that hands out pages from a FakeContext."""

    def __init__(self, context: Optional[FakeContext] = None, launch_error: Optional[Exception] = None):
        self.context = context or FakeContext()
        self.launch_error = launch_error
        self.initialized = False
        self.cleanups = 0

    def initialize(self, config: ScraperConfig) -> None:
        if self.launch_error:
            raise self.launch_error
        self.initialized = True

    def new_page(self) -> FakePage:
        return self.context.new_page()

    def cleanup(self) -> None:
        self.cleanups += 1
        self.initialized = False


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def run_logger():
    return get_run_logger("ytchannel_scraper.tests", RunClock(FakeClock()))


@pytest.fixture
def config(tmp_path):
    return ScraperConfig(channel_url="https://www.youtube.com/@somechannel", output_dir=str(tmp_path))
