"""
Best-effort UI hygiene for YouTube pages.

YouTube's DOM changes often, so every helper here tries a short ordered list
of selectors and gives up quietly when nothing matches. None of them raise:
a failed cosmetic action must never cost us the metadata.
"""
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from playwright.sync_api import Page

CONSENT_TIMEOUT_MS = 3000
EXPAND_TIMEOUT_MS = 2000
VIDEO_SELECTOR_TIMEOUT_MS = 5000
CLICK_TIMEOUT_MS = 3000
POST_CLICK_PAUSE_MS = 500
SCROLL_ITERATIONS = 5
SCROLL_DELAY_MS = 1000

CONSENT_SELECTORS = [
    'button:has-text("Accept all")',
    'button:has-text("I agree")',
    'button[aria-label*="Accept"]',
    'button[aria-label*="agree"]',
    'button[aria-label*="consent"]',
    "button#introAgreeButton",
]
POPUP_SELECTORS = [
    "button[aria-label*='Dismiss']",
    "#dismiss-button button",
    "button[aria-label*='Not now']",
    "button[aria-label*='Skip']",
    "ytd-button-renderer:has-text('No thanks')",
    "tp-yt-paper-dialog button[aria-label*='Close']",
]
EXPAND_SELECTORS = [
    "#description-inline-expander #expand",
    "tp-yt-paper-button#expand",
    "button#expand",
    'button:has-text("Show more")',
    "#expand",
]
THEATER_SELECTORS = [
    "button.ytp-size-button",
    'button[title*="Theater"]',
    'button[aria-label*="Theater"]',
]

PAUSE_SCRIPT = """
() => {
    const video = document.querySelector('video');
    if (video && !video.paused) { video.pause(); return true; }
    return false;
}
"""
DARK_ATTRIBUTES_SCRIPT = """
() => {
    document.documentElement.setAttribute('dark', '');
    document.documentElement.style.colorScheme = 'dark';
    const app = document.querySelector('ytd-app');
    if (app) app.setAttribute('dark', '');
}
"""
SCROLL_BOTTOM_SCRIPT = """
() => {
    const h = (document.body && document.body.scrollHeight)
        || (document.documentElement && document.documentElement.scrollHeight)
        || window.innerHeight * 10;
    window.scrollTo(0, h);
}
"""
SCROLL_TOP_SCRIPT = "() => window.scrollTo(0, 0)"

HIDE_SUGGESTED_CSS = """
#related, #secondary, #secondary-inner,
ytd-watch-next-secondary-results-renderer, ytd-compact-video-renderer,
ytd-reel-shelf-renderer, ytd-rich-shelf-renderer, ytd-merch-shelf-renderer,
.ytp-ce-element, .ytp-cards-teaser, .ytp-endscreen-content,
.ytp-suggestion-set, .ytp-pause-overlay, .ytp-autonav-endscreen-upnext-container,
#chat-container, ytd-live-chat-frame {
    display: none !important;
}
"""


class PageInteractions:
    def __init__(self, logger: Optional[logging.LoggerAdapter] = None):
        self.log = logger or logging.getLogger(__name__)

    # -----------------------
    # Combinator
    # -----------------------
    def click_first(self, page: Page, selectors: Sequence[str], wait_ms: int = 0,
                    check_enabled: bool = False) -> Optional[str]:
        """
        Click the first visible candidate and return its selector, or None.

        With wait_ms, first wait (once, bounded) for any candidate to become
        visible so a slow dialog still gets caught.
        """
        if not selectors:
            return None
        try:
            if wait_ms:
                union = page.locator(selectors[0])
                for sel in selectors[1:]:
                    union = union.or_(page.locator(sel))
                try:
                    union.first.wait_for(state="visible", timeout=wait_ms)
                except Exception:
                    return None
            for sel in selectors:
                try:
                    el = page.locator(sel).first
                    if not el.is_visible():
                        continue
                    if check_enabled and not el.is_enabled():
                        continue
                    el.click(timeout=CLICK_TIMEOUT_MS)
                    page.wait_for_timeout(POST_CLICK_PAUSE_MS)
                    return sel
                except Exception as e:
                    self.log.debug("Selector %r failed: %s", sel, e)
                    continue
        except Exception as e:
            self.log.debug("click_first aborted: %s", e)
        return None

    # -----------------------
    # Individual helpers
    # -----------------------
    def handle_consent_dialog(self, page: Page) -> None:
        sel = self.click_first(page, CONSENT_SELECTORS, wait_ms=CONSENT_TIMEOUT_MS)
        if sel:
            self.log.info("Consent dialog handled (%s)", sel)
            return
        # consent.youtube.com sometimes renders inside an iframe
        try:
            for frame in page.frames[1:]:
                for sel in CONSENT_SELECTORS:
                    try:
                        el = frame.locator(sel).first
                        if el.is_visible():
                            el.click(timeout=CLICK_TIMEOUT_MS)
                            self.log.info("Consent dialog handled in frame (%s)", sel)
                            return
                    except Exception:
                        continue
        except Exception as e:
            self.log.debug("Consent frame scan failed: %s", e)
        self.log.debug("No consent dialog found")

    def dismiss_popups(self, page: Page) -> None:
        sel = self.click_first(page, POPUP_SELECTORS, check_enabled=True)
        if sel:
            self.log.info("Popup dismissed (%s)", sel)
        else:
            self.log.debug("No popups to dismiss")

    def expand_description(self, page: Page) -> None:
        sel = self.click_first(page, EXPAND_SELECTORS, wait_ms=EXPAND_TIMEOUT_MS)
        if sel:
            self.log.info("Description expanded")
        else:
            self.log.debug("Description not expanded; button missing or hidden")

    def pause_video(self, page: Page) -> None:
        try:
            page.wait_for_selector("video", timeout=VIDEO_SELECTOR_TIMEOUT_MS)
            if page.evaluate(PAUSE_SCRIPT):
                self.log.debug("Video paused")
        except Exception as e:
            self.log.debug("Could not pause video: %s", e)

    def enable_dark_mode(self, page: Page) -> None:
        try:
            page.emulate_media(color_scheme="dark")
            page.evaluate(DARK_ATTRIBUTES_SCRIPT)
            self.log.debug("Dark mode enabled")
        except Exception as e:
            self.log.debug("Could not enable dark mode: %s", e)

    def enable_theater_mode(self, page: Page) -> None:
        if self.click_first(page, THEATER_SELECTORS):
            self.log.debug("Theater mode enabled")
            return
        try:
            page.keyboard.press("t")
            page.wait_for_timeout(300)
            self.log.debug("Theater mode toggled with keyboard shortcut")
        except Exception as e:
            self.log.debug("Could not enable theater mode: %s", e)

    def hide_suggested_content(self, page: Page) -> None:
        try:
            page.add_style_tag(content=HIDE_SUGGESTED_CSS)
            self.log.debug("Suggested content hidden")
        except Exception as e:
            self.log.debug("Could not hide suggested content: %s", e)

    def scroll_to_load_videos(self, page: Page, iterations: int = SCROLL_ITERATIONS,
                              delay_ms: int = SCROLL_DELAY_MS) -> None:
        self.log.info("Loading more videos...")
        for i in range(iterations):
            try:
                page.evaluate(SCROLL_BOTTOM_SCRIPT)
                page.wait_for_timeout(delay_ms)
                self.log.debug("Scroll iteration %d/%d", i + 1, iterations)
            except Exception as e:
                self.log.debug("Scroll iteration %d failed: %s", i + 1, e)
        try:
            page.evaluate(SCROLL_TOP_SCRIPT)
        except Exception:
            pass

    # -----------------------
    # Composite
    # -----------------------
    def setup_video_page(self, page: Page, config) -> Dict[str, bool]:
        """
        Run every setup step against a freshly loaded video page.

        The steps touch disjoint parts of the DOM, so order does not matter;
        each one is settled on its own and a failure never skips the rest.
        Returns step name -> whether it completed without raising.
        """
        steps: List[Tuple[str, Callable[[Page], None]]] = [
            ("consent", self.handle_consent_dialog),
            ("popups", self.dismiss_popups),
            ("pause", self.pause_video),
            ("expand", self.expand_description),
        ]
        if getattr(config, "dark_mode", False):
            steps.append(("dark_mode", self.enable_dark_mode))
        if getattr(config, "theater_mode", False):
            steps.append(("theater_mode", self.enable_theater_mode))
        if getattr(config, "hide_suggested", False):
            steps.append(("hide_suggested", self.hide_suggested_content))

        outcomes: Dict[str, bool] = {}
        for name, step in steps:
            try:
                step(page)
                outcomes[name] = True
            except Exception as e:
                self.log.debug("Setup step %s failed: %s", name, e)
                outcomes[name] = False
        return outcomes
