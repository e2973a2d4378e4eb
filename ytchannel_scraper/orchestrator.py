import enum
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from playwright.sync_api import Page

from .backoff import BackoffDelayer
from .browser import BrowserSession
from .config import ScraperConfig
from .discovery import VideoDiscovery
from .interactions import PageInteractions
from .log import RunLogger
from .metadata import MetadataExtractor, VideoMetadata
from .output import OutputPersister
from .urls import is_video_url

VIDEO_PAGE_TIMEOUT_MS = 30_000
TITLE_TIMEOUT_MS = 5000
TITLE_FALLBACK_TIMEOUT_MS = 2000
SETTLE_MS = 1000
TITLE_SELECTOR = "h1:not([hidden])"


class VideoState(enum.Enum):
    PENDING = "pending"
    NAVIGATING = "navigating"
    INTERACTING = "interacting"
    EXTRACTING = "extracting"
    PERSISTING = "persisting"
    DONE_SUCCESS = "done_success"
    DONE_FAILED = "done_failed"


@dataclass(frozen=True)
class FailedVideo:
    url: str
    error: str
    retries_attempted: int


@dataclass(frozen=True)
class ScrapingSummary:
    total_attempted: int
    successful: int
    failed: int
    duration_ms: int


@dataclass(frozen=True)
class ScrapingResult:
    success: List[VideoMetadata] = field(default_factory=list)
    failed: List[FailedVideo] = field(default_factory=list)
    summary: ScrapingSummary = ScrapingSummary(0, 0, 0, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": [m.to_dict() for m in self.success],
            "failed": [
                {"url": f.url, "error": f.error, "retries_attempted": f.retries_attempted}
                for f in self.failed
            ],
            "summary": {
                "total_attempted": self.summary.total_attempted,
                "successful": self.summary.successful,
                "failed": self.summary.failed,
                "duration_ms": self.summary.duration_ms,
            },
        }


class ScrapingOrchestrator:
    """
    Drives every video through navigate -> interact -> extract -> persist,
    one at a time, and folds the outcomes into a ScrapingResult.

    Videos are never retried inside a run: a failure is recorded with the
    configured retry budget and the loop moves on.
    """

    def __init__(self, session: BrowserSession, discovery: VideoDiscovery,
                 interactions: PageInteractions, extractor: MetadataExtractor,
                 persister: OutputPersister, logger: RunLogger,
                 prompt: Callable[[str], str] = input,
                 backoff_factory: Optional[Callable[[ScraperConfig], BackoffDelayer]] = None,
                 clock: Callable[[], float] = time.monotonic):
        self.session = session
        self.discovery = discovery
        self.interactions = interactions
        self.extractor = extractor
        self.persister = persister
        self.log = logger
        self.prompt = prompt
        self.backoff_factory = backoff_factory or (
            lambda c: BackoffDelayer(c.base_delay_ms, c.max_retries, logger=logger))
        self.clock = clock
        self.states: Dict[str, VideoState] = {}

    # -----------------------
    # Entry points
    # -----------------------
    def scrape(self, config: ScraperConfig) -> ScrapingResult:
        if is_video_url(config.channel_url):
            return self.scrape_single_video(config)
        return self.scrape_channel(config)

    def scrape_channel(self, config: ScraperConfig) -> ScrapingResult:
        self.log.info("Starting scrape of channel %s", config.channel_url)
        return self._run(config, lambda: self.discovery.discover_video_urls(
            config.channel_url, config.max_videos, config.offset))

    def scrape_single_video(self, config: ScraperConfig) -> ScrapingResult:
        self.log.info("Starting scrape of single video %s", config.channel_url)
        return self._run(config, lambda: [config.channel_url])

    def _run(self, config: ScraperConfig, target_urls: Callable[[], List[str]]) -> ScrapingResult:
        started = self.clock()
        try:
            self.session.initialize(config)
            urls = target_urls()
            success, failed = self.scrape_videos(urls, config)
        finally:
            self.session.cleanup()
        duration_ms = int((self.clock() - started) * 1000)
        result = ScrapingResult(
            success=success,
            failed=failed,
            summary=ScrapingSummary(
                total_attempted=len(urls),
                successful=len(success),
                failed=len(failed),
                duration_ms=duration_ms,
            ),
        )
        self.log.info("Done: %d/%d videos scraped, %d failed (%.1fs)",
                      len(success), len(urls), len(failed), duration_ms / 1000)
        return result

    # -----------------------
    # Per-video loop
    # -----------------------
    def scrape_videos(self, urls: List[str], config: ScraperConfig):
        success: List[VideoMetadata] = []
        failed: List[FailedVideo] = []
        open_pages: List[Page] = []
        backoff = self.backoff_factory(config)
        self.states = {url: VideoState.PENDING for url in urls}

        try:
            for i, url in enumerate(urls):
                self.log.reset_clock()
                self.log.info("[%d/%d] %s", i + 1, len(urls), url)
                page: Optional[Page] = None
                try:
                    page = self.session.new_page()
                    if config.interactive:
                        open_pages.append(page)
                    metadata = self.scrape_video(page, url, config)
                    success.append(metadata)
                    self.states[url] = VideoState.DONE_SUCCESS
                    self.log.info("Scraped %s", metadata.title or metadata.id)
                except Exception as e:
                    self.states[url] = VideoState.DONE_FAILED
                    failed.append(FailedVideo(url=url, error=str(e), retries_attempted=config.max_retries))
                    self.log.error("Failed to scrape %s: %s", url, e)
                finally:
                    if page is not None and not config.interactive:
                        self._close(page)

                if config.interactive:
                    if not self._continue_prompt():
                        self.log.info("Stopping at operator request")
                        break
                    self._close_all(open_pages)
                elif i < len(urls) - 1:
                    backoff.delay()
        finally:
            self._close_all(open_pages)
        return success, failed

    def scrape_video(self, page: Page, url: str, config: ScraperConfig) -> VideoMetadata:
        self.states[url] = VideoState.NAVIGATING
        page.goto(url, wait_until="networkidle", timeout=VIDEO_PAGE_TIMEOUT_MS)

        self.states[url] = VideoState.INTERACTING
        outcomes = self.interactions.setup_video_page(page, config)
        self.log.debug("Setup outcomes: %s", outcomes)
        try:
            page.locator(TITLE_SELECTOR).first.wait_for(state="visible", timeout=TITLE_TIMEOUT_MS)
        except Exception:
            self.log.debug("Title heading not visible; waiting for <title>")
            page.wait_for_selector("title", state="attached", timeout=TITLE_FALLBACK_TIMEOUT_MS)
        page.wait_for_timeout(SETTLE_MS)

        self.states[url] = VideoState.EXTRACTING
        metadata = self.extractor.extract_video_metadata(page, url)

        self.states[url] = VideoState.PERSISTING
        saved = self.persister.save_video_data(
            metadata, page, config.output_dir,
            skip_screenshots=config.skip_screenshots,
            save_complete_html=config.save_complete_html,
        )
        return saved.metadata

    # -----------------------
    # Helpers
    # -----------------------
    def _continue_prompt(self) -> bool:
        while True:
            answer = (self.prompt("Type 'n' for next video or 'q' to quit: ") or "").strip().lower()
            if answer == "n":
                return True
            if answer == "q":
                return False
            print("Please type 'n' or 'q'.")

    def _close(self, page: Page) -> None:
        try:
            page.close()
        except Exception as e:
            self.log.debug("Page close failed: %s", e)

    def _close_all(self, pages: List[Page]) -> None:
        while pages:
            self._close(pages.pop())
