import logging
from typing import Iterable, List, Optional, Set

from .browser import BrowserSession
from .interactions import PageInteractions
from .urls import channel_videos_url, clean_video_url, extract_video_id, is_valid_video_id

CHANNEL_PAGE_TIMEOUT_MS = 30_000

COLLECT_HREFS_SCRIPT = """
() => {
    const out = [];
    document.querySelectorAll('a[href*="/watch?v="]').forEach(a => {
        try { if (a.href) out.push(a.href); } catch (e) {}
    });
    return out;
}
"""


def collect_video_urls(hrefs: Iterable[Optional[str]], offset: int = 0,
                       max_videos: Optional[int] = None) -> List[str]:
    """
    Canonicalise watch links, drop duplicates (first occurrence wins) and
    return the [offset, offset + max_videos) slice.
    """
    seen: Set[str] = set()
    ordered: List[str] = []
    for href in hrefs:
        if not href or "watch?v=" not in href:
            continue
        full = clean_video_url(href)
        vid = extract_video_id(full)
        if not is_valid_video_id(vid) or vid in seen:
            continue
        seen.add(vid)
        ordered.append(full)
    offset = max(0, offset)
    if max_videos is None:
        return ordered[offset:]
    return ordered[offset:offset + max(0, max_videos)]


class VideoDiscovery:
    def __init__(self, session: BrowserSession, interactions: PageInteractions,
                 logger: Optional[logging.LoggerAdapter] = None):
        self.session = session
        self.interactions = interactions
        self.log = logger or logging.getLogger(__name__)

    def discover_video_urls(self, channel_url: str, max_videos: int, offset: int = 0) -> List[str]:
        target = channel_videos_url(channel_url)
        self.log.info("Discovering videos on %s", target)
        page = self.session.new_page()
        try:
            page.goto(target, wait_until="networkidle", timeout=CHANNEL_PAGE_TIMEOUT_MS)
            self.interactions.handle_consent_dialog(page)
            self.interactions.dismiss_popups(page)
            self.interactions.scroll_to_load_videos(page)
            hrefs = page.evaluate(COLLECT_HREFS_SCRIPT) or []
            self.log.debug("Collected %d raw watch links", len(hrefs))
            urls = collect_video_urls(hrefs, offset=offset, max_videos=max_videos)
            self.log.info("Found %d videos to scrape", len(urls))
            return urls
        finally:
            try:
                page.close()
            except Exception as e:
                self.log.debug("Discovery page close failed: %s", e)
