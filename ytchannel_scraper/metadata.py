import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from playwright.sync_api import Page

from .errors import MetadataExtractionError
from .urls import video_id_or_fallback

MORE_MARKER = "…...more"

# Single DOM pass: every <meta> keyed by property/name/itemprop, plus the few
# values YouTube only exposes through <link> tags or rendered nodes.
EXTRACT_SCRIPT = """
() => {
    const meta = {};
    const tags = [];
    document.querySelectorAll('meta').forEach(tag => {
        const key = tag.getAttribute('property') || tag.getAttribute('name') || tag.getAttribute('itemprop');
        const content = tag.getAttribute('content');
        if (!key || !content) return;
        if (key === 'og:video:tag') tags.push(content);
        if (!(key in meta)) meta[key] = content;
    });
    const attr = (sel, name) => {
        const el = document.querySelector(sel);
        return (el && el.getAttribute(name)) || '';
    };
    const text = (sel) => {
        const el = document.querySelector(sel);
        return (el && (el.innerText || el.textContent) || '').trim();
    };
    const likeButton = document.querySelector(
        'like-button-view-model button, #segmented-like-button button, ytd-menu-renderer button[aria-label*="like"]'
    );
    return {
        meta: meta,
        tags: tags,
        author: attr('span[itemprop="author"] link[itemprop="name"]', 'content') || text('#owner #channel-name a'),
        channelUrl: attr('span[itemprop="author"] link[itemprop="url"]', 'href') || attr('#owner #channel-name a', 'href'),
        thumbnail: attr('link[itemprop="thumbnailUrl"]', 'href'),
        likes: likeButton ? ((likeButton.innerText || '').trim() || likeButton.getAttribute('aria-label') || '') : '',
        expanded: text('#description-inline-expander > yt-attributed-string'),
    };
}
"""

# Fields that carry actual video content; all empty means the page was not a video page
_CONTENT_FIELDS = ("title", "description", "expanded_description", "image", "upload_date",
                   "date_published", "author", "duration")


@dataclass(frozen=True)
class VideoMetadata:
    id: str
    url: str
    title: str = ""
    description: str = ""
    expanded_description: str = ""
    keywords: str = ""
    tags: List[str] = field(default_factory=list)
    author: str = ""
    channel_url: str = ""
    view_count: str = ""
    like_count: str = ""
    image: str = ""
    duration: str = ""
    width: str = ""
    height: str = ""
    genre: str = ""
    language: str = ""
    date_published: str = ""
    upload_date: str = ""
    scraped_url: str = ""
    scraped_at: str = ""
    screenshot_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def trim_description(description: Optional[str]) -> str:
    """Drop the collapsed "…...more" tail and collapse blank lines."""
    if not description:
        return ""
    idx = description.find(MORE_MARKER)
    if idx != -1:
        description = description[:idx]
    return re.sub(r"\n{2,}", "\n", description).strip()


def unique_tags(values: Iterable[Optional[str]]) -> List[str]:
    seen = set()
    out: List[str] = []
    for v in values:
        tag = (v or "").strip()
        if tag and tag not in seen:
            seen.add(tag)
            out.append(tag)
    return out


def build_metadata(raw: Dict[str, Any], url: str, scraped_at: Optional[str] = None) -> VideoMetadata:
    """Map the raw page payload onto the canonical VideoMetadata record."""
    meta: Dict[str, str] = raw.get("meta") or {}
    keywords = meta.get("keywords", "")
    tags = unique_tags(raw.get("tags") or [])
    if not tags and keywords:
        tags = unique_tags(keywords.split(","))
    return VideoMetadata(
        id=meta.get("identifier") or meta.get("videoId") or video_id_or_fallback(url),
        url=meta.get("og:url") or url,
        title=meta.get("og:title") or meta.get("title", ""),
        description=meta.get("og:description") or meta.get("description", ""),
        expanded_description=trim_description(raw.get("expanded")),
        keywords=keywords,
        tags=tags,
        author=(raw.get("author") or "").strip(),
        channel_url=raw.get("channelUrl") or "",
        view_count=meta.get("userInteractionCount") or meta.get("interactionCount", ""),
        like_count=(raw.get("likes") or "").strip(),
        image=meta.get("og:image") or raw.get("thumbnail") or "",
        duration=meta.get("duration", ""),
        width=meta.get("width") or meta.get("og:video:width", ""),
        height=meta.get("height") or meta.get("og:video:height", ""),
        genre=meta.get("genre", ""),
        language=meta.get("inLanguage", ""),
        date_published=meta.get("datePublished", ""),
        upload_date=meta.get("uploadDate", ""),
        scraped_url=url,
        scraped_at=scraped_at or datetime.now(timezone.utc).isoformat(),
    )


class MetadataExtractor:
    def __init__(self, logger: Optional[logging.LoggerAdapter] = None):
        self.log = logger or logging.getLogger(__name__)

    def extract_video_metadata(self, page: Page, url: str) -> VideoMetadata:
        try:
            raw = page.evaluate(EXTRACT_SCRIPT) or {}
        except Exception as e:
            raise MetadataExtractionError(url, str(e)) from e
        self.log.debug("Extracted %d meta tags for %s", len(raw.get("meta") or {}), url)

        metadata = build_metadata(raw, url)
        if not any(getattr(metadata, name) for name in _CONTENT_FIELDS):
            raise MetadataExtractionError(url, "page exposes no video metadata")
        return metadata
