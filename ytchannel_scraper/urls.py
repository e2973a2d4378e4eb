import hashlib
import re
from typing import Optional
from urllib.parse import parse_qs, urlparse

YOUTUBE_BASE_URL = "https://www.youtube.com"

_VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")


# -----------------------
# YouTube URL helpers
# -----------------------
def clean_video_url(url: str) -> str:
    """
    Return canonical URL to navigate to:
     - watch?v=VIDEOID (strip extraneous params except v)
     - shorts/VIDEOID preserved
     - youtu.be/VIDEOID converted to watch URL
    Anything else is returned without its fragment.
    """
    if not url:
        return url
    if url.startswith("/"):
        url = YOUTUBE_BASE_URL + url
    parsed = urlparse(url)
    path = parsed.path or ""
    m = re.search(r"/shorts/([A-Za-z0-9_-]{11})", path)
    if m:
        return f"{YOUTUBE_BASE_URL}/shorts/{m.group(1)}"
    if parsed.netloc and "youtu.be" in parsed.netloc:
        vid = path.strip("/").split("/")[0]
        if vid:
            return f"{YOUTUBE_BASE_URL}/watch?v={vid}"
    if "watch" in path and parsed.query:
        qs = parse_qs(parsed.query)
        if qs.get("v"):
            return f"{YOUTUBE_BASE_URL}/watch?v={qs['v'][0]}"
    return url.split("#")[0]


def extract_video_id(url: str) -> Optional[str]:
    if not url:
        return None
    parsed = urlparse(url)
    if parsed.netloc and "youtu.be" in parsed.netloc:
        return parsed.path.strip("/").split("/")[0] or None
    m = re.search(r"[?&]v=([^&#]+)", url)
    if m:
        return m.group(1)
    m = re.search(r"/shorts/([A-Za-z0-9_-]{11})", parsed.path or "")
    if m:
        return m.group(1)
    return None


def video_id_or_fallback(url: str) -> str:
    """Video id from the URL, or a stable "unknown-<hash>" when it has none."""
    vid = extract_video_id(url)
    if vid:
        return vid
    digest = hashlib.sha1((url or "").encode("utf-8")).hexdigest()[:11]
    return f"unknown-{digest}"


def is_valid_video_id(vid: Optional[str]) -> bool:
    return bool(vid and _VIDEO_ID_RE.match(vid))


def is_video_url(url: str) -> bool:
    u = (url or "").lower()
    return ("watch?v=" in u) or ("/shorts/" in u) or ("youtu.be/" in u)


def is_channel_url(url: str) -> bool:
    u = (url or "").lower()
    return ("/@" in u) or ("/channel/" in u) or ("/c/" in u) or ("/user/" in u)


def channel_videos_url(channel_url: str) -> str:
    base = channel_url.split("?")[0].split("#")[0].rstrip("/")
    if base.endswith("/videos"):
        return base
    for tab in ("/featured", "/shorts", "/streams", "/playlists", "/about"):
        if base.endswith(tab):
            base = base[: -len(tab)]
            break
    return base + "/videos"


def channel_handle(channel_url: str) -> Optional[str]:
    m = re.search(r"/@([^/?#]+)", channel_url or "")
    if m:
        return m.group(1)
    m = re.search(r"/(?:channel|c|user)/([^/?#]+)", channel_url or "")
    return m.group(1) if m else None
