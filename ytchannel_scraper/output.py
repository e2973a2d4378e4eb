"""
Persistence of everything scraped for one video.

Layout under the output directory:
    metadata/<name>.json
    image/<name>.<ext>
    screenshot/<name>.png
    html/<name>.html
    complete-html/<name>/{index.html, complete.html, styles.css, images/image_N.<ext>}
    data/scraping_results_<timestamp>.json   (one per run)

<name> is "<yy-MM-dd> <video id>", or just the id when no date parses.
Only the metadata JSON is required; every other artefact is best-effort.
"""
import json
import logging
import re
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Set
from urllib.parse import urljoin

import requests
from bs4 import BeautifulSoup
from playwright.sync_api import Page

from .backoff import BackoffDelayer
from .errors import DownloadError, ScraperError
from .metadata import VideoMetadata
from .urls import video_id_or_fallback

CONTENT_FOLDERS = ["metadata", "image", "screenshot", "html"]
COMPLETE_HTML_FOLDER = "complete-html"
RESULTS_FOLDER = "data"
SCREENSHOT_SETTLE_MS = 5000
HTTP_TIMEOUT_SEC = 15
MAX_PAGE_IMAGES = 200

_DATE_FORMATS = ["%Y-%m-%d", "%b %d, %Y", "%d %b %Y", "%B %d, %Y"]
_CONTENT_TYPE_EXT = [("jpeg", "jpg"), ("jpg", "jpg"), ("png", "png"), ("webp", "webp"), ("gif", "gif")]

COLLECT_CSS_SCRIPT = """
() => {
    let css = '';
    for (const sheet of Array.from(document.styleSheets)) {
        try {
            for (const rule of Array.from(sheet.cssRules || [])) css += rule.cssText + '\\n';
        } catch (e) {
            // cross-origin sheets are not readable
        }
    }
    return css;
}
"""


# -----------------------
# Naming helpers
# -----------------------
def format_date_prefix(date_str: Optional[str]) -> Optional[str]:
    """yy-MM-dd for a site date string, None when it does not parse."""
    if not date_str:
        return None
    s = date_str.strip()
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00")).strftime("%y-%m-%d")
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(s[:10] if fmt == "%Y-%m-%d" else s, fmt).strftime("%y-%m-%d")
        except ValueError:
            continue
    return None


def build_file_name(metadata: VideoMetadata) -> str:
    video_id = metadata.id or video_id_or_fallback(metadata.scraped_url or metadata.url)
    prefix = format_date_prefix(metadata.upload_date or metadata.date_published)
    return f"{prefix} {video_id}" if prefix else video_id


def image_extension(url: str, content_type: Optional[str] = None) -> str:
    m = re.search(r"\.(jpg|jpeg|png|webp|gif)(?:\?|$)", url or "", re.IGNORECASE)
    if m:
        return m.group(1).lower()
    ct = (content_type or "").lower()
    for needle, ext in _CONTENT_TYPE_EXT:
        if needle in ct:
            return ext
    return "jpg"


def is_permanent_failure(status_code: int) -> bool:
    """4xx except 429; connection errors, timeouts, 429 and 5xx stay retryable."""
    return 400 <= status_code < 500 and status_code != 429


@dataclass(frozen=True)
class SavedFiles:
    metadata: VideoMetadata
    metadata_path: str
    image_path: Optional[str] = None
    screenshot_path: Optional[str] = None
    html_path: Optional[str] = None
    complete_html_dir: Optional[str] = None


class OutputPersister:
    def __init__(self, backoff: BackoffDelayer, logger: Optional[logging.LoggerAdapter] = None,
                 user_agent: Optional[str] = None, http: Optional[requests.Session] = None,
                 screenshot_settle_ms: int = SCREENSHOT_SETTLE_MS):
        self.backoff = backoff
        self.log = logger or logging.getLogger(__name__)
        self.http = http or requests.Session()
        if user_agent:
            self.http.headers.update({"User-Agent": user_agent})
        self.screenshot_settle_ms = screenshot_settle_ms
        self._persisted: Set[str] = set()

    # -----------------------
    # Public API
    # -----------------------
    def save_video_data(self, metadata: VideoMetadata, page: Page, output_dir: str,
                        skip_screenshots: bool = False, save_complete_html: bool = False) -> SavedFiles:
        base = Path(output_dir)
        self.ensure_folders(base, save_complete_html)
        name = build_file_name(metadata)
        metadata_path = base / "metadata" / f"{name}.json"
        if str(metadata_path) in self._persisted:
            raise ScraperError(f"{name} was already saved in this run")

        # The thumbnail fetch never touches Playwright, so it can overlap the
        # page-bound steps below, which must stay on this thread.
        with ThreadPoolExecutor(max_workers=1) as pool:
            image_future: Optional[Future] = None
            if metadata.image:
                image_future = pool.submit(self.save_image, metadata.image, base / "image" / name)
            else:
                self.log.info("No image URL available for %s", metadata.id)

            screenshot_path = None
            if skip_screenshots:
                self.log.debug("Screenshots disabled - skipping")
            else:
                screenshot_path = self.save_screenshot(page, base / "screenshot" / f"{name}.png")

            record = replace(metadata, screenshot_path=screenshot_path) if screenshot_path else metadata
            self.write_json(record.to_dict(), metadata_path)
            self._persisted.add(str(metadata_path))
            self.log.debug("Saved metadata: %s", metadata_path)

            html_path = self.save_html(page, base / "html" / f"{name}.html")

            image_path = None
            if image_future is not None:
                try:
                    image_path = image_future.result()
                except Exception as e:
                    self.log.error("Image download crashed for %s: %s", metadata.id, e)

        # Page images reuse the HTTP session, so they wait for the thumbnail worker.
        complete_dir = None
        if save_complete_html:
            complete_dir = self.save_complete_html(page, base / COMPLETE_HTML_FOLDER / name)

        self.log.info("Saved video data: %s", name)
        return SavedFiles(
            metadata=record,
            metadata_path=str(metadata_path),
            image_path=image_path,
            screenshot_path=screenshot_path,
            html_path=html_path,
            complete_html_dir=complete_dir,
        )

    def ensure_folders(self, base: Path, complete_html: bool = False) -> None:
        folders = CONTENT_FOLDERS + ([COMPLETE_HTML_FOLDER] if complete_html else [])
        for folder in folders:
            path = base / folder
            if not path.exists():
                path.mkdir(parents=True, exist_ok=True)
                self.log.debug("Created %s folder: %s", folder, path)

    # -----------------------
    # Individual artefacts
    # -----------------------
    @staticmethod
    def write_json(data: Any, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")

    def fetch(self, url: str) -> requests.Response:
        def _get() -> requests.Response:
            resp = self.http.get(url, timeout=HTTP_TIMEOUT_SEC)
            if is_permanent_failure(resp.status_code):
                raise DownloadError(url, resp.status_code)
            resp.raise_for_status()
            return resp
        # DownloadError is not a RequestException, so 4xx answers are not retried
        return self.backoff.execute(_get, retry_on=(requests.RequestException,))

    def save_image(self, image_url: str, path_without_ext: Path) -> Optional[str]:
        self.log.debug("Downloading image from: %s", image_url)
        try:
            resp = self.fetch(image_url)
            ext = image_extension(image_url, resp.headers.get("content-type"))
            path = path_without_ext.with_name(f"{path_without_ext.name}.{ext}")
            path.write_bytes(resp.content)
        except Exception as e:
            self.log.error("Failed to download image %s: %s", image_url, e)
            return None
        self.log.debug("Image saved: %s", path)
        return str(path)

    def save_screenshot(self, page: Page, path: Path) -> Optional[str]:
        self.log.debug("Taking screenshot...")
        try:
            if self.screenshot_settle_ms:
                page.wait_for_timeout(self.screenshot_settle_ms)
            page.screenshot(path=str(path), full_page=False, type="png")
        except Exception as e:
            self.log.error("Failed to take screenshot: %s", e)
            return None
        self.log.debug("Screenshot saved: %s", path)
        return str(path)

    def save_html(self, page: Page, path: Path) -> Optional[str]:
        try:
            path.write_text(page.content(), encoding="utf-8")
        except Exception as e:
            self.log.error("Error saving HTML: %s", e)
            return None
        self.log.debug("HTML saved: %s", path)
        return str(path)

    def save_complete_html(self, page: Page, folder: Path) -> Optional[str]:
        """index.html as rendered, plus complete.html with CSS inlined and images localised."""
        self.log.debug("Generating complete HTML...")
        try:
            images_dir = folder / "images"
            images_dir.mkdir(parents=True, exist_ok=True)
            raw_html = page.content()
            (folder / "index.html").write_text(raw_html, encoding="utf-8")

            try:
                css = page.evaluate(COLLECT_CSS_SCRIPT) or ""
            except Exception as e:
                self.log.debug("Could not read stylesheets: %s", e)
                css = ""
            (folder / "styles.css").write_text(css, encoding="utf-8")

            soup = BeautifulSoup(raw_html, "html.parser")
            saved = 0
            for img in soup.find_all("img", src=True)[:MAX_PAGE_IMAGES]:
                src = img["src"]
                if not src or src.startswith("data:"):
                    continue
                local = self._localise_image(urljoin(page.url or "", src), images_dir, saved + 1)
                if local:
                    saved += 1
                    img["src"] = local
                    if img.has_attr("srcset"):
                        del img["srcset"]

            style = soup.new_tag("style", type="text/css")
            style.string = css
            (soup.head or soup).append(style)
            (folder / "complete.html").write_text(str(soup), encoding="utf-8")
        except Exception as e:
            self.log.error("Error generating complete HTML: %s", e)
            return None
        self.log.debug("Complete HTML saved with %d images: %s", saved, folder)
        return str(folder)

    def _localise_image(self, url: str, images_dir: Path, index: int) -> Optional[str]:
        try:
            resp = self.fetch(url)
        except Exception as e:
            self.log.debug("Skipping page image %s: %s", url, e)
            return None
        filename = f"image_{index}.{image_extension(url, resp.headers.get('content-type'))}"
        (images_dir / filename).write_bytes(resp.content)
        return f"images/{filename}"


def save_results(result: Dict[str, Any], output_dir: str) -> Path:
    timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    path = Path(output_dir) / RESULTS_FOLDER / f"scraping_results_{timestamp}.json"
    OutputPersister.write_json(result, path)
    return path
