"""
Run configuration.

Values are resolved once at startup with the precedence
CLI flag > JSON input file > environment variable > default,
and frozen into a ScraperConfig that every component reads.
"""
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .urls import channel_handle, extract_video_id, is_video_url

DEFAULT_OUTPUT_ROOT = "./output"
INPUT_FILE_CANDIDATES = ["./input.local.json", "./input.json"]


@dataclass(frozen=True)
class BrowserSettings:
    user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
    )
    locale: str = "en-US"
    accept_language: str = "en-US,en;q=0.9"
    consent_value: str = "YES+cb"

    @classmethod
    def from_env(cls) -> "BrowserSettings":
        defaults = cls()
        return cls(
            user_agent=os.getenv("USER_AGENT", defaults.user_agent),
            locale=os.getenv("LOCALE", defaults.locale),
            accept_language=os.getenv("ACCEPT_LANGUAGE", defaults.accept_language),
            consent_value=os.getenv("CONSENT_VALUE", defaults.consent_value),
        )


@dataclass(frozen=True)
class ScraperConfig:
    channel_url: str
    output_dir: str
    max_videos: int = 50
    offset: int = 0
    base_delay_ms: int = 1000
    max_retries: int = 3
    headless: bool = False
    skip_screenshots: bool = False
    verbose: bool = False
    dark_mode: bool = False
    theater_mode: bool = False
    hide_suggested: bool = False
    interactive: bool = False
    save_complete_html: bool = False
    browser: BrowserSettings = field(default_factory=BrowserSettings)

    @property
    def is_single_video(self) -> bool:
        return is_video_url(self.channel_url)


# camelCase keys accepted in the JSON input file
_INPUT_KEYS = {
    "channelUrl": "channel_url",
    "url": "channel_url",
    "maxVideos": "max_videos",
    "offset": "offset",
    "baseDelay": "base_delay_ms",
    "maxRetries": "max_retries",
    "headless": "headless",
    "skipScreenshots": "skip_screenshots",
    "verbose": "verbose",
    "useDarkMode": "dark_mode",
    "useTheaterMode": "theater_mode",
    "hideSuggestedVideos": "hide_suggested",
    "interactive": "interactive",
    "saveCompleteHtml": "save_complete_html",
    "outputDir": "output_dir",
}

_ENV_KEYS = {
    "headless": "PLAYWRIGHT_HEADLESS",
}


def load_input_file(path: Optional[str] = None) -> Dict[str, Any]:
    candidates = [path] if path else INPUT_FILE_CANDIDATES
    for candidate in candidates:
        if candidate and os.path.exists(candidate):
            try:
                with open(candidate, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logging.warning("Ignoring unreadable input file %s: %s", candidate, e)
                continue
            if isinstance(data, dict):
                logging.info("Loaded input from %s", candidate)
                return {_INPUT_KEYS[k]: v for k, v in data.items() if k in _INPUT_KEYS}
    return {}


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() not in ("0", "false", "no", "")


def default_output_dir(url: str, root: Optional[str] = None) -> str:
    root = root or os.getenv("SCRAPER_OUTPUT_ROOT", DEFAULT_OUTPUT_ROOT)
    if is_video_url(url):
        name = extract_video_id(url) or "unknown-video"
    else:
        name = channel_handle(url) or "unknown-channel"
    return str(Path(root) / name)


def build_config(overrides: Dict[str, Any], file_values: Optional[Dict[str, Any]] = None) -> ScraperConfig:
    """
    Merge CLI overrides (None means "not given") with input-file values and
    environment defaults into a frozen ScraperConfig.
    """
    file_values = file_values or {}
    merged: Dict[str, Any] = {}
    for key in ScraperConfig.__dataclass_fields__:
        if key == "browser":
            continue
        value = overrides.get(key)
        if value is None:
            value = file_values.get(key)
        if value is None and key in _ENV_KEYS:
            value = _env_bool(_ENV_KEYS[key])
        if value is not None:
            merged[key] = value

    url = (merged.get("channel_url") or "").strip().rstrip("/")
    if not url:
        raise ValueError("A channel or video URL is required")
    merged["channel_url"] = url
    if not merged.get("output_dir"):
        merged["output_dir"] = default_output_dir(url)

    for key in ("max_videos", "offset", "base_delay_ms", "max_retries"):
        if key in merged:
            merged[key] = int(merged[key])
            if merged[key] < 0:
                raise ValueError(f"{key} must not be negative")
    return ScraperConfig(browser=BrowserSettings.from_env(), **merged)
