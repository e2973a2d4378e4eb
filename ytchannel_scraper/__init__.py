"""Playwright-driven YouTube channel and video scraper."""
from .config import ScraperConfig, build_config
from .errors import BrowserLaunchError, MetadataExtractionError, NotInitializedError, ScraperError
from .metadata import VideoMetadata
from .orchestrator import FailedVideo, ScrapingOrchestrator, ScrapingResult, ScrapingSummary

__version__ = "0.1.0"

__all__ = [
    "ScraperConfig",
    "build_config",
    "ScraperError",
    "BrowserLaunchError",
    "NotInitializedError",
    "MetadataExtractionError",
    "VideoMetadata",
    "FailedVideo",
    "ScrapingOrchestrator",
    "ScrapingResult",
    "ScrapingSummary",
]
