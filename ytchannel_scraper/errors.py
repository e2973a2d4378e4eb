"""Exception types raised by the scraper."""


class ScraperError(Exception):
    """Base class for every error raised on purpose by the scraper."""


class BrowserLaunchError(ScraperError):
    """The browser process or its context could not be started."""


class NotInitializedError(ScraperError):
    """A browser resource was requested before initialize() ran."""


class MetadataExtractionError(ScraperError):
    """The video page did not expose any recognisable metadata."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Could not extract metadata from {url}: {reason}")
        self.url = url
        self.reason = reason


class DownloadError(ScraperError):
    """A download was refused with a client error that retrying will not fix."""

    def __init__(self, url: str, status_code: int):
        super().__init__(f"{status_code} for {url}")
        self.url = url
        self.status_code = status_code
