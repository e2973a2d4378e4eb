"""
Command line entry point.

    ytchannel-scraper -u https://www.youtube.com/@somechannel -l 20 --headless
    ytchannel-scraper -u "https://www.youtube.com/watch?v=dQw4w9WgXcQ" -i
"""
import argparse
import logging
import os
import sys
from typing import Any, Dict, List, Optional

from .backoff import BackoffDelayer
from .browser import BrowserSession
from .config import build_config, load_input_file
from .discovery import VideoDiscovery
from .errors import BrowserLaunchError, NotInitializedError
from .interactions import PageInteractions
from .log import get_run_logger, setup_logging
from .metadata import MetadataExtractor
from .orchestrator import ScrapingOrchestrator
from .output import OutputPersister, save_results
from .urls import is_channel_url, is_video_url


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ytchannel-scraper",
        description="Scrape metadata, thumbnails, screenshots and HTML for a YouTube channel or video.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-u", "--url", dest="channel_url", help="Channel or video URL")
    parser.add_argument("-l", "--limit", dest="max_videos", type=int, help="Max videos to scrape (default 50)")
    parser.add_argument("-o", "--offset", type=int, help="Skip this many discovered videos (default 0)")
    parser.add_argument("-d", "--delay", dest="base_delay_ms", type=int,
                        help="Base delay between videos in ms (default 1000)")
    parser.add_argument("-r", "--retries", dest="max_retries", type=int,
                        help="Retry budget reported for failed videos (default 3)")
    parser.add_argument("--headless", action="store_true", default=None, help="Run the browser headless")
    parser.add_argument("--skip-screenshots", action="store_true", default=None, help="Do not capture screenshots")
    parser.add_argument("--verbose", action="store_true", default=None, help="Debug logging")
    parser.add_argument("--dark-mode", action="store_true", default=None, help="Render pages in dark mode")
    parser.add_argument("--theater-mode", action="store_true", default=None, help="Switch the player to theater mode")
    parser.add_argument("--hide-suggested", action="store_true", default=None, help="Hide suggested videos")
    parser.add_argument("-i", "--interactive", action="store_true", default=None,
                        help="Step through videos in a visible browser")
    parser.add_argument("--complete-html", dest="save_complete_html", action="store_true", default=None,
                        help="Also save a self-contained copy of each page")
    parser.add_argument("--output-dir", help="Output directory (default derived from the URL)")
    parser.add_argument("--input", dest="input_file", help="JSON input file (default input.local.json / input.json)")
    return parser


def is_youtube_url(url: str) -> bool:
    u = (url or "").lower()
    return ("youtube.com" in u or "youtu.be" in u) and (is_video_url(u) or is_channel_url(u))


def prompt_for_url(prompt=input) -> str:
    while True:
        url = (prompt("Enter a YouTube channel or video URL: ") or "").strip()
        if is_youtube_url(url):
            return url
        print("That does not look like a YouTube channel or video URL, try again.")


def run(argv: Optional[List[str]] = None, prompt=input) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=bool(args.verbose))
    log = get_run_logger()

    overrides: Dict[str, Any] = {k: v for k, v in vars(args).items() if k != "input_file"}
    file_values = load_input_file(args.input_file)
    if not overrides.get("channel_url") and not file_values.get("channel_url"):
        overrides["channel_url"] = prompt_for_url(prompt)

    try:
        config = build_config(overrides, file_values)
    except ValueError as e:
        logging.error("Invalid configuration: %s", e)
        return 2
    os.makedirs(config.output_dir, exist_ok=True)
    log.info("Output directory: %s", config.output_dir)

    backoff = BackoffDelayer(config.base_delay_ms, config.max_retries, logger=log)
    session = BrowserSession(logger=log)
    interactions = PageInteractions(logger=log)
    orchestrator = ScrapingOrchestrator(
        session=session,
        discovery=VideoDiscovery(session, interactions, logger=log),
        interactions=interactions,
        extractor=MetadataExtractor(logger=log),
        persister=OutputPersister(backoff, logger=log, user_agent=config.browser.user_agent),
        logger=log,
        prompt=prompt,
    )

    try:
        result = orchestrator.scrape(config)
    except (BrowserLaunchError, NotInitializedError) as e:
        log.error("Browser session failed: %s", e)
        return 1
    except Exception as e:
        log.error("Scrape aborted: %s", e, exc_info=True)
        return 1

    path = save_results(result.to_dict(), config.output_dir)
    log.info("%d successful, %d failed of %d attempted. Results: %s",
             result.summary.successful, result.summary.failed, result.summary.total_attempted, path)
    for failure in result.failed:
        log.info("Failed %s: %s", failure.url, failure.error)
    return 0


def main() -> None:
    sys.exit(run())
