"""
Logging setup and the per-run clock.

Every component receives a RunLogger at construction time instead of calling
the root logger directly; the logger prefixes each line with the seconds
elapsed on its RunClock, which the orchestrator resets before each video.
"""
import logging
import os
import time
from typing import Any, MutableMapping, Optional, Tuple

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"


def setup_logging(verbose: bool = False) -> None:
    level = "DEBUG" if verbose else os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
    # urllib3 logs every connection at DEBUG
    for noisy in ("urllib3", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class RunClock:
    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._start = clock()

    def reset(self) -> None:
        self._start = self._clock()

    def elapsed(self) -> float:
        return self._clock() - self._start


class RunLogger(logging.LoggerAdapter):
    """LoggerAdapter that prepends "[  3.2s]" taken from a RunClock."""

    def __init__(self, logger: logging.Logger, clock: Optional[RunClock] = None):
        super().__init__(logger, {})
        self.clock = clock or RunClock()

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[{self.clock.elapsed():5.1f}s] {msg}", kwargs

    def reset_clock(self) -> None:
        self.clock.reset()


def get_run_logger(name: str = "ytchannel_scraper", clock: Optional[RunClock] = None) -> RunLogger:
    return RunLogger(logging.getLogger(name), clock)
