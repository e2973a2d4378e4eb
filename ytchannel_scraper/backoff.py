import logging
import random
import time
from typing import Callable, Optional, Tuple, Type, TypeVar

from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential, wait_random

T = TypeVar("T")

JITTER_MS = 500
MAX_DELAY_MS = 30_000


class BackoffDelayer:
    """
    Spaces requests out. delay() is the fixed pause between videos
    (base + jitter); execute() is a retry-with-exponential-backoff wrapper for
    operations that want real re-attempts.
    """

    def __init__(self, base_delay_ms: int = 1000, max_retries: int = 3,
                 max_delay_ms: int = MAX_DELAY_MS, jitter_ms: int = JITTER_MS,
                 sleep: Callable[[float], None] = time.sleep,
                 logger: Optional[logging.LoggerAdapter] = None):
        self.base_delay_ms = base_delay_ms
        self.max_retries = max_retries
        self.max_delay_ms = max_delay_ms
        self.jitter_ms = jitter_ms
        self._sleep = sleep
        self.log = logger or logging.getLogger(__name__)

    def next_delay_ms(self) -> float:
        return self.base_delay_ms + random.uniform(0, self.jitter_ms)

    def delay(self) -> None:
        ms = self.next_delay_ms()
        self.log.debug("Waiting %.0fms before next request", ms)
        self._sleep(ms / 1000)

    def execute(self, operation: Callable[[], T], max_retries: Optional[int] = None,
                retry_on: Tuple[Type[BaseException], ...] = (Exception,)) -> T:
        retries = self.max_retries if max_retries is None else max_retries
        retryer = Retrying(
            stop=stop_after_attempt(retries + 1),
            wait=wait_exponential(multiplier=self.base_delay_ms / 1000, max=self.max_delay_ms / 1000)
            + wait_random(0, self.jitter_ms / 1000),
            retry=retry_if_exception_type(retry_on),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        return retryer(operation)

    def _log_retry(self, retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        self.log.debug("Attempt %d failed (%s); retrying in %.1fs", retry_state.attempt_number, exc, wait)
