"""
Retry and cooldown policy for the inpainting service.

Only rate-limit failures are retried; everything else is raised on the first
attempt. Once the service is still busy after all retries the caller starts a
cooldown during which no new request may be issued.

Functions:
    is_rate_limit_error: Recognise HTTP 429 / quota-exhausted errors
    call_with_retry: Run a call with fixed rate-limit backoff

Classes:
    Cooldown: Countdown gate for new requests
"""

import logging
import math
import time
from typing import Any, Callable, Optional, Sequence, TypeVar

from RS_Libs.constants import COOLDOWN_SECONDS, MAX_RETRIES, RATE_LIMIT_MARKERS, RATE_LIMIT_WAITS

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_rate_limit_error(error: BaseException) -> bool:
    """
    Check whether an error means the service is rate-limiting.

    Looks at a numeric 'code' or 'status' attribute (429) and at the message
    text for the usual markers.
    """
    for attr in ("code", "status", "status_code"):
        value = getattr(error, attr, None)
        if value == 429 or value == "RESOURCE_EXHAUSTED":
            return True

    message = str(error)
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


def call_with_retry(
    fn: Callable[[], T],
    max_retries: int = MAX_RETRIES,
    waits: Sequence[float] = RATE_LIMIT_WAITS,
    sleep: Callable[[float], Any] = time.sleep,
) -> T:
    """
    Call fn, retrying after a pause when it is rate-limited.

    Args:
        fn: Zero-argument callable performing the request
        max_retries: Total number of attempts (>= 1)
        waits: Pause in seconds before each retry; the last value repeats
        sleep: Sleep function (injected by tests)

    Returns:
        Whatever fn returns

    Raises:
        ValueError: If max_retries < 1 or waits is empty
        Exception: The last error from fn
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be >= 1, got {max_retries}")
    if not waits:
        raise ValueError("waits cannot be empty")

    for attempt in range(max_retries):
        try:
            return fn()
        except Exception as e:
            if not is_rate_limit_error(e) or attempt >= max_retries - 1:
                raise
            wait = waits[min(attempt, len(waits) - 1)]
            logger.warning(
                f"Rate limit hit. Retrying in {wait:.0f}s "
                f"(Attempt {attempt + 1}/{max_retries})..."
            )
            sleep(wait)

    # Unreachable: the final attempt either returns or raises
    raise RuntimeError("call_with_retry exhausted without a result")


class Cooldown:
    """
    Countdown that blocks new requests for a fixed period.

    Example:
        >>> cooldown = Cooldown(60)
        >>> cooldown.start()
        >>> cooldown.active
        True
    """

    def __init__(self, seconds: float = COOLDOWN_SECONDS, clock: Callable[[], float] = time.monotonic):
        if seconds < 0:
            raise ValueError(f"seconds must be >= 0, got {seconds}")
        self.seconds = seconds
        self._clock = clock
        self._ends_at: Optional[float] = None

    def start(self) -> None:
        self._ends_at = self._clock() + self.seconds
        logger.warning(f"Service busy; cooldown of {self.seconds:.0f}s started")

    def cancel(self) -> None:
        self._ends_at = None

    @property
    def remaining(self) -> int:
        """Whole seconds left, rounded up. 0 when inactive."""
        if self._ends_at is None:
            return 0
        left = self._ends_at - self._clock()
        if left <= 0:
            self._ends_at = None
            return 0
        return int(math.ceil(left))

    @property
    def active(self) -> bool:
        return self.remaining > 0
