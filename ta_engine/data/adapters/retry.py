"""
Shared retry logic for exchange-backed feeds.

Retries rate-limit and network errors with exponential backoff plus random
jitter, so concurrent feeds that hit a limit together do not retry in
lockstep.
"""

import random
import time
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

import ccxt
from loguru import logger

from ta_engine.shared.config.defaults import DEFAULT_FEED_CONFIG


F = TypeVar('F', bound=Callable[..., Any])


def backoff_delay(current_backoff: float, jitter_pct: float) -> float:
    """Backoff plus up to ``jitter_pct`` of it at random."""
    return current_backoff + current_backoff * jitter_pct * random.random()


def retry_on_rate_limit(
    max_retries: Optional[int] = None,
    backoff: Optional[float] = None,
    jitter_pct: Optional[float] = None,
    sleep: Optional[Callable[[float], None]] = None,
) -> Callable[[F], F]:
    """
    Decorator to retry function calls on rate limit and network errors.

    Args:
        max_retries: Maximum number of attempts (default: FeedConfig.max_retries)
        backoff: Initial backoff in seconds, doubles each retry (default: FeedConfig.backoff)
        jitter_pct: Random jitter fraction (0-1) added to the backoff (default: FeedConfig.jitter_pct)
        sleep: Sleep function (default: time.sleep)

    Example:
        @retry_on_rate_limit(max_retries=5, backoff=2.0)
        def fetch_data():
            ...
    """
    max_retries = DEFAULT_FEED_CONFIG.max_retries if max_retries is None else max_retries
    backoff = DEFAULT_FEED_CONFIG.backoff if backoff is None else backoff
    jitter_pct = DEFAULT_FEED_CONFIG.jitter_pct if jitter_pct is None else jitter_pct

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            pause = sleep or time.sleep
            retries = 0
            current_backoff = backoff

            while True:
                try:
                    return func(*args, **kwargs)
                except ccxt.RateLimitExceeded:
                    retries += 1
                    if retries >= max_retries:
                        logger.error(f"Rate limit exceeded after {max_retries} attempts")
                        raise

                    sleep_time = backoff_delay(current_backoff, jitter_pct)
                    logger.warning(
                        f"Rate limit hit, retrying in {sleep_time:.2f}s "
                        f"(attempt {retries}/{max_retries})"
                    )
                    pause(sleep_time)
                    current_backoff *= 2

                except ccxt.NetworkError as e:
                    retries += 1
                    if retries >= max_retries:
                        logger.error(f"Network error after {max_retries} attempts: {e}")
                        raise

                    sleep_time = backoff_delay(current_backoff, jitter_pct)
                    logger.warning(f"Network error, retrying in {sleep_time:.2f}s: {e}")
                    pause(sleep_time)
                    current_backoff *= 2

        return wrapper  # type: ignore
    return decorator
