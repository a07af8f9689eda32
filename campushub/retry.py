"""Retry decorator with linear or exponential backoff — stdlib only."""
from __future__ import annotations

import functools
import logging
import random
import time
from typing import Any, Callable, Tuple, Type

logger = logging.getLogger(__name__)


def backoff_delay(
    attempt: int,
    *,
    base_delay: float,
    backoff: str = "exponential",
    backoff_factor: float = 2.0,
    max_delay: float = 30.0,
) -> float:
    """Delay before retrying after the given (1-based) failed attempt."""
    if backoff == "linear":
        delay = base_delay * attempt
    else:
        delay = base_delay * (backoff_factor ** (attempt - 1))
    return min(delay, max_delay)


def retry(
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    backoff: str = "exponential",
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retryable: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] | None = None,
) -> Callable:
    """Decorator: retries the wrapped function with backoff.

    ``max_attempts`` may be overridden per call with a ``_attempts`` keyword.
    """

    def decorator(fn: Callable) -> Callable:
        @functools.wraps(fn)
        def wrapper(*args: Any, _attempts: int | None = None, **kwargs: Any) -> Any:
            attempts = max(1, _attempts or max_attempts)
            last_exc: BaseException | None = None
            for attempt in range(1, attempts + 1):
                try:
                    return fn(*args, **kwargs)
                except retryable as exc:
                    last_exc = exc
                    if attempt == attempts:
                        logger.warning(
                            "%s failed after %d attempts: %s",
                            fn.__qualname__,
                            attempts,
                            exc,
                        )
                        raise
                    delay = backoff_delay(
                        attempt,
                        base_delay=base_delay,
                        backoff=backoff,
                        backoff_factor=backoff_factor,
                        max_delay=max_delay,
                    )
                    if jitter:
                        delay *= 0.5 + random.random()
                    logger.debug(
                        "%s attempt %d/%d failed (%s), retrying in %.1fs",
                        fn.__qualname__,
                        attempt,
                        attempts,
                        exc,
                        delay,
                    )
                    (sleep or time.sleep)(delay)
            raise last_exc  # type: ignore[misc]

        return wrapper

    return decorator
