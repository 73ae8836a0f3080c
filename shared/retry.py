"""
Retry mechanism for resilient operations.
"""

import asyncio
import random
from typing import Any, Optional, Callable, Awaitable

from shared.errors import is_retryable_error
from shared.logging import get_logger


class RetryConfig:
    """Configuration for retry behavior."""

    def __init__(self,
                 max_retries: int = 3,
                 base_delay: float = 1.0,
                 max_delay: float = 30.0,
                 exponential_base: float = 2.0,
                 jitter: bool = False,
                 backoff_strategy: str = "exponential"):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.exponential_base = exponential_base
        self.jitter = jitter
        self.backoff_strategy = backoff_strategy

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1

    def __repr__(self) -> str:
        return (
            f"RetryConfig(max_retries={self.max_retries}, base_delay={self.base_delay}, "
            f"max_delay={self.max_delay}, strategy={self.backoff_strategy!r})"
        )


def calculate_delay(retry_index: int, config: RetryConfig) -> float:
    """Calculate the delay before retry number ``retry_index`` (0-based)."""
    if config.backoff_strategy == "exponential":
        delay = config.base_delay * (config.exponential_base ** retry_index)
    elif config.backoff_strategy == "linear":
        delay = config.base_delay * (retry_index + 1)
    else:
        delay = config.base_delay

    delay = min(delay, config.max_delay)

    if config.jitter:
        jitter_amount = delay * 0.1  # 10% jitter
        delay += random.uniform(-jitter_amount, jitter_amount)

    return max(0.0, delay)


async def retry_async(
    func: Callable[..., Awaitable[Any]],
    *args,
    config: RetryConfig,
    should_retry: Callable[[BaseException], bool] = is_retryable_error,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    is_cancelled: Optional[Callable[[], bool]] = None,
    name: str = "operation",
    **kwargs
) -> Any:
    """Run ``func`` until it succeeds, the error is not retryable, or retries run out.

    The last error is re-raised unchanged so callers see the original type.
    """
    logger = get_logger(f"retry.{name}")

    failure_count = 0
    while True:
        try:
            result = await func(*args, **kwargs)
            if failure_count:
                logger.info("Retry succeeded", attempt=failure_count + 1, operation=name)
            return result

        except asyncio.CancelledError:
            raise
        except Exception as e:
            if not should_retry(e):
                logger.debug("Error is not retryable", operation=name, error=str(e))
                raise

            if failure_count >= config.max_retries:
                logger.error(
                    "All retry attempts exhausted",
                    attempts=failure_count + 1,
                    max_retries=config.max_retries,
                    operation=name,
                    error=str(e)
                )
                raise

            if is_cancelled is not None and is_cancelled():
                logger.debug("Retry abandoned, operation superseded", operation=name)
                raise

            delay = calculate_delay(failure_count, config)
            failure_count += 1

            logger.warning(
                "Attempt failed, waiting before next attempt",
                attempt=failure_count,
                delay=delay,
                operation=name,
                error=str(e)
            )

            await sleep(delay)
