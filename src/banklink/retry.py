"""Bounded retry with backoff for outward vendor calls.

``with_retry`` is applied by the provider facade around every adapter call.
Which failures are retried, how often, and what happens once attempts run out
is an explicit :class:`RetryPolicy` chosen per call: read paths degrade to a
safe default, write paths surface a typed :class:`ProviderError`.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from typing import TypeVar, overload

import httpx

from .config import RetryConfig
from .errors import (
    RETRIES_EXHAUSTED,
    BankLinkError,
    ProviderError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")
D = TypeVar("D")


@dataclass(frozen=True)
class RetryPolicy:
    """How a single call is retried.

    Attributes:
        max_attempts: Total attempts including the first one
        initial_delay: Seconds to wait before the first retry
        backoff_factor: Multiplier applied to the delay after every retry
        max_delay: Upper bound for any single delay
        swallow: Return the default on exhaustion instead of raising
    """

    max_attempts: int = 3
    initial_delay: float = 0.5
    backoff_factor: float = 2.0
    max_delay: float = 8.0
    swallow: bool = True

    @classmethod
    def from_config(cls, config: RetryConfig, swallow: bool = True) -> "RetryPolicy":
        """Build a policy from the retry section of the settings."""
        return cls(
            max_attempts=config.max_attempts,
            initial_delay=config.initial_delay,
            backoff_factor=config.backoff_factor,
            max_delay=config.max_delay,
            swallow=swallow,
        )

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given (1-based) failed attempt."""
        delay = self.initial_delay * (self.backoff_factor ** (attempt - 1))
        return min(delay, self.max_delay)

    def raising(self) -> "RetryPolicy":
        """Copy of this policy that raises on exhaustion."""
        return replace(self, swallow=False)


READ_POLICY = RetryPolicy()


def is_transient_error(error: BaseException) -> bool:
    """Decide whether a failure may succeed if the call is repeated.

    Input errors, unsupported operations and vendor business rejections
    (revoked consent, bad credentials) are permanent. Timeouts, transport
    failures, 5xx/429 responses and unexpected exceptions are transient.
    """
    if isinstance(error, ProviderError):
        return error.is_transient
    if isinstance(error, BankLinkError):
        return False
    if isinstance(error, (asyncio.TimeoutError, httpx.TransportError)):
        return True
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code >= 500 or error.response.status_code == 429
    return isinstance(error, Exception)


@overload
async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    default: None = None,
    description: str = "",
) -> T | None: ...


@overload
async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    default: D,
    description: str = "",
) -> T | D: ...


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    default: object = None,
    description: str = "",
) -> object:
    """Execute a zero-argument async operation with bounded retries.

    Args:
        operation: Callable returning a fresh awaitable on every attempt
        policy: Retry policy, defaults to the swallowing read policy
        default: Value returned when attempts are exhausted and the policy
            swallows failures
        description: Label used in log messages

    Returns:
        The operation's result, or ``default`` once retries are exhausted
        under a swallowing policy.

    Raises:
        BankLinkError: Non-transient errors, immediately and unmodified
        ProviderError: Transient errors after exhaustion under a raising policy
    """
    policy = policy or READ_POLICY
    label = description or getattr(operation, "__name__", "operation")
    last_error: BaseException | None = None

    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if not is_transient_error(e):
                raise

            last_error = e
            if attempt < policy.max_attempts:
                delay = policy.delay_for(attempt)
                logger.debug(
                    f"{label} failed (attempt {attempt}/{policy.max_attempts}): "
                    f"{e!r}; retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)

    if policy.swallow:
        logger.warning(
            f"{label} failed after {policy.max_attempts} attempts, "
            f"returning default: {last_error!r}"
        )
        return default

    if isinstance(last_error, ProviderError):
        raise last_error

    raise ProviderError(
        f"{label} failed after {policy.max_attempts} attempts: {last_error}",
        RETRIES_EXHAUSTED,
        transient=False,
    ) from last_error
