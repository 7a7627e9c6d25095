"""Rate limit classification and bounded backoff.

API adapters translate their SDK's rate-limit exceptions into ``RateLimitError``
so the orchestrator can classify errors structurally. CLI agents only expose
their output, so ``detect_rate_limit`` scans stdout/stderr the same way for
every agent.

``call_with_rate_limit_retry`` retries an awaitable on rate limits with
exponential backoff; every other exception propagates on the first attempt.
"""

from __future__ import annotations

import asyncio
import json
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 1.0

_RATE_LIMIT_KEYWORDS = (
    "rate limit",
    "rate_limit",
    "ratelimit",
    "overloaded",
    "429",
    "hit your limit",
    "resource_exhausted",
)


@dataclass
class RateLimitInfo:
    """Information about a detected rate limit.

    Attributes:
        source: Provider identity or agent id that was rate limited
        retry_after_seconds: Seconds the provider asked us to wait, if known
        error_message: Human-readable error message
        detected_at: ISO timestamp when detected

    """

    source: str
    retry_after_seconds: float | None
    error_message: str
    detected_at: str

    def __post_init__(self) -> None:
        """Validate source field."""
        if not self.source:
            raise ValueError("Rate limit source cannot be empty")


class RateLimitError(Exception):
    """Raised when a provider or agent reports a rate limit.

    Attributes:
        info: RateLimitInfo with detection details

    """

    def __init__(self, info: RateLimitInfo):
        """Initialize with rate limit info.

        Args:
            info: Rate limit detection information

        """
        self.info = info
        super().__init__(f"Rate limit from {info.source}: {info.error_message}")


def make_rate_limit_error(
    source: str, message: str, retry_after: float | None = None
) -> RateLimitError:
    """Build a RateLimitError stamped with the current time."""
    return RateLimitError(
        RateLimitInfo(
            source=source,
            retry_after_seconds=retry_after,
            error_message=message,
            detected_at=datetime.now(timezone.utc).isoformat(),
        )
    )


def parse_retry_after(text: str) -> float | None:
    """Extract a ``Retry-After`` value (seconds) from headers or error text.

    Args:
        text: Error text or stderr containing headers

    Returns:
        Seconds to wait, or None if not found

    """
    match = re.search(r"Retry-After:\s*(\d+(?:\.\d+)?)", text, re.IGNORECASE)
    if match:
        return float(match.group(1))

    match = re.search(r"retry in\s*(\d+(?:\.\d+)?)\s*s", text, re.IGNORECASE)
    if match:
        return float(match.group(1))

    return None


def detect_rate_limit(stdout: str, stderr: str, source: str) -> RateLimitInfo | None:
    """Detect a rate limit from CLI agent output.

    Detection order:
    1. JSON stdout with ``is_error: true`` and a rate-limit keyword in the result
    2. stderr patterns: 429, "rate limit", "hit your limit", "overloaded"

    Args:
        stdout: Standard output from the agent process
        stderr: Standard error from the agent process
        source: Agent identity for the returned info

    Returns:
        RateLimitInfo if a rate limit was detected, None otherwise

    """
    now = datetime.now(timezone.utc).isoformat()

    try:
        data = json.loads(stdout.strip())
    except (json.JSONDecodeError, ValueError):
        data = None

    if isinstance(data, dict) and data.get("is_error"):
        result = str(data.get("result", data.get("error", "")))
        if any(keyword in result.lower() for keyword in _RATE_LIMIT_KEYWORDS):
            return RateLimitInfo(
                source=source,
                retry_after_seconds=parse_retry_after(result) or parse_retry_after(stderr),
                error_message=result or "Rate limit detected (JSON is_error)",
                detected_at=now,
            )

    stderr_lower = stderr.lower()
    error_msg = ""
    if re.search(r"\b429\b", stderr):
        error_msg = "HTTP 429: Rate limit exceeded"
    elif "rate limit" in stderr_lower or "ratelimit" in stderr_lower:
        error_msg = "Rate limit detected in stderr"
    elif "hit your limit" in stderr_lower:
        error_msg = "API limit hit"
    elif "overloaded" in stderr_lower:
        error_msg = "API overloaded"

    if error_msg:
        return RateLimitInfo(
            source=source,
            retry_after_seconds=parse_retry_after(stderr),
            error_message=error_msg,
            detected_at=now,
        )

    return None


def is_rate_limit_error(exc: BaseException) -> bool:
    """Classify an exception as a rate limit.

    ``RateLimitError`` is the structured signal. Exceptions that carry an HTTP
    status (``status_code`` attribute or ``response.status_code``) of 429 are
    accepted too, for SDK errors that escaped adapter translation.
    """
    if isinstance(exc, RateLimitError):
        return True
    status = getattr(exc, "status_code", None)
    if status is None:
        response = getattr(exc, "response", None)
        status = getattr(response, "status_code", None)
    return status == 429


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Exponential backoff for a zero-based attempt index: 2, 4, 8... x base."""
    return float(2 ** (attempt + 1)) * base_delay


async def call_with_rate_limit_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY_SECONDS,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Await ``fn()``, retrying rate-limited attempts with exponential backoff.

    Args:
        fn: Zero-argument coroutine factory (called once per attempt)
        max_attempts: Total attempts including the first one
        base_delay: Base delay in seconds for the backoff formula
        sleep: Awaitable sleep function (injectable for tests)

    Returns:
        The value returned by the first successful attempt.

    Raises:
        RateLimitError: When the last allowed attempt is still rate limited.
        Exception: Any non-rate-limit error, immediately.

    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    for attempt in range(max_attempts):
        try:
            return await fn()
        except Exception as e:
            if not is_rate_limit_error(e) or attempt == max_attempts - 1:
                raise
            delay = backoff_delay(attempt, base_delay)
            retry_after = e.info.retry_after_seconds if isinstance(e, RateLimitError) else None
            if retry_after is not None:
                delay = max(delay, retry_after)
            logger.warning(
                f"Rate limited ({e}); retrying in {delay:.1f}s "
                f"(attempt {attempt + 1}/{max_attempts})"
            )
            await sleep(delay)

    raise AssertionError("unreachable")
