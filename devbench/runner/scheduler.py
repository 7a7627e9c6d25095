"""Per-provider concurrency limits.

Every provider (an API vendor or a CLI agent's backing service) gets its own
asyncio semaphore, so a slow or rate-limited provider never starves the
others while each stays under its own cap.

Usage:
    scheduler = ProviderScheduler(max_concurrent=3)

    async with scheduler.acquire("anthropic"):
        result = await run_combination(...)
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class ProviderStats:
    """Concurrency observed for one provider.

    Attributes:
        in_flight: Units currently holding the provider's slot.
        peak_in_flight: Highest simultaneous count seen.
        completed: Units that released their slot.

    """

    in_flight: int = 0
    peak_in_flight: int = 0
    completed: int = 0


class ProviderScheduler:
    """Manage concurrent execution with one semaphore per provider.

    Semaphores are created lazily the first time a provider is seen and
    must be used from a single event loop.

    Example:
        >>> scheduler = ProviderScheduler(max_concurrent=2)
        >>> async with scheduler.acquire("openai"):
        ...     await call_model()

    """

    def __init__(self, max_concurrent: int) -> None:
        """Initialize the scheduler.

        Args:
            max_concurrent: Maximum in-flight units per provider.

        """
        if max_concurrent < 1:
            raise ValueError(f"max_concurrent must be >= 1, got {max_concurrent}")
        self.max_concurrent = max_concurrent
        self._semaphores: dict[str, asyncio.Semaphore] = {}
        self._stats: dict[str, ProviderStats] = {}
        logger.info(f"ProviderScheduler initialized: max_concurrent={max_concurrent} per provider")

    def _semaphore(self, provider: str) -> asyncio.Semaphore:
        if not provider:
            raise KeyError("Provider name cannot be empty")
        if provider not in self._semaphores:
            self._semaphores[provider] = asyncio.Semaphore(self.max_concurrent)
            self._stats[provider] = ProviderStats()
        return self._semaphores[provider]

    @contextlib.asynccontextmanager
    async def acquire(self, provider: str) -> AsyncIterator[None]:
        """Async context manager holding one of ``provider``'s slots.

        Args:
            provider: Provider identity.

        Yields:
            None

        """
        sem = self._semaphore(provider)
        async with sem:
            stats = self._stats[provider]
            stats.in_flight += 1
            stats.peak_in_flight = max(stats.peak_in_flight, stats.in_flight)
            try:
                yield
            finally:
                stats.in_flight -= 1
                stats.completed += 1

    def stats(self) -> dict[str, ProviderStats]:
        """Snapshot of per-provider statistics."""
        return {name: ProviderStats(**vars(s)) for name, s in self._stats.items()}
