# src/q8agent/tenants/locks.py
"""
Per-subdomain mutual exclusion.

Mutating lifecycle operations (provision, teardown, restart) on the same
subdomain must not interleave: a teardown's archive step would otherwise
race a concurrent provision writing into the same directory. The registry
hands out one asyncio.Lock per subdomain and forgets it once nobody holds
or waits for it, so the registry does not grow with every tenant ever seen.

Usage:
    >>> locks = SubdomainLockRegistry()
    >>> async with locks.hold("acme"):
    ...     ...
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict

logger = logging.getLogger(__name__)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.users = 0


class SubdomainLockRegistry:
    """In-memory registry of per-subdomain asyncio locks."""

    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    @asynccontextmanager
    async def hold(self, subdomain: str) -> AsyncIterator[None]:
        """Hold the lock for ``subdomain`` for the duration of the block."""
        entry = self._entries.get(subdomain)
        if entry is None:
            entry = self._entries[subdomain] = _Entry()
        entry.users += 1

        try:
            if entry.lock.locked():
                logger.debug(f"Waiting for in-flight operation on '{subdomain}'")
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if entry.users == 0:
                self._entries.pop(subdomain, None)
