"""
In-process registry of outpoints claimed by in-flight transactions.

Coin selection re-fetches live UTXOs on every call, so two concurrent requests
against the same address would otherwise pick overlapping outputs. Claims are
keyed by (txid, vout) and expire after a TTL unless released earlier.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable

from loguru import logger

Outpoint = tuple[str, int]


class UtxoReservations:
    def __init__(self, ttl: float = 600.0, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl = ttl
        self._clock = clock
        self._claims: dict[Outpoint, float] = {}
        self._lock = asyncio.Lock()

    def _expire(self) -> None:
        now = self._clock()
        expired = [outpoint for outpoint, deadline in self._claims.items() if deadline <= now]
        for outpoint in expired:
            del self._claims[outpoint]
        if expired:
            logger.debug(f"Released {len(expired)} expired UTXO reservations")

    async def is_reserved(self, outpoint: Outpoint) -> bool:
        async with self._lock:
            self._expire()
            return outpoint in self._claims

    async def reserved(self) -> set[Outpoint]:
        async with self._lock:
            self._expire()
            return set(self._claims)

    async def claim(self, outpoints: Iterable[Outpoint], ttl: float | None = None) -> bool:
        """
        Claim all outpoints atomically.

        Returns False without claiming anything if any outpoint is already held.
        """
        outpoints = list(outpoints)
        async with self._lock:
            self._expire()
            if any(outpoint in self._claims for outpoint in outpoints):
                return False
            deadline = self._clock() + (self.ttl if ttl is None else ttl)
            for outpoint in outpoints:
                self._claims[outpoint] = deadline
        logger.debug(f"Reserved {len(outpoints)} UTXOs")
        return True

    async def release(self, outpoints: Iterable[Outpoint]) -> None:
        async with self._lock:
            for outpoint in outpoints:
                self._claims.pop(outpoint, None)

    def __len__(self) -> int:
        """Number of live claims (expired ones are not counted)."""
        now = self._clock()
        return sum(1 for deadline in self._claims.values() if deadline > now)
