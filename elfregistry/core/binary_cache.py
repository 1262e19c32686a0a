"""Bounded per-contract LRU cache of binary payloads.

Entries are keyed by ``(contract, storage_key)``.  Each contract keeps at
most ``capacity_per_contract`` entries; eviction in one contract never
touches another.  The internal lock guards bookkeeping only and is never
held across backend I/O.

A fill that races an overwrite is guarded by a per-contract generation:
a reader takes ``generation(contract)`` before fetching from the backend
and passes it to ``put``; any invalidation in between bumps the generation
and the stale fill is dropped.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY_PER_CONTRACT = 2


class BinaryCache:
    """Per-contract least-recently-used cache.

    Parameters
    ----------
    capacity_per_contract:
        Maximum number of binaries cached for any one contract.
    """

    def __init__(self, capacity_per_contract: int = DEFAULT_CAPACITY_PER_CONTRACT) -> None:
        if capacity_per_contract < 1:
            raise ValueError("capacity_per_contract must be at least 1")
        self._capacity = capacity_per_contract
        self._lock = threading.Lock()
        # contract -> storage_key -> bytes, least recently used first
        self._per_contract: dict[str, OrderedDict[str, bytes]] = {}
        self._generations: dict[str, int] = {}
        self._epoch = 0

    @property
    def capacity_per_contract(self) -> int:
        return self._capacity

    def generation(self, contract: str) -> tuple[int, int]:
        """Token identifying the contract's current invalidation state."""
        with self._lock:
            return self._epoch, self._generations.get(contract, 0)

    def get(self, contract: str, storage_key: str) -> bytes | None:
        """Return the cached payload and mark it most recently used."""
        with self._lock:
            entries = self._per_contract.get(contract)
            if entries is None or storage_key not in entries:
                return None
            entries.move_to_end(storage_key)
            return entries[storage_key]

    def put(
        self,
        contract: str,
        storage_key: str,
        data: bytes,
        generation: tuple[int, int] | None = None,
    ) -> bool:
        """Insert or refresh a payload, evicting the contract's LRU entry.

        When *generation* is given and the contract was invalidated since it
        was taken, nothing is stored and ``False`` is returned.
        """
        with self._lock:
            current = (self._epoch, self._generations.get(contract, 0))
            if generation is not None and generation != current:
                logger.debug(
                    "Dropped cache fill for %s/%s invalidated during fetch",
                    contract,
                    storage_key,
                )
                return False
            entries = self._per_contract.setdefault(contract, OrderedDict())
            entries[storage_key] = data
            entries.move_to_end(storage_key)
            while len(entries) > self._capacity:
                evicted, _ = entries.popitem(last=False)
                logger.debug("Evicted %s/%s from binary cache", contract, evicted)
            return True

    def invalidate(self, contract: str, storage_key: str) -> None:
        with self._lock:
            self._bump(contract)
            entries = self._per_contract.get(contract)
            if entries is None:
                return
            entries.pop(storage_key, None)
            if not entries:
                del self._per_contract[contract]

    def invalidate_contract(self, contract: str) -> None:
        with self._lock:
            self._bump(contract)
            self._per_contract.pop(contract, None)

    def clear(self) -> None:
        with self._lock:
            self._epoch += 1
            self._per_contract.clear()

    def _bump(self, contract: str) -> None:
        self._generations[contract] = self._generations.get(contract, 0) + 1

    def cached_keys(self, contract: str) -> list[str]:
        """Storage keys cached for *contract*, most recently used last."""
        with self._lock:
            return list(self._per_contract.get(contract, ()))

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        contract, storage_key = key
        with self._lock:
            return storage_key in self._per_contract.get(contract, {})

    def __len__(self) -> int:
        with self._lock:
            return sum(len(entries) for entries in self._per_contract.values())
