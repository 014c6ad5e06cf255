"""Per-pass read-through cache over a storage reader.

`CachedChainAccess` keeps at most one outstanding (and afterwards one cached)
read per (address, slot). The in-flight `asyncio.Task` itself is the cache
entry, so concurrent callers await the same fetch and a failed fetch keeps
failing for the rest of the pass without hitting the node again.
"""

from __future__ import annotations

import asyncio
import logging

from eth_utils import to_checksum_address

from detrace.core.interfaces import IStorageReader
from detrace.exceptions import ChainAccessError

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("chain_access")

SlotKey = tuple[str, int]


def _normalize_key(address: str, slot: int) -> SlotKey:
    if slot < 0 or slot >= 2**256:
        raise ChainAccessError(f"storage slot out of range: {slot}")
    return to_checksum_address(address), slot


class CachedChainAccess:
    """Memoizing `IChainAccess` for one decode pass. No eviction."""

    def __init__(self, reader: IStorageReader) -> None:
        self._reader = reader
        self._tasks: dict[SlotKey, asyncio.Task[bytes]] = {}
        self.fetch_count = 0

    async def _fetch(self, key: SlotKey) -> bytes:
        self.fetch_count += 1
        address, slot = key
        logger.debug(f"storage read {address}[{slot}]")
        try:
            return await self._reader.get_storage_at(address, slot)
        except ChainAccessError:
            raise
        except Exception as e:
            raise ChainAccessError(f"storage read {address}[{slot}] failed: {e}") from e

    async def get_storage_at(self, address: str, slot: int) -> bytes:
        key = _normalize_key(address, slot)
        task = self._tasks.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key))
            self._tasks[key] = task
        # shield: one cancelled waiter must not cancel the shared fetch
        return await asyncio.shield(task)

    def __len__(self) -> int:
        return len(self._tasks)


class NullChainAccess:
    """`IChainAccess` for runs without an RPC endpoint: every read fails."""

    async def get_storage_at(self, address: str, slot: int) -> bytes:
        raise ChainAccessError(f"no RPC endpoint configured (storage read {address}[{slot}])")
