"""Lightweight JSON-RPC client for Ethereum-compatible nodes.

This module provides:
- `RPC`: an async client with sane timeouts/connection limits
- Helper utilities to format block tags and storage slots

Storage reads are pinned to one block tag so every read of a decode pass sees
the same chain state.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from eth_utils import to_checksum_address

from detrace.exceptions import ChainAccessError

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("rpc")


def to_block_tag(block: int | str) -> str:
    """Return a JSON-RPC block parameter: 0x-hex number or a named tag ("latest", ...)."""
    if isinstance(block, int):
        return hex(block)
    if block.startswith("0x") or block in ("latest", "earliest", "pending", "safe", "finalized"):
        return block
    return hex(int(block))


def to_hex_slot(slot: int) -> str:
    """Return a 0x-prefixed 32-byte storage slot."""
    if slot < 0 or slot >= 2**256:
        raise ValueError(f"storage slot out of range: {slot}")
    return "0x" + slot.to_bytes(32, "big").hex()


class RPC:
    """Minimal async RPC client.

    Parameters
    ----------
    url : str
        RPC endpoint URL.
    block : int | str
        Block tag every storage read is pinned to.
    timeout_s : int
        Per-operation timeout in seconds (connect/read/write).
    max_connections : int
        Maximum concurrent connections to keep in the pool.
    """

    def __init__(
        self,
        url: str,
        *,
        block: int | str = "latest",
        timeout_s: int = 20,
        max_connections: int = 32,
    ) -> None:
        self.url = url
        self.block_tag = to_block_tag(block)
        self.client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                connect=timeout_s,
                read=timeout_s,
                write=timeout_s,
                pool=max(30, timeout_s * 3),
            ),
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(1, max_connections // 2),
            ),
            http2=True,
        )

    async def _call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            r = await self.client.post(self.url, json=payload)
            r.raise_for_status()
            data = r.json()
        except httpx.HTTPError as e:
            raise ChainAccessError(f"{method} failed: {e}") from e
        except ValueError as e:
            raise ChainAccessError(f"{method} returned invalid JSON: {e}") from e

        if "error" in data:
            e = data["error"]
            raise ChainAccessError(f"RPC error: {e.get('code')} {e.get('message')}")
        if "result" not in data:
            raise ChainAccessError(f"{method} returned no result")
        return data["result"]

    async def latest_block(self) -> int:
        """Return the latest block number as an int."""
        result = await self._call("eth_blockNumber", [])
        return int(result, 16)

    async def get_storage_at(self, address: str, slot: int) -> bytes:
        """Return the 32-byte storage word of `address` at `slot`, pinned to `block_tag`."""
        params = [to_checksum_address(address), to_hex_slot(slot), self.block_tag]
        result = await self._call("eth_getStorageAt", params)
        logger.debug(f"eth_getStorageAt {params[0]}[{slot}] @ {self.block_tag} -> {result}")
        try:
            word = bytes.fromhex(result[2:] if result.startswith("0x") else result)
        except (AttributeError, ValueError) as e:
            raise ChainAccessError(f"eth_getStorageAt returned non-hex result {result!r}") from e
        # Some nodes strip leading zeros
        return word.rjust(32, b"\x00")

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self.client.aclose()
