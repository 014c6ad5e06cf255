from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from detrace.core.actions import Action
    from detrace.core.models import CallNode, Log
    from detrace.core.state import DecoderState


# ---------------------------------------------------------------------------
# IStorageReader
# ---------------------------------------------------------------------------

@runtime_checkable
class IStorageReader(Protocol):
    """
    Raw, uncached source of contract storage words.

    Domain expectations:
    - One call is one external fetch.
    - Failures surface as ChainAccessError.
    """

    async def get_storage_at(self, address: str, slot: int) -> bytes:
        """
        Return the 32-byte storage word of `address` at `slot`.

        Implementations:
        - RPC-based (`eth_getStorageAt`)
        - In-memory reader for testing
        """
        ...


# ---------------------------------------------------------------------------
# IChainAccess
# ---------------------------------------------------------------------------

@runtime_checkable
class IChainAccess(Protocol):
    """
    Read-only chain capability handed to decoders.

    Domain expectations:
    - Reads are memoized per (address, slot) for the lifetime of one decode pass.
    - At most one outstanding fetch exists per (address, slot).
    - Failures surface as ChainAccessError; decoders usually decline on it.
    """

    async def get_storage_at(self, address: str, slot: int) -> bytes:
        ...


# ---------------------------------------------------------------------------
# IDecoder
# ---------------------------------------------------------------------------

@runtime_checkable
class IDecoder(Protocol):
    """
    One semantic pattern recognizer.

    Domain expectations:
    - Returns None when the node/log does not match (the normal skip signal).
    - Returns None when the node/log is already consumed.
    - Raises DecodeError only when data it nominally matched is undecodable.
    - Side effects are confined to DecoderState; the trace is never mutated.
    """

    name: str

    async def decode_call(self, state: DecoderState, node: CallNode) -> Action | None:
        ...

    async def decode_log(self, state: DecoderState, node: CallNode, log: Log) -> Action | None:
        ...
