from __future__ import annotations

from dataclasses import dataclass

from detrace.constants import WRAPPED_NATIVE


@dataclass(frozen=True)
class DecodeConfig:
    """Configuration for one trace decode run."""

    rpc_url: str | None = None  # no storage reads possible when unset
    block: int | str = "latest"  # storage reads are pinned to this block
    chain: str = "ethereum"
    timeout_s: int = 20
    max_connections: int = 32
    # Optional override; defaults to the chain's known wrapped-native contracts
    wrapped_native: tuple[str, ...] | None = None

    def wrapped_native_addresses(self) -> tuple[str, ...]:
        if self.wrapped_native is not None:
            return self.wrapped_native
        return WRAPPED_NATIVE.get(self.chain, ())
