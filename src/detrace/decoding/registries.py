"""Built-in decoder registries.

Order matters: composite decoders that explain multi-call / multi-log
interactions come first, single-log token decoders next, and the generic
`TransferDecoder` fallback always last so every specific decoder gets first
refusal.

Example
-------
>>> from detrace.decoding.registries import make_default_registry
>>> registry = make_default_registry(wrapped_native=["0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"])
"""

from __future__ import annotations

from collections.abc import Iterable

from detrace.core.interfaces import IDecoder
from .contracts import ContractCreationDecoder
from .fallback import TransferDecoder
from .registry import DecoderRegistry, make_registry
from .tokens import ApprovalDecoder, Erc721TransferDecoder
from .uniswap_v2 import UniswapV2LiquidityDecoder, UniswapV2PairSwapDecoder, UniswapV2RouterSwapDecoder
from .weth import WrappedNativeDecoder


def make_protocol_decoders(wrapped_native: Iterable[str] = ()) -> list[IDecoder]:
    """Composite protocol decoders, most specific first."""
    decoders: list[IDecoder] = [
        UniswapV2RouterSwapDecoder(),
        UniswapV2PairSwapDecoder(),
        UniswapV2LiquidityDecoder(),
    ]
    wrapped_native = tuple(wrapped_native)
    if wrapped_native:
        decoders.append(WrappedNativeDecoder(wrapped_native))
    decoders.append(ContractCreationDecoder())
    return decoders


def make_token_decoders() -> list[IDecoder]:
    """Single-log token standard decoders."""
    return [ApprovalDecoder(), Erc721TransferDecoder()]


def make_fallback_decoders() -> list[IDecoder]:
    return [TransferDecoder()]


def make_default_registry(wrapped_native: Iterable[str] = ()) -> DecoderRegistry:
    """Return the full default registry: protocols, token standards, fallbacks."""
    return make_registry([
        *make_protocol_decoders(wrapped_native),
        *make_token_decoders(),
        *make_fallback_decoders(),
    ])
