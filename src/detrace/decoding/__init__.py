"""Trace decoding.

This package provides:
- `Decoder` base class and the `DecoderRegistry` priority list
- Composite protocol decoders (Uniswap V2 router/pair/liquidity, wrapped native, deployments)
- Token standard decoders (ERC-20 approvals, ERC-721 transfers)
- The generic `TransferDecoder` fallback
- Pre-built default registry
"""

from detrace.decoding.contracts import ContractCreationDecoder
from detrace.decoding.decoder import Decoder
from detrace.decoding.fallback import TransferDecoder
from detrace.decoding.registries import make_default_registry
from detrace.decoding.registry import DecoderRegistry, add_decoder, add_many, make_registry
from detrace.decoding.tokens import ApprovalDecoder, Erc721TransferDecoder
from detrace.decoding.uniswap_v2 import (
    UniswapV2LiquidityDecoder,
    UniswapV2PairSwapDecoder,
    UniswapV2RouterSwapDecoder,
)
from detrace.decoding.weth import WrappedNativeDecoder

__all__ = [
    "ApprovalDecoder",
    "ContractCreationDecoder",
    "Decoder",
    "DecoderRegistry",
    "Erc721TransferDecoder",
    "TransferDecoder",
    "UniswapV2LiquidityDecoder",
    "UniswapV2PairSwapDecoder",
    "UniswapV2RouterSwapDecoder",
    "WrappedNativeDecoder",
    "add_decoder",
    "add_many",
    "make_default_registry",
    "make_registry",
]
