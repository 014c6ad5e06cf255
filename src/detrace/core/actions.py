"""Decoded actions: a closed set of tagged variants.

Every variant carries `operator` (the party that initiated the causing call)
and a `kind` tag. Amount-like fields are plain Python ints so wei-scale values
are carried exactly, never truncated or converted to float.

`token` fields hold a checksummed contract address or `NATIVE_TOKEN`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Literal


@dataclass(slots=True, frozen=True, kw_only=True)
class TransferAction:
    """Fungible value moving `from_` → `to` (native asset or ERC-20)."""

    kind: ClassVar[Literal["transfer"]] = "transfer"

    operator: str
    from_: str
    to: str
    token: str
    amount: int


@dataclass(slots=True, frozen=True, kw_only=True)
class NftTransferAction:
    """ERC-721 token moving between owners."""

    kind: ClassVar[Literal["nft_transfer"]] = "nft_transfer"

    operator: str
    from_: str
    to: str
    collection: str
    token_id: int


@dataclass(slots=True, frozen=True, kw_only=True)
class ApprovalAction:
    kind: ClassVar[Literal["approval"]] = "approval"

    operator: str
    owner: str
    spender: str
    token: str
    amount: int


@dataclass(slots=True, frozen=True, kw_only=True)
class WrapAction:
    """Native asset deposited into a wrapped-native contract (e.g. ETH → WETH)."""

    kind: ClassVar[Literal["wrap"]] = "wrap"

    operator: str
    account: str
    token: str
    amount: int


@dataclass(slots=True, frozen=True, kw_only=True)
class UnwrapAction:
    """Wrapped-native balance withdrawn back to the native asset."""

    kind: ClassVar[Literal["unwrap"]] = "unwrap"

    operator: str
    account: str
    token: str
    amount: int


@dataclass(slots=True, frozen=True, kw_only=True)
class SwapAction:
    kind: ClassVar[Literal["swap"]] = "swap"

    operator: str
    exchange: str
    recipient: str
    token_in: str
    amount_in: int
    token_out: str
    amount_out: int


@dataclass(slots=True, frozen=True, kw_only=True)
class AddLiquidityAction:
    kind: ClassVar[Literal["add_liquidity"]] = "add_liquidity"

    operator: str
    pool: str
    provider: str
    token0: str
    amount0: int
    token1: str
    amount1: int
    liquidity: int


@dataclass(slots=True, frozen=True, kw_only=True)
class RemoveLiquidityAction:
    kind: ClassVar[Literal["remove_liquidity"]] = "remove_liquidity"

    operator: str
    pool: str
    provider: str
    token0: str
    amount0: int
    token1: str
    amount1: int
    liquidity: int


@dataclass(slots=True, frozen=True, kw_only=True)
class DeployAction:
    """Contract created by a `create`/`create2` frame; `value` is the endowment."""

    kind: ClassVar[Literal["deploy"]] = "deploy"

    operator: str
    deployer: str
    contract: str
    value: int


Action = (
    TransferAction
    | NftTransferAction
    | ApprovalAction
    | WrapAction
    | UnwrapAction
    | SwapAction
    | AddLiquidityAction
    | RemoveLiquidityAction
    | DeployAction
)
