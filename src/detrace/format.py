"""Human-readable rendering of decoded actions.

`format_action` is pure: the same action and token table always give the same
string. Amounts are scaled by the token's decimals only when a descriptor is
known; otherwise the raw integer amount is shown with the token address.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal, localcontext

from detrace.constants import NATIVE_TOKEN
from detrace.core.actions import (
    Action,
    AddLiquidityAction,
    ApprovalAction,
    DeployAction,
    NftTransferAction,
    RemoveLiquidityAction,
    SwapAction,
    TransferAction,
    UnwrapAction,
    WrapAction,
)

MAX_UINT256 = 2**256 - 1


@dataclass(slots=True, frozen=True)
class TokenInfo:
    """Resolved token descriptor (the answer to a metadata request)."""

    symbol: str
    decimals: int


NATIVE_INFO = TokenInfo(symbol="ETH", decimals=18)

TokenTable = Mapping[str, TokenInfo]


def scale_amount(amount: int, decimals: int) -> str:
    """Exact decimal rendering of `amount / 10**decimals` (no float rounding)."""
    if decimals <= 0:
        return str(amount)
    with localcontext() as ctx:
        ctx.prec = max(78, len(str(abs(amount))) + decimals)
        value = Decimal(amount).scaleb(-decimals)
        text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def format_amount(token: str, amount: int, tokens: TokenTable | None = None) -> str:
    """`1.5 WETH` when the token is known, `1500000000000000000 of 0xC02a...` otherwise."""
    info = NATIVE_INFO if token == NATIVE_TOKEN else None
    if tokens is not None and token in tokens:
        info = tokens[token]
    if info is None:
        return f"{amount} of {token}"
    return f"{scale_amount(amount, info.decimals)} {info.symbol}"


def format_action(action: Action, tokens: TokenTable | None = None) -> str:
    """Render one action as a single line."""
    match action:
        case TransferAction(from_=src, to=dst, token=token, amount=amount):
            return f"Transfer {format_amount(token, amount, tokens)} from {src} to {dst}"
        case NftTransferAction(from_=src, to=dst, collection=collection, token_id=token_id):
            name = tokens[collection].symbol if tokens and collection in tokens else collection
            return f"Transfer NFT {name} #{token_id} from {src} to {dst}"
        case ApprovalAction(owner=owner, spender=spender, token=token, amount=amount):
            if amount == MAX_UINT256:
                label = tokens[token].symbol if tokens and token in tokens else token
                return f"Approve {spender} to spend unlimited {label} of {owner}"
            return f"Approve {spender} to spend {format_amount(token, amount, tokens)} of {owner}"
        case WrapAction(account=account, token=token, amount=amount):
            return f"Wrap {format_amount(NATIVE_TOKEN, amount, tokens)} into {format_token(token, tokens)} for {account}"
        case UnwrapAction(account=account, token=token, amount=amount):
            return f"Unwrap {format_amount(token, amount, tokens)} for {account}"
        case SwapAction():
            return (
                f"Swap {format_amount(action.token_in, action.amount_in, tokens)} "
                f"for {format_amount(action.token_out, action.amount_out, tokens)} "
                f"on {action.exchange} to {action.recipient}"
            )
        case AddLiquidityAction() | RemoveLiquidityAction():
            verb = "Add" if isinstance(action, AddLiquidityAction) else "Remove"
            return (
                f"{verb} liquidity {format_amount(action.token0, action.amount0, tokens)} + "
                f"{format_amount(action.token1, action.amount1, tokens)} "
                f"({action.liquidity} LP) on {action.pool} for {action.provider}"
            )
        case DeployAction(deployer=deployer, contract=contract, value=value):
            suffix = f" with {format_amount(NATIVE_TOKEN, value, tokens)}" if value else ""
            return f"Deploy {contract} by {deployer}{suffix}"
    raise TypeError(f"unknown action type {type(action).__name__}")


def format_token(token: str, tokens: TokenTable | None = None) -> str:
    if token == NATIVE_TOKEN:
        return NATIVE_INFO.symbol
    if tokens is not None and token in tokens:
        return tokens[token].symbol
    return token
