"""UniswapV2 decoders: router swaps, direct pair swaps, and pair liquidity changes.

Router swaps are recognized at the outer router call and consume everything the
swap explains below it, so inner pair swaps and token transfers are not reported
a second time. Pair-level decoders read `token0`/`token1` from pair storage
through the chain access capability.
"""

from __future__ import annotations

import logging

from detrace.abi import decode_abi
from detrace.constants import (
    NATIVE_TOKEN,
    TRANSFER_T0,
    V2_BURN_T0,
    V2_MINT_T0,
    V2_PAIR_TOKEN0_SLOT,
    V2_PAIR_TOKEN1_SLOT,
    V2_SWAP_T0,
    V2_SYNC_T0,
    ZERO_ADDRESS,
)
from detrace.core.actions import AddLiquidityAction, RemoveLiquidityAction, SwapAction
from detrace.core.interfaces import IChainAccess
from detrace.core.models import CallNode, Log
from detrace.core.state import DecoderState
from detrace.decoding.decoder import Decoder
from detrace.decoding.specs import (
    PAIR_BURN_SELECTOR,
    PAIR_MINT_SELECTOR,
    PAIR_SWAP_SELECTOR,
    ROUTER_SWAP_SUBSUMED_TOPICS,
    ROUTER_SWAPS,
)
from detrace.decoding.utils import address_from_word, has_topic, parse_erc20_transfer, topic_address
from detrace.exceptions import ChainAccessError, DecodeError

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("decoding").getChild("uniswap_v2")


async def read_pair_tokens(access: IChainAccess, pair: str) -> tuple[str, str] | None:
    """Read (token0, token1) of a UniswapV2 pair; None if the slots are empty."""
    token0 = address_from_word(await access.get_storage_at(pair, V2_PAIR_TOKEN0_SLOT))
    token1 = address_from_word(await access.get_storage_at(pair, V2_PAIR_TOKEN1_SLOT))
    if token0 == ZERO_ADDRESS or token1 == ZERO_ADDRESS:
        return None
    return token0, token1


def _request_tokens(state: DecoderState, *tokens: str) -> None:
    for token in tokens:
        if token == NATIVE_TOKEN:
            continue
        state.request_token_metadata(token)
        state.request_price(token)


def _own_log(state: DecoderState, node: CallNode, topic0: str) -> Log | None:
    """First unconsumed log with `topic0` emitted by the called contract itself."""
    for log in node.logs:
        if has_topic(log, topic0) and log.address == node.to and not state.is_consumed(log):
            return log
    return None


def _outgoing_transfers(state: DecoderState, node: CallNode, tokens: set[str], recipient: str) -> list[Log]:
    """Unconsumed token Transfer logs below `node` paying `recipient` from the pair."""
    found: list[Log] = []
    for _, log in node.iter_subtree_logs():
        if log.address not in tokens or state.is_consumed(log) or not has_topic(log, TRANSFER_T0, topics=3):
            continue
        from_, to, _ = parse_erc20_transfer(log)
        if from_ == node.to and to == recipient:
            found.append(log)
    return found


class UniswapV2RouterSwapDecoder(Decoder):
    """Composite decoder for UniswapV2 (and fork) router `swap*` functions."""

    async def decode_call(self, state: DecoderState, node: CallNode) -> SwapAction | None:
        if state.is_consumed(node) or not node.status:
            return None
        spec = ROUTER_SWAPS.get(node.selector)
        if spec is None:
            return None

        args = decode_abi(spec.input_types, node.calldata[4:])
        path: tuple[str, ...] = args[spec.path_index]
        recipient: str = args[spec.to_index]
        if len(path) < 2:
            raise DecodeError(f"call {node.id}: {spec.name} path has {len(path)} hops")

        (amounts,) = decode_abi(["uint256[]"], node.returndata)
        if len(amounts) != len(path):
            raise DecodeError(f"call {node.id}: {spec.name} returned {len(amounts)} amounts for {len(path)} tokens")

        token_in = NATIVE_TOKEN if spec.native_in else path[0]
        token_out = NATIVE_TOKEN if spec.native_out else path[-1]

        # everything below the router call is part of this swap
        for descendant in node.walk():
            if descendant is not node:
                state.mark_consumed(descendant)
        for _, log in node.iter_subtree_logs():
            if log.topic0 in ROUTER_SWAP_SUBSUMED_TOPICS:
                state.mark_consumed(log)

        _request_tokens(state, token_in, token_out)
        return SwapAction(
            operator=node.from_,
            exchange=node.to,
            recipient=recipient,
            token_in=token_in,
            amount_in=amounts[0],
            token_out=token_out,
            amount_out=amounts[-1],
        )


class UniswapV2PairSwapDecoder(Decoder):
    """Direct `swap(uint256,uint256,address,bytes)` calls on a UniswapV2 pair."""

    async def decode_call(self, state: DecoderState, node: CallNode) -> SwapAction | None:
        if state.is_consumed(node) or not node.status or node.call_kind != "call":
            return None
        if node.selector != PAIR_SWAP_SELECTOR:
            return None
        swap_log = _own_log(state, node, V2_SWAP_T0)
        if swap_log is None or len(swap_log.topics) != 3:
            return None

        amount0_in, amount1_in, amount0_out, amount1_out = decode_abi(["uint256"] * 4, swap_log.data)
        recipient = topic_address(swap_log.topics[2])

        try:
            tokens = await read_pair_tokens(state.access, node.to)
        except ChainAccessError as e:
            logger.debug(f"Cannot read pair tokens of {node.to} for call {node.id}: {e}")
            return None
        if tokens is None:
            return None
        token0, token1 = tokens

        if amount1_in > 0 and amount0_out > 0:
            token_in, amount_in, token_out, amount_out = token1, amount1_in, token0, amount0_out
        else:
            token_in, amount_in, token_out, amount_out = token0, amount0_in, token1, amount1_out

        outgoing = _outgoing_transfers(state, node, {token_out}, recipient)

        state.mark_consumed(swap_log)
        state.mark_all_consumed(outgoing)
        for log in node.logs:
            if has_topic(log, V2_SYNC_T0) and log.address == node.to:
                state.mark_consumed(log)

        _request_tokens(state, token_in, token_out)
        return SwapAction(
            operator=node.from_,
            exchange=node.to,
            recipient=recipient,
            token_in=token_in,
            amount_in=amount_in,
            token_out=token_out,
            amount_out=amount_out,
        )


class UniswapV2LiquidityDecoder(Decoder):
    """Pair `mint(address)` / `burn(address)`: liquidity added to or removed from a pool."""

    async def decode_call(
        self, state: DecoderState, node: CallNode
    ) -> AddLiquidityAction | RemoveLiquidityAction | None:
        if state.is_consumed(node) or not node.status or node.call_kind != "call":
            return None
        if node.selector == PAIR_MINT_SELECTOR:
            event_log = _own_log(state, node, V2_MINT_T0)
        elif node.selector == PAIR_BURN_SELECTOR:
            event_log = _own_log(state, node, V2_BURN_T0)
        else:
            return None
        if event_log is None:
            return None

        (provider,) = decode_abi(["address"], node.calldata[4:])
        amount0, amount1 = decode_abi(["uint256", "uint256"], event_log.data)

        try:
            tokens = await read_pair_tokens(state.access, node.to)
        except ChainAccessError as e:
            logger.debug(f"Cannot read pair tokens of {node.to} for call {node.id}: {e}")
            return None
        if tokens is None:
            return None
        token0, token1 = tokens

        # LP token movements are emitted by the pair itself
        liquidity = 0
        lp_logs: list[Log] = []
        is_mint = node.selector == PAIR_MINT_SELECTOR
        for log in node.logs:
            if log.address != node.to or not has_topic(log, TRANSFER_T0, topics=3):
                continue
            from_, to, value = parse_erc20_transfer(log)
            lp_logs.append(log)
            if is_mint and from_ == ZERO_ADDRESS and to == provider:
                liquidity += value
            elif not is_mint and from_ == node.to and to == ZERO_ADDRESS:
                liquidity += value

        outgoing = [] if is_mint else _outgoing_transfers(state, node, {token0, token1}, provider)

        state.mark_consumed(event_log)
        state.mark_all_consumed(lp_logs)
        state.mark_all_consumed(outgoing)
        for log in node.logs:
            if has_topic(log, V2_SYNC_T0) and log.address == node.to:
                state.mark_consumed(log)

        _request_tokens(state, token0, token1)
        state.request_token_metadata(node.to)

        if is_mint:
            return AddLiquidityAction(
                operator=node.from_,
                pool=node.to,
                provider=provider,
                token0=token0,
                amount0=amount0,
                token1=token1,
                amount1=amount1,
                liquidity=liquidity,
            )

        return RemoveLiquidityAction(
            operator=node.from_,
            pool=node.to,
            provider=provider,
            token0=token0,
            amount0=amount0,
            token1=token1,
            amount1=amount1,
            liquidity=liquidity,
        )
