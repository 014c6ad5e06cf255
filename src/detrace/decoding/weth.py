"""Wrapped-native (WETH9-style) deposit / withdraw decoder."""

from __future__ import annotations

from collections.abc import Iterable

from eth_utils import to_checksum_address

from detrace.abi import decode_abi
from detrace.constants import DEPOSIT_T0, WITHDRAWAL_T0
from detrace.core.actions import UnwrapAction, WrapAction
from detrace.core.models import CallNode
from detrace.core.state import DecoderState
from detrace.decoding.decoder import Decoder
from detrace.decoding.specs import DEPOSIT_SELECTOR, WITHDRAW_SELECTOR
from detrace.decoding.utils import has_topic


class WrappedNativeDecoder(Decoder):
    """
    Claims `deposit()` (or a bare value send) and `withdraw(uint256)` calls on the
    configured wrapped-native contracts.

    A deposit subsumes the call's value and the `Deposit` log. A withdraw subsumes
    the `Withdrawal` log and the child call paying the native asset back.
    """

    def __init__(self, addresses: Iterable[str]) -> None:
        self.addresses = frozenset(to_checksum_address(a) for a in addresses)

    async def decode_call(self, state: DecoderState, node: CallNode) -> WrapAction | UnwrapAction | None:
        if state.is_consumed(node) or not node.status or node.call_kind != "call":
            return None
        if node.to not in self.addresses:
            return None

        if node.selector == DEPOSIT_SELECTOR or (not node.calldata and node.value > 0):
            if node.value == 0:
                return None
            for log in node.logs:
                if has_topic(log, DEPOSIT_T0) and log.address == node.to:
                    state.mark_consumed(log)
            state.request_token_metadata(node.to)
            return WrapAction(operator=node.from_, account=node.from_, token=node.to, amount=node.value)

        if node.selector == WITHDRAW_SELECTOR:
            (amount,) = decode_abi(["uint256"], node.calldata[4:])
            for log in node.logs:
                if has_topic(log, WITHDRAWAL_T0) and log.address == node.to:
                    state.mark_consumed(log)
            for child in node.children:
                if child.value > 0 and child.to == node.from_:
                    state.mark_consumed(child)
            state.request_token_metadata(node.to)
            return UnwrapAction(operator=node.from_, account=node.from_, token=node.to, amount=amount)

        return None
