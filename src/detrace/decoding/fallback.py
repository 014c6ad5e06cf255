"""Generic fallback decoders, always registered last.

`TransferDecoder` reports:
- a native-asset transfer for any unconsumed call carrying value
- an ERC-20 transfer for any unconsumed `Transfer(address,address,uint256)` log
  that the frame's resolved interface can decode
"""

from __future__ import annotations

import logging

from detrace.constants import NATIVE_TOKEN, TRANSFER_T0
from detrace.core.actions import TransferAction
from detrace.core.models import CallNode, Log
from detrace.core.state import DecoderState
from detrace.decoding.decoder import Decoder
from detrace.decoding.utils import has_topic
from detrace.exceptions import DecodeError

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("decoding")


class TransferDecoder(Decoder):
    async def decode_call(self, state: DecoderState, node: CallNode) -> TransferAction | None:
        if not state.is_consumed(node) and node.value != 0:
            return TransferAction(
                operator=node.from_,
                from_=node.from_,
                to=node.to,
                token=NATIVE_TOKEN,
                amount=node.value,
            )
        return None

    async def decode_log(self, state: DecoderState, node: CallNode, log: Log) -> TransferAction | None:
        if state.is_consumed(log):
            return None
        # 4 topics is the ERC-721 shape; any other layout is whatever the frame's ABI declares
        if not has_topic(log, TRANSFER_T0) or len(log.topics) == 4:
            return None
        if node.interface is None:
            return None

        decoded = node.interface.decode_log(log.topics, log.data)
        if decoded is None:
            logger.debug(f"Transfer event missing from interface of call {node.id}")
            return None
        if len(decoded.args) != 3:
            raise DecodeError(f"log {log.index}: {decoded.signature} does not have 3 arguments")

        state.request_token_metadata(log.address)

        return TransferAction(
            operator=node.from_,
            token=log.address,
            from_=decoded.args[0],
            to=decoded.args[1],
            amount=decoded.args[2],
        )
