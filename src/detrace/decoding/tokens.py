"""Log-level token standard decoders (ERC-20 approvals, ERC-721 transfers)."""

from __future__ import annotations

from detrace.abi import decode_abi
from detrace.constants import APPROVAL_T0, TRANSFER_T0
from detrace.core.actions import ApprovalAction, NftTransferAction
from detrace.core.models import CallNode, Log
from detrace.core.state import DecoderState
from detrace.decoding.decoder import Decoder
from detrace.decoding.utils import has_topic, topic_address


class ApprovalDecoder(Decoder):
    """ERC-20 `Approval(address indexed owner, address indexed spender, uint256 value)`."""

    async def decode_log(self, state: DecoderState, node: CallNode, log: Log) -> ApprovalAction | None:
        if state.is_consumed(log) or not has_topic(log, APPROVAL_T0, topics=3):
            return None

        owner = topic_address(log.topics[1])
        spender = topic_address(log.topics[2])
        (amount,) = decode_abi(["uint256"], log.data)

        state.request_token_metadata(log.address)
        return ApprovalAction(operator=node.from_, owner=owner, spender=spender, token=log.address, amount=amount)


class Erc721TransferDecoder(Decoder):
    """ERC-721 `Transfer(address indexed from, address indexed to, uint256 indexed tokenId)`."""

    async def decode_log(self, state: DecoderState, node: CallNode, log: Log) -> NftTransferAction | None:
        # ERC-20 and ERC-721 share topic0; only the indexed token id tells them apart
        if state.is_consumed(log) or not has_topic(log, TRANSFER_T0, topics=4):
            return None

        from_ = topic_address(log.topics[1])
        to = topic_address(log.topics[2])
        (token_id,) = decode_abi(["uint256"], log.topics[3])

        state.request_token_metadata(log.address)
        return NftTransferAction(operator=node.from_, from_=from_, to=to, collection=log.address, token_id=token_id)
