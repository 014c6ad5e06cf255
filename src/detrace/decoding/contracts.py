from __future__ import annotations

from detrace.core.actions import DeployAction
from detrace.core.models import CREATE_KINDS, CallNode
from detrace.core.state import DecoderState
from detrace.decoding.decoder import Decoder


class ContractCreationDecoder(Decoder):
    """Successful `create`/`create2` frames; the endowment value is part of the deploy."""

    async def decode_call(self, state: DecoderState, node: CallNode) -> DeployAction | None:
        if state.is_consumed(node) or node.call_kind not in CREATE_KINDS or not node.status:
            return None
        return DeployAction(operator=node.from_, deployer=node.from_, contract=node.to, value=node.value)
