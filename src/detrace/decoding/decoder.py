"""Base decoder class.

A decoder recognizes one semantic pattern in a call frame and/or one of its
logs. Both hooks default to "no action", so a decoder implements only what it
needs. See `detrace.core.interfaces.IDecoder` for the full contract.
"""

from __future__ import annotations

from detrace.core.actions import Action
from detrace.core.models import CallNode, Log
from detrace.core.state import DecoderState


class Decoder:
    """Default no-op implementation of `IDecoder`."""

    @property
    def name(self) -> str:
        return type(self).__name__

    async def decode_call(self, state: DecoderState, node: CallNode) -> Action | None:
        return None

    async def decode_log(self, state: DecoderState, node: CallNode, log: Log) -> Action | None:
        return None

    def __repr__(self) -> str:
        return f"{self.name}()"
