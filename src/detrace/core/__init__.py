"""Core data models, state, configuration, and the decode use case.

This package provides:
- Trace models (CallNode, Log, ChildOrderEntry) and output models (DecoderOutput, DecodeResult)
- The tagged Action union
- DecoderState (consumption + metadata requests)
- Configuration (DecodeConfig)
"""

from detrace.core.actions import Action
from detrace.core.config import DecodeConfig
from detrace.core.models import (
    CallNode,
    ChildOrderEntry,
    DecodeDiagnostic,
    DecodeResult,
    DecoderOutput,
    Log,
    MetadataRequest,
)
from detrace.core.state import DecoderState

__all__ = [
    "Action",
    "DecodeConfig",
    "CallNode",
    "ChildOrderEntry",
    "DecodeDiagnostic",
    "DecodeResult",
    "DecoderOutput",
    "Log",
    "MetadataRequest",
    "DecoderState",
]
