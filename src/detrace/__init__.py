from __future__ import annotations

from .adapters.trace_json import call_node_from_trace
from .constants import NATIVE_TOKEN
from .core.actions import Action
from .core.models import CallNode, DecodeResult, DecoderOutput, Log, MetadataRequest
from .core.state import DecoderState
from .core.use_cases.decode_trace import decode
from .decoding.registries import make_default_registry
from .decoding.registry import DecoderRegistry, add_decoder, add_many, make_registry
from .exceptions import ChainAccessError, DecodeError, MalformedTraceError

__all__ = [
    "decode",
    "call_node_from_trace",
    "make_default_registry",
    "make_registry",
    "add_decoder",
    "add_many",
    "DecoderRegistry",
    "DecoderState",
    "CallNode",
    "Log",
    "Action",
    "DecoderOutput",
    "DecodeResult",
    "MetadataRequest",
    "NATIVE_TOKEN",
    "DecodeError",
    "ChainAccessError",
    "MalformedTraceError",
]
