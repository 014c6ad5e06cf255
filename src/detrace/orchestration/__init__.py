"""Orchestration for decoding traces.

This package provides:
- Pure use case (run_decode_use_case) over injected chain access + registry
- Convenience wrapper (decode_trace) wiring RPC, cache and default registry
"""

from detrace.orchestration.orchestrator import DecodeTraceOutput, decode_trace, run_decode_use_case

__all__ = [
    "DecodeTraceOutput",
    "decode_trace",
    "run_decode_use_case",
]
