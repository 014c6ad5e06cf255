"""Decode orchestrator: trace → actions + metadata requests.

This module provides two layers:

1) `run_decode_use_case(...)`:
   - Pure application-layer use case.
   - Depends ONLY on interfaces (IChainAccess) and a registry.
   - Does NOT instantiate RPC clients or manage their lifecycle.

2) `decode_trace(...)` (convenience wrapper):
   - Wires concrete implementations (RPC, CachedChainAccess, default
     registry) from a `DecodeConfig` for typical CLI / script usage.
   - Closes the RPC client when the pass is over.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from detrace.adapters.trace_json import TraceResponse, call_node_from_trace
from detrace.clients.chain_access import CachedChainAccess, NullChainAccess
from detrace.clients.rpc import RPC
from detrace.core.config import DecodeConfig
from detrace.core.interfaces import IChainAccess
from detrace.core.models import CallNode, DecodeResult
from detrace.core.use_cases.decode_trace import DecodeTraceService
from detrace.decoding.registries import make_default_registry
from detrace.decoding.registry import DecoderRegistry

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("orchestration")


# ---------------------------------------------------------------------------
# Output DTO
# ---------------------------------------------------------------------------


@dataclass(kw_only=True)
class DecodeTraceOutput:
    """High-level output of the orchestrator."""

    result: DecodeResult
    root: CallNode
    storage_reads: int


# ---------------------------------------------------------------------------
# 1) Pure application use case (no concrete instantiation)
# ---------------------------------------------------------------------------


async def run_decode_use_case(
    *,
    root: CallNode,
    access: IChainAccess,
    registry: DecoderRegistry,
) -> DecodeResult:
    """Run one decode pass with injected collaborators."""
    service = DecodeTraceService(access=access, registry=registry)
    return await service.run(root)


# ---------------------------------------------------------------------------
# 2) Convenience wrapper (concrete wiring)
# ---------------------------------------------------------------------------


async def decode_trace(
    *,
    config: DecodeConfig,
    trace: CallNode | TraceResponse | dict,
    registry: DecoderRegistry | None = None,
) -> DecodeTraceOutput:
    """
    Decode one trace using the infrastructure described by `config`.

    - Normalizes raw JSON traces with `call_node_from_trace`.
    - Uses an RPC-backed, per-pass cached chain access when `config.rpc_url`
      is set; otherwise every storage read fails and storage-dependent
      decoders decline.
    - Defaults to `make_default_registry(config.wrapped_native_addresses())`.
    """
    root = trace if isinstance(trace, CallNode) else call_node_from_trace(trace)
    if registry is None:
        registry = make_default_registry(config.wrapped_native_addresses())

    if config.rpc_url is None:
        logger.info("no RPC endpoint configured; storage-dependent decoders will decline")
        result = await run_decode_use_case(root=root, access=NullChainAccess(), registry=registry)
        return DecodeTraceOutput(result=result, root=root, storage_reads=0)

    rpc = RPC(
        config.rpc_url,
        block=config.block,
        timeout_s=config.timeout_s,
        max_connections=config.max_connections,
    )
    access = CachedChainAccess(rpc)
    try:
        result = await run_decode_use_case(root=root, access=access, registry=registry)
    finally:
        await rpc.aclose()

    return DecodeTraceOutput(result=result, root=root, storage_reads=access.fetch_count)
