from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field

from detrace.core.interfaces import IChainAccess
from detrace.core.models import CallNode, DecodeDiagnostic, DecodeResult, DecoderOutput
from detrace.core.state import DecoderState
from detrace.decoding.registries import make_default_registry
from detrace.decoding.registry import DecoderRegistry
from detrace.exceptions import MalformedTraceError

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("decode")


# ---------------------------------------------------------------------------
# Structural validation
# ---------------------------------------------------------------------------


def _validate_child_order(node: CallNode) -> None:
    """Every log and child must appear exactly once in `child_order`, in range."""
    seen: Counter[tuple[str, int]] = Counter()
    for entry in node.child_order:
        bound = len(node.logs) if entry.kind == "log" else len(node.children)
        if not 0 <= entry.index < bound:
            raise MalformedTraceError(
                f"node {node.id}: child_order {entry.kind} index {entry.index} out of range (0..{bound - 1})"
            )
        seen[(entry.kind, entry.index)] += 1

    expected = [("log", i) for i in range(len(node.logs))] + [("call", i) for i in range(len(node.children))]
    for key in expected:
        if seen[key] != 1:
            kind, index = key
            raise MalformedTraceError(
                f"node {node.id}: {kind} {index} referenced {seen[key]} times in child_order (expected 1)"
            )


def validate_tree(root: CallNode) -> int:
    """
    Check structural invariants of a normalized trace before any decoding.

    Raises
    ------
    MalformedTraceError
        On a repeated node id (which also rejects a node reachable twice),
        a repeated log index, or a `child_order` that does not reference
        every log and child exactly once.

    Returns
    -------
    int
        Number of nodes in the tree.
    """
    node_ids: set[str] = set()
    log_indices: set[int] = set()
    stack: list[CallNode] = [root]
    count = 0

    # a node reachable twice is caught by its id before its children are pushed again
    while stack:
        node = stack.pop()
        if node.id in node_ids:
            raise MalformedTraceError(f"duplicate node id {node.id!r}")
        node_ids.add(node.id)
        count += 1

        for log in node.logs:
            if log.index in log_indices:
                raise MalformedTraceError(f"duplicate log index {log.index} (node {node.id})")
            log_indices.add(log.index)

        _validate_child_order(node)
        stack.extend(reversed(node.children))

    return count


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class DecodeContext:
    """Shared state for one pass."""

    registry: DecoderRegistry
    state: DecoderState
    diagnostics: list[DecodeDiagnostic] = field(default_factory=list)


async def _decode_node(ctx: DecodeContext, node: CallNode) -> DecoderOutput:
    """Decode one frame's call and its own logs; children are left to the walk."""
    out = DecoderOutput(node=node)

    # 1) call-level action
    action = await ctx.registry.decode_call(ctx.state, node, ctx.diagnostics)
    if action is not None:
        ctx.state.mark_consumed(node)
        out.call_result = action
        out.results.append(action)

    # 2) logs, in emission order within the frame
    for position, log in enumerate(node.logs):
        action = await ctx.registry.decode_log(ctx.state, node, log, ctx.diagnostics)
        if action is None:
            continue
        ctx.state.mark_consumed(log)
        out.log_results[position] = action
        out.results.append(action)

    return out


async def _visit(ctx: DecodeContext, root: CallNode) -> DecoderOutput:
    """
    Pre-order walk with an explicit stack.

    Children are visited in `child_order` position and stored in `children`
    order: each frame owns a slot list its children fill as they are decoded.
    Traces nest up to the EVM call-depth limit (1024), hence no recursion.
    """
    output = await _decode_node(ctx, root)
    pending: list[tuple[DecoderOutput, list[DecoderOutput | None]]] = []
    stack: list[tuple[CallNode, list[DecoderOutput | None], int]] = []

    def push_children(out: DecoderOutput) -> None:
        slots: list[DecoderOutput | None] = [None] * len(out.node.children)
        pending.append((out, slots))
        # reversed so the first child_order entry is popped first
        for entry in reversed(out.node.child_order):
            if entry.kind == "call":
                stack.append((out.node.children[entry.index], slots, entry.index))

    push_children(output)
    while stack:
        node, slots, slot = stack.pop()
        out = await _decode_node(ctx, node)
        slots[slot] = out
        push_children(out)

    for out, slots in pending:
        out.children = [child for child in slots if child is not None]
    return output


async def decode(
    root: CallNode,
    access: IChainAccess,
    registry: DecoderRegistry | None = None,
) -> DecodeResult:
    """
    Run one decode pass over a normalized trace.

    The tree is validated first, then visited pre-order: a node's call-level
    action, then its own logs, then its children. A single `DecoderState`
    carries consumption and metadata requests across the whole pass.

    Parameters
    ----------
    root : CallNode
        Root frame of the normalized trace.
    access : IChainAccess
        Read-only storage access handed to decoders through the state.
    registry : DecoderRegistry, optional
        Decoders in priority order. Defaults to `make_default_registry()`.
    """
    node_count = validate_tree(root)
    if registry is None:
        registry = make_default_registry()

    ctx = DecodeContext(registry=registry, state=DecoderState(access=access))
    output = await _visit(ctx, root)

    logger.info(
        f"decoded {node_count} nodes: {ctx.state.consumed_count} items consumed, "
        f"{len(ctx.state.requests.tokens)} tokens requested, {len(ctx.diagnostics)} diagnostics"
    )
    return DecodeResult(output=output, requests=ctx.state.requests, diagnostics=ctx.diagnostics)


# ---------------------------------------------------------------------------
# Domain service: DecodeTraceService
# ---------------------------------------------------------------------------


class DecodeTraceService:
    """
    Domain service for decoding traces against one chain access and registry.

    It depends only on abstract providers (interfaces); one instance can run
    any number of passes, each with its own `DecoderState`.
    """

    def __init__(self, access: IChainAccess, registry: DecoderRegistry) -> None:
        self._access = access
        self._registry = registry

    @property
    def registry(self) -> DecoderRegistry:
        return self._registry

    async def run(self, root: CallNode) -> DecodeResult:
        return await decode(root, self._access, self._registry)
