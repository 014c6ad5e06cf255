"""Core data models: normalized trace input and decoded output tree.

This module defines:
- `Log`: one event log emitted directly inside a call frame.
- `CallNode`: one immutable call frame of the normalized trace tree.
- `ChildOrderEntry`: one step of the log/call interleaving of a frame.
- `DecoderOutput`: the decoded mirror of a `CallNode`.
- `MetadataRequest`: deduplicated token / price lookups discovered while decoding.
- `DecodeDiagnostic` / `DecodeResult`: what one decode pass hands to renderers.

Design notes
------------
- Addresses are checksummed strings; values and amounts are Python ints.
- Logs and child calls live in separate tuples; `child_order` re-interleaves
  them in on-chain emission order.
- Nodes compare by identity: two frames with equal fields are still two frames.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Literal

from detrace.abi import ContractInterface
from detrace.core.actions import Action

CallKind = Literal["call", "delegatecall", "staticcall", "callcode", "create", "create2", "selfdestruct"]

CREATE_KINDS: frozenset[str] = frozenset({"create", "create2"})


# === Trace input ===


@dataclass(slots=True, frozen=True)
class Log:
    """Event log, address already normalized to the emitting (storage-context) contract."""

    address: str
    topics: tuple[bytes, ...]  # 32-byte words, topic0 first
    data: bytes
    index: int  # stable per-trace index, used as consumption key

    @property
    def topic0(self) -> str | None:
        """Return topic0 as lowercase 0x-hex, or None for anonymous logs."""
        if not self.topics:
            return None
        return "0x" + self.topics[0].hex()


@dataclass(slots=True, frozen=True)
class ChildOrderEntry:
    """One position in a frame's emission order: a log or a child call."""

    kind: Literal["log", "call"]
    index: int  # index into CallNode.logs or CallNode.children


@dataclass(slots=True, frozen=True, eq=False)
class CallNode:
    """One call frame of the normalized trace."""

    id: str
    call_kind: CallKind
    from_: str
    to: str
    value: int
    calldata: bytes
    returndata: bytes
    status: bool
    logs: tuple[Log, ...] = ()
    children: tuple[CallNode, ...] = ()
    child_order: tuple[ChildOrderEntry, ...] = ()
    interface: ContractInterface | None = None

    @property
    def selector(self) -> bytes:
        """4-byte function selector (empty for bare value sends)."""
        return self.calldata[:4]

    def walk(self) -> Iterator[CallNode]:
        """Yield this node and all descendants, pre-order, in `children` order."""
        stack: list[CallNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_subtree_logs(self) -> Iterator[tuple[CallNode, Log]]:
        """Yield (owner, log) for every log in this subtree."""
        for node in self.walk():
            for log in node.logs:
                yield node, log


# === Decoded output ===


@dataclass(slots=True)
class MetadataRequest:
    """Deduplicated lookups to resolve after the pass (token descriptors, prices)."""

    tokens: set[str] = field(default_factory=set)
    prices: set[str] = field(default_factory=set)

    def is_empty(self) -> bool:
        return not self.tokens and not self.prices


@dataclass(slots=True)
class DecoderOutput:
    """Decoded mirror of one `CallNode`.

    `results` holds the call-level action (if any) followed by log actions in log
    order. `children` follows the input `children` order exactly.
    """

    node: CallNode
    results: list[Action] = field(default_factory=list)
    children: list[DecoderOutput] = field(default_factory=list)
    call_result: Action | None = None
    log_results: dict[int, Action] = field(default_factory=dict)  # position in node.logs -> action

    def iter_actions(self) -> Iterator[Action]:
        """Yield actions of this subtree in on-chain emission order."""
        if self.call_result is not None:
            yield self.call_result
        stack: list[tuple[DecoderOutput, Iterator[ChildOrderEntry]]] = [(self, iter(self.node.child_order))]
        while stack:
            out, entries = stack[-1]
            entry = next(entries, None)
            if entry is None:
                stack.pop()
            elif entry.kind == "log":
                action = out.log_results.get(entry.index)
                if action is not None:
                    yield action
            else:
                child = out.children[entry.index]
                if child.call_result is not None:
                    yield child.call_result
                stack.append((child, iter(child.node.child_order)))

    def size(self) -> int:
        """Number of output nodes in this subtree."""
        count = 0
        stack: list[DecoderOutput] = [self]
        while stack:
            count += 1
            stack.extend(stack.pop().children)
        return count


@dataclass(slots=True, frozen=True)
class DecodeDiagnostic:
    """A node/log-local decoder failure captured during the pass."""

    decoder: str
    node_id: str
    log_index: int | None
    error_type: str
    message: str


@dataclass(kw_only=True)
class DecodeResult:
    """High-level output of one decode pass."""

    output: DecoderOutput
    requests: MetadataRequest
    diagnostics: list[DecodeDiagnostic]
