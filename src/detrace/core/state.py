"""Per-pass decoder state: consumption tracking and metadata requests.

One `DecoderState` is created per decode pass and handed by reference to every
decoder invocation. It is the single source of truth for cross-branch and
cross-level consumption: a composite decoder running on an ancestor call may
mark logs/calls of descendants consumed before those are visited.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass, field

from detrace.core.interfaces import IChainAccess
from detrace.core.models import CallNode, Log, MetadataRequest

ConsumptionKey = tuple[str, Hashable]


def consumption_key(item: CallNode | Log) -> ConsumptionKey:
    """Opaque key for a node (by id) or a log (by trace-wide index)."""
    if isinstance(item, Log):
        return ("log", item.index)
    return ("call", item.id)


@dataclass(slots=True)
class DecoderState:
    """Mutable state shared by all decoders during exactly one decode pass."""

    access: IChainAccess
    requests: MetadataRequest = field(default_factory=MetadataRequest)
    _consumed: set[ConsumptionKey] = field(default_factory=set)

    def is_consumed(self, item: CallNode | Log) -> bool:
        return consumption_key(item) in self._consumed

    def mark_consumed(self, item: CallNode | Log) -> None:
        """Mark a node/log as explained by some action. Idempotent."""
        self._consumed.add(consumption_key(item))

    def mark_all_consumed(self, items: list[CallNode | Log] | tuple[CallNode | Log, ...]) -> None:
        for item in items:
            self.mark_consumed(item)

    def request_token_metadata(self, token: str) -> None:
        """Ask for symbol/decimals of `token` once the pass is over."""
        self.requests.tokens.add(token)

    def request_price(self, token: str) -> None:
        """Ask for a price point of `token` at the transaction timestamp."""
        self.requests.prices.add(token)

    @property
    def consumed_count(self) -> int:
        return len(self._consumed)
