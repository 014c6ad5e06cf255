"""Ordered decoder registry.

This module exposes:
- `DecoderRegistry`: fixed, ordered list of decoders (specific first, fallbacks last)
- `make_registry(decoders)` → DecoderRegistry
- `add_decoder(registry, decoder)` / `add_many(registry, decoders)` → new registry with
  extra decoders placed ahead of the existing ones

Claiming is first-match-wins by static priority: there is no scoring.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from detrace.core.actions import Action
from detrace.core.interfaces import IDecoder
from detrace.core.models import CallNode, DecodeDiagnostic, Log
from detrace.core.state import DecoderState
from detrace.exceptions import ChainAccessError, DecodeError

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("decoding")


def _diagnostic(decoder: IDecoder, node: CallNode, log: Log | None, error: Exception) -> DecodeDiagnostic:
    return DecodeDiagnostic(
        decoder=decoder.name,
        node_id=node.id,
        log_index=None if log is None else log.index,
        error_type=type(error).__name__,
        message=str(error),
    )


class DecoderRegistry:
    """
    Ordered, fixed list of decoders.

    For a node, `decode_call` is tried against each decoder in order and the first
    non-None result wins. Each log is handled the same way, independently.
    `DecodeError` / `ChainAccessError` raised by one decoder are recorded as
    diagnostics and the next decoder is tried; anything else propagates.
    """

    def __init__(self, decoders: Iterable[IDecoder] = ()) -> None:
        self._decoders: tuple[IDecoder, ...] = tuple(decoders)

    @property
    def decoders(self) -> tuple[IDecoder, ...]:
        return self._decoders

    def __len__(self) -> int:
        return len(self._decoders)

    def __iter__(self) -> Iterator[IDecoder]:
        return iter(self._decoders)

    def __repr__(self) -> str:
        return f"DecoderRegistry({', '.join(d.name for d in self._decoders)})"

    async def decode_call(
        self,
        state: DecoderState,
        node: CallNode,
        diagnostics: list[DecodeDiagnostic] | None = None,
    ) -> Action | None:
        """Offer `node` to every decoder in priority order; return the first action."""
        for decoder in self._decoders:
            try:
                action = await decoder.decode_call(state, node)
            except (DecodeError, ChainAccessError) as e:
                logger.warning(f"{decoder.name} failed on call {node.id}: {e}")
                if diagnostics is not None:
                    diagnostics.append(_diagnostic(decoder, node, None, e))
                continue
            if action is not None:
                logger.debug(f"{decoder.name} claimed call {node.id} as {action.kind}")
                return action
        return None

    async def decode_log(
        self,
        state: DecoderState,
        node: CallNode,
        log: Log,
        diagnostics: list[DecodeDiagnostic] | None = None,
    ) -> Action | None:
        """Offer one log owned by `node` to every decoder in priority order."""
        for decoder in self._decoders:
            try:
                action = await decoder.decode_log(state, node, log)
            except (DecodeError, ChainAccessError) as e:
                logger.warning(f"{decoder.name} failed on log {log.index} of call {node.id}: {e}")
                if diagnostics is not None:
                    diagnostics.append(_diagnostic(decoder, node, log, e))
                continue
            if action is not None:
                logger.debug(f"{decoder.name} claimed log {log.index} of call {node.id} as {action.kind}")
                return action
        return None


def make_registry(decoders: Iterable[IDecoder]) -> DecoderRegistry:
    """Build a registry from decoders listed most-specific first."""
    return DecoderRegistry(decoders)


def add_decoder(registry: DecoderRegistry, decoder: IDecoder) -> DecoderRegistry:
    """Return a new registry with `decoder` ahead of every existing decoder."""
    return DecoderRegistry((decoder, *registry.decoders))


def add_many(registry: DecoderRegistry, decoders: Iterable[IDecoder]) -> DecoderRegistry:
    """Return a new registry with `decoders` (in the given order) ahead of the existing ones."""
    return DecoderRegistry((*decoders, *registry.decoders))
