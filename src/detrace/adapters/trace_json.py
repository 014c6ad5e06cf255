"""Adapter: raw JSON trace → normalized `CallNode` tree.

Raw shape (as served by trace APIs)::

    {
      "txhash": "0x...",
      "entrypoint": {"type": "call", "variant": "call", "from": ..., "to": ...,
                     "value": "0x0", "input": "0x...", "output": "0x...",
                     "status": 1, "path": "0", "codehash": "0x...",
                     "children": [<call | log | other entries>]},
      "abis": {"<address>": {"<codehash>": [<abi entries>]}}
    }

Entries of any other `type` (storage ops, ...) are ignored.

The adapter is the only place that knows this format: it checksums
addresses, numbers logs in emission order across the whole trace, attributes
each log to its storage-context contract and resolves per-frame interfaces
(delegatecall frames also see their caller's interface).
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated, Any, Literal, Union

from eth_utils import to_checksum_address
from pydantic import BaseModel, ConfigDict, Field, field_validator

from detrace.abi import ContractInterface
from detrace.core.models import CallNode, ChildOrderEntry, Log

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("adapters")


def _hex_bytes(value: str | None) -> bytes:
    if not value:
        return b""
    return bytes.fromhex(value[2:] if value.startswith("0x") else value)


def _check_hex(value: str) -> str:
    body = value[2:] if value.startswith("0x") else value
    if len(body) % 2:
        raise ValueError(f"odd-length hex string {value!r}")
    bytes.fromhex(body)  # rejects non-hex characters
    return value


def _to_int(value: Any) -> Any:
    if isinstance(value, str):
        return int(value, 16) if value.startswith("0x") else int(value)
    return value


# ---------- raw models ----------


class TraceEntryLog(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["log"]
    path: str
    topics: list[str] = []
    data: str = "0x"

    @field_validator("topics")
    @classmethod
    def check_topics(cls, v: list[str]) -> list[str]:
        return [_check_hex(t) for t in v]

    @field_validator("data")
    @classmethod
    def check_data(cls, v: str) -> str:
        return _check_hex(v)


class TraceEntryCall(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: Literal["call"]
    variant: str
    from_: str = Field(alias="from")
    to: str
    value: int = 0
    input: str = "0x"
    output: str = "0x"
    status: int | bool = 1
    path: str
    codehash: str | None = None
    children: list[TraceEntry] = []

    @field_validator("from_", "to")
    @classmethod
    def checksum_address(cls, v: str) -> str:
        return to_checksum_address(v)

    @field_validator("value", mode="before")
    @classmethod
    def parse_value(cls, v: Any) -> Any:
        return _to_int(v)

    @field_validator("input", "output")
    @classmethod
    def check_payload(cls, v: str) -> str:
        return _check_hex(v)

    @field_validator("children", mode="before")
    @classmethod
    def drop_other_entries(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [
                e
                for e in v
                if isinstance(e, (TraceEntryCall, TraceEntryLog))
                or (isinstance(e, dict) and e.get("type") in ("call", "log"))
            ]
        return v


TraceEntry = Annotated[Union[TraceEntryCall, TraceEntryLog], Field(discriminator="type")]
TraceEntryCall.model_rebuild()


class TraceResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    txhash: str = ""
    entrypoint: TraceEntryCall
    abis: dict[str, dict[str, list[dict[str, Any]]]] = {}


# ---------- conversion ----------


@dataclass(slots=True)
class _Frame:
    """A call entry being converted; its node is built once all children are done."""

    entry: TraceEntryCall
    entries: Iterator[TraceEntry]
    storage_address: str
    interface: ContractInterface | None
    logs: list[Log] = field(default_factory=list)
    children: list[CallNode] = field(default_factory=list)
    child_order: list[ChildOrderEntry] = field(default_factory=list)

    def to_node(self) -> CallNode:
        entry = self.entry
        return CallNode(
            id=entry.path,
            call_kind=entry.variant.lower(),
            from_=entry.from_,
            to=entry.to,
            value=entry.value,
            calldata=_hex_bytes(entry.input),
            returndata=_hex_bytes(entry.output),
            status=bool(entry.status),
            logs=tuple(self.logs),
            children=tuple(self.children),
            child_order=tuple(self.child_order),
            interface=self.interface,
        )


class _Builder:
    """Stateful helper for one conversion: log counter + interface cache."""

    def __init__(self, abis: dict[str, dict[str, list[dict[str, Any]]]]) -> None:
        self._abis = {to_checksum_address(addr): by_hash for addr, by_hash in abis.items()}
        self._interfaces: dict[tuple[str, str], ContractInterface] = {}
        self.next_log_index = 0

    def interface_for(self, address: str, codehash: str | None) -> ContractInterface | None:
        if codehash is None:
            return None
        key = (address, codehash)
        if key not in self._interfaces:
            abi = self._abis.get(address, {}).get(codehash)
            if abi is None:
                return None
            self._interfaces[key] = ContractInterface.from_abi(abi)
        return self._interfaces[key]

    def open_frame(self, entry: TraceEntryCall, parent: _Frame | None) -> _Frame:
        variant = entry.variant.lower()
        interface = self.interface_for(entry.to, entry.codehash)

        # delegatecall frames run in the caller's storage context
        storage_address = entry.to
        if variant == "delegatecall" and parent is not None:
            storage_address = parent.storage_address
            if parent.interface is not None:
                interface = interface.merge(parent.interface) if interface is not None else parent.interface

        return _Frame(entry=entry, entries=iter(entry.children), storage_address=storage_address, interface=interface)

    def build(self, root: TraceEntryCall) -> CallNode:
        """Convert the entry tree depth-first, numbering logs in emission order."""
        stack: list[_Frame] = [self.open_frame(root, None)]
        while True:
            frame = stack[-1]
            child = next(frame.entries, None)
            if child is None:
                node = frame.to_node()
                stack.pop()
                if not stack:
                    return node
                stack[-1].children.append(node)
            elif isinstance(child, TraceEntryLog):
                frame.child_order.append(ChildOrderEntry("log", len(frame.logs)))
                frame.logs.append(
                    Log(
                        address=frame.storage_address,
                        topics=tuple(_hex_bytes(t) for t in child.topics),
                        data=_hex_bytes(child.data),
                        index=self.next_log_index,
                    )
                )
                self.next_log_index += 1
            else:
                # children complete in order, so the next slot is len(children)
                frame.child_order.append(ChildOrderEntry("call", len(frame.children)))
                stack.append(self.open_frame(child, frame))


def call_node_from_trace(trace_response: TraceResponse | dict[str, Any]) -> CallNode:
    """
    Convert a raw trace response into the normalized `CallNode` tree.

    Raises
    ------
    pydantic.ValidationError
        When `trace_response` is a dict that does not match the raw trace shape.
    """
    if not isinstance(trace_response, TraceResponse):
        trace_response = TraceResponse.model_validate(trace_response)

    builder = _Builder(trace_response.abis)
    root = builder.build(trace_response.entrypoint)
    logger.debug(f"normalized trace {trace_response.txhash}: {builder.next_log_index} logs")
    return root


def load_trace(path: Path) -> CallNode:
    """Read a trace JSON file and normalize it."""
    return call_node_from_trace(json.loads(path.read_text()))
