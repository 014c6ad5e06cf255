"""Resolved contract interfaces built from JSON ABIs.

`ContractInterface` plays the role of a per-frame ABI: it decodes calldata,
returndata and event logs for the functions/events it knows about. Interfaces
can be merged so a delegatecall frame can see both the implementation's and
the caller's fragments.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from eth_abi import decode as eth_abi_decode
from eth_abi.exceptions import DecodingError as EthAbiDecodingError
from eth_utils import event_signature_to_log_topic, function_signature_to_4byte_selector, to_checksum_address
from pydantic import BaseModel

from detrace.exceptions import DecodeError

root_logger = logging.getLogger("detrace")
logger = root_logger.getChild("abi")


class AbiParam(BaseModel):
    name: str = ""
    type: str
    indexed: bool = False
    internalType: str | None = None
    components: list[AbiParam] | None = None


class AbiEvent(BaseModel):
    anonymous: bool = False
    inputs: Sequence[AbiParam] = ()
    name: str
    type: Literal["event"]


class AbiFunction(BaseModel):
    inputs: Sequence[AbiParam] = ()
    outputs: Sequence[AbiParam] = ()
    name: str
    type: Literal["function"]


AbiJson = Iterable[dict[str, Any]]
AbiSpec = AbiJson | Path


@dataclass(slots=True, frozen=True)
class DecodedEvent:
    """Event decoding result. `args` follows ABI input order (indexed and not)."""

    name: str
    signature: str
    args: tuple[Any, ...]
    values: dict[str, Any]


@dataclass(slots=True, frozen=True)
class DecodedCall:
    """Function decoding result for calldata (inputs) or returndata (outputs)."""

    name: str
    signature: str
    args: tuple[Any, ...]
    values: dict[str, Any]


# ---------- type helpers ----------


def canonical_type(param: AbiParam) -> str:
    """Collapse tuple params into their canonical `(t1,t2,...)[dims]` form."""
    if not param.type.startswith("tuple"):
        return param.type
    inner = ",".join(canonical_type(c) for c in param.components or [])
    return f"({inner}){param.type[5:]}"


def abi_to_signature(fragment: AbiEvent | AbiFunction) -> str:
    """
    Converts an ABI fragment to its canonical signature.

    >>> abi_to_signature(AbiFunction(name="transfer", type="function", inputs=[
    ...     AbiParam(name="to", type="address"), AbiParam(name="amount", type="uint256")]))
    'transfer(address,uint256)'
    """
    return f"{fragment.name}({','.join(canonical_type(p) for p in fragment.inputs)})"


def _is_dynamic(typ: str) -> bool:
    return typ in ("string", "bytes") or typ.endswith("]") or typ.startswith("(")


def _format_value(value: Any, typ: str) -> Any:
    """Checksum addresses, including inside address arrays."""
    if typ == "address":
        return to_checksum_address(value)
    if typ.endswith("]"):
        base = typ[: typ.rfind("[")]
        return tuple(_format_value(v, base) for v in value)
    return value


def decode_abi(types: Sequence[str], data: bytes) -> tuple[Any, ...]:
    """
    Decodes ABI data from types and data bytes, checksumming addresses.

    Raises `DecodeError` when the payload does not match the types (truncated data,
    non-empty padding, out-of-range values).
    """
    try:
        decoded = eth_abi_decode(list(types), data)
    except (EthAbiDecodingError, OverflowError) as e:
        logger.debug(f"Error {e.__class__.__name__} while decoding {data.hex()} for types {list(types)}")
        raise DecodeError(f"cannot decode {list(types)} from {len(data)} bytes: {e}") from e
    return tuple(_format_value(v, t) for v, t in zip(decoded, types, strict=True))


# ---------- interface ----------


class ContractInterface:
    """
    Decodes calldata, returndata and logs for one resolved ABI.

    Lookups are keyed by 4-byte selector (functions) and lowercase 0x-hex topic0
    (events). On conflicting keys the first fragment loaded wins.
    """

    functions: dict[bytes, AbiFunction]
    """ Mapping from 4byte selectors to function fragments """

    events: dict[str, AbiEvent]
    """ Mapping from topic0 to event fragments """

    def __init__(self, fragments: Iterable[AbiEvent | AbiFunction] = ()) -> None:
        self.fragments: list[AbiEvent | AbiFunction] = []
        self.functions = {}
        self.events = {}
        for fragment in fragments:
            self._add(fragment)

    def _add(self, fragment: AbiEvent | AbiFunction) -> None:
        signature = abi_to_signature(fragment)
        if isinstance(fragment, AbiFunction):
            selector = function_signature_to_4byte_selector(signature)
            if selector in self.functions:
                return
            self.functions[selector] = fragment
        else:
            if fragment.anonymous:
                return
            topic0 = "0x" + event_signature_to_log_topic(signature).hex()
            if topic0 in self.events:
                return
            self.events[topic0] = fragment
        self.fragments.append(fragment)

    @classmethod
    def from_abi(cls, abi: AbiSpec) -> ContractInterface:
        """Build an interface from a JSON ABI (list of entries or path to a JSON file)."""
        if isinstance(abi, Path):
            abi = json.loads(abi.read_text())
        fragments: list[AbiEvent | AbiFunction] = []
        for entry in abi:
            if entry.get("type") == "event":
                fragments.append(AbiEvent.model_validate(entry))
            elif entry.get("type") == "function":
                fragments.append(AbiFunction.model_validate(entry))
        return cls(fragments)

    def merge(self, other: ContractInterface | None) -> ContractInterface:
        """Return a new interface with this interface's fragments first, then `other`'s."""
        if other is None:
            return ContractInterface(self.fragments)
        return ContractInterface([*self.fragments, *other.fragments])

    def __len__(self) -> int:
        return len(self.fragments)

    def get_function(self, selector: bytes) -> AbiFunction | None:
        return self.functions.get(bytes(selector[:4]))

    def get_event(self, topic0: str) -> AbiEvent | None:
        return self.events.get(topic0.lower())

    def decode_function_input(self, calldata: bytes) -> DecodedCall | None:
        """Decode calldata; None if the selector is unknown to this interface."""
        fn = self.get_function(calldata)
        if fn is None:
            return None
        types = [canonical_type(p) for p in fn.inputs]
        args = decode_abi(types, calldata[4:])
        return DecodedCall(
            name=fn.name,
            signature=abi_to_signature(fn),
            args=args,
            values={p.name or f"arg{i}": v for i, (p, v) in enumerate(zip(fn.inputs, args))},
        )

    def decode_function_output(self, calldata: bytes, returndata: bytes) -> DecodedCall | None:
        """Decode returndata using the outputs of the function selected by `calldata`."""
        fn = self.get_function(calldata)
        if fn is None:
            return None
        types = [canonical_type(p) for p in fn.outputs]
        args = decode_abi(types, returndata)
        return DecodedCall(
            name=fn.name,
            signature=abi_to_signature(fn),
            args=args,
            values={p.name or f"out{i}": v for i, (p, v) in enumerate(zip(fn.outputs, args))},
        )

    def decode_log(self, topics: Sequence[bytes], data: bytes) -> DecodedEvent | None:
        """
        Decode an event log.

        :param topics: Full topic list, including the signature at index 0
        :param data: Non-indexed data bytes
        :return: None if topic0 is unknown to this interface
        """
        if not topics:
            return None
        event = self.get_event("0x" + topics[0].hex())
        if event is None:
            return None

        indexed = [p for p in event.inputs if p.indexed]
        non_indexed = [p for p in event.inputs if not p.indexed]
        if len(topics) - 1 != len(indexed):
            raise DecodeError(
                f"{event.name}: expected {len(indexed)} indexed topics, got {len(topics) - 1}"
            )

        topic_values: list[Any] = []
        for param, topic in zip(indexed, topics[1:]):
            typ = canonical_type(param)
            # dynamic indexed values are stored as their keccak hash
            topic_values.append(topic if _is_dynamic(typ) else decode_abi([typ], topic)[0])
        data_values = list(decode_abi([canonical_type(p) for p in non_indexed], data))

        args: list[Any] = []
        values: dict[str, Any] = {}
        for i, param in enumerate(event.inputs):
            value = topic_values.pop(0) if param.indexed else data_values.pop(0)
            args.append(value)
            values[param.name or f"arg{i}"] = value

        return DecodedEvent(name=event.name, signature=abi_to_signature(event), args=tuple(args), values=values)
