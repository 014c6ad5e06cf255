"""Small constructors for normalized traces used across the test suite."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from eth_abi import encode
from eth_utils import to_checksum_address

from detrace.abi import ContractInterface
from detrace.constants import TRANSFER_T0
from detrace.core.models import CallNode, ChildOrderEntry, Log

ALICE = to_checksum_address("0x" + "a1" * 20)
BOB = to_checksum_address("0x" + "b2" * 20)
CAROL = to_checksum_address("0x" + "c3" * 20)
TOKEN = to_checksum_address("0x" + "d4" * 20)
TOKEN0 = to_checksum_address("0x" + "e5" * 20)
TOKEN1 = to_checksum_address("0x" + "f6" * 20)
PAIR = to_checksum_address("0x" + "17" * 20)
ROUTER = to_checksum_address("0x" + "28" * 20)
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "event",
        "name": "Transfer",
        "anonymous": False,
        "inputs": [
            {"name": "from", "type": "address", "indexed": True},
            {"name": "to", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Approval",
        "anonymous": False,
        "inputs": [
            {"name": "owner", "type": "address", "indexed": True},
            {"name": "spender", "type": "address", "indexed": True},
            {"name": "value", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "function",
        "name": "transfer",
        "inputs": [{"name": "to", "type": "address"}, {"name": "amount", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bool"}],
    },
]

ERC20 = ContractInterface.from_abi(ERC20_ABI)


def word(value: int) -> bytes:
    return value.to_bytes(32, "big")


def address_word(address: str) -> bytes:
    return bytes(12) + bytes.fromhex(address[2:])


def topic(topic0: str) -> bytes:
    return bytes.fromhex(topic0[2:])


def make_log(address: str, topics: Sequence[bytes], data: bytes = b"", *, index: int) -> Log:
    return Log(address=address, topics=tuple(topics), data=data, index=index)


def transfer_log(token: str, src: str, dst: str, amount: int, *, index: int) -> Log:
    return make_log(
        token,
        [topic(TRANSFER_T0), address_word(src), address_word(dst)],
        encode(["uint256"], [amount]),
        index=index,
    )


def make_node(
    id: str,
    *,
    from_: str = ALICE,
    to: str = BOB,
    value: int = 0,
    calldata: bytes = b"",
    returndata: bytes = b"",
    status: bool = True,
    call_kind: str = "call",
    logs: Sequence[Log] = (),
    children: Sequence[CallNode] = (),
    child_order: Sequence[tuple[str, int]] | None = None,
    interface: ContractInterface | None = None,
) -> CallNode:
    """Build a CallNode; `child_order` defaults to all logs first, then all children."""
    if child_order is None:
        child_order = [("log", i) for i in range(len(logs))] + [("call", i) for i in range(len(children))]
    return CallNode(
        id=id,
        call_kind=call_kind,
        from_=from_,
        to=to,
        value=value,
        calldata=calldata,
        returndata=returndata,
        status=status,
        logs=tuple(logs),
        children=tuple(children),
        child_order=tuple(ChildOrderEntry(kind, index) for kind, index in child_order),
        interface=interface,
    )
