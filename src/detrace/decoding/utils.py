"""Decoding utilities: storage words, topic parsing and log matching."""

from __future__ import annotations

from eth_utils import to_checksum_address

from detrace.abi import decode_abi
from detrace.core.models import Log
from detrace.exceptions import DecodeError


def address_from_word(word: bytes) -> str:
    """Checksummed address held in the low 20 bytes of a 32-byte word."""
    return to_checksum_address("0x" + word[-20:].hex())


def topic_address(topic: bytes) -> str:
    """Decode an indexed `address` topic (rejects dirty high bytes)."""
    return decode_abi(["address"], topic)[0]


def has_topic(log: Log, topic0: str, *, topics: int | None = None) -> bool:
    """True if `log` has the given topic0 and, optionally, exactly `topics` topics."""
    if log.topic0 != topic0:
        return False
    return topics is None or len(log.topics) == topics


def parse_erc20_transfer(log: Log) -> tuple[str, str, int]:
    """Read (from, to, amount) from a 3-topic `Transfer(address,address,uint256)` log."""
    if len(log.topics) != 3:
        raise DecodeError(f"log {log.index}: Transfer expects 3 topics, got {len(log.topics)}")
    (amount,) = decode_abi(["uint256"], log.data)
    return topic_address(log.topics[1]), topic_address(log.topics[2]), amount
