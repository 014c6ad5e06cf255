import pytest
from builders import ALICE, BOB, ERC20, ERC20_ABI, address_word, topic, word
from eth_abi import encode

from detrace.abi import AbiFunction, AbiParam, ContractInterface, abi_to_signature, decode_abi
from detrace.constants import APPROVAL_T0, DEPOSIT_T0, TRANSFER_T0, V2_MINT_T0, V2_SWAP_T0
from detrace.decoding.specs import selector_of, topic_of
from detrace.exceptions import DecodeError


def test_transfer_log_is_decoded_with_checksummed_addresses() -> None:
    topics = [topic(TRANSFER_T0), address_word(ALICE.lower()), address_word(BOB)]

    decoded = ERC20.decode_log(topics, word(123))

    assert decoded is not None
    assert decoded.signature == "Transfer(address,address,uint256)"
    assert decoded.args == (ALICE, BOB, 123)
    assert decoded.values == {"from": ALICE, "to": BOB, "value": 123}


def test_unknown_event_is_none() -> None:
    assert ERC20.decode_log([b"\x11" * 32], b"") is None
    assert ERC20.decode_log([], b"") is None


def test_wrong_topic_count_is_a_decode_error() -> None:
    with pytest.raises(DecodeError):
        ERC20.decode_log([topic(TRANSFER_T0), address_word(ALICE)], word(1))


def test_truncated_payload_is_a_decode_error() -> None:
    with pytest.raises(DecodeError):
        ERC20.decode_log([topic(APPROVAL_T0), address_word(ALICE), address_word(BOB)], b"\x00" * 16)


def test_function_input_and_output() -> None:
    calldata = selector_of("transfer(address,uint256)") + encode(["address", "uint256"], [BOB, 5])

    call = ERC20.decode_function_input(calldata)
    out = ERC20.decode_function_output(calldata, encode(["bool"], [True]))

    assert call is not None and call.values == {"to": BOB, "amount": 5}
    assert out is not None and out.args == (True,)
    assert ERC20.decode_function_input(b"\xde\xad\xbe\xef") is None


def test_merge_keeps_first_fragment_on_conflict() -> None:
    renamed = [dict(entry, name="transfer") for entry in ERC20_ABI if entry["type"] == "function"]
    renamed[0]["inputs"] = [{"name": "recipient", "type": "address"}, {"name": "wad", "type": "uint256"}]
    other = ContractInterface.from_abi(renamed)

    merged = other.merge(ERC20)
    calldata = selector_of("transfer(address,uint256)") + encode(["address", "uint256"], [BOB, 5])

    assert len(merged) == len(ERC20)
    assert merged.decode_function_input(calldata).values == {"recipient": BOB, "wad": 5}


def test_tuple_signature() -> None:
    fn = AbiFunction(
        name="swap",
        type="function",
        inputs=[
            AbiParam(
                name="params",
                type="tuple[]",
                components=[AbiParam(name="a", type="address"), AbiParam(name="b", type="uint24")],
            )
        ],
    )
    assert abi_to_signature(fn) == "swap((address,uint24)[])"


def test_decode_abi_checksums_address_arrays() -> None:
    (path,) = decode_abi(["address[]"], encode(["address[]"], [[ALICE.lower(), BOB.lower()]]))
    assert path == (ALICE, BOB)


def test_topic_constants_match_their_signatures() -> None:
    assert topic_of("Transfer(address,address,uint256)") == TRANSFER_T0
    assert topic_of("Approval(address,address,uint256)") == APPROVAL_T0
    assert topic_of("Deposit(address,uint256)") == DEPOSIT_T0
    assert topic_of("Mint(address,uint256,uint256)") == V2_MINT_T0
    assert topic_of("Swap(address,uint256,uint256,uint256,uint256,address)") == V2_SWAP_T0
