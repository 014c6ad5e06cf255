import pytest
from builders import ALICE, BOB, CAROL, ERC20, TOKEN, make_log, make_node, topic, transfer_log

from detrace.clients.chain_access import NullChainAccess
from detrace.constants import NATIVE_TOKEN, TRANSFER_T0
from detrace.core.actions import SwapAction, TransferAction
from detrace.core.state import DecoderState
from detrace.core.use_cases.decode_trace import DecodeTraceService, decode, validate_tree
from detrace.decoding.decoder import Decoder
from detrace.decoding.fallback import TransferDecoder
from detrace.decoding.registries import make_default_registry
from detrace.decoding.registry import add_decoder, make_registry
from detrace.exceptions import ChainAccessError, MalformedTraceError


def _native_then_token_trace():
    child = make_node(
        "0.0",
        from_=BOB,
        to=TOKEN,
        logs=[transfer_log(TOKEN, BOB, CAROL, 50, index=0)],
        interface=ERC20,
    )
    return make_node("0", from_=ALICE, to=BOB, value=100, children=[child])


class RootInteractionDecoder(Decoder):
    """Composite stand-in: claims the root call and everything logged below it."""

    async def decode_call(self, state, node):
        if node.id != "0" or state.is_consumed(node):
            return None
        for _, log in node.iter_subtree_logs():
            state.mark_consumed(log)
        return SwapAction(
            operator=node.from_,
            exchange=node.to,
            recipient=node.from_,
            token_in=NATIVE_TOKEN,
            amount_in=node.value,
            token_out=TOKEN,
            amount_out=50,
        )


class AlwaysDecoder(Decoder):
    def __init__(self, tag: int) -> None:
        self.tag = tag

    async def decode_call(self, state, node):
        return TransferAction(operator=node.from_, from_=node.from_, to=node.to, token=NATIVE_TOKEN, amount=self.tag)


# ---------- scenarios ----------


@pytest.mark.asyncio
async def test_native_and_token_transfer_scenario() -> None:
    result = await decode(_native_then_token_trace(), NullChainAccess())

    root = result.output
    assert root.results == [TransferAction(operator=ALICE, from_=ALICE, to=BOB, token=NATIVE_TOKEN, amount=100)]
    assert len(root.children) == 1
    assert root.children[0].results == [TransferAction(operator=BOB, from_=BOB, to=CAROL, token=TOKEN, amount=50)]
    assert result.requests.tokens == {TOKEN}
    assert result.diagnostics == []


@pytest.mark.asyncio
async def test_composite_decoder_consumes_descendant_log() -> None:
    registry = add_decoder(make_default_registry(), RootInteractionDecoder())

    result = await decode(_native_then_token_trace(), NullChainAccess(), registry)

    root = result.output
    assert len(root.results) == 1
    assert root.results[0].kind == "swap"
    assert root.children[0].results == []
    # the composite decoder requested nothing itself
    assert result.requests.is_empty()


@pytest.mark.asyncio
async def test_undecodable_transfer_payload_is_local_to_its_log() -> None:
    bad = make_log(TOKEN, transfer_log(TOKEN, ALICE, BOB, 1, index=0).topics, b"\x01", index=0)
    good = transfer_log(TOKEN, ALICE, CAROL, 7, index=1)
    root = make_node("0", from_=ALICE, to=TOKEN, logs=[bad, good], interface=ERC20)

    result = await decode(root, NullChainAccess())

    assert result.output.results == [TransferAction(operator=ALICE, from_=ALICE, to=CAROL, token=TOKEN, amount=7)]
    assert len(result.diagnostics) == 1
    diag = result.diagnostics[0]
    assert diag.decoder == "TransferDecoder"
    assert diag.node_id == "0"
    assert diag.log_index == 0
    assert diag.error_type == "DecodeError"


# ---------- registry semantics ----------


@pytest.mark.asyncio
async def test_first_match_wins() -> None:
    registry = make_registry([AlwaysDecoder(1), AlwaysDecoder(2)])

    result = await decode(make_node("0"), NullChainAccess(), registry)

    assert [a.amount for a in result.output.results] == [1]


@pytest.mark.asyncio
async def test_fallback_yields_logs_consumed_earlier() -> None:
    log = transfer_log(TOKEN, ALICE, BOB, 3, index=0)
    node = make_node("0", to=TOKEN, logs=[log], interface=ERC20)
    state = DecoderState(access=NullChainAccess())
    fallback = TransferDecoder()

    assert await fallback.decode_log(state, node, log) is not None
    state.mark_consumed(log)
    assert await fallback.decode_log(state, node, log) is None


@pytest.mark.asyncio
async def test_precision_of_large_native_values() -> None:
    result = await decode(make_node("0", value=2**70), NullChainAccess())

    (action,) = result.output.results
    assert action.amount == 2**70
    assert isinstance(action.amount, int)


# ---------- ordering ----------


@pytest.mark.asyncio
async def test_actions_follow_emission_order() -> None:
    first = transfer_log(TOKEN, ALICE, BOB, 1, index=0)
    last = transfer_log(TOKEN, ALICE, BOB, 3, index=2)
    middle_child = make_node("0.0", from_=TOKEN, to=CAROL, value=2)
    root = make_node(
        "0",
        to=TOKEN,
        logs=[first, last],
        children=[middle_child],
        child_order=[("log", 0), ("call", 0), ("log", 1)],
        interface=ERC20,
    )

    result = await decode(root, NullChainAccess())

    assert [a.amount for a in result.output.results] == [1, 3]
    assert [a.amount for a in result.output.iter_actions()] == [1, 2, 3]


@pytest.mark.asyncio
async def test_output_tree_mirrors_input_tree() -> None:
    leaves = [make_node(f"0.1.{i}", value=i) for i in range(3)]
    inner = make_node("0.1", children=leaves, child_order=[("call", 2), ("call", 0), ("call", 1)])
    root = make_node("0", children=[make_node("0.0"), inner])

    result = await decode(root, NullChainAccess())

    assert result.output.size() == 6
    assert [c.node.id for c in result.output.children] == ["0.0", "0.1"]
    assert [c.node for c in result.output.children[1].children] == leaves


@pytest.mark.asyncio
async def test_children_are_visited_in_child_order() -> None:
    seen: list[str] = []

    class Recorder(Decoder):
        async def decode_call(self, state, node):
            seen.append(node.id)
            return None

    leaves = [make_node(f"0.{i}") for i in range(3)]
    root = make_node("0", children=leaves, child_order=[("call", 1), ("call", 2), ("call", 0)])

    await decode(root, NullChainAccess(), make_registry([Recorder()]))

    assert seen == ["0", "0.1", "0.2", "0.0"]


# ---------- structural validation ----------


def test_validate_tree_counts_nodes() -> None:
    root = make_node("0", children=[make_node("0.0"), make_node("0.1", children=[make_node("0.1.0")])])
    assert validate_tree(root) == 4


@pytest.mark.parametrize(
    "root",
    [
        pytest.param(make_node("0", children=[make_node("0")]), id="duplicate-node-id"),
        pytest.param(
            make_node(
                "0",
                logs=[transfer_log(TOKEN, ALICE, BOB, 1, index=0)],
                children=[make_node("0.0", logs=[transfer_log(TOKEN, ALICE, BOB, 1, index=0)])],
            ),
            id="duplicate-log-index",
        ),
        pytest.param(make_node("0", children=[make_node("0.0")], child_order=[("call", 1)]), id="out-of-range"),
        pytest.param(make_node("0", children=[make_node("0.0")], child_order=[]), id="missing-entry"),
        pytest.param(
            make_node("0", children=[make_node("0.0")], child_order=[("call", 0), ("call", 0)]), id="repeated-entry"
        ),
        pytest.param(
            make_node("0", logs=[make_log(TOKEN, [topic(TRANSFER_T0)], index=0)], child_order=[("log", -1)]),
            id="negative-index",
        ),
    ],
)
@pytest.mark.asyncio
async def test_malformed_trace_aborts_the_pass(root) -> None:
    with pytest.raises(MalformedTraceError):
        await decode(root, NullChainAccess())


@pytest.mark.asyncio
async def test_service_runs_independent_passes() -> None:
    service = DecodeTraceService(NullChainAccess(), make_default_registry())

    first = await service.run(_native_then_token_trace())
    second = await service.run(_native_then_token_trace())

    assert len(first.output.results) == len(second.output.results) == 1
    assert first.requests is not second.requests


# ---------- depth ----------


def _nested_chain(depth: int):
    """Root plus `depth` nested frames; only the innermost one carries value."""
    ids = ["0"]
    for _ in range(depth):
        ids.append(ids[-1] + ".0")
    node = make_node(ids[-1], value=1)
    for node_id in reversed(ids[:-1]):
        node = make_node(node_id, children=[node])
    return node


@pytest.mark.asyncio
async def test_decodes_trace_at_max_call_depth() -> None:
    root = _nested_chain(1024)

    result = await decode(root, NullChainAccess())

    assert result.output.size() == 1025
    assert [a.amount for a in result.output.iter_actions()] == [1]
    assert sum(1 for _ in root.walk()) == 1025
    innermost = result.output
    while innermost.children:
        (innermost,) = innermost.children
    assert innermost.node.id.count(".") == 1024
    assert innermost.results[0].amount == 1


# ---------- decoder failures ----------


class StorageFailingDecoder(Decoder):
    async def decode_call(self, state, node):
        raise ChainAccessError(f"storage unavailable for {node.to}")

    async def decode_log(self, state, node, log):
        raise ChainAccessError(f"storage unavailable for {log.address}")


class BrokenDecoder(Decoder):
    async def decode_call(self, state, node):
        raise ValueError("bug in decoder")


@pytest.mark.asyncio
async def test_chain_access_failure_is_recorded_and_next_decoder_claims() -> None:
    registry = make_registry([StorageFailingDecoder(), TransferDecoder()])
    root = make_node("0", to=TOKEN, value=5, logs=[transfer_log(TOKEN, ALICE, BOB, 9, index=0)], interface=ERC20)

    result = await decode(root, NullChainAccess(), registry)

    assert result.output.results == [
        TransferAction(operator=ALICE, from_=ALICE, to=TOKEN, token=NATIVE_TOKEN, amount=5),
        TransferAction(operator=ALICE, from_=ALICE, to=BOB, token=TOKEN, amount=9),
    ]
    assert [(d.decoder, d.node_id, d.log_index, d.error_type) for d in result.diagnostics] == [
        ("StorageFailingDecoder", "0", None, "ChainAccessError"),
        ("StorageFailingDecoder", "0", 0, "ChainAccessError"),
    ]


@pytest.mark.asyncio
async def test_unexpected_decoder_exception_aborts_the_pass() -> None:
    registry = make_registry([BrokenDecoder(), TransferDecoder()])

    with pytest.raises(ValueError, match="bug in decoder"):
        await decode(make_node("0", value=5), NullChainAccess(), registry)
