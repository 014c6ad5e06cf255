from builders import ALICE, BOB, PAIR, ROUTER, TOKEN, TOKEN0, TOKEN1

from detrace.constants import NATIVE_TOKEN
from detrace.core.actions import ApprovalAction, DeployAction, RemoveLiquidityAction, SwapAction, TransferAction
from detrace.format import TokenInfo, format_action, scale_amount

TOKENS = {TOKEN0: TokenInfo("USDC", 6), TOKEN1: TokenInfo("WETH", 18)}


def test_scale_amount_is_exact() -> None:
    assert scale_amount(1_500_000_000_000_000_000, 18) == "1.5"
    assert scale_amount(2**70, 18) == "1180.591620717411303424"
    assert scale_amount(100, 18) == "0.0000000000000001"
    assert scale_amount(0, 6) == "0"
    assert scale_amount(42, 0) == "42"


def test_native_transfer_uses_native_decimals() -> None:
    action = TransferAction(operator=ALICE, from_=ALICE, to=BOB, token=NATIVE_TOKEN, amount=10**18)
    assert format_action(action) == f"Transfer 1 ETH from {ALICE} to {BOB}"


def test_unknown_token_is_shown_raw() -> None:
    action = TransferAction(operator=ALICE, from_=ALICE, to=BOB, token=TOKEN, amount=12345)
    assert format_action(action, TOKENS) == f"Transfer 12345 of {TOKEN} from {ALICE} to {BOB}"


def test_swap_with_known_tokens() -> None:
    action = SwapAction(
        operator=ALICE,
        exchange=ROUTER,
        recipient=ALICE,
        token_in=TOKEN0,
        amount_in=2_500_000,
        token_out=TOKEN1,
        amount_out=10**18,
    )
    assert format_action(action, TOKENS) == f"Swap 2.5 USDC for 1 WETH on {ROUTER} to {ALICE}"


def test_unlimited_approval() -> None:
    action = ApprovalAction(operator=ALICE, owner=ALICE, spender=ROUTER, token=TOKEN0, amount=2**256 - 1)
    assert format_action(action, TOKENS) == f"Approve {ROUTER} to spend unlimited USDC of {ALICE}"


def test_remove_liquidity() -> None:
    action = RemoveLiquidityAction(
        operator=ROUTER,
        pool=PAIR,
        provider=ALICE,
        token0=TOKEN0,
        amount0=1_000_000,
        token1=TOKEN1,
        amount1=5 * 10**17,
        liquidity=77,
    )
    assert format_action(action, TOKENS) == f"Remove liquidity 1 USDC + 0.5 WETH (77 LP) on {PAIR} for {ALICE}"


def test_deploy_without_value() -> None:
    action = DeployAction(operator=ALICE, deployer=ALICE, contract=TOKEN, value=0)
    assert format_action(action) == f"Deploy {TOKEN} by {ALICE}"
