"""Selectors, event topics and argument layouts recognized by the built-in decoders.

Defines lightweight helpers and tables:
- `selector_of` / `topic_of`: signature → 4-byte selector / topic0
- `RouterSwapSpec`: how to read one UniswapV2 router swap function
- `ROUTER_SWAPS`: selector → RouterSwapSpec
"""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils import event_signature_to_log_topic, function_signature_to_4byte_selector

from detrace.constants import DEPOSIT_T0, TRANSFER_T0, V2_SWAP_T0, V2_SYNC_T0, WITHDRAWAL_T0


def selector_of(signature: str) -> bytes:
    """4-byte selector for a canonical function signature."""
    return function_signature_to_4byte_selector(signature)


def topic_of(signature: str) -> str:
    """Lowercase 0x-hex topic0 for a canonical event signature."""
    return "0x" + event_signature_to_log_topic(signature).hex()


# ---- Wrapped native (WETH9) ----

DEPOSIT_SELECTOR = selector_of("deposit()")
WITHDRAW_SELECTOR = selector_of("withdraw(uint256)")


# ---- UniswapV2 pair ----

PAIR_SWAP_SELECTOR = selector_of("swap(uint256,uint256,address,bytes)")
PAIR_MINT_SELECTOR = selector_of("mint(address)")
PAIR_BURN_SELECTOR = selector_of("burn(address)")


# ---- UniswapV2 router ----


@dataclass(frozen=True)
class RouterSwapSpec:
    """One router swap function: argument types and which side is native."""

    name: str
    input_types: tuple[str, ...]
    native_in: bool = False
    native_out: bool = False

    @property
    def signature(self) -> str:
        return f"{self.name}({','.join(self.input_types)})"

    @property
    def path_index(self) -> int:
        return self.input_types.index("address[]")

    @property
    def to_index(self) -> int:
        # `to` always directly follows `path`
        return self.path_index + 1


_ROUTER_SWAP_SPECS = (
    RouterSwapSpec("swapExactTokensForTokens", ("uint256", "uint256", "address[]", "address", "uint256")),
    RouterSwapSpec("swapTokensForExactTokens", ("uint256", "uint256", "address[]", "address", "uint256")),
    RouterSwapSpec("swapExactETHForTokens", ("uint256", "address[]", "address", "uint256"), native_in=True),
    RouterSwapSpec("swapETHForExactTokens", ("uint256", "address[]", "address", "uint256"), native_in=True),
    RouterSwapSpec(
        "swapTokensForExactETH", ("uint256", "uint256", "address[]", "address", "uint256"), native_out=True
    ),
    RouterSwapSpec(
        "swapExactTokensForETH", ("uint256", "uint256", "address[]", "address", "uint256"), native_out=True
    ),
)

ROUTER_SWAPS: dict[bytes, RouterSwapSpec] = {selector_of(s.signature): s for s in _ROUTER_SWAP_SPECS}

# Logs explained by a router swap when emitted anywhere below the router call
ROUTER_SWAP_SUBSUMED_TOPICS: frozenset[str] = frozenset(
    {TRANSFER_T0, V2_SWAP_T0, V2_SYNC_T0, DEPOSIT_T0, WITHDRAWAL_T0}
)
