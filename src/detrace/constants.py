from __future__ import annotations

from eth_utils import to_checksum_address

# Sentinel used as `token` for the chain's native asset. Never a valid hex address.
NATIVE_TOKEN = "native"

ZERO_ADDRESS = to_checksum_address("0x" + "00" * 20)

# topic0 constants (lowercase, 0x-prefixed)
TRANSFER_T0   = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
APPROVAL_T0   = "0x8c5be1e5ebec7d5bd14f71427d1e84f3dd0314c0f7b2291e5b200ac8c7c3b925"
DEPOSIT_T0    = "0xe1fffcc4923d04b559f4d29a8bfc6cda04eb5b0d3c460751c2402c5c5cc9109c"
WITHDRAWAL_T0 = "0x7fcf532c15f0a6db0bd6d0e038bea71d30d808c7d98cb3bf7268a95bf5081b65"
V2_SWAP_T0    = "0xd78ad95fa46c994b6551d0da85fc275fe613ce37657fb8d5e3d130840159d822"
V2_SYNC_T0    = "0x1c411e9a96e071241c2f21f7726b17ae89e3cab4c78be50e062b03a9fffbbad1"
V2_MINT_T0    = "0x4c209b5fc8ad50758f13e2e1088ba56a560dff690a1c6fef26394f4c03821c4f"
V2_BURN_T0    = "0xdccd412f0b1252819cb1fd330b93224ca42612892bb3f4f789976e6d81936496"

# UniswapV2Pair storage layout: factory @ 5, token0 @ 6, token1 @ 7
V2_PAIR_TOKEN0_SLOT = 6
V2_PAIR_TOKEN1_SLOT = 7

# Wrapped native asset contracts per chain
WRAPPED_NATIVE: dict[str, tuple[str, ...]] = {
    "ethereum": ("0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",),
    "optimism": ("0x4200000000000000000000000000000000000006",),
    "base": ("0x4200000000000000000000000000000000000006",),
    "arbitrum": ("0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",),
    "polygon": ("0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270",),
}
