from unittest.mock import AsyncMock

import pytest

from builders import PAIR, TOKEN0, TOKEN1, address_word


@pytest.fixture
def storage():
    """Mutable (address, slot) -> word mapping backing `mock_reader`."""
    return {}


@pytest.fixture
def mock_reader(storage):
    async def get_storage_at(address: str, slot: int) -> bytes:
        return storage.get((address, slot), bytes(32))

    reader = AsyncMock()
    reader.get_storage_at = AsyncMock(side_effect=get_storage_at)
    return reader


@pytest.fixture
def pair_storage(storage):
    """Populate `storage` with a UniswapV2 pair's token0/token1 slots."""
    storage[(PAIR, 6)] = address_word(TOKEN0)
    storage[(PAIR, 7)] = address_word(TOKEN1)
    return storage


@pytest.fixture
def mock_rpc(mock_reader):
    rpc = AsyncMock()
    rpc.get_storage_at = mock_reader.get_storage_at
    rpc.latest_block = AsyncMock(return_value=100)
    rpc.aclose = AsyncMock()
    return rpc
