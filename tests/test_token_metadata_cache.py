from __future__ import annotations

import asyncio

import pytest

from app.domain.exceptions import TokenReadError
from app.infrastructure.clients.token_metadata_cache import TokenMetadataCache


USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


class FakeChainClient:
    def __init__(self, *, decimals: int = 6, symbol: str = "USDC", fail: bool = False):
        self.decimals = decimals
        self.symbol = symbol
        self.fail = fail
        self.calls: list[tuple[str, str]] = []

    async def read_contract(self, address, abi, function_name, *args):
        self.calls.append((address, function_name))
        if self.fail:
            raise TokenReadError(f"{function_name}() failed on {address}")
        return self.decimals if function_name == "decimals" else self.symbol


class FakeClients:
    def __init__(self, client: FakeChainClient):
        self.client = client

    def get_client(self, chain_id: int) -> FakeChainClient:
        return self.client


def test_get_decimals_reads_chain_once_per_key():
    client = FakeChainClient(decimals=6)
    cache = TokenMetadataCache(FakeClients(client))

    async def scenario():
        first = await cache.get_decimals(8453, USDC)
        second = await cache.get_decimals(8453, USDC.lower())
        return first, second

    assert asyncio.run(scenario()) == (6, 6)
    assert client.calls == [(USDC, "decimals")]


def test_get_symbol_failure_caches_empty_string():
    client = FakeChainClient(fail=True)
    cache = TokenMetadataCache(FakeClients(client))

    async def scenario():
        return await cache.get_symbol(1, USDC), await cache.get_symbol(1, USDC)

    assert asyncio.run(scenario()) == ("", "")
    assert client.calls == [(USDC, "symbol")]


def test_get_decimals_failure_propagates():
    cache = TokenMetadataCache(FakeClients(FakeChainClient(fail=True)))

    with pytest.raises(TokenReadError):
        asyncio.run(cache.get_decimals(1, USDC))
