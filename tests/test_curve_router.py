from __future__ import annotations

import asyncio

import httpx
import pytest

from app.application.dto.curve import CoinData, CurveRouteResult
from app.domain.entities.quote import RouteStep
from app.domain.exceptions import NetworkError, NoQuoteError, TokenReadError
from app.infrastructure.clients.web3_chain_client import ERC20_ABI, Web3ChainClient
from app.infrastructure.curve.pools import CurvePool, CurvePoolIndex, _parse_pool, fetch_registry_pools
from app.infrastructure.curve.router import (
    ETH_ADDRESS,
    MAX_UINT256,
    ROUTER_NG_ABI,
    ZERO_ADDRESS,
    CurveRouter,
    build_candidate_routes,
)


USDC = "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48"
USDT = "0xdAC17F958D2ee523a2206206994597C13D831ec7"
CRVUSD = "0xf939E0A03FB07F59A73314E73794Be0E57ac1b4E"
WETH = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"

COINS = {
    USDC: CoinData(USDC, "USDC", 6),
    USDT: CoinData(USDT, "USDT", 6),
    CRVUSD: CoinData(CRVUSD, "crvUSD", 18),
    WETH: CoinData(WETH, "WETH", 18),
}


def _pool(pool_id: str, address: str, registry: str, coins: list[str], tvl: float) -> CurvePool:
    return CurvePool(
        id=pool_id,
        name=pool_id,
        address=address,
        registry=registry,
        coins=tuple(COINS[coin] for coin in coins),
        tvl_usd=tvl,
    )


STABLE = _pool("3pool", "0xbEbc44782C7dB0a1A60Cb6fe97d0b483032FF1C7", "main", [USDC, USDT], 150e6)
CRVUSD_USDC = _pool(
    "crvusd-usdc", "0x4DEcE678ceceb27446b35C672dC7d61F30bAD69E", "factory-stable-ng", [CRVUSD, USDC], 40e6
)
TRICRV = _pool(
    "tricrv", "0x4eBdF703948ddCEA3B11f675B4D1Fba9d2414A14", "factory-tricrypto", [CRVUSD, WETH], 90e6
)


def _index(*pools: CurvePool) -> CurvePoolIndex:
    index = CurvePoolIndex()
    for pool in pools:
        index.add(pool)
    return index


class FakeChain:
    """Answers `get_dy` per first pool and `allowance` with a fixed value."""

    def __init__(self, outputs: dict[str, int | Exception], *, allowance: int = 0):
        self.outputs = outputs
        self.allowance = allowance
        self.calls = []
        self._encoder = Web3ChainClient(1, "http://127.0.0.1:8545")

    def contract(self, address, abi):
        return self._encoder.contract(address, abi)

    async def read_contract(self, address, abi, function_name, *args):
        self.calls.append((function_name, args))
        if function_name == "allowance":
            return self.allowance
        route = args[0]
        result = self.outputs[route[1].lower()]
        if isinstance(result, Exception):
            raise result
        return result


def _router(chain: FakeChain, *pools: CurvePool) -> CurveRouter:
    router = CurveRouter(
        api_base="https://api.curve.finance/v1",
        router_address="0x16C6521Dff6baB339122a0FE25a9116693265353",
    )
    router._index = _index(*pools)
    router._chain = chain
    return router


def test_pool_type_follows_registry():
    assert STABLE.pool_type == 1
    assert CRVUSD_USDC.pool_type == 10
    assert TRICRV.pool_type == 30
    assert _pool("c", "0x01", "crypto", [USDC, WETH], 1).pool_type == 2


def test_parse_pool_skips_rows_without_coins():
    assert _parse_pool("main", {"address": "0xabc", "coins": [{"address": USDC}]}) is None
    pool = _parse_pool(
        "factory",
        {
            "id": "factory-v2-1",
            "address": "0xabc",
            "usdTotal": "1234.5",
            "coins": [
                {"address": USDC, "symbol": "USDC", "decimals": "6"},
                {"address": USDT, "symbol": "USDT", "decimals": "6"},
            ],
        },
    )
    assert pool.tvl_usd == 1234.5
    assert pool.coin_index(USDT.lower()) == 1


def test_fetch_registry_pools_parses_rows_and_rejects_unexpected_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/main"):
            return httpx.Response(
                200,
                json={
                    "data": {
                        "poolData": [
                            {
                                "id": "3pool",
                                "address": STABLE.address,
                                "usdTotal": 150e6,
                                "coins": [
                                    {"address": USDC, "symbol": "USDC", "decimals": "6"},
                                    {"address": USDT, "symbol": "USDT", "decimals": "6"},
                                ],
                            }
                        ]
                    }
                },
            )
        return httpx.Response(200, json=[])

    def fetch(registry: str):
        return asyncio.run(
            fetch_registry_pools(
                api_base="https://api.curve.finance/v1",
                registry=registry,
                timeout_seconds=1.0,
                transport=httpx.MockTransport(handler),
            )
        )

    pools = fetch("main")

    assert [pool.id for pool in pools] == ["3pool"]
    assert pools[0].registry == "main"
    with pytest.raises(NetworkError, match="unexpected shape"):
        fetch("crypto")


def test_candidate_routes_list_direct_before_two_hop():
    candidates = build_candidate_routes(_index(STABLE, CRVUSD_USDC, TRICRV), USDC, WETH)

    assert len(candidates) == 1
    hops = candidates[0].hops
    assert [hop.pool.id for hop in hops] == ["crvusd-usdc", "tricrv"]

    direct = build_candidate_routes(_index(STABLE, CRVUSD_USDC, TRICRV), USDC, USDT)
    assert [hop.pool.id for hop in direct[0].hops] == ["3pool"]


def test_route_args_pad_to_router_shapes():
    candidate = build_candidate_routes(_index(CRVUSD_USDC, TRICRV), USDC, WETH)[0]

    route, params, pools = candidate.route_args()

    assert len(route) == 11
    assert route[0] == USDC
    assert route[1].lower() == CRVUSD_USDC.address.lower()
    assert route[4] == WETH
    assert route[5:] == [ZERO_ADDRESS] * 6
    assert params[0] == [1, 0, 1, 10, 2]
    assert params[1] == [0, 1, 1, 30, 2]
    assert params[2:] == [[0, 0, 0, 0, 0]] * 3
    assert pools == [ZERO_ADDRESS] * 5


def test_best_route_picks_highest_get_dy_and_requotes_each_call():
    second_3pool = _pool("alt", "0x1005f7406f32a61BD760CfA14aCCd2737913d546", "factory", [USDC, USDT], 5e6)
    chain = FakeChain(
        {
            STABLE.address.lower(): 999_000_000,
            second_3pool.address.lower(): TokenReadError("get_dy reverted"),
        }
    )
    router = _router(chain, STABLE, second_3pool)

    async def scenario():
        first = await router.get_best_route_and_output(USDC, USDT, "1000")
        chain.outputs[STABLE.address.lower()] = 500_000_000
        again = await router.get_best_route_and_output(USDC, USDT, "1000")
        return first, again

    first, again = asyncio.run(scenario())

    assert first.output == "999"
    assert first.route[0].pool_id == "3pool"
    assert first.input_amount_raw == 1_000_000_000
    assert first.output_amount_raw == 999_000_000
    assert again.output == "500"
    assert len(chain.calls) == 4
    assert chain.calls[0][1][2] == 1_000_000_000


def test_best_route_without_pools_raises():
    router = _router(FakeChain({}), STABLE)

    with pytest.raises(NoQuoteError):
        asyncio.run(router.get_best_route_and_output(USDC, WETH, "1"))


def test_get_coins_data_prefers_pool_index():
    router = _router(FakeChain({}), STABLE)

    coins = asyncio.run(router.get_coins_data([USDC.lower()]))

    assert coins == [COINS[USDC]]


def test_populate_swap_encodes_priced_route_with_slippage_floor():
    chain = FakeChain({STABLE.address.lower(): 999_000_000})
    router = _router(chain, STABLE)

    async def scenario():
        best = await router.get_best_route_and_output(USDC, USDT, "1000")
        return await router.populate_swap(best)

    tx = asyncio.run(scenario())

    _, args = chain.contract(router.router_address, ROUTER_NG_ABI).decode_function_input(tx.data)
    assert tx.to == router.router_address
    assert tx.value is None
    assert [address.lower() for address in args["_route"][:3]] == [
        USDC.lower(),
        STABLE.address.lower(),
        USDT.lower(),
    ]
    assert list(args["_swap_params"][0]) == [0, 1, 1, 1, 2]
    assert args["_amount"] == 1_000_000_000
    assert args["_expected"] == 994_005_000
    assert len(chain.calls) == 1


def test_populate_swap_rejects_route_through_unknown_pool():
    router = _router(FakeChain({}), STABLE)
    best = CurveRouteResult(
        route=[RouteStep("gone", "gone", "0x0000000000000000000000000000000000000bad", USDC, USDT)],
        output="1",
        input_amount_raw=1_000_000,
        output_amount_raw=1_000_000,
    )

    with pytest.raises(NoQuoteError):
        asyncio.run(router.populate_swap(best))


def test_has_allowance_compares_raw_amount_and_skips_eth():
    owner = "0x1111111111111111111111111111111111111111"
    short = FakeChain({}, allowance=999_999_999)
    enough = FakeChain({}, allowance=1_000_000_000)

    assert not asyncio.run(_router(short, STABLE).has_allowance([USDC], ["1000"], owner, STABLE.address))
    assert asyncio.run(_router(enough, STABLE).has_allowance([USDC], ["1000"], owner, STABLE.address))
    assert enough.calls[0][0] == "allowance"
    assert enough.calls[0][1][0] == Web3ChainClient.checksum(owner)

    eth_only = FakeChain({})
    assert asyncio.run(_router(eth_only, STABLE).has_allowance([ETH_ADDRESS], ["1"], owner, STABLE.address))
    assert eth_only.calls == []


def test_populate_approve_targets_router_with_exact_or_max_amount():
    chain = FakeChain({})
    router = _router(chain, STABLE)
    owner = "0x1111111111111111111111111111111111111111"

    exact = asyncio.run(router.populate_approve(USDC, "1000", False, owner))
    unlimited = asyncio.run(router.populate_approve(USDC, "1000", True, owner))

    token = chain.contract(USDC, ERC20_ABI)
    _, exact_args = token.decode_function_input(exact[0].data)
    _, max_args = token.decode_function_input(unlimited[0].data)
    assert exact[0].to == USDC
    assert exact_args["spender"].lower() == router.router_address.lower()
    assert exact_args["amount"] == 1_000_000_000
    assert max_args["amount"] == MAX_UINT256
    assert asyncio.run(router.populate_approve(ETH_ADDRESS, "1", False, owner)) == []
