from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from app.application.dto.curve import (
    CURVE_POOL_REGISTRIES_AT_INIT,
    CoinData,
    CurveRouteResult,
    PopulatedTx,
)
from app.domain.entities.quote import RouteStep
from app.domain.exceptions import NoQuoteError, NotInitializedError
from app.domain.services.units import format_units, parse_units
from app.infrastructure.clients.web3_chain_client import ERC20_ABI, Web3ChainClient
from app.infrastructure.curve.pools import CurvePool, CurvePoolIndex, fetch_registry_pools


logger = logging.getLogger(__name__)

CURVE_CHAIN_ID = 1
ETH_ADDRESS = "0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE"
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
MAX_UINT256 = 2**256 - 1
MAX_CANDIDATE_ROUTES = 20
SWAP_TYPE_EXCHANGE = 1

_ROUTE_INPUTS = [
    {"name": "_route", "type": "address[11]"},
    {"name": "_swap_params", "type": "uint256[5][5]"},
    {"name": "_amount", "type": "uint256"},
]

ROUTER_NG_ABI = [
    {
        "inputs": _ROUTE_INPUTS + [{"name": "_pools", "type": "address[5]"}],
        "name": "get_dy",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "inputs": _ROUTE_INPUTS
        + [
            {"name": "_expected", "type": "uint256"},
            {"name": "_pools", "type": "address[5]"},
        ],
        "name": "exchange",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "payable",
        "type": "function",
    },
]


@dataclass(frozen=True)
class _Hop:
    pool: CurvePool
    input_coin: str
    output_coin: str

    def swap_params(self) -> list[int]:
        return [
            self.pool.coin_index(self.input_coin),
            self.pool.coin_index(self.output_coin),
            SWAP_TYPE_EXCHANGE,
            self.pool.pool_type,
            len(self.pool.coins),
        ]


@dataclass(frozen=True)
class _Candidate:
    hops: tuple[_Hop, ...]

    @property
    def liquidity(self) -> float:
        return min(hop.pool.tvl_usd for hop in self.hops)

    def route_args(self) -> tuple[list[str], list[list[int]], list[str]]:
        route = [self.hops[0].input_coin]
        for hop in self.hops:
            route.extend([hop.pool.address, hop.output_coin])
        route += [ZERO_ADDRESS] * (11 - len(route))
        route = [Web3ChainClient.checksum(address) for address in route]
        params = [hop.swap_params() for hop in self.hops]
        params += [[0, 0, 0, 0, 0]] * (5 - len(params))
        return route, params, [ZERO_ADDRESS] * 5

    def steps(self) -> list[RouteStep]:
        return [
            RouteStep(
                pool_id=hop.pool.id,
                pool_name=hop.pool.name,
                pool_address=hop.pool.address,
                input_coin_address=hop.input_coin,
                output_coin_address=hop.output_coin,
            )
            for hop in self.hops
        ]


def build_candidate_routes(
    index: CurvePoolIndex, input_coin: str, output_coin: str, limit: int = MAX_CANDIDATE_ROUTES
) -> list[_Candidate]:
    """Direct pools first, then two-hop paths through one intermediate coin, by pool TVL."""
    src, dst = input_coin.lower(), output_coin.lower()
    direct: list[_Candidate] = []
    two_hop: list[_Candidate] = []

    for pool in index.pools_with(src):
        coins = [coin.address for coin in pool.coins]
        if any(coin.lower() == dst for coin in coins):
            direct.append(_Candidate((_Hop(pool, input_coin, output_coin),)))
        for middle in coins:
            if middle.lower() in (src, dst):
                continue
            for second in index.pools_with(dst):
                if second.address.lower() == pool.address.lower():
                    continue
                if not any(coin.address.lower() == middle.lower() for coin in second.coins):
                    continue
                two_hop.append(
                    _Candidate((_Hop(pool, input_coin, middle), _Hop(second, middle, output_coin)))
                )

    direct.sort(key=lambda candidate: candidate.liquidity, reverse=True)
    two_hop.sort(key=lambda candidate: candidate.liquidity, reverse=True)
    return (direct + two_hop)[:limit]


class CurveRouter:
    """Best-route search and transaction building over Curve Router NG on Ethereum."""

    def __init__(self, *, api_base: str, router_address: str, timeout_seconds: float = 20.0):
        self.api_base = api_base
        self.router_address = router_address
        self._timeout_seconds = timeout_seconds
        self._index = CurvePoolIndex()
        self._chain: Web3ChainClient | None = None

    @property
    def chain(self) -> Web3ChainClient:
        if self._chain is None:
            raise NotInitializedError("Curve router not connected to an RPC endpoint")
        return self._chain

    async def init(self, rpc_url: str) -> None:
        self._chain = Web3ChainClient(CURVE_CHAIN_ID, rpc_url)
        await asyncio.gather(*(self.fetch_pools(registry) for registry in CURVE_POOL_REGISTRIES_AT_INIT))

    async def fetch_pools(self, registry: str) -> None:
        pools = await fetch_registry_pools(
            api_base=self.api_base,
            registry=registry,
            timeout_seconds=self._timeout_seconds,
        )
        for pool in pools:
            self._index.add(pool)

    def _decimals(self, coin: str) -> int:
        if coin.lower() == ETH_ADDRESS.lower():
            return 18
        data = self._index.coin(coin)
        if data is None:
            raise NoQuoteError(f"Coin {coin} is not in any Curve pool")
        return data.decimals

    async def _quote_candidate(self, candidate: _Candidate, raw_amount: int) -> int:
        route, params, pools = candidate.route_args()
        return int(
            await self.chain.read_contract(
                self.router_address, ROUTER_NG_ABI, "get_dy", route, params, raw_amount, pools
            )
        )

    async def _best_route(self, input_coin: str, output_coin: str, amount: str) -> tuple[_Candidate, int, int]:
        candidates = build_candidate_routes(self._index, input_coin, output_coin)
        if not candidates:
            raise NoQuoteError(f"No Curve route from {input_coin} to {output_coin}")

        raw_amount = parse_units(amount, self._decimals(input_coin))
        outputs = await asyncio.gather(
            *(self._quote_candidate(candidate, raw_amount) for candidate in candidates),
            return_exceptions=True,
        )
        scored = [
            (candidate, output)
            for candidate, output in zip(candidates, outputs)
            if isinstance(output, int) and output > 0
        ]
        failed = sum(1 for output in outputs if isinstance(output, BaseException))
        if failed:
            logger.debug("curve_router: candidate_quotes_failed failed=%s total=%s", failed, len(candidates))
        if not scored:
            raise NoQuoteError(f"No Curve route from {input_coin} to {output_coin} returned output")

        best, best_output = max(scored, key=lambda item: item[1])
        return best, raw_amount, best_output

    async def get_best_route_and_output(
        self, input_coin: str, output_coin: str, amount: str
    ) -> CurveRouteResult:
        candidate, raw_amount, raw_output = await self._best_route(input_coin, output_coin, amount)
        return CurveRouteResult(
            route=candidate.steps(),
            output=format_units(raw_output, self._decimals(output_coin)),
            input_amount_raw=raw_amount,
            output_amount_raw=raw_output,
        )

    def _candidate_for(self, steps: list[RouteStep]) -> _Candidate:
        hops = []
        for step in steps:
            pool = self._index.pool(step.pool_address)
            if pool is None:
                raise NoQuoteError(f"Curve pool {step.pool_address} is not loaded")
            hops.append(_Hop(pool, step.input_coin_address, step.output_coin_address))
        if not hops:
            raise NoQuoteError("Curve route is empty")
        return _Candidate(tuple(hops))

    async def populate_swap(self, best: CurveRouteResult, slippage_pct: float = 0.5) -> PopulatedTx:
        """Encode `exchange` for a route already quoted, with `min_dy` cut by `slippage_pct`."""
        candidate = self._candidate_for(best.route)
        raw_amount = best.input_amount_raw
        min_output = best.output_amount_raw * int(round((100 - slippage_pct) * 100)) // 10_000
        route, params, pools = candidate.route_args()
        router = self.chain.contract(self.router_address, ROUTER_NG_ABI)
        data = router.functions.exchange(
            route, params, raw_amount, min_output, pools
        )._encode_transaction_data()
        input_coin = candidate.hops[0].input_coin
        value = raw_amount if input_coin.lower() == ETH_ADDRESS.lower() else None
        return PopulatedTx(to=self.router_address, data=data, value=value)

    async def has_allowance(
        self, coins: list[str], amounts: list[str], owner: str, spender: str
    ) -> bool:
        for coin, amount in zip(coins, amounts):
            if coin.lower() == ETH_ADDRESS.lower():
                continue
            required = parse_units(amount, self._decimals(coin))
            allowance = int(
                await self.chain.read_contract(
                    coin,
                    ERC20_ABI,
                    "allowance",
                    Web3ChainClient.checksum(owner),
                    Web3ChainClient.checksum(spender),
                )
            )
            if allowance < required:
                return False
        return True

    async def populate_approve(
        self, coin: str, amount: str, is_max: bool, owner: str
    ) -> list[PopulatedTx]:
        if coin.lower() == ETH_ADDRESS.lower():
            return []
        raw_amount = MAX_UINT256 if is_max else parse_units(amount, self._decimals(coin))
        token = self.chain.contract(coin, ERC20_ABI)
        data = token.functions.approve(
            Web3ChainClient.checksum(self.router_address), raw_amount
        )._encode_transaction_data()
        logger.debug("curve_router: approve_populated coin=%s owner=%s max=%s", coin, owner, is_max)
        return [PopulatedTx(to=coin, data=data)]

    async def get_coins_data(self, coins: list[str]) -> list[CoinData]:
        result: list[CoinData] = []
        for coin in coins:
            known = self._index.coin(coin)
            if known is not None and known.symbol:
                result.append(known)
                continue
            symbol, decimals = await asyncio.gather(
                self.chain.read_contract(coin, ERC20_ABI, "symbol"),
                self.chain.read_contract(coin, ERC20_ABI, "decimals"),
            )
            result.append(CoinData(address=coin, symbol=str(symbol), decimals=int(decimals)))
        return result
