from __future__ import annotations

from typing import Protocol

from app.application.dto.curve import CoinData, CurveRouteResult, PopulatedTx


class CurveRouterPort(Protocol):
    async def init(self, rpc_url: str) -> None:
        ...

    async def fetch_pools(self, registry: str) -> None:
        ...

    async def get_best_route_and_output(
        self, input_coin: str, output_coin: str, amount: str
    ) -> CurveRouteResult:
        ...

    async def populate_swap(self, best: CurveRouteResult, slippage_pct: float = 0.5) -> PopulatedTx:
        ...

    async def has_allowance(
        self, coins: list[str], amounts: list[str], owner: str, spender: str
    ) -> bool:
        ...

    async def populate_approve(
        self, coin: str, amount: str, is_max: bool, owner: str
    ) -> list[PopulatedTx]:
        ...

    async def get_coins_data(self, coins: list[str]) -> list[CoinData]:
        ...
