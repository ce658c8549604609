from __future__ import annotations

from dataclasses import dataclass

from app.domain.entities.quote import RouteStep


CURVE_POOL_REGISTRIES_AT_INIT = ("main", "crypto")

CURVE_FACTORY_REGISTRIES = (
    "factory",
    "factory-crvusd",
    "factory-crypto",
    "factory-twocrypto",
    "factory-tricrypto",
    "factory-stable-ng",
)


@dataclass(frozen=True)
class CurveRouteResult:
    route: list[RouteStep]
    output: str
    input_amount_raw: int = 0
    output_amount_raw: int = 0


@dataclass(frozen=True)
class PopulatedTx:
    to: str
    data: str
    value: int | None = None


@dataclass(frozen=True)
class CoinData:
    address: str
    symbol: str
    decimals: int
