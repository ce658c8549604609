from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from app.application.dto.curve import CoinData
from app.domain.exceptions import NetworkError


logger = logging.getLogger(__name__)

CURVE_NETWORK = "ethereum"


@dataclass(frozen=True)
class CurvePool:
    id: str
    name: str
    address: str
    registry: str
    coins: tuple[CoinData, ...]
    tvl_usd: float

    @property
    def pool_type(self) -> int:
        """Router NG pool type for this pool's swap params."""
        if self.registry == "factory-stable-ng":
            return 10
        if self.registry == "factory-twocrypto":
            return 20
        if self.registry == "factory-tricrypto":
            return 30
        if self.registry in ("crypto", "factory-crypto"):
            return 2 if len(self.coins) == 2 else 3
        return 1

    def coin_index(self, address: str) -> int:
        lower = address.lower()
        for index, coin in enumerate(self.coins):
            if coin.address.lower() == lower:
                return index
        raise ValueError(f"{address} is not a coin of pool {self.id}")


def _parse_pool(registry: str, row: dict) -> CurvePool | None:
    address = row.get("address")
    coins_raw = row.get("coins") or []
    if not address or len(coins_raw) < 2:
        return None
    coins = tuple(
        CoinData(
            address=str(coin["address"]),
            symbol=str(coin.get("symbol") or ""),
            decimals=int(coin.get("decimals") or 18),
        )
        for coin in coins_raw
        if coin.get("address")
    )
    return CurvePool(
        id=str(row.get("id") or address),
        name=str(row.get("name") or row.get("id") or address),
        address=str(address),
        registry=registry,
        coins=coins,
        tvl_usd=float(row.get("usdTotal") or 0),
    )


class CurvePoolIndex:
    """Pools loaded from the Curve API, indexed by coin address."""

    def __init__(self):
        self._pools: dict[str, CurvePool] = {}
        self._by_coin: dict[str, list[CurvePool]] = {}
        self._coins: dict[str, CoinData] = {}

    def __len__(self) -> int:
        return len(self._pools)

    def add(self, pool: CurvePool) -> None:
        key = pool.address.lower()
        if key in self._pools:
            return
        self._pools[key] = pool
        for coin in pool.coins:
            coin_key = coin.address.lower()
            self._by_coin.setdefault(coin_key, []).append(pool)
            self._coins.setdefault(coin_key, coin)

    def pool(self, address: str) -> CurvePool | None:
        return self._pools.get(address.lower())

    def pools_with(self, coin: str) -> list[CurvePool]:
        return list(self._by_coin.get(coin.lower(), []))

    def coin(self, address: str) -> CoinData | None:
        return self._coins.get(address.lower())


async def fetch_registry_pools(
    *,
    api_base: str,
    registry: str,
    timeout_seconds: float,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[CurvePool]:
    url = f"{api_base.rstrip('/')}/getPools/{CURVE_NETWORK}/{registry}"
    try:
        async with httpx.AsyncClient(timeout=timeout_seconds, transport=transport) as client:
            response = await client.get(url)
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        raise NetworkError(f"Curve pool list request failed for {registry}: {exc}") from exc

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict) or not isinstance(data.get("poolData") or [], list):
        raise NetworkError(f"Curve pool list for {registry} has an unexpected shape")
    rows = data.get("poolData") or []
    pools = [pool for pool in (_parse_pool(registry, row) for row in rows) if pool is not None]
    logger.info("curve_pools: fetched registry=%s pools=%s", registry, len(pools))
    return pools
