from __future__ import annotations

from typing import Any, Protocol


class ChainClientPort(Protocol):
    async def read_contract(self, address: str, abi: list[dict], function_name: str, *args: Any) -> Any:
        ...

    async def estimate_gas(self, tx: dict[str, Any]) -> int:
        ...

    async def get_gas_price(self) -> int:
        ...


class ChainClientProviderPort(Protocol):
    def get_client(self, chain_id: int) -> ChainClientPort:
        ...
