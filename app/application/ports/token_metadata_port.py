from __future__ import annotations

from typing import Protocol


class TokenMetadataPort(Protocol):
    async def get_decimals(self, chain_id: int, address: str) -> int:
        ...

    async def get_symbol(self, chain_id: int, address: str) -> str:
        ...
