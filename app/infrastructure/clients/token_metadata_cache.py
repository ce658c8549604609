from __future__ import annotations

import logging

from app.application.ports.chain_client_port import ChainClientProviderPort
from app.domain.exceptions import NetworkError, TokenReadError
from app.infrastructure.clients.web3_chain_client import ERC20_ABI


logger = logging.getLogger(__name__)


def _cache_key(chain_id: int, address: str) -> tuple[int, str]:
    return chain_id, address.lower()


class TokenMetadataCache:
    """Append-only ERC-20 decimals/symbol cache keyed by (chain id, lower-cased address).

    Entries are never evicted. Concurrent misses for the same key may both
    read on-chain; they store the same value so no lock is taken.
    """

    def __init__(self, clients: ChainClientProviderPort):
        self._clients = clients
        self._decimals: dict[tuple[int, str], int] = {}
        self._symbols: dict[tuple[int, str], str] = {}

    async def get_decimals(self, chain_id: int, address: str) -> int:
        key = _cache_key(chain_id, address)
        cached = self._decimals.get(key)
        if cached is not None:
            return cached

        client = self._clients.get_client(chain_id)
        decimals = int(await client.read_contract(address, ERC20_ABI, "decimals"))
        self._decimals[key] = decimals
        logger.debug(
            "token_metadata_cache: decimals_cached chain_id=%s token=%s decimals=%s",
            chain_id,
            key[1],
            decimals,
        )
        return decimals

    async def get_symbol(self, chain_id: int, address: str) -> str:
        key = _cache_key(chain_id, address)
        cached = self._symbols.get(key)
        if cached is not None:
            return cached

        client = self._clients.get_client(chain_id)
        try:
            symbol = str(await client.read_contract(address, ERC20_ABI, "symbol"))
        except (TokenReadError, NetworkError) as exc:
            logger.debug(
                "token_metadata_cache: symbol_unavailable chain_id=%s token=%s error=%s",
                chain_id,
                key[1],
                exc,
            )
            symbol = ""
        self._symbols[key] = symbol
        return symbol
