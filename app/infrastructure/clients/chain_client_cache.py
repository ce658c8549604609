from __future__ import annotations

import logging
from collections.abc import Callable

from app.application.ports.chain_client_port import ChainClientPort
from app.domain.services.chain_registry import ChainRegistry
from app.infrastructure.clients.web3_chain_client import Web3ChainClient
from app.shared.config import Settings, resolve_rpc_url


logger = logging.getLogger(__name__)

ClientFactory = Callable[[int, str], ChainClientPort]


class ChainClientCache:
    """One RPC client per chain id, created on first use and kept for the process lifetime."""

    def __init__(
        self,
        settings: Settings,
        *,
        registry: ChainRegistry | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self._settings = settings
        self._registry = registry or ChainRegistry()
        self._client_factory = client_factory or Web3ChainClient
        self._clients: dict[int, ChainClientPort] = {}

    def get_client(self, chain_id: int) -> ChainClientPort:
        cached = self._clients.get(chain_id)
        if cached is not None:
            return cached

        self._registry.require(chain_id)
        rpc_url = resolve_rpc_url(self._settings, chain_id)
        client = self._client_factory(chain_id, rpc_url)
        self._clients[chain_id] = client
        logger.debug(
            "chain_client_cache: client_created chain_id=%s override=%s",
            chain_id,
            chain_id in self._settings.rpc_url_overrides,
        )
        return client

    def rpc_url(self, chain_id: int) -> str:
        self._registry.require(chain_id)
        return resolve_rpc_url(self._settings, chain_id)
