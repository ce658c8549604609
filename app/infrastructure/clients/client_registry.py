from __future__ import annotations

from app.domain.services.chain_registry import ChainRegistry
from app.infrastructure.clients.chain_client_cache import ChainClientCache, ClientFactory
from app.infrastructure.clients.token_metadata_cache import TokenMetadataCache
from app.shared.config import Settings


class ClientRegistry:
    """Owns the per-chain RPC clients and the token metadata built on top of them."""

    def __init__(
        self,
        settings: Settings,
        *,
        chains: ChainRegistry | None = None,
        client_factory: ClientFactory | None = None,
    ):
        self.chains = chains or ChainRegistry()
        self.clients = ChainClientCache(
            settings,
            registry=self.chains,
            client_factory=client_factory,
        )
        self.tokens = TokenMetadataCache(self.clients)
