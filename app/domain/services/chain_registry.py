from __future__ import annotations

from app.domain.entities.chain import ChainConfig
from app.domain.exceptions import UnsupportedChainError


SUPPORTED_CHAINS: dict[int, ChainConfig] = {
    cfg.id: cfg
    for cfg in (
        ChainConfig(id=1, display_name="Ethereum", rpc_provider_subdomain="eth-mainnet"),
        ChainConfig(id=8453, display_name="Base", rpc_provider_subdomain="base-mainnet"),
        ChainConfig(id=42161, display_name="Arbitrum", rpc_provider_subdomain="arb-mainnet"),
        ChainConfig(id=10, display_name="Optimism", rpc_provider_subdomain="opt-mainnet"),
        ChainConfig(id=137, display_name="Polygon", rpc_provider_subdomain="polygon-mainnet"),
        ChainConfig(id=56, display_name="BSC", rpc_provider_subdomain="bnb-mainnet"),
        ChainConfig(id=43114, display_name="Avalanche", rpc_provider_subdomain="avax-mainnet"),
    )
}


class ChainRegistry:
    def __init__(self, chains: dict[int, ChainConfig] | None = None):
        self._chains = dict(SUPPORTED_CHAINS if chains is None else chains)

    def get(self, chain_id: int) -> ChainConfig | None:
        return self._chains.get(chain_id)

    def require(self, chain_id: int) -> ChainConfig:
        chain = self._chains.get(chain_id)
        if chain is None:
            raise UnsupportedChainError(
                f"Unsupported chain: {chain_id}. Supported: {self.supported_ids_label()}"
            )
        return chain

    def is_supported(self, chain_id: int) -> bool:
        return chain_id in self._chains

    def list(self) -> list[ChainConfig]:
        return list(self._chains.values())

    def supported_ids_label(self) -> str:
        return ", ".join(str(chain_id) for chain_id in self._chains)
