from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ChainConfig:
    id: int
    display_name: str
    rpc_provider_subdomain: str
