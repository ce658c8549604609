from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_chain_registry
from app.api.schemas.quote import ChainResponse, HealthResponse
from app.domain.services.chain_registry import ChainRegistry


router = APIRouter()


@router.get("/chains", response_model=dict[str, ChainResponse])
def list_chains(chains: ChainRegistry = Depends(get_chain_registry)):
    return {
        str(chain.id): ChainResponse(
            name=chain.display_name,
            rpc_provider_subdomain=chain.rpc_provider_subdomain,
        )
        for chain in chains.list()
    }


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(status="ok")
