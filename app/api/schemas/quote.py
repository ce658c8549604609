from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ApprovalResponse(BaseModel):
    token: str
    spender: str


class SwapQuoteResponse(BaseModel):
    chain_id: int
    from_: str = Field(..., alias="from")
    from_symbol: str
    to: str
    to_symbol: str
    amount: str
    output_amount: str
    output_amount_raw: str = Field(..., description="Raw output in the token's smallest unit.")
    input_amount_raw: str
    provider: str
    slippage_bps: int
    gas_used: str
    router_address: str
    router_calldata: str
    router_value: str | None = None
    approval: ApprovalResponse | None = None

    model_config = ConfigDict(populate_by_name=True)


class RouteStepResponse(BaseModel):
    pool_id: str
    pool_name: str
    pool_address: str
    input_coin_address: str
    output_coin_address: str


class CurveQuoteResponse(BaseModel):
    source: str = "curve"
    from_: str = Field(..., alias="from")
    from_symbol: str
    to: str
    to_symbol: str
    amount: str
    output_amount: str
    route: list[RouteStepResponse]
    route_symbols: dict[str, str]
    router_address: str
    router_calldata: str
    gas_used: str | None = None
    approval_target: str | None = None
    approval_calldata: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class CompareResponse(BaseModel):
    primary: SwapQuoteResponse | None = None
    primary_error: str | None = None
    primary_error_kind: str | None = None
    secondary: CurveQuoteResponse | None = None
    secondary_error: str | None = None
    secondary_error_kind: str | None = None
    recommendation: str | None = None
    reason: str
    gas_price_gwei: str | None = None


class ChainResponse(BaseModel):
    name: str
    rpc_provider_subdomain: str


class HealthResponse(BaseModel):
    status: str
