from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Literal, TypeVar


T = TypeVar("T")

Recommendation = Literal["primary", "secondary"]


@dataclass(frozen=True)
class QuoteRequest:
    chain_id: int
    from_token: str
    to_token: str
    amount: str
    slippage_bps: int
    sender: str | None = None


@dataclass(frozen=True)
class TokenApproval:
    token: str
    spender: str


@dataclass(frozen=True)
class SwapQuote:
    chain_id: int
    from_token: str
    from_symbol: str
    to_token: str
    to_symbol: str
    amount: str
    output_amount: str
    output_amount_raw: int
    input_amount_raw: int
    provider: str
    slippage_bps: int
    gas_used: int
    router_address: str
    router_calldata: str
    router_value: int | None = None
    approval: TokenApproval | None = None


@dataclass(frozen=True)
class RouteStep:
    pool_id: str
    pool_name: str
    pool_address: str
    input_coin_address: str
    output_coin_address: str


@dataclass
class CurveQuote:
    from_token: str
    from_symbol: str
    to_token: str
    to_symbol: str
    amount: str
    output_amount: str
    route: list[RouteStep]
    route_symbols: dict[str, str]
    router_address: str
    router_calldata: str
    router_value: int | None = None
    gas_used: int | None = None
    approval_target: str | None = None
    approval_calldata: str | None = None
    source: str = "curve"


@dataclass(frozen=True)
class QuoteOutcome(Generic[T]):
    """Result of one comparison branch: a value or a tagged error."""

    value: T | None = None
    error_kind: str | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T) -> "QuoteOutcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: str, message: str) -> "QuoteOutcome[T]":
        return cls(error_kind=kind, error=message)

    @property
    def ok(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class ComparisonResult:
    primary: SwapQuote | None
    primary_error: str | None
    primary_error_kind: str | None
    secondary: CurveQuote | None
    secondary_error: str | None
    secondary_error_kind: str | None
    recommendation: Recommendation | None
    reason: str
    gas_price_gwei: str | None
