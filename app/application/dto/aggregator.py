from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ProviderKind(str, Enum):
    ZEROX = "zerox"
    KYBERSWAP = "kyberswap"
    ODOS = "odos"
    LIFI = "lifi"
    VELORA = "velora"
    RELAY = "relay"


class QuoteStrategy(str, Enum):
    BEST_PRICE = "best_price"
    FASTEST = "fastest"


@dataclass(frozen=True)
class ProviderConfig:
    kind: ProviderKind
    api_key: str | None = None
    app_id: str | None = None


@dataclass(frozen=True)
class AggregatorConfig:
    providers: list[ProviderConfig] = field(default_factory=list)
    deadline_seconds: float = 15.0


@dataclass(frozen=True)
class SwapParams:
    chain_id: int
    input_token: str
    output_token: str
    input_amount: int
    input_decimals: int
    output_decimals: int
    slippage_bps: int
    swapper_account: str
    mode: str = "exactIn"


@dataclass(frozen=True)
class TxData:
    to: str
    data: str
    value: int | None = None


@dataclass(frozen=True)
class ProviderApproval:
    token: str
    spender: str


@dataclass(frozen=True)
class ProviderQuote:
    provider: str
    input_amount: int
    output_amount: int
    gas_used: int
    tx: TxData
    approval: ProviderApproval | None = None
