from __future__ import annotations

from typing import Protocol

from app.application.dto.aggregator import AggregatorConfig, ProviderQuote, QuoteStrategy, SwapParams


class AggregatorPort(Protocol):
    async def get_quote(
        self,
        config: AggregatorConfig,
        swap: SwapParams,
        strategy: QuoteStrategy,
    ) -> ProviderQuote | None:
        ...
