from __future__ import annotations

import asyncio
import logging
from dataclasses import replace

from app.application.dto.aggregator import (
    AggregatorConfig,
    ProviderQuote,
    QuoteStrategy,
    SwapParams,
)
from app.application.ports.aggregator_port import AggregatorPort
from app.application.ports.token_metadata_port import TokenMetadataPort
from app.domain.entities.quote import QuoteRequest, SwapQuote, TokenApproval
from app.domain.exceptions import NoQuoteError
from app.domain.services.units import format_units, parse_units


logger = logging.getLogger(__name__)

FALLBACK_ACCOUNT = "0xEe7aE85f2Fe2239E27D9c1E23fFFe168D63b4055"


class GetSwapQuoteUseCase:
    """Best exact-input quote across the configured aggregation providers."""

    def __init__(
        self,
        *,
        tokens: TokenMetadataPort,
        aggregator: AggregatorPort,
        aggregator_config: AggregatorConfig,
    ):
        self._tokens = tokens
        self._aggregator = aggregator
        self._aggregator_config = aggregator_config

    async def execute(self, request: QuoteRequest) -> SwapQuote:
        from_decimals, to_decimals, from_symbol, to_symbol = await asyncio.gather(
            self._tokens.get_decimals(request.chain_id, request.from_token),
            self._tokens.get_decimals(request.chain_id, request.to_token),
            self._tokens.get_symbol(request.chain_id, request.from_token),
            self._tokens.get_symbol(request.chain_id, request.to_token),
        )
        input_amount = parse_units(request.amount, from_decimals)

        swap = SwapParams(
            chain_id=request.chain_id,
            input_token=request.from_token,
            output_token=request.to_token,
            input_amount=input_amount,
            input_decimals=from_decimals,
            output_decimals=to_decimals,
            slippage_bps=request.slippage_bps,
            swapper_account=request.sender or FALLBACK_ACCOUNT,
        )
        quote = await self._aggregator.get_quote(
            self._aggregator_config, swap, QuoteStrategy.BEST_PRICE
        )
        if quote is None and request.sender:
            logger.info(
                "get_swap_quote: sender_retry chain_id=%s sender=%s fallback=%s",
                request.chain_id,
                request.sender,
                FALLBACK_ACCOUNT,
            )
            quote = await self._aggregator.get_quote(
                self._aggregator_config,
                replace(swap, swapper_account=FALLBACK_ACCOUNT),
                QuoteStrategy.BEST_PRICE,
            )
        if quote is None:
            raise NoQuoteError("No providers returned a successful quote")

        return _to_swap_quote(
            request,
            quote,
            from_symbol=from_symbol,
            to_symbol=to_symbol,
            to_decimals=to_decimals,
        )


def _to_swap_quote(
    request: QuoteRequest,
    quote: ProviderQuote,
    *,
    from_symbol: str,
    to_symbol: str,
    to_decimals: int,
) -> SwapQuote:
    approval = None
    if quote.approval is not None:
        approval = TokenApproval(token=quote.approval.token, spender=quote.approval.spender)
    return SwapQuote(
        chain_id=request.chain_id,
        from_token=request.from_token,
        from_symbol=from_symbol,
        to_token=request.to_token,
        to_symbol=to_symbol,
        amount=request.amount,
        output_amount=format_units(quote.output_amount, to_decimals),
        output_amount_raw=quote.output_amount,
        input_amount_raw=quote.input_amount,
        provider=quote.provider,
        slippage_bps=request.slippage_bps,
        gas_used=quote.gas_used,
        router_address=quote.tx.to,
        router_calldata=quote.tx.data,
        router_value=quote.tx.value,
        approval=approval,
    )
