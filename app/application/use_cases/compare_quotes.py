from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

from app.application.ports.chain_client_port import ChainClientProviderPort
from app.application.use_cases.curve_quote import CurveQuoteUseCase
from app.application.use_cases.get_swap_quote import GetSwapQuoteUseCase
from app.domain.entities.quote import (
    ComparisonResult,
    CurveQuote,
    QuoteOutcome,
    QuoteRequest,
    SwapQuote,
)
from app.domain.exceptions import DomainError
from app.domain.services.recommendation import recommend


logger = logging.getLogger(__name__)

CURVE_UNSUPPORTED_CHAIN = "Curve only supports Ethereum (chainId 1)"
CURVE_DISABLED = "Curve quotes are disabled"


def _failure(exc: Exception) -> QuoteOutcome:
    kind = exc.kind if isinstance(exc, DomainError) else "unexpected"
    return QuoteOutcome.failure(kind, str(exc) or "Unknown error")


def format_gwei(wei: int) -> str:
    return f"{Decimal(wei) / Decimal(10**9):.4f}"


class CompareQuotesUseCase:
    """Runs the aggregator and Curve side by side and recommends one."""

    def __init__(
        self,
        *,
        primary: GetSwapQuoteUseCase,
        secondary: CurveQuoteUseCase,
        chain_clients: ChainClientProviderPort,
        curve_enabled: bool,
    ):
        self._primary = primary
        self._secondary = secondary
        self._chain_clients = chain_clients
        self._curve_enabled = curve_enabled

    async def execute(self, request: QuoteRequest) -> ComparisonResult:
        primary, secondary, gas_price_gwei = await asyncio.gather(
            self._primary_outcome(request),
            self._secondary_outcome(request),
            self._gas_price_gwei(request.chain_id),
        )
        decision = recommend(primary.value, secondary.value, gas_price_gwei)
        logger.info(
            "compare_quotes: done chain_id=%s primary_ok=%s secondary_ok=%s recommendation=%s",
            request.chain_id,
            primary.ok,
            secondary.ok,
            decision.recommendation,
        )
        return ComparisonResult(
            primary=primary.value,
            primary_error=primary.error,
            primary_error_kind=primary.error_kind,
            secondary=secondary.value,
            secondary_error=secondary.error,
            secondary_error_kind=secondary.error_kind,
            recommendation=decision.recommendation,
            reason=decision.reason,
            gas_price_gwei=gas_price_gwei,
        )

    async def _primary_outcome(self, request: QuoteRequest) -> QuoteOutcome[SwapQuote]:
        try:
            return QuoteOutcome.success(await self._primary.execute(request))
        except Exception as exc:
            logger.warning(
                "compare_quotes: primary_failed chain_id=%s error=%s", request.chain_id, exc
            )
            return _failure(exc)

    async def _secondary_outcome(self, request: QuoteRequest) -> QuoteOutcome[CurveQuote]:
        if not self._curve_enabled:
            return QuoteOutcome.failure("unavailable", CURVE_DISABLED)
        if not self._secondary.is_supported(request.chain_id):
            return QuoteOutcome.failure("unavailable", CURVE_UNSUPPORTED_CHAIN)
        try:
            quote = await self._secondary.quote(
                request.from_token, request.to_token, request.amount, request.sender
            )
        except Exception as exc:
            logger.warning(
                "compare_quotes: secondary_failed chain_id=%s error=%s", request.chain_id, exc
            )
            return _failure(exc)
        return QuoteOutcome.success(quote)

    async def _gas_price_gwei(self, chain_id: int) -> str | None:
        try:
            client = self._chain_clients.get_client(chain_id)
            return format_gwei(await client.get_gas_price())
        except DomainError as exc:
            logger.warning("compare_quotes: gas_price_unavailable chain_id=%s error=%s", chain_id, exc)
            return None
