from __future__ import annotations

import logging
import time

from fastapi import APIRouter, Depends, HTTPException, Request

from app.api.deps import (
    get_chain_registry,
    get_compare_quotes_use_case,
    get_error_reporter,
    get_swap_quote_use_case,
)
from app.api.schemas.quote import (
    ApprovalResponse,
    CompareResponse,
    CurveQuoteResponse,
    RouteStepResponse,
    SwapQuoteResponse,
)
from app.application.ports.error_reporter_port import ErrorReporterPort
from app.application.use_cases.compare_quotes import CompareQuotesUseCase
from app.application.use_cases.get_swap_quote import GetSwapQuoteUseCase
from app.domain.entities.quote import CurveQuote, QuoteRequest, SwapQuote
from app.domain.exceptions import DomainError, UnsupportedChainError, ValidationError
from app.domain.services.chain_registry import ChainRegistry
from app.domain.services.quote_params import parse_quote_params


logger = logging.getLogger(__name__)

router = APIRouter()


def _str_or_none(value: int | None) -> str | None:
    return str(value) if value is not None else None


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _parse(request: Request, chains: ChainRegistry) -> QuoteRequest:
    try:
        return parse_quote_params(dict(request.query_params), registry=chains)
    except (ValidationError, UnsupportedChainError) as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


def to_swap_quote_response(quote: SwapQuote) -> SwapQuoteResponse:
    return SwapQuoteResponse(
        chain_id=quote.chain_id,
        from_=quote.from_token,
        from_symbol=quote.from_symbol,
        to=quote.to_token,
        to_symbol=quote.to_symbol,
        amount=quote.amount,
        output_amount=quote.output_amount,
        output_amount_raw=str(quote.output_amount_raw),
        input_amount_raw=str(quote.input_amount_raw),
        provider=quote.provider,
        slippage_bps=quote.slippage_bps,
        gas_used=str(quote.gas_used),
        router_address=quote.router_address,
        router_calldata=quote.router_calldata,
        router_value=_str_or_none(quote.router_value),
        approval=(
            ApprovalResponse(token=quote.approval.token, spender=quote.approval.spender)
            if quote.approval is not None
            else None
        ),
    )


def to_curve_quote_response(quote: CurveQuote) -> CurveQuoteResponse:
    return CurveQuoteResponse(
        source=quote.source,
        from_=quote.from_token,
        from_symbol=quote.from_symbol,
        to=quote.to_token,
        to_symbol=quote.to_symbol,
        amount=quote.amount,
        output_amount=quote.output_amount,
        route=[
            RouteStepResponse(
                pool_id=step.pool_id,
                pool_name=step.pool_name,
                pool_address=step.pool_address,
                input_coin_address=step.input_coin_address,
                output_coin_address=step.output_coin_address,
            )
            for step in quote.route
        ],
        route_symbols=quote.route_symbols,
        router_address=quote.router_address,
        router_calldata=quote.router_calldata,
        gas_used=_str_or_none(quote.gas_used),
        approval_target=quote.approval_target,
        approval_calldata=quote.approval_calldata,
    )


@router.get("/quote", response_model=SwapQuoteResponse, response_model_exclude_none=True)
async def get_quote(
    request: Request,
    chains: ChainRegistry = Depends(get_chain_registry),
    use_case: GetSwapQuoteUseCase = Depends(get_swap_quote_use_case),
    reporter: ErrorReporterPort = Depends(get_error_reporter),
):
    command = _parse(request, chains)
    started = time.perf_counter()
    try:
        result = await use_case.execute(command)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except DomainError as exc:
        logger.warning(
            "quotes_router: quote_failed chain_id=%s from=%s to=%s kind=%s duration_ms=%s error=%s",
            command.chain_id,
            command.from_token,
            command.to_token,
            exc.kind,
            _elapsed_ms(started),
            exc,
        )
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except Exception as exc:
        reporter.capture(exc, {"route": "/quote", "chain_id": command.chain_id})
        raise HTTPException(status_code=500, detail=str(exc) or "Unknown error") from exc

    logger.info(
        "quotes_router: quote_ok chain_id=%s from=%s to=%s amount=%s output=%s provider=%s duration_ms=%s",
        command.chain_id,
        result.from_symbol or command.from_token,
        result.to_symbol or command.to_token,
        command.amount,
        result.output_amount,
        result.provider,
        _elapsed_ms(started),
    )
    return to_swap_quote_response(result)


@router.get("/compare", response_model=CompareResponse)
async def compare_quotes(
    request: Request,
    chains: ChainRegistry = Depends(get_chain_registry),
    use_case: CompareQuotesUseCase = Depends(get_compare_quotes_use_case),
    reporter: ErrorReporterPort = Depends(get_error_reporter),
):
    command = _parse(request, chains)
    started = time.perf_counter()
    try:
        result = await use_case.execute(command)
    except Exception as exc:
        reporter.capture(exc, {"route": "/compare", "chain_id": command.chain_id})
        raise HTTPException(status_code=500, detail=str(exc) or "Unknown error") from exc

    logger.info(
        "quotes_router: compare_ok chain_id=%s from=%s to=%s amount=%s recommendation=%s duration_ms=%s",
        command.chain_id,
        command.from_token,
        command.to_token,
        command.amount,
        result.recommendation,
        _elapsed_ms(started),
    )
    return CompareResponse(
        primary=to_swap_quote_response(result.primary) if result.primary else None,
        primary_error=result.primary_error,
        primary_error_kind=result.primary_error_kind,
        secondary=to_curve_quote_response(result.secondary) if result.secondary else None,
        secondary_error=result.secondary_error,
        secondary_error_kind=result.secondary_error_kind,
        recommendation=result.recommendation,
        reason=result.reason,
        gas_price_gwei=result.gas_price_gwei,
    )
