from __future__ import annotations

from functools import lru_cache

from app.application.ports.error_reporter_port import ErrorReporterPort
from app.application.use_cases.compare_quotes import CompareQuotesUseCase
from app.application.use_cases.curve_quote import CurveQuoteUseCase
from app.application.use_cases.get_swap_quote import GetSwapQuoteUseCase
from app.domain.services.chain_registry import ChainRegistry
from app.infrastructure.aggregator.engine import AggregatorEngine
from app.infrastructure.aggregator.provider_config import build_aggregator_config
from app.infrastructure.clients.client_registry import ClientRegistry
from app.infrastructure.curve.router import CurveRouter
from app.infrastructure.reporting.logging_error_reporter import LoggingErrorReporter
from app.shared.config import Settings, get_settings


@lru_cache(maxsize=1)
def get_app_settings() -> Settings:
    return get_settings()


@lru_cache(maxsize=1)
def get_client_registry() -> ClientRegistry:
    return ClientRegistry(get_app_settings())


def get_chain_registry() -> ChainRegistry:
    return get_client_registry().chains


@lru_cache(maxsize=1)
def _get_aggregator_engine() -> AggregatorEngine:
    return AggregatorEngine(timeout_seconds=get_app_settings().provider_timeout_seconds)


@lru_cache(maxsize=1)
def get_swap_quote_use_case() -> GetSwapQuoteUseCase:
    return GetSwapQuoteUseCase(
        tokens=get_client_registry().tokens,
        aggregator=_get_aggregator_engine(),
        aggregator_config=build_aggregator_config(get_app_settings()),
    )


@lru_cache(maxsize=1)
def get_curve_quote_use_case() -> CurveQuoteUseCase:
    settings = get_app_settings()
    router = CurveRouter(
        api_base=settings.curve_api_base,
        router_address=settings.curve_router_address,
    )
    return CurveQuoteUseCase(router=router, chain_clients=get_client_registry().clients)


@lru_cache(maxsize=1)
def get_compare_quotes_use_case() -> CompareQuotesUseCase:
    return CompareQuotesUseCase(
        primary=get_swap_quote_use_case(),
        secondary=get_curve_quote_use_case(),
        chain_clients=get_client_registry().clients,
        curve_enabled=get_app_settings().curve_enabled,
    )


@lru_cache(maxsize=1)
def get_error_reporter() -> ErrorReporterPort:
    return LoggingErrorReporter()
