from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

import httpx

from app.application.dto.aggregator import (
    AggregatorConfig,
    ProviderConfig,
    ProviderQuote,
    QuoteStrategy,
    SwapParams,
)
from app.infrastructure.aggregator.providers import ProviderClient, build_provider_client


logger = logging.getLogger(__name__)


class AggregatorEngine:
    """Fans a swap out to every configured provider and picks one answer."""

    def __init__(
        self,
        *,
        timeout_seconds: float = 10.0,
        client_factory: Callable[[ProviderConfig], ProviderClient] = build_provider_client,
        http_factory: Callable[[], httpx.AsyncClient] | None = None,
    ):
        self._timeout_seconds = timeout_seconds
        self._client_factory = client_factory
        self._http_factory = http_factory or (lambda: httpx.AsyncClient(timeout=self._timeout_seconds))

    async def get_quote(
        self,
        config: AggregatorConfig,
        swap: SwapParams,
        strategy: QuoteStrategy = QuoteStrategy.BEST_PRICE,
    ) -> ProviderQuote | None:
        clients = [self._client_factory(provider) for provider in config.providers]
        clients = [client for client in clients if client.supports(swap.chain_id)]
        if not clients:
            logger.info("aggregator_engine: no_providers chain_id=%s", swap.chain_id)
            return None

        started = time.perf_counter()
        async with self._http_factory() as http:
            tasks = {
                asyncio.create_task(self._fetch(client, http, swap)): client.name for client in clients
            }
            try:
                if strategy == QuoteStrategy.FASTEST:
                    quotes = await self._first_success(tasks, config.deadline_seconds)
                else:
                    quotes = await self._all_within_deadline(tasks, config.deadline_seconds)
            finally:
                for task in tasks:
                    if not task.done():
                        task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)

        best = max(quotes, key=lambda quote: quote.output_amount, default=None)
        logger.info(
            "aggregator_engine: quote_done chain_id=%s strategy=%s providers=%s answered=%s best=%s duration_ms=%s",
            swap.chain_id,
            strategy.value,
            len(clients),
            len(quotes),
            best.provider if best else None,
            int((time.perf_counter() - started) * 1000),
        )
        return best

    async def _fetch(
        self, client: ProviderClient, http: httpx.AsyncClient, swap: SwapParams
    ) -> ProviderQuote | None:
        try:
            quote = await client.fetch_quote(http, swap)
        except Exception as exc:
            logger.warning(
                "aggregator_engine: provider_failed provider=%s chain_id=%s error=%s",
                client.name,
                swap.chain_id,
                exc,
            )
            return None
        if quote is not None and quote.output_amount <= 0:
            return None
        return quote

    @staticmethod
    async def _all_within_deadline(
        tasks: dict[asyncio.Task, str], deadline_seconds: float
    ) -> list[ProviderQuote]:
        done, pending = await asyncio.wait(tasks, timeout=deadline_seconds)
        if pending:
            logger.warning(
                "aggregator_engine: deadline_exceeded pending=%s",
                ",".join(sorted(tasks[task] for task in pending)),
            )
        return [task.result() for task in done if task.result() is not None]

    @staticmethod
    async def _first_success(
        tasks: dict[asyncio.Task, str], deadline_seconds: float
    ) -> list[ProviderQuote]:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + deadline_seconds
        pending = set(tasks)
        while pending:
            remaining = deadline - loop.time()
            if remaining <= 0:
                break
            done, pending = await asyncio.wait(
                pending, timeout=remaining, return_when=asyncio.FIRST_COMPLETED
            )
            for task in done:
                if task.result() is not None:
                    return [task.result()]
        return []
