from __future__ import annotations

import asyncio
import logging

from app.application.dto.curve import CURVE_FACTORY_REGISTRIES
from app.application.ports.chain_client_port import ChainClientProviderPort
from app.application.ports.curve_router_port import CurveRouterPort
from app.domain.entities.quote import CurveQuote
from app.domain.exceptions import DomainError, NoQuoteError, NotInitializedError
from app.domain.services.quote_params import is_valid_address


logger = logging.getLogger(__name__)

CURVE_CHAIN_ID = 1


class CurveQuoteUseCase:
    """Quotes swaps through the Curve router on Ethereum.

    Pool data is loaded once by `initialize`. Concurrent callers share one
    load task; a failed load is forgotten so the next call retries it.
    """

    def __init__(
        self,
        *,
        router: CurveRouterPort,
        chain_clients: ChainClientProviderPort,
        factory_registries: tuple[str, ...] = CURVE_FACTORY_REGISTRIES,
    ):
        self._router = router
        self._chain_clients = chain_clients
        self._factory_registries = factory_registries
        self._initialized = False
        self._init_task: asyncio.Task | None = None
        self._init_lock = asyncio.Lock()
        self._symbols: dict[str, str] = {}

    @staticmethod
    def is_supported(chain_id: int) -> bool:
        return chain_id == CURVE_CHAIN_ID

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self, rpc_url: str) -> None:
        if self._initialized:
            return
        async with self._init_lock:
            if self._init_task is None:
                self._init_task = asyncio.create_task(self._load(rpc_url))
            task = self._init_task
        try:
            await asyncio.shield(task)
        except BaseException:
            if task.done():
                async with self._init_lock:
                    if self._init_task is task:
                        self._init_task = None
            raise
        self._initialized = True

    async def _load(self, rpc_url: str) -> None:
        await self._router.init(rpc_url)
        await asyncio.gather(
            *(self._router.fetch_pools(registry) for registry in self._factory_registries)
        )
        logger.info(
            "curve_quote: initialized registries=%s",
            ",".join(self._factory_registries),
        )

    async def _symbol(self, address: str) -> str:
        key = address.lower()
        cached = self._symbols.get(key)
        if cached is not None:
            return cached
        try:
            coins = await self._router.get_coins_data([address])
            symbol = coins[0].symbol if coins else ""
        except (DomainError, ValueError) as exc:
            logger.debug("curve_quote: symbol_unavailable token=%s error=%s", key, exc)
            symbol = ""
        self._symbols[key] = symbol
        return symbol

    async def quote(
        self,
        from_token: str,
        to_token: str,
        amount: str,
        sender: str | None = None,
    ) -> CurveQuote:
        if not self._initialized:
            raise NotInitializedError("Curve API not initialized")

        best, from_symbol, to_symbol = await asyncio.gather(
            self._router.get_best_route_and_output(from_token, to_token, amount),
            self._symbol(from_token),
            self._symbol(to_token),
        )

        route_tokens: list[str] = []
        for step in best.route:
            for address in (step.input_coin_address, step.output_coin_address):
                if address and address.lower() not in route_tokens:
                    route_tokens.append(address.lower())
        symbols = await asyncio.gather(*(self._symbol(address) for address in route_tokens))
        route_symbols = {address: symbol for address, symbol in zip(route_tokens, symbols) if symbol}

        swap_tx = await self._router.populate_swap(best)
        if not swap_tx.to or not swap_tx.data:
            raise NoQuoteError("Failed to generate Curve swap transaction")

        result = CurveQuote(
            from_token=from_token,
            from_symbol=from_symbol,
            to_token=to_token,
            to_symbol=to_symbol,
            amount=amount,
            output_amount=best.output,
            route=best.route,
            route_symbols=route_symbols,
            router_address=swap_tx.to,
            router_calldata=swap_tx.data,
            router_value=swap_tx.value,
        )

        if sender and is_valid_address(sender):
            await self._estimate_gas(result, sender)
            await self._check_approval(result, sender)
        return result

    async def _estimate_gas(self, result: CurveQuote, sender: str) -> None:
        try:
            client = self._chain_clients.get_client(CURVE_CHAIN_ID)
            result.gas_used = await client.estimate_gas(
                {
                    "from": sender,
                    "to": result.router_address,
                    "data": result.router_calldata,
                    "value": result.router_value or 0,
                }
            )
        except DomainError as exc:
            logger.warning("curve_quote: gas_estimate_skipped sender=%s error=%s", sender, exc)

    async def _check_approval(self, result: CurveQuote, sender: str) -> None:
        try:
            approved = await self._router.has_allowance(
                [result.from_token], [result.amount], sender, result.router_address
            )
            if approved:
                return
            approve_txs = await self._router.populate_approve(
                result.from_token, result.amount, False, sender
            )
        except DomainError as exc:
            logger.warning("curve_quote: approval_check_skipped sender=%s error=%s", sender, exc)
            return
        if approve_txs and approve_txs[0].to and approve_txs[0].data:
            result.approval_target = approve_txs[0].to
            result.approval_calldata = approve_txs[0].data
