from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from app.application.dto.aggregator import (
    ProviderApproval,
    ProviderConfig,
    ProviderKind,
    ProviderQuote,
    SwapParams,
    TxData,
)


NATIVE_TOKEN = "0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee"

CHAIN_SLUGS = {
    1: "ethereum",
    8453: "base",
    42161: "arbitrum",
    10: "optimism",
    137: "polygon",
    56: "bsc",
    43114: "avalanche",
}


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    text = str(value).strip()
    return int(text, 16) if text.lower().startswith("0x") else int(text)


def is_native(token: str) -> bool:
    return token.lower() == NATIVE_TOKEN


def _approval_for(swap: SwapParams, spender: str | None) -> ProviderApproval | None:
    if not spender or is_native(swap.input_token):
        return None
    return ProviderApproval(token=swap.input_token, spender=spender)


class ProviderClient(ABC):
    kind: ProviderKind
    supported_chains: frozenset[int] = frozenset(CHAIN_SLUGS)

    def __init__(self, config: ProviderConfig):
        self.config = config

    @property
    def name(self) -> str:
        return self.kind.value

    def supports(self, chain_id: int) -> bool:
        return chain_id in self.supported_chains

    @abstractmethod
    async def fetch_quote(self, http: httpx.AsyncClient, swap: SwapParams) -> ProviderQuote | None:
        ...


class ZeroXProvider(ProviderClient):
    kind = ProviderKind.ZEROX
    api_base = "https://api.0x.org"

    async def fetch_quote(self, http: httpx.AsyncClient, swap: SwapParams) -> ProviderQuote | None:
        response = await http.get(
            f"{self.api_base}/swap/allowance-holder/quote",
            params={
                "chainId": swap.chain_id,
                "sellToken": swap.input_token,
                "buyToken": swap.output_token,
                "sellAmount": str(swap.input_amount),
                "taker": swap.swapper_account,
                "slippageBps": swap.slippage_bps,
            },
            headers={"0x-api-key": self.config.api_key or "", "0x-version": "v2"},
        )
        response.raise_for_status()
        payload = response.json()
        if not payload.get("liquidityAvailable", True):
            return None
        tx = payload["transaction"]
        allowance = (payload.get("issues") or {}).get("allowance") or {}
        return ProviderQuote(
            provider=self.name,
            input_amount=to_int(payload.get("sellAmount"), swap.input_amount),
            output_amount=to_int(payload["buyAmount"]),
            gas_used=to_int(tx.get("gas")),
            tx=TxData(to=tx["to"], data=tx["data"], value=to_int(tx.get("value")) or None),
            approval=_approval_for(swap, allowance.get("spender")),
        )


class KyberSwapProvider(ProviderClient):
    kind = ProviderKind.KYBERSWAP
    api_base = "https://aggregator-api.kyberswap.com"

    async def fetch_quote(self, http: httpx.AsyncClient, swap: SwapParams) -> ProviderQuote | None:
        slug = CHAIN_SLUGS[swap.chain_id]
        headers = {"x-client-id": self.config.app_id or ""}
        routes = await http.get(
            f"{self.api_base}/{slug}/api/v1/routes",
            params={
                "tokenIn": swap.input_token,
                "tokenOut": swap.output_token,
                "amountIn": str(swap.input_amount),
            },
            headers=headers,
        )
        routes.raise_for_status()
        route_data = routes.json().get("data") or {}
        route_summary = route_data.get("routeSummary")
        if not route_summary:
            return None

        build = await http.post(
            f"{self.api_base}/{slug}/api/v1/route/build",
            json={
                "routeSummary": route_summary,
                "sender": swap.swapper_account,
                "recipient": swap.swapper_account,
                "slippageTolerance": swap.slippage_bps,
            },
            headers=headers,
        )
        build.raise_for_status()
        built = build.json().get("data") or {}
        if not built.get("data"):
            return None
        router = built.get("routerAddress") or route_data.get("routerAddress")
        return ProviderQuote(
            provider=self.name,
            input_amount=to_int(built.get("amountIn"), swap.input_amount),
            output_amount=to_int(built.get("amountOut") or route_summary.get("amountOut")),
            gas_used=to_int(built.get("gas") or route_summary.get("gas")),
            tx=TxData(to=router, data=built["data"], value=to_int(built.get("transactionValue")) or None),
            approval=_approval_for(swap, router),
        )


class OdosProvider(ProviderClient):
    kind = ProviderKind.ODOS
    api_base = "https://api.odos.xyz"

    async def fetch_quote(self, http: httpx.AsyncClient, swap: SwapParams) -> ProviderQuote | None:
        quote = await http.post(
            f"{self.api_base}/sor/quote/v2",
            json={
                "chainId": swap.chain_id,
                "inputTokens": [{"tokenAddress": swap.input_token, "amount": str(swap.input_amount)}],
                "outputTokens": [{"tokenAddress": swap.output_token, "proportion": 1}],
                "userAddr": swap.swapper_account,
                "slippageLimitPercent": swap.slippage_bps / 100,
                "referralCode": 0,
                "compact": True,
            },
        )
        quote.raise_for_status()
        quoted = quote.json()
        path_id = quoted.get("pathId")
        if not path_id:
            return None

        assemble = await http.post(
            f"{self.api_base}/sor/assemble",
            json={"userAddr": swap.swapper_account, "pathId": path_id, "simulate": False},
        )
        assemble.raise_for_status()
        assembled = assemble.json()
        tx = assembled["transaction"]
        outputs = assembled.get("outputTokens") or []
        output_amount = to_int(outputs[0].get("amount")) if outputs else to_int(quoted["outAmounts"][0])
        return ProviderQuote(
            provider=self.name,
            input_amount=swap.input_amount,
            output_amount=output_amount,
            gas_used=to_int(tx.get("gas") or quoted.get("gasEstimate")),
            tx=TxData(to=tx["to"], data=tx["data"], value=to_int(tx.get("value")) or None),
            approval=_approval_for(swap, tx["to"]),
        )


class LifiProvider(ProviderClient):
    kind = ProviderKind.LIFI
    api_base = "https://li.quest/v1"

    async def fetch_quote(self, http: httpx.AsyncClient, swap: SwapParams) -> ProviderQuote | None:
        headers = {"x-lifi-api-key": self.config.api_key} if self.config.api_key else {}
        response = await http.get(
            f"{self.api_base}/quote",
            params={
                "fromChain": swap.chain_id,
                "toChain": swap.chain_id,
                "fromToken": swap.input_token,
                "toToken": swap.output_token,
                "fromAmount": str(swap.input_amount),
                "fromAddress": swap.swapper_account,
                "slippage": swap.slippage_bps / 10_000,
                "integrator": self.config.app_id or "",
            },
            headers=headers,
        )
        response.raise_for_status()
        payload = response.json()
        estimate = payload.get("estimate") or {}
        tx = payload.get("transactionRequest")
        if not tx or not estimate.get("toAmount"):
            return None
        gas_costs = estimate.get("gasCosts") or []
        gas_used = sum(to_int(cost.get("estimate")) for cost in gas_costs) or to_int(tx.get("gasLimit"))
        return ProviderQuote(
            provider=self.name,
            input_amount=to_int(estimate.get("fromAmount"), swap.input_amount),
            output_amount=to_int(estimate["toAmount"]),
            gas_used=gas_used,
            tx=TxData(to=tx["to"], data=tx["data"], value=to_int(tx.get("value")) or None),
            approval=_approval_for(swap, estimate.get("approvalAddress")),
        )


class VeloraProvider(ProviderClient):
    kind = ProviderKind.VELORA
    api_base = "https://api.paraswap.io"

    async def fetch_quote(self, http: httpx.AsyncClient, swap: SwapParams) -> ProviderQuote | None:
        prices = await http.get(
            f"{self.api_base}/prices",
            params={
                "srcToken": swap.input_token,
                "destToken": swap.output_token,
                "amount": str(swap.input_amount),
                "srcDecimals": swap.input_decimals,
                "destDecimals": swap.output_decimals,
                "side": "SELL",
                "network": swap.chain_id,
                "userAddress": swap.swapper_account,
                "version": "6.2",
            },
        )
        prices.raise_for_status()
        price_route = prices.json().get("priceRoute")
        if not price_route:
            return None

        build = await http.post(
            f"{self.api_base}/transactions/{swap.chain_id}",
            params={"ignoreChecks": "true"},
            json={
                "srcToken": swap.input_token,
                "destToken": swap.output_token,
                "srcAmount": str(swap.input_amount),
                "srcDecimals": swap.input_decimals,
                "destDecimals": swap.output_decimals,
                "slippage": swap.slippage_bps,
                "priceRoute": price_route,
                "userAddress": swap.swapper_account,
                "partner": self.config.app_id or "",
            },
        )
        build.raise_for_status()
        tx = build.json()
        spender = price_route.get("tokenTransferProxy") or price_route.get("contractAddress")
        return ProviderQuote(
            provider=self.name,
            input_amount=to_int(price_route.get("srcAmount"), swap.input_amount),
            output_amount=to_int(price_route["destAmount"]),
            gas_used=to_int(tx.get("gas") or price_route.get("gasCost")),
            tx=TxData(to=tx["to"], data=tx["data"], value=to_int(tx.get("value")) or None),
            approval=_approval_for(swap, spender),
        )


class RelayProvider(ProviderClient):
    kind = ProviderKind.RELAY
    api_base = "https://api.relay.link"

    async def fetch_quote(self, http: httpx.AsyncClient, swap: SwapParams) -> ProviderQuote | None:
        response = await http.post(
            f"{self.api_base}/quote",
            json={
                "user": swap.swapper_account,
                "originChainId": swap.chain_id,
                "destinationChainId": swap.chain_id,
                "originCurrency": swap.input_token,
                "destinationCurrency": swap.output_token,
                "amount": str(swap.input_amount),
                "tradeType": "EXACT_INPUT",
                "slippageTolerance": str(swap.slippage_bps),
                "referrer": self.config.app_id or "",
            },
        )
        response.raise_for_status()
        payload = response.json()
        steps = payload.get("steps") or []
        swap_items = [
            item.get("data") or {}
            for step in steps
            if step.get("id") != "approve" and step.get("kind") == "transaction"
            for item in step.get("items") or []
        ]
        currency_out = ((payload.get("details") or {}).get("currencyOut")) or {}
        if not swap_items or not currency_out.get("amount"):
            return None
        tx = swap_items[-1]
        needs_approval = any(step.get("id") == "approve" for step in steps)
        return ProviderQuote(
            provider=self.name,
            input_amount=swap.input_amount,
            output_amount=to_int(currency_out["amount"]),
            gas_used=to_int(tx.get("gas")),
            tx=TxData(to=tx["to"], data=tx["data"], value=to_int(tx.get("value")) or None),
            approval=_approval_for(swap, tx["to"]) if needs_approval else None,
        )


PROVIDER_CLIENTS: dict[ProviderKind, type[ProviderClient]] = {
    ProviderKind.ZEROX: ZeroXProvider,
    ProviderKind.KYBERSWAP: KyberSwapProvider,
    ProviderKind.ODOS: OdosProvider,
    ProviderKind.LIFI: LifiProvider,
    ProviderKind.VELORA: VeloraProvider,
    ProviderKind.RELAY: RelayProvider,
}


def build_provider_client(config: ProviderConfig) -> ProviderClient:
    return PROVIDER_CLIENTS[config.kind](config)
