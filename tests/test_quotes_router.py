from __future__ import annotations

from fastapi.testclient import TestClient

from app.api.deps import get_compare_quotes_use_case, get_error_reporter, get_swap_quote_use_case
from app.domain.entities.quote import ComparisonResult, SwapQuote, TokenApproval
from app.domain.exceptions import NoQuoteError, ValidationError
from app.main import app


USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"
WETH = "0x4200000000000000000000000000000000000006"
QUERY = {"chainId": "8453", "from": USDC, "to": WETH, "amount": "1000", "slippageBps": "100"}


def _swap_quote() -> SwapQuote:
    return SwapQuote(
        chain_id=8453,
        from_token=USDC,
        from_symbol="USDC",
        to_token=WETH,
        to_symbol="WETH",
        amount="1000",
        output_amount="0.4",
        output_amount_raw=400_000_000_000_000_000,
        input_amount_raw=1_000_000_000,
        provider="odos",
        slippage_bps=100,
        gas_used=180_000,
        router_address="0x19cEeAd7105607Cd444F5ad10dd51356436095a1",
        router_calldata="0x83bd37f9",
        approval=TokenApproval(token=USDC, spender="0x19cEeAd7105607Cd444F5ad10dd51356436095a1"),
    )


class FakeSwapQuoteUseCase:
    def __init__(self, error: Exception | None = None):
        self.error = error
        self.requests = []

    async def execute(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return _swap_quote()


class FakeCompareUseCase:
    async def execute(self, request):
        return ComparisonResult(
            primary=_swap_quote(),
            primary_error=None,
            primary_error_kind=None,
            secondary=None,
            secondary_error="Curve only supports Ethereum (chainId 1)",
            secondary_error_kind="unavailable",
            recommendation="primary",
            reason="Only Aggregator returned a quote",
            gas_price_gwei="0.0050",
        )


class FakeReporter:
    def __init__(self):
        self.captured = []

    def capture(self, exc, context=None):
        self.captured.append((exc, context))


def _client(overrides=None) -> TestClient:
    app.dependency_overrides.clear()
    app.dependency_overrides.update(overrides or {})
    return TestClient(app)


def test_quote_returns_big_ints_as_strings():
    use_case = FakeSwapQuoteUseCase()
    client = _client({get_swap_quote_use_case: lambda: use_case})

    response = client.get("/quote", params=QUERY)

    assert response.status_code == 200
    body = response.json()
    assert body["from"] == USDC
    assert body["output_amount"] == "0.4"
    assert body["output_amount_raw"] == "400000000000000000"
    assert body["gas_used"] == "180000"
    assert body["approval"]["token"] == USDC
    assert "router_value" not in body
    assert use_case.requests[0].slippage_bps == 100


def test_quote_rejects_invalid_params_before_calling_use_case():
    use_case = FakeSwapQuoteUseCase()
    client = _client({get_swap_quote_use_case: lambda: use_case})

    response = client.get("/quote", params={**QUERY, "slippageBps": "20000"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid slippageBps: 20000 (must be 0-10000)"}
    assert use_case.requests == []


def test_quote_maps_no_quote_to_500():
    client = _client(
        {get_swap_quote_use_case: lambda: FakeSwapQuoteUseCase(NoQuoteError("No providers returned a successful quote"))}
    )

    response = client.get("/quote", params=QUERY)

    assert response.status_code == 500
    assert response.json() == {"error": "No providers returned a successful quote"}


def test_quote_maps_dust_amount_to_400():
    client = _client(
        {
            get_swap_quote_use_case: lambda: FakeSwapQuoteUseCase(
                ValidationError("Amount 0.0000001 is below the token's smallest unit")
            )
        }
    )

    response = client.get("/quote", params={**QUERY, "amount": "0.0000001"})

    assert response.status_code == 400
    assert response.json() == {"error": "Amount 0.0000001 is below the token's smallest unit"}


def test_quote_reports_unexpected_errors():
    reporter = FakeReporter()
    client = _client(
        {
            get_swap_quote_use_case: lambda: FakeSwapQuoteUseCase(RuntimeError("kaboom")),
            get_error_reporter: lambda: reporter,
        }
    )

    response = client.get("/quote", params=QUERY)

    assert response.status_code == 500
    assert response.json() == {"error": "kaboom"}
    assert reporter.captured[0][1]["route"] == "/quote"


def test_compare_serializes_both_sides():
    client = _client({get_compare_quotes_use_case: lambda: FakeCompareUseCase()})

    response = client.get("/compare", params=QUERY)

    assert response.status_code == 200
    body = response.json()
    assert body["recommendation"] == "primary"
    assert body["primary"]["provider"] == "odos"
    assert body["secondary"] is None
    assert body["secondary_error_kind"] == "unavailable"
    assert body["gas_price_gwei"] == "0.0050"


def test_compare_unsupported_chain_is_400():
    client = _client()

    response = client.get("/compare", params={**QUERY, "chainId": "999"})

    assert response.status_code == 400
    assert response.json()["error"].startswith("Unsupported chainId: 999")


def test_chains_health_and_unknown_route():
    client = _client()

    chains = client.get("/chains").json()
    assert chains["1"] == {"name": "Ethereum", "rpc_provider_subdomain": "eth-mainnet"}
    assert set(chains) == {"1", "8453", "42161", "10", "137", "56", "43114"}
    assert client.get("/health").json() == {"status": "ok"}

    missing = client.get("/nope")
    assert missing.status_code == 404
    assert missing.json() == {"error": "Not found"}
