from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from app.domain.entities.quote import CurveQuote, Recommendation, SwapQuote


PRIMARY_LABEL = "Aggregator"
SECONDARY_LABEL = "Curve"

_WEI_PER_GWEI = Decimal("1e9")
_WEI_PER_NATIVE = Decimal("1e18")


@dataclass(frozen=True)
class RecommendationDecision:
    recommendation: Recommendation | None
    reason: str


def _to_decimal(value: str | None) -> Decimal:
    try:
        return Decimal(value or "0")
    except InvalidOperation:
        return Decimal("0")


def _fmt(value: Decimal, places: int) -> str:
    return f"{value:.{places}f}"


def primary_gas_cost_native(primary: SwapQuote, gas_price_gwei: str | None) -> Decimal:
    gas_price_wei = _to_decimal(gas_price_gwei) * _WEI_PER_GWEI
    if gas_price_wei <= 0:
        return Decimal("0")
    return Decimal(primary.gas_used) * gas_price_wei / _WEI_PER_NATIVE


def _improvement(winner: Decimal, loser: Decimal) -> tuple[str, str]:
    diff = winner - loser
    pct = (diff / loser * 100) if loser > 0 else Decimal("0")
    return _fmt(diff, 6), _fmt(pct, 3)


def recommend(
    primary: SwapQuote | None,
    secondary: CurveQuote | None,
    gas_price_gwei: str | None,
) -> RecommendationDecision:
    if primary is not None and secondary is not None:
        primary_output = _to_decimal(primary.output_amount)
        secondary_output = _to_decimal(secondary.output_amount)
        gas_cost = primary_gas_cost_native(primary, gas_price_gwei)
        gas_note = ""
        if gas_cost > 0:
            gas_note = (
                f". {PRIMARY_LABEL} gas: {primary.gas_used} units (~{_fmt(gas_cost, 6)} native)"
            )

        if secondary_output > primary_output:
            diff, pct = _improvement(secondary_output, primary_output)
            return RecommendationDecision(
                recommendation="secondary",
                reason=f"{SECONDARY_LABEL} outputs {diff} more (+{pct}%){gas_note}",
            )
        if primary_output > secondary_output:
            diff, pct = _improvement(primary_output, secondary_output)
            return RecommendationDecision(
                recommendation="primary",
                reason=(
                    f"{PRIMARY_LABEL} ({primary.provider}) outputs {diff} more (+{pct}%){gas_note}"
                ),
            )
        # Ties go to the aggregator for its broader provider coverage.
        return RecommendationDecision(
            recommendation="primary",
            reason=(
                f"Equal output amounts; defaulting to {PRIMARY_LABEL} for multi-provider coverage"
            ),
        )

    if primary is not None:
        return RecommendationDecision("primary", f"Only {PRIMARY_LABEL} returned a quote")
    if secondary is not None:
        return RecommendationDecision("secondary", f"Only {SECONDARY_LABEL} returned a quote")
    return RecommendationDecision(None, "Neither source returned a quote")
