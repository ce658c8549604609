from __future__ import annotations

import re
from collections.abc import Mapping
from decimal import Decimal, InvalidOperation

from app.domain.entities.quote import QuoteRequest
from app.domain.exceptions import ValidationError
from app.domain.services.chain_registry import ChainRegistry


ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")
DEFAULT_SLIPPAGE_BPS = 50
MAX_SLIPPAGE_BPS = 10_000


def is_valid_address(address: str | None) -> bool:
    if not address:
        return False
    return ADDRESS_RE.fullmatch(address) is not None


def _parse_int(value: str) -> int | None:
    try:
        return int(value.strip(), 10)
    except ValueError:
        return None


def parse_quote_params(
    params: Mapping[str, str | None],
    *,
    registry: ChainRegistry | None = None,
) -> QuoteRequest:
    """Validate raw query params into a QuoteRequest.

    Raises ValidationError before any I/O; an unknown chain id is reported
    with the list of supported ids.
    """
    registry = registry or ChainRegistry()

    chain_id_raw = params.get("chainId")
    if not chain_id_raw:
        raise ValidationError("Missing required param: chainId")
    chain_id = _parse_int(chain_id_raw)
    if chain_id is None or chain_id <= 0:
        raise ValidationError(f"Invalid chainId: {chain_id_raw}")
    if not registry.is_supported(chain_id):
        raise ValidationError(
            f"Unsupported chainId: {chain_id}. Supported: {registry.supported_ids_label()}"
        )

    from_token = params.get("from")
    to_token = params.get("to")
    if not from_token or not to_token:
        raise ValidationError("Missing required params: from, to (token addresses)")
    if not is_valid_address(from_token):
        raise ValidationError(f"Invalid 'from' address: {from_token}")
    if not is_valid_address(to_token):
        raise ValidationError(f"Invalid 'to' address: {to_token}")

    amount = params.get("amount")
    if not amount:
        raise ValidationError("Missing required param: amount")
    try:
        amount_value = Decimal(amount.strip())
    except InvalidOperation as exc:
        raise ValidationError(f"Invalid amount: {amount}") from exc
    if not amount_value.is_finite() or amount_value <= 0:
        raise ValidationError(f"Invalid amount: {amount}")

    slippage_raw = params.get("slippageBps") or str(DEFAULT_SLIPPAGE_BPS)
    slippage_bps = _parse_int(slippage_raw)
    if slippage_bps is None or not 0 <= slippage_bps <= MAX_SLIPPAGE_BPS:
        raise ValidationError(
            f"Invalid slippageBps: {slippage_raw} (must be 0-{MAX_SLIPPAGE_BPS})"
        )

    sender = params.get("sender") or None
    if sender is not None and not is_valid_address(sender):
        raise ValidationError(f"Invalid sender address: {sender}")

    return QuoteRequest(
        chain_id=chain_id,
        from_token=from_token,
        to_token=to_token,
        amount=amount.strip(),
        slippage_bps=slippage_bps,
        sender=sender,
    )
