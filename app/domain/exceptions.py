from __future__ import annotations


class DomainError(Exception):
    """Base for quote domain errors."""

    kind = "domain"


class ValidationError(DomainError):
    """Malformed or out-of-range request field."""

    kind = "validation"


class UnsupportedChainError(DomainError):
    """Chain id is not in the chain registry."""

    kind = "unsupported_chain"


class TokenReadError(DomainError):
    """On-chain token read reverted or the address is not a contract."""

    kind = "token_read"


class NoQuoteError(DomainError):
    """No provider returned a usable quote."""

    kind = "no_quote"


class NotInitializedError(DomainError):
    """Router used before its pool data finished loading."""

    kind = "not_initialized"


class NetworkError(DomainError):
    """RPC or provider transport failure."""

    kind = "network"
