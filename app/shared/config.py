from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from app.domain.services.chain_registry import SUPPORTED_CHAINS


load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _rpc_url_overrides() -> dict[int, str]:
    overrides: dict[int, str] = {}
    for chain_id in SUPPORTED_CHAINS:
        value = _env(f"RPC_URL_{chain_id}")
        if value:
            overrides[chain_id] = value
    return overrides


@dataclass(frozen=True)
class Settings:
    alchemy_api_key: str
    rpc_url_overrides: dict
    zerox_api_key: str
    fabric_api_key: str
    app_id: str
    curve_enabled: bool
    curve_api_base: str
    curve_router_address: str
    aggregator_deadline_seconds: float
    provider_timeout_seconds: float
    log_level: str
    host: str
    port: int


def get_settings() -> Settings:
    return Settings(
        alchemy_api_key=_env("ALCHEMY_API_KEY", ""),
        rpc_url_overrides=_rpc_url_overrides(),
        zerox_api_key=_env("ZEROX_API_KEY", ""),
        fabric_api_key=_env("FABRIC_API_KEY", ""),
        app_id=_env("APP_ID", "flashprofits"),
        curve_enabled=_env("CURVE_ENABLED", "true").strip().lower() != "false",
        curve_api_base=_env("CURVE_API_BASE", "https://api.curve.finance/v1"),
        curve_router_address=_env(
            "CURVE_ROUTER_ADDRESS", "0x16C6521Dff6baB339122a0FE25a9116693265353"
        ),
        aggregator_deadline_seconds=float(_env("AGGREGATOR_DEADLINE_SECONDS", "15")),
        provider_timeout_seconds=float(_env("PROVIDER_TIMEOUT_SECONDS", "10")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        host=_env("HOST", "0.0.0.0"),
        port=int(_env("PORT", "3000")),
    )


def resolve_rpc_url(settings: Settings, chain_id: int) -> str:
    override = settings.rpc_url_overrides.get(chain_id)
    if override:
        return override
    chain = SUPPORTED_CHAINS[chain_id]
    return f"https://{chain.rpc_provider_subdomain}.g.alchemy.com/v2/{settings.alchemy_api_key}"


def has_rpc_url(settings: Settings, chain_id: int) -> bool:
    return bool(settings.rpc_url_overrides.get(chain_id) or settings.alchemy_api_key)
