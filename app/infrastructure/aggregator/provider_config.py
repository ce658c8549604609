from __future__ import annotations

from app.application.dto.aggregator import AggregatorConfig, ProviderConfig, ProviderKind
from app.shared.config import Settings


_KEYLESS_PROVIDERS = (
    ProviderKind.KYBERSWAP,
    ProviderKind.ODOS,
    ProviderKind.LIFI,
    ProviderKind.RELAY,
    ProviderKind.VELORA,
)


def build_provider_configs(settings: Settings) -> list[ProviderConfig]:
    """Providers to query, selected by which upstream API keys are configured.

    0x needs a key and is queried first when one is set; the keyless
    providers are always included. FABRIC_API_KEY is read but has no
    client yet.
    """
    providers: list[ProviderConfig] = []
    if settings.zerox_api_key:
        providers.append(ProviderConfig(kind=ProviderKind.ZEROX, api_key=settings.zerox_api_key))
    providers.extend(ProviderConfig(kind=kind, app_id=settings.app_id) for kind in _KEYLESS_PROVIDERS)
    return providers


def build_aggregator_config(settings: Settings) -> AggregatorConfig:
    return AggregatorConfig(
        providers=build_provider_configs(settings),
        deadline_seconds=settings.aggregator_deadline_seconds,
    )
