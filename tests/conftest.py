from __future__ import annotations

import pytest

from app.shared.config import Settings


@pytest.fixture
def make_settings():
    def _make(**overrides) -> Settings:
        values = dict(
            alchemy_api_key="alchemy-key",
            rpc_url_overrides={},
            zerox_api_key="",
            fabric_api_key="",
            app_id="flashprofits",
            curve_enabled=True,
            curve_api_base="https://api.curve.finance/v1",
            curve_router_address="0x16C6521Dff6baB339122a0FE25a9116693265353",
            aggregator_deadline_seconds=15.0,
            provider_timeout_seconds=10.0,
            log_level="INFO",
            host="0.0.0.0",
            port=3000,
        )
        values.update(overrides)
        return Settings(**values)

    return _make
