"""Pytest configuration and fixtures."""
from __future__ import annotations

import pytest

from reactor_telemetry.main import create_app
from reactor_telemetry.settings import Settings

from tests.utils import FakeInfluxClient


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        influx_url="http://tsdb.invalid:8086",
        influx_token="secret-token",
        influx_org="plant",
        influx_bucket="reactor",
        tsdb_write_timeout_seconds=0.5,
        tsdb_health_timeout_seconds=0.5,
        tsdb_drain_timeout_seconds=1.0,
    )


@pytest.fixture
def fake_influx() -> FakeInfluxClient:
    return FakeInfluxClient()


@pytest.fixture
async def service_client(aiohttp_client, test_settings, fake_influx):
    """Client for calling the service API with the TSDB replaced by a fake."""
    app = create_app(test_settings, tsdb_client_factory=lambda _settings: fake_influx)
    return await aiohttp_client(app)
