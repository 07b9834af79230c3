from datetime import datetime, timedelta, timezone

import pytest

from keywarden import KeyLifecycleEngine, KeyManagerConfig
from keywarden.crypto import PemCryptoGateway
from keywarden.metadata import InMemoryMetadataStore


class FakeClock:
    """Manually advanced clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def config(tmp_path) -> KeyManagerConfig:
    return KeyManagerConfig(keys_directory=str(tmp_path / "keys"))


@pytest.fixture
def store() -> InMemoryMetadataStore:
    return InMemoryMetadataStore()


@pytest.fixture
def gateway(config) -> PemCryptoGateway:
    return PemCryptoGateway(config.keys_directory)


@pytest.fixture
def engine(config, store, gateway, clock) -> KeyLifecycleEngine:
    return KeyLifecycleEngine(config, store=store, gateway=gateway, clock=clock)
