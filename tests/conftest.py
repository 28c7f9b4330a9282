# tests/conftest.py

import os

# keep console span export out of test output
os.environ.setdefault("OTEL_ENABLED", "false")

import pytest  # noqa: E402

from fakes import FakeClock, FakeMessageRepository  # noqa: E402


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_repo(clock) -> FakeMessageRepository:
    return FakeMessageRepository(clock)


@pytest.fixture
def access_service(fake_repo, clock):
    from burnlink.services.access_service import AccessService
    return AccessService(fake_repo, clock=clock)
