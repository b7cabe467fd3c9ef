import pytest

from tokenauth.config import TokenConfig
from tokenauth.domain.clock import FixedClock
from tokenauth.service.csrf_service import CsrfService
from tokenauth.service.token_service import TokenService

NOW_MS = 1_700_000_000_000


@pytest.fixture
def clock():
    return FixedClock(NOW_MS)


@pytest.fixture
def config():
    return TokenConfig(domain="auth.example.com", access_lifetime_days=1, refresh_lifetime_days=30)


@pytest.fixture
def reported():
    """Collects (context, error) pairs sent to the error sink."""
    return []


@pytest.fixture
def service(config, clock, reported):
    return TokenService(config, clock, on_error=lambda ctx, err: reported.append((ctx, err)))


@pytest.fixture
def csrf_service(clock, reported):
    return CsrfService(clock, on_error=lambda ctx, err: reported.append((ctx, err)))


@pytest.fixture
def identity():
    return {"userId": "u1", "userKey": "k1", "userRkey": "k2"}
