"""
Pytest configuration and shared fixtures.

Este módulo provee fixtures reutilizables para:
- Casos de uso cableados contra stores en memoria y reloj fijo
- Base de datos SQLite in-memory (aiosqlite) para los repositorios SQL
- Cliente HTTP de prueba sobre la app FastAPI
"""

from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession

from farmout_dispatch.api.dependencies import _driver_cache, _in_memory_bundle
from farmout_dispatch.application.interfaces.clock import FakeClock
from farmout_dispatch.config import Settings, get_settings
from farmout_dispatch.infrastructure.db.engine import build_engine, build_sessionmaker
from farmout_dispatch.infrastructure.db.tables import metadata
from tests.helpers import DISPATCH_PHONE, NOW, build_harness, make_pool

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# FIXTURES DE DOMINIO
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(NOW)


@pytest.fixture
def harness(clock):
    """Casos de uso en memoria con el pool de 10 conductores."""
    return build_harness(clock=clock)


# ============================================================================
# FIXTURES DE BASE DE DATOS
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """
    Engine async sobre SQLite in-memory con savepoints habilitados.
    Se crea una base limpia por test.
    """
    engine = build_engine(TEST_DATABASE_URL)

    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Sesión sin transacción abierta: cada unidad de trabajo hace su propio
    commit, igual que en una petición real.
    """
    session_maker = build_sessionmaker(test_engine)
    async with session_maker() as session:
        yield session


# ============================================================================
# FIXTURES DE CLIENTE HTTP
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        use_in_memory=True,
        dispatch_alert_phones=DISPATCH_PHONE,
        driver_cache_ttl_seconds=0,
        twilio_account_sid=None,
        twilio_auth_token=None,
        twilio_from_number=None,
    )


@pytest_asyncio.fixture
async def in_memory_bundle():
    """Stores en memoria de la app, limpios y con el pool de conductores."""
    _in_memory_bundle.cache_clear()
    _driver_cache.cache_clear()
    bundle = _in_memory_bundle()
    for driver in make_pool():
        await bundle["driver_repo"].add(driver)
    yield bundle
    _in_memory_bundle.cache_clear()
    _driver_cache.cache_clear()


@pytest_asyncio.fixture
async def api_client(test_settings, in_memory_bundle) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Cliente httpx sobre la app ASGI con Settings de prueba."""
    from farmout_dispatch.main import app

    app.dependency_overrides[get_settings] = lambda: test_settings
    transport = httpx.ASGITransport(app=app, raise_app_exceptions=False)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# ============================================================================
# MARKERS DE PYTEST
# ============================================================================

def pytest_configure(config):
    config.addinivalue_line(
        "markers",
        "integration: Tests contra base de datos SQL (aiosqlite in-memory)"
    )
    config.addinivalue_line(
        "markers",
        "deadlock: Tests de escenarios de deadlock"
    )
    config.addinivalue_line(
        "markers",
        "circuit_breaker: Tests del circuit breaker de SMS"
    )


# ============================================================================
# HOOKS DE PYTEST
# ============================================================================

@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """
    Reset circuit breakers antes de cada test.
    Evita que tests fallen por breakers abiertos de tests anteriores.
    """
    from farmout_dispatch.infrastructure.circuit_breaker import sms_breaker

    sms_breaker.close()

    yield

    sms_breaker.close()
