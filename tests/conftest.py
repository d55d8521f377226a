"""
Pytest configuration and shared fixtures.

Este módulo provee fixtures reutilizables para:
- Modo in-memory de la API (FastAPI TestClient)
- Base de datos SQLite in-memory para los repositorios SQL
- Reloj fijo para pruebas deterministas
- Limpieza automática de breakers y repositorios in-memory entre tests
"""

import os
from typing import AsyncGenerator

# La configuración se lee una sola vez (lru_cache); se fija antes de importar la app
os.environ.setdefault("USE_IN_MEMORY", "true")
os.environ.setdefault("RECONFIRMATION_POLLER_ENABLED", "false")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_secret")
os.environ.setdefault("STRIPE_BASIC_PRICE_ID", "price_basic")
os.environ.setdefault("STRIPE_PROFESSIONAL_PRICE_ID", "price_professional")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.application.interfaces.clock import FakeClock  # noqa: E402
from app.infrastructure.db.engine import build_sessionmaker  # noqa: E402
from app.infrastructure.db.tables import metadata  # noqa: E402
from tests.helpers import FIXED_NOW  # noqa: E402

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# FIXTURES DE BASE DE DATOS
# ============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """
    Engine SQLite in-memory con una sola conexión compartida.
    Las tablas se crean y se eliminan por test.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = build_sessionmaker(test_engine)
    async with session_maker() as session:
        yield session


# ============================================================================
# FIXTURES DE APLICACIÓN
# ============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(FIXED_NOW)


@pytest.fixture
def client():
    """TestClient en modo in-memory; el lifespan corre dentro del `with`."""
    from fastapi.testclient import TestClient

    from app.main import app

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def memory_bundle():
    """Repositorios in-memory que usa la API, para sembrar y verificar datos."""
    from app.api.dependencies import _in_memory_bundle

    return _in_memory_bundle()


# ============================================================================
# HOOKS
# ============================================================================

@pytest.fixture(autouse=True)
def reset_circuit_breakers():
    """
    Reset circuit breakers antes de cada test.
    Evita que tests fallen por breakers abiertos de tests anteriores.
    """
    from app.infrastructure.circuit_breaker import reset_breakers

    reset_breakers()
    yield
    reset_breakers()


@pytest.fixture(autouse=True)
def reset_in_memory_state():
    """Cada test arranca con repositorios in-memory vacíos."""
    from app.api.dependencies import _in_memory_bundle

    _in_memory_bundle.cache_clear()
    yield
    _in_memory_bundle.cache_clear()
