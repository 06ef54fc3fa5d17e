"""
Shared pytest fixtures for Guardpost backend tests.

Uses SQLite in-memory with StaticPool so all sessions share one connection,
meaning data written in one session is visible to others (important for HTTP client tests).
"""
import uuid
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

import guardpost.models  # noqa – registers all SQLAlchemy models with Base.metadata
from guardpost.core.capabilities import reset_capabilities
from guardpost.core.database import Base, get_db
from guardpost.core.local_state import LocalStateStore, get_local_state_store
from guardpost.core.security import hash_password, create_access_token
from guardpost.main import app
from guardpost.models.audit import AuditType
from guardpost.models.guard import Guard
from guardpost.models.profile import Profile
from guardpost.models.violation import Violation, ViolationType
from guardpost.services.evidence_storage import EvidenceStorage, get_evidence_storage

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(autouse=True)
def fresh_capabilities():
    """The capability probe result is cached per process; every test probes anew."""
    reset_capabilities()
    yield
    reset_capabilities()


# ── Shared engine (function-scoped: fresh DB per test) ───────────────────────

@pytest_asyncio.fixture
async def engine():
    eng = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,          # single shared connection → all sessions see same data
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield eng

    await eng.dispose()


@pytest_asyncio.fixture
async def db(engine) -> AsyncSession:
    """Async DB session for direct data setup and inspection inside tests."""
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


async def drop_voided_column(engine) -> None:
    """Turn the test database into one where the voided migration has not landed."""
    async with engine.begin() as conn:
        await conn.exec_driver_sql("ALTER TABLE violations DROP COLUMN voided")


# ── Instance-local state and evidence bucket ─────────────────────────────────

@pytest.fixture
def store(tmp_path) -> LocalStateStore:
    return LocalStateStore(tmp_path / "state.json")


@pytest.fixture
def storage(tmp_path) -> EvidenceStorage:
    return EvidenceStorage(tmp_path / "storage", "evidence")


# ── HTTP client fixture ───────────────────────────────────────────────────────

@pytest_asyncio.fixture
async def client(engine, store, storage) -> AsyncClient:
    """
    FastAPI test client with get_db, the local state store and the evidence
    bucket overridden. Each request gets its own session but shares the same
    underlying connection via StaticPool.
    """
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_local_state_store] = lambda: store
    app.dependency_overrides[get_evidence_storage] = lambda: storage

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()


# ── Profile fixtures ──────────────────────────────────────────────────────────

async def _profile(db, email: str, role: str, full_name: str) -> Profile:
    p = Profile(
        id=uuid.uuid4(),
        email=email,
        hashed_password=hash_password("testpass123"),
        full_name=full_name,
        role=role,
        is_active=True,
        created_at=datetime.now(timezone.utc),
    )
    db.add(p)
    await db.commit()
    await db.refresh(p)
    return p


@pytest_asyncio.fixture
async def manager_profile(db) -> Profile:
    return await _profile(db, "manager@test.com", "manager", "Dana Manager")


@pytest_asyncio.fixture
async def supervisor_profile(db) -> Profile:
    return await _profile(db, "supervisor@test.com", "supervisor", "Sam Supervisor")


@pytest.fixture
def manager_token(manager_profile) -> str:
    return create_access_token(manager_profile.id, "manager")


@pytest.fixture
def supervisor_token(supervisor_profile) -> str:
    return create_access_token(supervisor_profile.id, "supervisor")


# ── Catalog + guard fixtures ──────────────────────────────────────────────────

@pytest_asyncio.fixture
async def violation_types(db) -> dict[str, ViolationType]:
    types = {
        "callout": ViolationType(id=uuid.uuid4(), slug="callout", label="Callout"),
        "early_departure": ViolationType(id=uuid.uuid4(), slug="early_departure", label="Early Departure"),
        "uniform": ViolationType(id=uuid.uuid4(), slug="uniform", label="Uniform"),
    }
    db.add_all(types.values())
    await db.commit()
    return types


@pytest_asyncio.fixture
async def audit_types(db) -> dict[str, AuditType]:
    types = {
        "interior_post": AuditType(id=uuid.uuid4(), slug="interior_post", label="Interior Post"),
        "truck_gate": AuditType(id=uuid.uuid4(), slug="truck_gate", label="Truck Gate"),
    }
    db.add_all(types.values())
    await db.commit()
    return types


@pytest_asyncio.fixture
async def guard(db) -> Guard:
    g = Guard(id=uuid.uuid4(), full_name="Jane Doe", employment_type="1099", status="active")
    db.add(g)
    await db.commit()
    return g


# ── Helpers ───────────────────────────────────────────────────────────────────

def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def make_violation(db, guard, vtype, **overrides) -> Violation:
    """Insert one violation without touching `voided`."""
    values = {
        "id": uuid.uuid4(),
        "guard_id": guard.id,
        "type_id": vtype.id,
        "occurred_at": datetime(2026, 10, 1, 14, 0, tzinfo=timezone.utc),
        "shift": "day",
        "supervisor_note": "Did not show for shift.",
        "status": "open",
        "doc_status": "pending" if vtype.slug in ("callout", "early_departure") else None,
    }
    values.update(overrides)
    v = Violation(**values)
    db.add(v)
    await db.commit()
    return v
