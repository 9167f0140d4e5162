"""Shared test fixtures for Inspection-Engine."""

import pytest
from httpx import ASGITransport, AsyncClient


SECRET_KEY = "test-secret-key-for-unit-tests"
PASSWORD = "senha-segura-123"

# Smallest valid signature payload.
SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


@pytest.fixture
def signature():
    return SIGNATURE


@pytest.fixture
def app(tmp_path, monkeypatch):
    """Create a test app with in-memory DB."""
    monkeypatch.setenv("INSPECTION_DB_URL", "sqlite+aiosqlite://")
    monkeypatch.setenv("INSPECTION_SECRET_KEY", SECRET_KEY)
    monkeypatch.setenv("INSPECTION_MEDIA_ROOT", str(tmp_path / "media"))
    monkeypatch.setenv("INSPECTION_NOTIFY_EMAIL_DOMAIN", "")

    # Clear caches and singletons so new env vars take effect
    from inspection_engine.common.config import get_settings
    get_settings.cache_clear()

    from inspection_engine.deps import reset_singletons
    reset_singletons()

    from inspection_engine.app import create_app
    return create_app()


@pytest.fixture
async def client(app):
    # Manually init DB since ASGITransport doesn't run lifespan
    from inspection_engine.deps import get_db
    db = get_db()
    await db.init()
    await db.create_all()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await db.close()


async def _headers_for(email: str, full_name: str, role: str) -> dict[str, str]:
    from inspection_engine.auth.credentials import create_access_token
    from inspection_engine.deps import get_auth_service, get_db

    async with get_db().get_session() as session:
        user = await get_auth_service().create_user(
            session, email, PASSWORD, full_name, role=role
        )
    return {"Authorization": f"Bearer {create_access_token(user.id, SECRET_KEY)}"}


@pytest.fixture
async def admin_headers(client):
    return await _headers_for("admin@example.com", "Ana Admin", "admin")


@pytest.fixture
async def supervisor_headers(client):
    return await _headers_for("supervisor@example.com", "Sergio Supervisor", "supervisor")


@pytest.fixture
async def technician_headers(client):
    return await _headers_for("tecnico@example.com", "Tiago Tecnico", "tecnico")


@pytest.fixture
async def other_technician_headers(client):
    return await _headers_for("outro@example.com", "Otavio Tecnico", "tecnico")
