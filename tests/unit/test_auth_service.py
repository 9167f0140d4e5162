"""Tests for the auth service — accounts, login and administration."""

import pytest

from inspection_engine.auth.service import AuthService
from inspection_engine.common.config import InspectionSettings
from inspection_engine.common.database import DatabaseManager
from inspection_engine.common.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from inspection_engine.common.security import RequestContext
from inspection_engine.auth.credentials import verify_access_token


def make_settings(**overrides) -> InspectionSettings:
    defaults = {"secret_key": "test-secret", "db_url": "sqlite+aiosqlite://"}
    defaults.update(overrides)
    return InspectionSettings(**defaults)


@pytest.fixture
async def db():
    manager = DatabaseManager(make_settings())
    await manager.init()
    await manager.create_all()
    yield manager
    await manager.close()


@pytest.fixture
def svc():
    return AuthService(make_settings())


def admin_ctx(user):
    return RequestContext(user_id=user.id, email=user.email, roles=("admin",))


class TestAccounts:
    async def test_create_user(self, db, svc):
        async with db.get_session() as session:
            user = await svc.create_user(session, " Ana@Example.com ", "senha123", "Ana", "supervisor")
            assert user.email == "ana@example.com"
            assert user.role_names == ["supervisor"]
            assert user.password_hash != "senha123"

    async def test_duplicate_email(self, db, svc):
        async with db.get_session() as session:
            await svc.create_user(session, "ana@example.com", "senha123", "Ana")
            with pytest.raises(ConflictError):
                await svc.create_user(session, "ANA@example.com", "senha123", "Outra Ana")

    async def test_unknown_role(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await svc.create_user(session, "ana@example.com", "senha123", "Ana", "gerente")

    async def test_short_password(self, db, svc):
        async with db.get_session() as session:
            with pytest.raises(ValidationError):
                await svc.create_user(session, "ana@example.com", "123", "Ana")


class TestLogin:
    async def test_login_returns_token(self, db, svc):
        async with db.get_session() as session:
            created = await svc.create_user(session, "ana@example.com", "senha123", "Ana")
            user, token = await svc.login(session, "ana@example.com", "senha123")
        assert user.id == created.id
        assert verify_access_token(token, "test-secret", max_age=60) == created.id

    async def test_wrong_password(self, db, svc):
        async with db.get_session() as session:
            await svc.create_user(session, "ana@example.com", "senha123", "Ana")
            with pytest.raises(AuthenticationError):
                await svc.authenticate(session, "ana@example.com", "errada99")

    async def test_inactive_user(self, db, svc):
        async with db.get_session() as session:
            admin = await svc.create_user(session, "root@example.com", "senha123", "Root", "admin")
            user = await svc.create_user(session, "ana@example.com", "senha123", "Ana")
            await svc.set_active(session, admin_ctx(admin), user.id, False)
            with pytest.raises(AuthenticationError, match="deactivated"):
                await svc.authenticate(session, "ana@example.com", "senha123")

    async def test_change_password(self, db, svc):
        async with db.get_session() as session:
            user = await svc.create_user(session, "ana@example.com", "senha123", "Ana")
            ctx = RequestContext(user_id=user.id, roles=("tecnico",))
            with pytest.raises(AuthenticationError):
                await svc.change_password(session, ctx, "errada99", "nova-senha")
            await svc.change_password(session, ctx, "senha123", "nova-senha")
            await svc.authenticate(session, "ana@example.com", "nova-senha")


class TestAdministration:
    async def test_requires_admin(self, db, svc):
        async with db.get_session() as session:
            user = await svc.create_user(session, "ana@example.com", "senha123", "Ana", "supervisor")
            ctx = RequestContext(user_id=user.id, roles=("supervisor",))
            with pytest.raises(AuthorizationError):
                await svc.list_users(session, ctx)

    async def test_cannot_deactivate_self(self, db, svc):
        async with db.get_session() as session:
            admin = await svc.create_user(session, "root@example.com", "senha123", "Root", "admin")
            with pytest.raises(ValidationError):
                await svc.set_active(session, admin_ctx(admin), admin.id, False)

    async def test_update_user_role_and_email(self, db, svc):
        async with db.get_session() as session:
            admin = await svc.create_user(session, "root@example.com", "senha123", "Root", "admin")
            user = await svc.create_user(session, "ana@example.com", "senha123", "Ana")
            updated = await svc.update_user(
                session, admin_ctx(admin), user.id, email="ana.souza@example.com", role="supervisor"
            )
            assert updated.email == "ana.souza@example.com"
            assert updated.role_names == ["supervisor"]
            with pytest.raises(ConflictError):
                await svc.update_user(session, admin_ctx(admin), user.id, email="root@example.com")

    async def test_users_status(self, db, svc):
        async with db.get_session() as session:
            admin = await svc.create_user(session, "root@example.com", "senha123", "Root", "admin")
            user = await svc.create_user(session, "ana@example.com", "senha123", "Ana")
            await svc.set_active(session, admin_ctx(admin), user.id, False)
            status = await svc.users_status(session, admin_ctx(admin), [admin.id, user.id, "ghost"])
        assert status == [
            {"id": admin.id, "is_active": True},
            {"id": user.id, "is_active": False},
            {"id": "ghost", "is_active": None},
        ]

    async def test_emails_in_domain(self, db, svc):
        async with db.get_session() as session:
            admin = await svc.create_user(session, "root@example.com", "senha123", "Root", "admin")
            await svc.create_user(session, "ana@example.com", "senha123", "Ana")
            await svc.create_user(session, "bia@fornecedor.com", "senha123", "Bia")
            gone = await svc.create_user(session, "caio@example.com", "senha123", "Caio")
            await svc.set_active(session, admin_ctx(admin), gone.id, False)
            recipients = await svc.emails_in_domain(session, "example.com")
        assert sorted(recipients) == [("ana@example.com", "Ana"), ("root@example.com", "Root")]
