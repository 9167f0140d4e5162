"""User accounts, login and admin user management."""

import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from inspection_engine.auth.credentials import (
    create_access_token,
    hash_password,
    validate_password,
    verify_password,
)
from inspection_engine.auth.models import UserModel, UserRoleModel
from inspection_engine.auth.policy import Action, Role, require
from inspection_engine.common.config import InspectionSettings
from inspection_engine.common.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def _check_role(role: str) -> str:
    try:
        return Role(role).value
    except ValueError:
        raise ValidationError(f"Invalid role '{role}'")


class AuthService:
    """Authentication and user administration."""

    def __init__(self, settings: InspectionSettings):
        self.settings = settings

    # ── Lookups ──

    async def get_by_id(self, session: AsyncSession, user_id: str) -> UserModel | None:
        return await session.get(UserModel, user_id)

    async def get_by_email(self, session: AsyncSession, email: str) -> UserModel | None:
        result = await session.execute(
            select(UserModel).where(UserModel.email == _normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def _get_or_404(self, session: AsyncSession, user_id: str) -> UserModel:
        user = await self.get_by_id(session, user_id)
        if user is None:
            raise NotFoundError(f"User '{user_id}' not found")
        return user

    async def list_users(self, session: AsyncSession, ctx: Any) -> list[UserModel]:
        require(ctx, Action.USERS_MANAGE)
        result = await session.execute(select(UserModel).order_by(UserModel.full_name))
        return list(result.scalars().all())

    async def names_by_id(self, session: AsyncSession, user_ids: set[str]) -> dict[str, str]:
        """Map user ids to display names; unknown ids are left out."""
        if not user_ids:
            return {}
        result = await session.execute(
            select(UserModel.id, UserModel.full_name).where(UserModel.id.in_(user_ids))
        )
        return {row.id: row.full_name for row in result}

    async def emails_in_domain(self, session: AsyncSession, domain: str) -> list[tuple[str, str]]:
        """(email, full_name) of active users whose email ends with ``@domain``."""
        suffix = "@" + domain.lstrip("@").lower()
        result = await session.execute(
            select(UserModel.email, UserModel.full_name).where(
                UserModel.email.like(f"%{suffix}"),
                UserModel.is_active.is_(True),
            )
        )
        return [(row.email, row.full_name) for row in result]

    # ── Authentication ──

    async def create_user(
        self,
        session: AsyncSession,
        email: str,
        password: str,
        full_name: str,
        role: str = Role.TECHNICIAN.value,
    ) -> UserModel:
        """Create an account without an authorization check (bootstrap/CLI use)."""
        email = _normalize_email(email)
        full_name = (full_name or "").strip()
        if not email or not full_name:
            raise ValidationError("Email and full name are required")
        validate_password(password)
        role = _check_role(role)
        if await self.get_by_email(session, email) is not None:
            raise ConflictError(f"A user with email '{email}' already exists")
        user = UserModel(
            email=email,
            full_name=full_name,
            password_hash=hash_password(password),
            is_active=True,
        )
        user.roles = [UserRoleModel(role=role)]
        session.add(user)
        await session.flush()
        logger.info("Created user %s with role %s", user.id, role)
        return user

    async def authenticate(
        self, session: AsyncSession, email: str, password: str
    ) -> UserModel:
        user = await self.get_by_email(session, email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("Account is deactivated")
        return user

    async def login(
        self, session: AsyncSession, email: str, password: str
    ) -> tuple[UserModel, str]:
        user = await self.authenticate(session, email, password)
        token = create_access_token(user.id, self.settings.secret_key)
        logger.info("User %s logged in", user.id)
        return user, token

    async def change_password(
        self,
        session: AsyncSession,
        ctx: Any,
        current_password: str,
        new_password: str,
    ) -> None:
        user = await self._get_or_404(session, ctx.user_id)
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")
        validate_password(new_password)
        user.password_hash = hash_password(new_password)
        await session.flush()

    # ── Administration ──

    async def admin_create_user(
        self,
        session: AsyncSession,
        ctx: Any,
        email: str,
        password: str,
        full_name: str,
        role: str,
    ) -> UserModel:
        require(ctx, Action.USERS_MANAGE)
        return await self.create_user(session, email, password, full_name, role)

    async def update_user(
        self,
        session: AsyncSession,
        ctx: Any,
        user_id: str,
        full_name: str | None = None,
        email: str | None = None,
        role: str | None = None,
    ) -> UserModel:
        require(ctx, Action.USERS_MANAGE)
        user = await self._get_or_404(session, user_id)
        if full_name is not None:
            full_name = full_name.strip()
            if not full_name:
                raise ValidationError("Full name cannot be empty")
            user.full_name = full_name
        if email is not None:
            email = _normalize_email(email)
            if not email:
                raise ValidationError("Email cannot be empty")
            existing = await self.get_by_email(session, email)
            if existing is not None and existing.id != user.id:
                raise ConflictError(f"A user with email '{email}' already exists")
            user.email = email
        if role is not None:
            role = _check_role(role)
            if user.role_names != [role]:
                user.roles = [UserRoleModel(role=role)]
        await session.flush()
        logger.info("User %s updated by %s", user.id, ctx.user_id)
        return user

    async def set_active(
        self, session: AsyncSession, ctx: Any, user_id: str, active: bool
    ) -> UserModel:
        require(ctx, Action.USERS_MANAGE)
        if user_id == ctx.user_id and not active:
            raise ValidationError("You cannot deactivate your own account")
        user = await self._get_or_404(session, user_id)
        user.is_active = active
        await session.flush()
        logger.info(
            "User %s %s by %s",
            user.id, "activated" if active else "deactivated", ctx.user_id,
        )
        return user

    async def reset_password(
        self, session: AsyncSession, ctx: Any, user_id: str, new_password: str
    ) -> UserModel:
        require(ctx, Action.USERS_MANAGE)
        validate_password(new_password)
        user = await self._get_or_404(session, user_id)
        user.password_hash = hash_password(new_password)
        await session.flush()
        logger.info("Password reset for user %s by %s", user.id, ctx.user_id)
        return user

    async def users_status(
        self, session: AsyncSession, ctx: Any, user_ids: list[str]
    ) -> list[dict[str, Any]]:
        """Active flag for each requested id; unknown ids report ``None``."""
        require(ctx, Action.USERS_MANAGE)
        if not user_ids:
            return []
        result = await session.execute(
            select(UserModel.id, UserModel.is_active).where(UserModel.id.in_(user_ids))
        )
        found = {row.id: row.is_active for row in result}
        return [{"id": uid, "is_active": found.get(uid)} for uid in user_ids]
