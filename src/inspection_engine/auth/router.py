"""Auth and admin user-management API routers."""

from fastapi import APIRouter, Depends

from inspection_engine.auth.policy import Action
from inspection_engine.auth.schemas import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    ResetPasswordRequest,
    UserCreate,
    UserResponse,
    UsersStatusRequest,
    UserStatusItem,
    UserStatusUpdate,
    UserUpdate,
)
from inspection_engine.common.security import (
    RequestContext,
    get_request_context,
    require_action,
)

router = APIRouter(prefix="/auth", tags=["auth"])
admin_router = APIRouter(prefix="/admin/users", tags=["admin"])


def _get_service():
    from inspection_engine.deps import get_auth_service
    return get_auth_service()


def _get_db():
    from inspection_engine.deps import get_db
    return get_db()


def _user_response(user) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        is_active=user.is_active,
        roles=user.role_names,
        created_at=user.created_at,
    )


@router.post("/login", response_model=LoginResponse)
async def login(body: LoginRequest):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user, token = await svc.login(session, body.email, body.password)
        return LoginResponse(
            access_token=token,
            expires_in=svc.settings.token_ttl,
            user=_user_response(user),
        )


@router.get("/me", response_model=UserResponse)
async def me(ctx: RequestContext = Depends(get_request_context)):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.get_by_id(session, ctx.user_id)
        return _user_response(user)


@router.post("/change-password", status_code=204)
async def change_password(
    body: ChangePasswordRequest,
    ctx: RequestContext = Depends(get_request_context),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.change_password(
            session, ctx, body.current_password, body.new_password
        )


# ── Admin ──


@admin_router.get("", response_model=list[UserResponse])
async def list_users(ctx: RequestContext = Depends(require_action(Action.USERS_MANAGE))):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        users = await svc.list_users(session, ctx)
        return [_user_response(u) for u in users]


@admin_router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreate,
    ctx: RequestContext = Depends(require_action(Action.USERS_MANAGE)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.admin_create_user(
            session, ctx,
            email=body.email,
            password=body.password,
            full_name=body.full_name,
            role=body.role.value,
        )
        return _user_response(user)


@admin_router.post("/status", response_model=list[UserStatusItem])
async def users_status(
    body: UsersStatusRequest,
    ctx: RequestContext = Depends(require_action(Action.USERS_MANAGE)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        rows = await svc.users_status(session, ctx, body.user_ids)
        return [UserStatusItem(**row) for row in rows]


@admin_router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdate,
    ctx: RequestContext = Depends(require_action(Action.USERS_MANAGE)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.update_user(
            session, ctx, user_id,
            full_name=body.full_name,
            email=body.email,
            role=body.role.value if body.role else None,
        )
        return _user_response(user)


@admin_router.post("/{user_id}/status", response_model=UserResponse)
async def set_user_status(
    user_id: str,
    body: UserStatusUpdate,
    ctx: RequestContext = Depends(require_action(Action.USERS_MANAGE)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        user = await svc.set_active(session, ctx, user_id, body.is_active)
        return _user_response(user)


@admin_router.post("/{user_id}/reset-password", status_code=204)
async def reset_password(
    user_id: str,
    body: ResetPasswordRequest,
    ctx: RequestContext = Depends(require_action(Action.USERS_MANAGE)),
):
    svc = _get_service()
    db = _get_db()
    async with db.get_session() as session:
        await svc.reset_password(session, ctx, user_id, body.new_password)
