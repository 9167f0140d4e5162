"""Bearer-token authentication dependencies."""

from dataclasses import dataclass, field

from fastapi import Depends, Header

from inspection_engine.common.exceptions import AuthenticationError


@dataclass(frozen=True)
class RequestContext:
    """Authenticated caller, resolved once per request."""
    user_id: str
    email: str = ""
    full_name: str = ""
    roles: tuple[str, ...] = field(default_factory=tuple)

    def has_role(self, role: str) -> bool:
        return role in self.roles


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise AuthenticationError("Missing Authorization header")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Authorization header must be 'Bearer <token>'")
    return token.strip()


async def get_request_context(
    authorization: str = Header(None, alias="Authorization"),
) -> RequestContext:
    """FastAPI dependency that resolves the caller from a bearer token."""
    from inspection_engine.auth.credentials import verify_access_token
    from inspection_engine.common.config import get_settings
    from inspection_engine.deps import get_auth_service, get_db

    settings = get_settings()
    token = _bearer_token(authorization)
    user_id = verify_access_token(token, settings.secret_key, settings.token_ttl)
    if user_id is None:
        raise AuthenticationError("Invalid or expired token")

    svc = get_auth_service()
    db = get_db()
    async with db.get_session() as session:
        user = await svc.get_by_id(session, user_id)
        if user is None or not user.is_active:
            raise AuthenticationError("User not found or inactive")
        return RequestContext(
            user_id=user.id,
            email=user.email,
            full_name=user.full_name,
            roles=tuple(user.role_names),
        )


def require_action(action):
    """Dependency factory gating a route on a policy action."""
    from inspection_engine.auth.policy import require

    async def dependency(
        ctx: RequestContext = Depends(get_request_context),
    ) -> RequestContext:
        require(ctx, action)
        return ctx

    return dependency
