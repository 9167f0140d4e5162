"""Role-based authorization predicate shared by routers and services.

Every permission decision goes through :func:`is_allowed`, a pure function of
(caller, action, resource). HTTP dependencies use it to gate routes and the
services call it again before mutating anything, so a service invoked
outside the API (CLI, tests) enforces the same rules.
"""

import enum
from typing import Any

from inspection_engine.common.exceptions import AuthorizationError


class Role(str, enum.Enum):
    TECHNICIAN = "tecnico"
    SUPERVISOR = "supervisor"
    ADMIN = "admin"


class Action(str, enum.Enum):
    INSPECTION_VIEW = "inspection.view"
    INSPECTION_CREATE = "inspection.create"
    INSPECTION_EDIT = "inspection.edit"
    INSPECTION_FINALIZE = "inspection.finalize"
    INSPECTION_REVIEW = "inspection.review"
    CATALOG_VIEW = "catalog.view"
    CATALOG_MANAGE = "catalog.manage"
    DELIVERY_VIEW = "delivery.view"
    DELIVERY_MANAGE = "delivery.manage"
    REPORTS_VIEW = "reports.view"
    USERS_MANAGE = "users.manage"


_TECHNICIAN_ACTIONS = frozenset({
    Action.INSPECTION_VIEW,
    Action.INSPECTION_CREATE,
    Action.INSPECTION_EDIT,
    Action.INSPECTION_FINALIZE,
    Action.CATALOG_VIEW,
    Action.DELIVERY_VIEW,
    Action.DELIVERY_MANAGE,
})

_SUPERVISOR_ACTIONS = _TECHNICIAN_ACTIONS | {
    Action.INSPECTION_REVIEW,
    Action.CATALOG_MANAGE,
    Action.REPORTS_VIEW,
}

ROLE_ACTIONS: dict[Role, frozenset[Action]] = {
    Role.TECHNICIAN: _TECHNICIAN_ACTIONS,
    Role.SUPERVISOR: _SUPERVISOR_ACTIONS,
    Role.ADMIN: frozenset(Action),
}

# Technicians may only perform these on inspections they created.
OWNED_ACTIONS = frozenset({Action.INSPECTION_EDIT, Action.INSPECTION_FINALIZE})

REVIEWER_ROLES = frozenset({Role.SUPERVISOR, Role.ADMIN})


def _roles_of(ctx: Any) -> set[Role]:
    roles = set()
    for raw in getattr(ctx, "roles", ()) or ():
        try:
            roles.add(Role(raw))
        except ValueError:
            continue
    return roles


def is_allowed(ctx: Any, action: Action, resource: Any = None) -> bool:
    """Return True if ``ctx`` may perform ``action`` on ``resource``.

    ``ctx`` needs ``user_id`` and ``roles``; ``resource`` is consulted only for
    ownership-scoped actions and must expose ``created_by``.
    """
    if ctx is None:
        return False
    roles = _roles_of(ctx)
    if not any(action in ROLE_ACTIONS[role] for role in roles):
        return False
    if action in OWNED_ACTIONS and resource is not None:
        if roles & REVIEWER_ROLES:
            return True
        return getattr(resource, "created_by", None) == ctx.user_id
    return True


def require(ctx: Any, action: Action, resource: Any = None) -> None:
    """Raise AuthorizationError unless :func:`is_allowed` passes."""
    if not is_allowed(ctx, action, resource):
        raise AuthorizationError(f"Permission required: {action.value}")


def can_approve(ctx: Any) -> bool:
    """Only supervisors and admins review finalized inspections."""
    return is_allowed(ctx, Action.INSPECTION_REVIEW)
