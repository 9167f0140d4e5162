"""Tests for the role-based authorization predicate."""

from types import SimpleNamespace

import pytest

from inspection_engine.auth.policy import Action, can_approve, is_allowed, require
from inspection_engine.common.exceptions import AuthorizationError
from inspection_engine.common.security import RequestContext

TECH = RequestContext(user_id="u1", roles=("tecnico",))
SUPERVISOR = RequestContext(user_id="u2", roles=("supervisor",))
ADMIN = RequestContext(user_id="u3", roles=("admin",))
NOBODY = RequestContext(user_id="u4", roles=())

OWN = SimpleNamespace(created_by="u1")
OTHERS = SimpleNamespace(created_by="u9")


class TestIsAllowed:
    def test_technician_basics(self):
        assert is_allowed(TECH, Action.INSPECTION_CREATE)
        assert is_allowed(TECH, Action.INSPECTION_VIEW)
        assert is_allowed(TECH, Action.CATALOG_VIEW)
        assert not is_allowed(TECH, Action.INSPECTION_REVIEW)
        assert not is_allowed(TECH, Action.REPORTS_VIEW)
        assert not is_allowed(TECH, Action.CATALOG_MANAGE)
        assert not is_allowed(TECH, Action.USERS_MANAGE)

    def test_technician_edits_only_own(self):
        assert is_allowed(TECH, Action.INSPECTION_EDIT, OWN)
        assert not is_allowed(TECH, Action.INSPECTION_EDIT, OTHERS)
        assert not is_allowed(TECH, Action.INSPECTION_FINALIZE, OTHERS)

    def test_supervisor_edits_any(self):
        assert is_allowed(SUPERVISOR, Action.INSPECTION_EDIT, OTHERS)
        assert is_allowed(SUPERVISOR, Action.INSPECTION_REVIEW)
        assert is_allowed(SUPERVISOR, Action.REPORTS_VIEW)
        assert not is_allowed(SUPERVISOR, Action.USERS_MANAGE)

    def test_admin_has_everything(self):
        for action in Action:
            assert is_allowed(ADMIN, action, OTHERS)

    def test_no_roles(self):
        assert not is_allowed(NOBODY, Action.INSPECTION_VIEW)

    def test_no_context(self):
        assert not is_allowed(None, Action.INSPECTION_VIEW)

    def test_unknown_roles_ignored(self):
        ctx = RequestContext(user_id="u5", roles=("visitante", "tecnico"))
        assert is_allowed(ctx, Action.INSPECTION_VIEW)


class TestRequire:
    def test_raises_forbidden(self):
        with pytest.raises(AuthorizationError):
            require(TECH, Action.USERS_MANAGE)

    def test_passes(self):
        require(ADMIN, Action.USERS_MANAGE)


class TestCanApprove:
    def test_roles(self):
        assert can_approve(SUPERVISOR)
        assert can_approve(ADMIN)
        assert not can_approve(TECH)
