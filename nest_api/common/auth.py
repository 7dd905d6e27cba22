# nest_api/common/auth.py
from __future__ import annotations

from functools import wraps

from flask import current_app, g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from nest_api.common.errors import Forbidden
from nest_api.common.http import fail
from nest_api.rbac import can
from nest_api.services.user_context import resolve_user


# ---------- JWT failure envelopes ----------

def register_jwt_handlers(jwt):
    @jwt.unauthorized_loader
    def _missing(reason):
        return fail("Missing authentication token", status=401, code="auth.missing", detail=reason)

    @jwt.invalid_token_loader
    def _invalid(reason):
        return fail("Invalid authentication token", status=401, code="auth.invalid", detail=reason)

    @jwt.expired_token_loader
    def _expired(jwt_header, jwt_payload):
        return fail("Session expired, please sign in again", status=401, code="auth.expired")

    @jwt.revoked_token_loader
    def _revoked(jwt_header, jwt_payload):
        return fail("Token has been revoked", status=401, code="auth.invalid")


# ---------- decorators ----------

def requires_user(fn):
    """
    Verify the JWT (header or cookie), resolve the caller and store the
    UserContext in ``g.user``.
    """
    @wraps(fn)
    def inner(*args, **kwargs):
        verify_jwt_in_request()
        ctx = resolve_user(get_jwt_identity())
        if ctx is None:
            return fail("User not found", status=404, code="user.not_found")
        if not ctx.is_active:
            return fail("Account is not active. Please contact support.", status=403, code="auth.inactive")
        g.user = ctx
        return fn(*args, **kwargs)
    return inner


def requires_permission(action: str, entity: str):
    """
    Usage:
      @bp.get("/employees")
      @requires_permission("read", "employee")
      def list_employees(): ...
    """
    def outer(fn):
        @wraps(fn)
        @requires_user
        def inner(*args, **kwargs):
            ctx = g.user
            if not can(ctx.role, action, entity):
                current_app.logger.warning(
                    "RBAC deny account=%s role=%s needs=%s:%s", ctx.account_id, ctx.role, entity, action
                )
                return fail("Forbidden", status=403, code="auth.forbidden")
            return fn(*args, **kwargs)
        return inner
    return outer


def current_company_id() -> int:
    """Company the caller is working in; 403 when none is selected."""
    cid = getattr(g.user, "company_id", None)
    if cid is None:
        raise Forbidden("No current company selected", code="company.not_selected")
    return cid
