from flask import Blueprint, g
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request

from nest_api.common.auth import requires_user
from nest_api.common.http import fail, ok
from nest_api.common.validation import MAX_ID, json_body
from nest_api.rbac import allowed_actions
from nest_api.services import company_context
from nest_api.services.portal import resolve_portal
from nest_api.services.user_context import resolve_user

bp = Blueprint("user_context", __name__, url_prefix="/api/user")


@bp.get("/role")
@requires_user
def role():
    data = g.user.to_dict()
    data["permissions"] = allowed_actions(g.user.role)
    return ok(data)


@bp.get("/companies")
@requires_user
def companies():
    return ok(company_context.get_account_companies(g.user.account_id))


@bp.get("/current-company")
@requires_user
def current_company():
    info = company_context.get_current_company_info(g.user.account_id)
    if info is None:
        return fail("No current company", status=404, code="company.not_selected")
    return ok(info)


@bp.post("/current-company")
@requires_user
def switch_current_company():
    data = json_body()
    raw = data.get("company_id")
    if raw in (None, ""):
        return fail("company_id is required", status=400, code="company_id.required")
    try:
        if isinstance(raw, bool) or (isinstance(raw, float) and not raw.is_integer()):
            raise ValueError(raw)
        company_id = int(raw)
    except (TypeError, ValueError, OverflowError):
        return fail("company_id must be an integer", status=400, code="company_id.invalid")
    if not 1 <= company_id <= MAX_ID:
        return fail("company_id is out of range", status=400, code="company_id.invalid")

    # NotFound / AccessDenied propagate to the error handlers
    info = company_context.switch_company(g.user.account_id, company_id)
    return ok(info)


@bp.get("/portal")
def portal():
    verify_jwt_in_request(optional=True)
    ident = get_jwt_identity()
    ctx = resolve_user(ident) if ident else None
    if ctx is None or not ctx.is_active:
        return ok({"redirect_to": resolve_portal(None, [], None)})

    companies = company_context.get_account_companies(ctx.account_id)
    current = company_context.get_current_company_info(ctx.account_id)
    return ok({"redirect_to": resolve_portal(ctx, companies, current)})
