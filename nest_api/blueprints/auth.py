from datetime import datetime

from flask import Blueprint, current_app, g
from flask_jwt_extended import (
    create_access_token, create_refresh_token,
    get_jwt_identity, jwt_required,
    set_access_cookies, set_refresh_cookies, unset_jwt_cookies,
)

from nest_api.common.auth import requires_user
from nest_api.common.http import fail, ok, iso
from nest_api.common.validation import Payload, json_body
from nest_api.extensions import db
from nest_api.models.account import Account
from nest_api.services import company_context
from nest_api.services.portal import resolve_portal
from nest_api.services.user_context import resolve_user

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _account_payload(a: Account):
    return {
        "id": a.id,
        "auth_user_id": a.auth_user_id,
        "email": a.email,
        "first_name": a.first_name,
        "last_name": a.last_name,
        "full_name": a.full_name,
        "role": a.role,
        "is_superuser": a.is_superuser,
        "is_active": a.is_active,
        "current_company_id": a.current_company_id,
        "last_login": iso(a.last_login),
    }


def _tokens_for(a: Account):
    claims = {"email": a.email, "name": a.full_name}
    access = create_access_token(identity=a.auth_user_id, additional_claims=claims)
    refresh = create_refresh_token(identity=a.auth_user_id)
    return access, refresh


@bp.post("/login")
def login():
    data = json_body()
    p = Payload(data)
    email = p.email("email", required=True)
    password = data.get("password")
    if not isinstance(password, str) or not password:
        p.add_error("password", "is required")
    p.check()

    a = Account.query.filter_by(email=email).first()
    if not a or not a.check_password(password):
        current_app.logger.info("Failed login for %s", email)
        return fail("Invalid credentials", status=401, code="auth.invalid_credentials")
    if not a.is_active:
        return fail("Account is not active. Please contact support.", status=403, code="auth.inactive")

    a.last_login = datetime.utcnow()
    db.session.commit()
    company_context.ensure_current_company(a.id)

    access, refresh = _tokens_for(a)
    resp, status = ok({"access": access, "refresh": refresh, "user": _account_payload(a)})
    set_access_cookies(resp, access)
    set_refresh_cookies(resp, refresh)
    return resp, status


@bp.post("/refresh")
@jwt_required(refresh=True)
def refresh():
    a = Account.query.filter_by(auth_user_id=str(get_jwt_identity())).first()
    if not a or not a.is_active:
        return fail("Session is no longer valid", status=401, code="auth.invalid")
    access = create_access_token(identity=a.auth_user_id, additional_claims={"email": a.email, "name": a.full_name})
    resp, status = ok({"access": access})
    set_access_cookies(resp, access)
    return resp, status


@bp.post("/logout")
def logout():
    resp, status = ok({"logged_out": True})
    unset_jwt_cookies(resp)
    return resp, status


@bp.get("/me")
@requires_user
def me():
    a = db.session.get(Account, g.user.account_id)
    data = _account_payload(a)
    data["context"] = g.user.to_dict()
    return ok(data)


@bp.get("/session")
@requires_user
def session():
    """User, companies, current company and where the client should land."""
    account_id = g.user.account_id
    company_context.ensure_current_company(account_id)
    ctx = resolve_user(g.user.auth_user_id) or g.user

    companies = company_context.get_account_companies(account_id)
    current = company_context.get_current_company_info(account_id)
    a = db.session.get(Account, account_id)
    return ok({
        "user": dict(_account_payload(a), role=ctx.role, company_id=ctx.company_id, is_admin=ctx.is_admin),
        "companies": companies,
        "current_company": current,
        "redirect_to": resolve_portal(ctx, companies, current),
    })
