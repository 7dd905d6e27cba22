from flask import Blueprint, current_app, g, request

from nest_api.common.auth import current_company_id, requires_permission
from nest_api.common.errors import AccessDenied, Conflict, NotFound
from nest_api.common.http import ok, iso
from nest_api.common.paging import apply_q_search, apply_sort, paginate
from nest_api.common.validation import Payload, json_body
from nest_api.extensions import db
from nest_api.models.account import ACCOUNT_ROLES, Account
from nest_api.models.company import AccountCompanyRole, Company
from nest_api.services import audit_service

bp = Blueprint("accounts", __name__, url_prefix="/api/admin/accounts")

MIN_PASSWORD_LEN = 8

def _membership_row(m: AccountCompanyRole):
    return {
        "company_id": m.company_id,
        "company_name": m.company.name if m.company else None,
        "role": m.role,
        "is_admin": m.is_admin,
        "created_at": iso(m.created_at),
    }

def _row(a: Account):
    return {
        "id": a.id,
        "auth_user_id": a.auth_user_id,
        "email": a.email,
        "first_name": a.first_name,
        "last_name": a.last_name,
        "role": a.role,
        "is_superuser": a.is_superuser,
        "is_active": a.is_active,
        "current_company_id": a.current_company_id,
        "last_login": iso(a.last_login),
        "created_at": iso(a.created_at),
        "memberships": [_membership_row(m) for m in a.memberships],
    }

def _visible_query():
    """Superusers see every account; company admins see members of their current company."""
    q = Account.query
    if not g.user.is_superuser:
        q = q.join(AccountCompanyRole, AccountCompanyRole.account_id == Account.id).filter(
            AccountCompanyRole.company_id == current_company_id()
        )
    return q

def _get_visible(aid: int) -> Account:
    a = _visible_query().filter(Account.id == aid).first()
    if not a:
        raise NotFound("Account not found")
    return a

def _target_company_id(p: Payload):
    """Company a membership change applies to; non-superusers may only touch their current company."""
    cid = p.id("company_id")
    if "company_id" in p.errors:
        p.check()
    if cid is None:
        return current_company_id()
    if not db.session.get(Company, cid):
        raise NotFound("Company not found")
    if not g.user.is_superuser and cid != g.user.company_id:
        raise AccessDenied("You do not have access to this company")
    return cid


@bp.get("")
@requires_permission("admin", "settings")
def list_accounts():
    q = _visible_query()
    active = (request.args.get("is_active") or "").lower()
    if active in ("true", "1", "yes"):
        q = q.filter(Account.is_active.is_(True))
    elif active in ("false", "0", "no"):
        q = q.filter(Account.is_active.is_(False))
    q = apply_q_search(q, Account.email, Account.first_name, Account.last_name)
    q = apply_sort(q, {"email": Account.email, "created_at": Account.created_at}, Account.email.asc())
    items, meta = paginate(q)
    return ok([_row(a) for a in items], **meta)

@bp.post("")
@requires_permission("admin", "settings")
def create_account():
    data = json_body()
    p = Payload(data)
    email = p.email("email", required=True)
    first_name = p.str("first_name", max_len=80, default="")
    last_name = p.str("last_name", max_len=80, default="")
    role = p.enum("role", ACCOUNT_ROLES, default="EMPLOYEE")
    is_admin = p.bool("is_admin", default=False)
    password = data.get("password")
    if not isinstance(password, str) or len(password) < MIN_PASSWORD_LEN:
        p.add_error("password", f"must be at least {MIN_PASSWORD_LEN} characters")
    cid = _target_company_id(p)
    p.check()

    if Account.query.filter_by(email=email).first():
        raise Conflict("An account with this email already exists")

    a = Account(email=email, first_name=first_name, last_name=last_name, role=role, current_company_id=cid)
    a.set_password(password)
    db.session.add(a)
    db.session.flush()
    db.session.add(AccountCompanyRole(account_id=a.id, company_id=cid, role=role, is_admin=is_admin))
    db.session.flush()
    db.session.refresh(a)
    audit_service.record("create", "account", a.id, company_id=cid, new={"email": email, "role": role, "is_admin": is_admin})
    db.session.commit()
    current_app.logger.info("Account %s created by %s", email, g.user.email)
    return ok(_row(a), status=201)

@bp.get("/<int:aid>")
@requires_permission("admin", "settings")
def get_account(aid: int):
    return ok(_row(_get_visible(aid)))

@bp.put("/<int:aid>")
@requires_permission("admin", "settings")
def update_account(aid: int):
    a = _get_visible(aid)
    data = json_body()
    p = Payload(data)
    changes = {}
    if p.has("first_name"):
        changes["first_name"] = p.str("first_name", max_len=80, default="")
    if p.has("last_name"):
        changes["last_name"] = p.str("last_name", max_len=80, default="")
    if p.has("role"):
        changes["role"] = p.enum("role", ACCOUNT_ROLES, required=True)
    password = data.get("password")
    if password is not None and (not isinstance(password, str) or len(password) < MIN_PASSWORD_LEN):
        p.add_error("password", f"must be at least {MIN_PASSWORD_LEN} characters")
    p.check()

    before = {k: getattr(a, k) for k in changes}
    for k, v in changes.items():
        setattr(a, k, v)
    if password is not None:
        a.set_password(password)
    audit_service.record("update", "account", a.id, old=before,
                         new=dict(changes, password_changed=password is not None))
    db.session.commit()
    return ok(_row(a))

@bp.post("/<int:aid>/status")
@requires_permission("admin", "settings")
def set_status(aid: int):
    a = _get_visible(aid)
    p = Payload(json_body())
    is_active = p.bool("is_active", required=True)
    p.check()

    if a.id == g.user.account_id and not is_active:
        raise Conflict("You cannot deactivate your own account")
    before = a.is_active
    a.is_active = is_active
    audit_service.record("activate" if is_active else "deactivate", "account", a.id,
                         old={"is_active": before}, new={"is_active": is_active})
    db.session.commit()
    return ok(_row(a))

@bp.post("/<int:aid>/memberships")
@requires_permission("admin", "settings")
def upsert_membership(aid: int):
    a = _get_visible(aid)
    p = Payload(json_body())
    role = p.enum("role", ACCOUNT_ROLES, default="EMPLOYEE")
    is_admin = p.bool("is_admin", default=False)
    cid = _target_company_id(p)
    p.check()

    m = AccountCompanyRole.query.filter_by(account_id=a.id, company_id=cid).first()
    old = _membership_row(m) if m else None
    if m is None:
        m = AccountCompanyRole(account_id=a.id, company_id=cid)
        db.session.add(m)
    m.role = role
    m.is_admin = is_admin
    db.session.flush()
    audit_service.record("grant_membership", "account", a.id, company_id=cid, old=old,
                         new={"company_id": cid, "role": role, "is_admin": is_admin})
    db.session.commit()
    db.session.refresh(a)
    return ok(_row(a), status=200 if old else 201)

@bp.delete("/<int:aid>/memberships")
@requires_permission("admin", "settings")
def remove_membership(aid: int):
    a = _get_visible(aid)
    p = Payload({"company_id": request.args.get("company_id")} if "company_id" in request.args else json_body())
    cid = _target_company_id(p)
    p.check()

    m = AccountCompanyRole.query.filter_by(account_id=a.id, company_id=cid).first()
    if m is None:
        raise NotFound("Membership not found")
    old = _membership_row(m)
    db.session.delete(m)
    if a.current_company_id == cid:
        a.current_company_id = None
    audit_service.record("revoke_membership", "account", a.id, company_id=cid, old=old)
    db.session.commit()
    db.session.refresh(a)
    return ok(_row(a))
