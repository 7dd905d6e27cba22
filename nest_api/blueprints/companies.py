from flask import Blueprint, g

from nest_api.common.auth import requires_permission, requires_user
from nest_api.common.errors import AccessDenied, Forbidden, NotFound
from nest_api.common.http import ok, iso
from nest_api.common.paging import apply_q_search, apply_sort, paginate
from nest_api.common.validation import Payload, json_body
from nest_api.extensions import db
from nest_api.models.account import Account
from nest_api.models.company import AccountCompanyRole, Company
from nest_api.services import audit_service

bp = Blueprint("companies", __name__, url_prefix="/api/companies")

SETTINGS_FIELDS = {
    # field: max length
    "primary_color": 16, "icon": 40, "logo_url": 500,
    "address_line1": 255, "address_line2": 255, "city": 120, "postal_code": 20, "country": 120,
    "contact_phone": 40, "website": 255,
}


def _row(c: Company):
    return {
        "id": c.id,
        "name": c.name,
        "country_code": c.country_code,
        "currency": c.currency,
        "is_active": c.is_active,
        "branding": c.branding(),
        "created_at": iso(c.created_at),
    }


def _settings_row(c: Company):
    return {
        "company_id": c.id,
        "branding": c.branding(),
        "address": {
            "line1": c.address_line1,
            "line2": c.address_line2,
            "city": c.city,
            "postal_code": c.postal_code,
            "country": c.country,
        },
        "contact": {
            "email": c.contact_email,
            "phone": c.contact_phone,
            "website": c.website,
        },
    }


def _get_company_for_caller(cid: int) -> Company:
    c = db.session.get(Company, cid)
    if not c:
        raise NotFound("Company not found")
    if g.user.is_superuser:
        return c
    member = AccountCompanyRole.query.filter_by(account_id=g.user.account_id, company_id=c.id).first()
    if member is None:
        raise AccessDenied("You do not have access to this company")
    return c


def _read_core(p: Payload, creating: bool):
    return {
        "name": p.str("name", required=creating, max_len=255),
        "country_code": p.str("country_code", max_len=2),
        "currency": p.str("currency", max_len=3),
    }


@bp.get("")
@requires_permission("read", "company")
def list_companies():
    q = Company.query
    if not g.user.is_superuser:
        q = q.join(AccountCompanyRole, AccountCompanyRole.company_id == Company.id).filter(
            AccountCompanyRole.account_id == g.user.account_id
        )
    q = apply_q_search(q, Company.name)
    q = apply_sort(q, {"name": Company.name, "created_at": Company.created_at}, Company.name.asc())
    items, meta = paginate(q)
    return ok([_row(c) for c in items], **meta)


@bp.post("")
@requires_user
def create_company():
    if not g.user.is_superuser:
        raise Forbidden("Only superusers can create companies")
    p = Payload(json_body())
    fields = _read_core(p, creating=True)
    p.check()

    c = Company(**{k: (v.upper() if k in ("country_code", "currency") and v else v) for k, v in fields.items()})
    db.session.add(c)
    db.session.flush()

    # the creator administers the new company
    db.session.add(AccountCompanyRole(account_id=g.user.account_id, company_id=c.id, role="OWNER", is_admin=True))
    account = db.session.get(Account, g.user.account_id)
    if account.current_company_id is None:
        account.current_company_id = c.id

    audit_service.record("create", "company", c.id, company_id=c.id, new=_row(c))
    db.session.commit()
    return ok(_row(c), status=201)


@bp.get("/<int:cid>")
@requires_permission("read", "company")
def get_company(cid: int):
    return ok(_row(_get_company_for_caller(cid)))


@bp.put("/<int:cid>")
@requires_permission("write", "company")
def update_company(cid: int):
    c = _get_company_for_caller(cid)
    data = json_body()
    p = Payload(data)
    fields = {k: v for k, v in _read_core(p, creating=False).items() if p.has(k)}
    is_active = p.bool("is_active") if p.has("is_active") else None
    if "name" in fields and not fields["name"]:
        p.add_error("name", "cannot be empty")
    p.check()
    if is_active is not None and not g.user.is_superuser:
        raise Forbidden("Only superusers can activate or deactivate companies")

    before = _row(c)
    for k, v in fields.items():
        setattr(c, k, v.upper() if k in ("country_code", "currency") and v else v)
    if is_active is not None:
        c.is_active = is_active

    audit_service.record("update", "company", c.id, company_id=c.id, old=before, new=_row(c))
    db.session.commit()
    return ok(_row(c))


@bp.get("/<int:cid>/settings")
@requires_permission("read", "settings")
def get_settings(cid: int):
    return ok(_settings_row(_get_company_for_caller(cid)))


@bp.put("/<int:cid>/settings")
@requires_permission("write", "settings")
def update_settings(cid: int):
    c = _get_company_for_caller(cid)
    p = Payload(json_body())
    changes = {}
    for name, max_len in SETTINGS_FIELDS.items():
        if p.has(name):
            changes[name] = p.str(name, max_len=max_len)
    if p.has("contact_email"):
        changes["contact_email"] = p.email("contact_email")
    p.check()

    before = _settings_row(c)
    for k, v in changes.items():
        setattr(c, k, v)
    audit_service.record("update_settings", "company", c.id, company_id=c.id, old=before, new=_settings_row(c))
    db.session.commit()
    return ok(_settings_row(c))
