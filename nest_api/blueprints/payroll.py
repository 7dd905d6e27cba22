from flask import Blueprint, g, request

from nest_api.common.auth import current_company_id, requires_permission
from nest_api.common.errors import Conflict, Forbidden, NotFound
from nest_api.common.http import ok, iso
from nest_api.common.paging import paginate
from nest_api.common.validation import Payload, json_body
from nest_api.extensions import db
from nest_api.models.payroll import PAYROLL_STATUSES, PAYROLL_TRANSITIONS, PayrollCycle
from nest_api.rbac import can
from nest_api.services import audit_service

bp = Blueprint("payroll", __name__, url_prefix="/api/payroll")

MIN_YEAR, MAX_YEAR = 2020, 2100

def _row(x: PayrollCycle):
    return {
        "id": x.id,
        "company_id": x.company_id,
        "month": x.month,
        "year": x.year,
        "document_url": x.document_url,
        "notes": x.notes,
        "status": x.status,
        "created_by_account_id": x.created_by_account_id,
        "created_at": iso(x.created_at),
        "updated_at": iso(x.updated_at),
    }

def _get_in_company(pid: int) -> PayrollCycle:
    x = PayrollCycle.query.filter_by(id=pid, company_id=current_company_id()).first()
    if not x:
        raise NotFound("Payroll cycle not found")
    return x

def _move(x: PayrollCycle, target: str):
    if target == x.status:
        return
    if target not in PAYROLL_TRANSITIONS.get(x.status, ()):
        raise Conflict(f"Cannot move payroll cycle from {x.status} to {target}")
    if target == "APPROVED" and not can(g.user.role, "approve", "payroll"):
        raise Forbidden("You cannot approve payroll")
    x.status = target


@bp.get("")
@requires_permission("read", "payroll")
def list_cycles():
    cid = current_company_id()
    q = PayrollCycle.query.filter(PayrollCycle.company_id == cid)
    month = request.args.get("month", type=int)
    if month:
        q = q.filter(PayrollCycle.month == month)
    year = request.args.get("year", type=int)
    if year:
        q = q.filter(PayrollCycle.year == year)
    status = (request.args.get("status") or "").strip().upper()
    if status in PAYROLL_STATUSES:
        q = q.filter(PayrollCycle.status == status)
    q = q.order_by(PayrollCycle.year.desc(), PayrollCycle.month.desc())
    items, meta = paginate(q)
    return ok([_row(x) for x in items], **meta)

@bp.post("")
@requires_permission("write", "payroll")
def create_cycle():
    cid = current_company_id()
    p = Payload(json_body())
    month = p.int("month", required=True, min_value=1, max_value=12)
    year = p.int("year", required=True, min_value=MIN_YEAR, max_value=MAX_YEAR)
    document_url = p.str("document_url", max_len=500)
    notes = p.str("notes")
    p.check()

    if PayrollCycle.query.filter_by(company_id=cid, month=month, year=year).first():
        raise Conflict(f"A payroll cycle for {month}/{year} already exists", code="payroll.duplicate")

    x = PayrollCycle(company_id=cid, month=month, year=year, document_url=document_url, notes=notes,
                     status="UPLOADED", created_by_account_id=g.user.account_id)
    db.session.add(x)
    db.session.flush()
    audit_service.record("create", "payroll", x.id, company_id=cid, new=_row(x))
    db.session.commit()
    return ok(_row(x), status=201)

@bp.get("/<int:pid>")
@requires_permission("read", "payroll")
def get_cycle(pid: int):
    return ok(_row(_get_in_company(pid)))

@bp.put("/<int:pid>")
@requires_permission("write", "payroll")
def update_cycle(pid: int):
    x = _get_in_company(pid)
    p = Payload(json_body())
    status = p.enum("status", PAYROLL_STATUSES) if p.has("status") else None
    document_url = p.str("document_url", max_len=500) if p.has("document_url") else None
    notes = p.str("notes") if p.has("notes") else None
    p.check()

    if x.status == "ARCHIVED":
        raise Conflict("Archived payroll cycles are read-only")

    before = _row(x)
    if p.has("document_url"):
        x.document_url = document_url
    if p.has("notes"):
        x.notes = notes
    if status:
        _move(x, status)
    audit_service.record("update", "payroll", x.id, company_id=x.company_id, old=before, new=_row(x))
    db.session.commit()
    return ok(_row(x))

@bp.delete("/<int:pid>")
@requires_permission("delete", "payroll")
def archive_cycle(pid: int):
    x = _get_in_company(pid)
    if x.status != "ARCHIVED":
        before = _row(x)
        x.status = "ARCHIVED"
        audit_service.record("archive", "payroll", x.id, company_id=x.company_id, old=before, new=_row(x))
        db.session.commit()
    return ok(_row(x))
