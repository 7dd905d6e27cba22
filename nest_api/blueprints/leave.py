from datetime import datetime
from decimal import Decimal

from flask import Blueprint, g, request

from nest_api.common.auth import current_company_id, requires_permission
from nest_api.common.errors import Conflict, Forbidden, NotFound
from nest_api.common.http import ok, iso
from nest_api.common.paging import apply_sort, paginate
from nest_api.common.scoping import is_full_access, scope_to_employees
from nest_api.common.validation import Payload, arg_id, json_body
from nest_api.extensions import db
from nest_api.models.employee import Employee
from nest_api.models.leave import LEAVE_STATUSES, LeavePolicy, LeaveRequest
from nest_api.rbac import can_approve_leave
from nest_api.services import audit_service

bp = Blueprint("leave", __name__, url_prefix="/api/leave")

CANCELLABLE = ("DRAFT", "SUBMITTED")

def _policy_row(x: LeavePolicy):
    return {
        "id": x.id,
        "company_id": x.company_id,
        "code": x.code,
        "name": x.name,
        "unit": x.unit,
        "carry_over_max": float(x.carry_over_max or 0),
        "is_active": x.is_active,
    }

def _row(r: LeaveRequest):
    return {
        "id": r.id,
        "company_id": r.company_id,
        "employee_id": r.employee_id,
        "employee_name": r.employee.full_name if r.employee else None,
        "leave_policy_id": r.leave_policy_id,
        "leave_policy_code": r.policy.code if r.policy else None,
        "start_date": iso(r.start_date),
        "end_date": iso(r.end_date),
        "days_requested": float(r.days_requested),
        "reason": r.reason,
        "status": r.status,
        "approved_by_account_id": r.approved_by_account_id,
        "approved_at": iso(r.approved_at),
        "decision_notes": r.decision_notes,
        "created_at": iso(r.created_at),
    }

def _get_in_company(rid: int) -> LeaveRequest:
    r = LeaveRequest.query.filter_by(id=rid, company_id=current_company_id()).first()
    if not r:
        raise NotFound("Leave request not found")
    return r

def _is_own(r: LeaveRequest) -> bool:
    return g.user.employee_id is not None and r.employee_id == g.user.employee_id


# ---------- policies ----------

@bp.get("/policies")
@requires_permission("read", "leave")
def list_policies():
    cid = current_company_id()
    q = LeavePolicy.query.filter_by(company_id=cid)
    if (request.args.get("include_inactive") or "").lower() not in ("1", "true", "yes"):
        q = q.filter(LeavePolicy.is_active.is_(True))
    return ok([_policy_row(x) for x in q.order_by(LeavePolicy.code.asc()).all()])

@bp.post("/policies")
@requires_permission("admin", "leave")
def create_policy():
    cid = current_company_id()
    p = Payload(json_body())
    code = p.str("code", required=True, max_len=20)
    name = p.str("name", required=True, max_len=100)
    unit = p.enum("unit", ("DAYS", "HOURS"), default="DAYS")
    carry = p.number("carry_over_max", min_value=0)
    p.check()

    code = code.upper()
    if LeavePolicy.query.filter_by(company_id=cid, code=code).first():
        raise Conflict(f"Leave policy {code} already exists")
    x = LeavePolicy(company_id=cid, code=code, name=name, unit=unit, carry_over_max=carry or 0)
    db.session.add(x)
    db.session.flush()
    audit_service.record("create", "leave_policy", x.id, company_id=cid, new=_policy_row(x))
    db.session.commit()
    return ok(_policy_row(x), status=201)


# ---------- requests ----------

@bp.get("")
@requires_permission("read", "leave")
def list_requests():
    cid = current_company_id()
    q = LeaveRequest.query.filter(LeaveRequest.company_id == cid)
    q = scope_to_employees(q, g.user, LeaveRequest.employee_id)

    status = (request.args.get("status") or "").strip().upper()
    if status in LEAVE_STATUSES:
        q = q.filter(LeaveRequest.status == status)
    eid = arg_id("employee_id")
    if eid:
        q = q.filter(LeaveRequest.employee_id == eid)

    q = apply_sort(q, {"start_date": LeaveRequest.start_date, "created_at": LeaveRequest.created_at},
                   LeaveRequest.created_at.desc())
    items, meta = paginate(q)
    return ok([_row(r) for r in items], **meta)

@bp.post("")
@requires_permission("write", "leave")
def apply_leave():
    cid = current_company_id()
    p = Payload(json_body())
    start = p.date("start_date", required=True)
    end = p.date("end_date", required=True)
    reason = p.str("reason")
    status = p.enum("status", ("DRAFT", "SUBMITTED"), default="SUBMITTED")
    policy_id = p.id("leave_policy_id")
    eid = p.id("employee_id")
    if start and end and end < start:
        p.add_error("end_date", "must be on or after start_date")
    if policy_id is not None and not LeavePolicy.query.filter_by(id=policy_id, company_id=cid, is_active=True).first():
        p.add_error("leave_policy_id", "not found in this company")

    if eid is None:
        eid = g.user.employee_id
    emp = Employee.query.filter_by(id=eid, company_id=cid).first() if eid is not None else None
    if emp is None:
        p.add_error("employee_id", "is required (no employee record linked to your account)"
                    if eid is None else "not found in this company")
    p.check()

    if emp.id != g.user.employee_id and not is_full_access(g.user):
        raise Forbidden("You can only request leave for yourself")

    r = LeaveRequest(
        company_id=cid, employee_id=emp.id, leave_policy_id=policy_id,
        start_date=start, end_date=end, reason=reason, status=status,
        days_requested=Decimal((end - start).days + 1),
    )
    db.session.add(r)
    db.session.flush()
    audit_service.record("create", "leave", r.id, company_id=cid, new=_row(r))
    db.session.commit()
    return ok(_row(r), status=201)

@bp.get("/<int:rid>")
@requires_permission("read", "leave")
def get_request(rid: int):
    r = _get_in_company(rid)
    if not (_is_own(r) or is_full_access(g.user) or can_approve_leave(g.user, r)):
        raise Forbidden("You cannot view this leave request")
    return ok(_row(r))

@bp.post("/<int:rid>/submit")
@requires_permission("write", "leave")
def submit_request(rid: int):
    r = _get_in_company(rid)
    if not _is_own(r) and not is_full_access(g.user):
        raise Forbidden("You can only submit your own leave requests")
    if r.status != "DRAFT":
        raise Conflict(f"Cannot submit a leave request in status {r.status}")
    r.status = "SUBMITTED"
    audit_service.record("submit", "leave", r.id, company_id=r.company_id,
                         old={"status": "DRAFT"}, new={"status": r.status})
    db.session.commit()
    return ok(_row(r))

@bp.post("/<int:rid>/approve")
@requires_permission("approve", "leave")
def approve_request(rid: int):
    r = _get_in_company(rid)
    p = Payload(json_body())
    decision = p.enum("status", ("APPROVED", "REJECTED"), default="APPROVED")
    notes = p.str("notes")
    p.check()

    if not can_approve_leave(g.user, r):
        raise Forbidden("You cannot approve this leave request")
    if r.status != "SUBMITTED":
        raise Conflict(f"Cannot decide on a leave request in status {r.status}")

    r.status = decision
    r.approved_by_account_id = g.user.account_id
    r.approved_at = datetime.utcnow()
    r.decision_notes = notes
    audit_service.record(decision.lower(), "leave", r.id, company_id=r.company_id,
                         old={"status": "SUBMITTED"}, new={"status": decision, "notes": notes})
    db.session.commit()
    return ok(_row(r))

@bp.post("/<int:rid>/cancel")
@requires_permission("write", "leave")
def cancel_request(rid: int):
    r = _get_in_company(rid)
    if not _is_own(r) and not is_full_access(g.user):
        raise Forbidden("You can only cancel your own leave requests")
    if r.status not in CANCELLABLE:
        raise Conflict(f"Cannot cancel a leave request in status {r.status}")
    before = r.status
    r.status = "CANCELLED"
    audit_service.record("cancel", "leave", r.id, company_id=r.company_id,
                         old={"status": before}, new={"status": r.status})
    db.session.commit()
    return ok(_row(r))
