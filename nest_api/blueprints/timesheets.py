from datetime import datetime, timedelta
from decimal import Decimal
from io import BytesIO

from flask import Blueprint, g, request, send_file
from openpyxl import Workbook

from nest_api.common.auth import current_company_id, requires_permission
from nest_api.common.errors import Conflict, Forbidden, NotFound
from nest_api.common.http import ok, iso
from nest_api.common.paging import apply_sort, paginate
from nest_api.common.scoping import is_full_access, scope_to_employees
from nest_api.common.validation import Payload, arg_id, json_body, parse_date
from nest_api.extensions import db
from nest_api.models.employee import Employee
from nest_api.models.timesheet import TIMESHEET_STATUSES, Timesheet, TimesheetEntry
from nest_api.rbac import can_access_employee, can_approve_timesheet
from nest_api.services import audit_service

bp = Blueprint("timesheets", __name__, url_prefix="/api/timesheets")

MAX_HOURS_PER_ENTRY = Decimal("24")

def _entry_row(e: TimesheetEntry):
    return {"id": e.id, "date": iso(e.date), "project": e.project, "hours": float(e.hours), "notes": e.notes}

def _row(t: Timesheet, with_entries=False):
    d = {
        "id": t.id,
        "company_id": t.company_id,
        "employee_id": t.employee_id,
        "employee_name": t.employee.full_name if t.employee else None,
        "week_start": iso(t.week_start),
        "status": t.status,
        "total_hours": float(t.total_hours or 0),
        "notes": t.notes,
        "submitted_at": iso(t.submitted_at),
        "approved_by_account_id": t.approved_by_account_id,
        "approved_at": iso(t.approved_at),
        "created_at": iso(t.created_at),
    }
    if with_entries:
        d["entries"] = [_entry_row(e) for e in t.entries]
    return d

def _get_in_company(tid: int) -> Timesheet:
    t = Timesheet.query.filter_by(id=tid, company_id=current_company_id()).first()
    if not t:
        raise NotFound("Timesheet not found")
    return t

def _resolve_target_employee(p: Payload, company_id: int):
    """Callers file for themselves; full-access roles may file for anyone in the company."""
    eid = p.id("employee_id")
    if eid is None:
        eid = g.user.employee_id
        if eid is None:
            p.add_error("employee_id", "is required (no employee record linked to your account)")
            return None
    emp = Employee.query.filter_by(id=eid, company_id=company_id).first()
    if not emp:
        p.add_error("employee_id", "not found in this company")
        return None
    if emp.id != g.user.employee_id and not is_full_access(g.user):
        raise Forbidden("You can only file timesheets for yourself")
    return emp

def _read_entries(p: Payload, week_start):
    entries = []
    for i, raw in enumerate(p.list("entries")):
        key = f"entries[{i}]"
        if not isinstance(raw, dict):
            p.add_error(key, "must be an object")
            continue
        ep = Payload(raw)
        day = ep.date("date", required=True)
        hours = ep.number("hours", required=True, min_value=0, max_value=MAX_HOURS_PER_ENTRY)
        project = ep.str("project", max_len=120)
        notes = ep.str("notes")
        if day and week_start and not (week_start <= day <= week_start + timedelta(days=6)):
            ep.add_error("date", "must fall within the timesheet week")
        for field, msg in ep.errors.items():
            p.add_error(f"{key}.{field}", msg)
        if not ep.errors:
            entries.append(TimesheetEntry(date=day, hours=hours, project=project, notes=notes))
    return entries


@bp.get("")
@requires_permission("read", "timesheet")
def list_timesheets():
    cid = current_company_id()
    q = Timesheet.query.filter(Timesheet.company_id == cid)
    q = scope_to_employees(q, g.user, Timesheet.employee_id)

    ws = parse_date(request.args.get("week_start"))
    if ws:
        q = q.filter(Timesheet.week_start == ws)
    eid = arg_id("employee_id")
    if eid:
        q = q.filter(Timesheet.employee_id == eid)
    status = (request.args.get("status") or "").strip().upper()
    if status in TIMESHEET_STATUSES:
        q = q.filter(Timesheet.status == status)

    q = apply_sort(q, {"week_start": Timesheet.week_start, "created_at": Timesheet.created_at},
                   Timesheet.week_start.desc())
    items, meta = paginate(q)
    return ok([_row(t) for t in items], **meta)


@bp.post("")
@requires_permission("write", "timesheet")
def create_timesheet():
    cid = current_company_id()
    p = Payload(json_body())
    week_start = p.date("week_start", required=True)
    notes = p.str("notes")
    emp = _resolve_target_employee(p, cid)
    entries = _read_entries(p, week_start)
    p.check()

    if Timesheet.query.filter_by(employee_id=emp.id, week_start=week_start).first():
        raise Conflict("A timesheet for this week already exists")

    t = Timesheet(company_id=cid, employee_id=emp.id, week_start=week_start, notes=notes, status="DRAFT")
    t.entries = entries
    t.total_hours = sum((e.hours for e in entries), Decimal("0"))
    db.session.add(t)
    db.session.flush()
    audit_service.record("create", "timesheet", t.id, company_id=cid, new=_row(t))
    db.session.commit()
    return ok(_row(t, with_entries=True), status=201)


@bp.get("/export")
@requires_permission("read", "timesheet")
def export_timesheets():
    """One row per entry for weeks starting between start_date and end_date, as xlsx."""
    cid = current_company_id()
    p = Payload(request.args.to_dict())
    start = p.date("start_date", required=True)
    end = p.date("end_date", required=True)
    eid = p.id("employee_id")
    if start and end and end < start:
        p.add_error("end_date", "must be on or after start_date")
    p.check()

    q = Timesheet.query.filter(Timesheet.company_id == cid, Timesheet.week_start >= start, Timesheet.week_start <= end)
    if eid is not None:
        emp = Employee.query.filter_by(id=eid, company_id=cid).first()
        if not emp:
            raise NotFound("Employee not found")
        if not can_access_employee(g.user, emp):
            raise Forbidden("You cannot export timesheets for this employee")
        q = q.filter(Timesheet.employee_id == emp.id)
    else:
        q = scope_to_employees(q, g.user, Timesheet.employee_id)
    sheets = q.order_by(Timesheet.week_start.asc(), Timesheet.id.asc()).all()

    wb = Workbook()
    ws = wb.active
    ws.title = "TIMESHEETS"
    ws.append(["EMPLOYEE", "DATE", "HOURS", "PROJECT", "STATUS", "WEEK START"])
    for t in sheets:
        for e in sorted(t.entries, key=lambda x: x.date):
            ws.append([
                t.employee.full_name, e.date.isoformat(), float(e.hours), e.project or "",
                t.status, t.week_start.isoformat(),
            ])

    bio = BytesIO()
    wb.save(bio)
    bio.seek(0)
    filename = f"timesheets_{start.isoformat()}_{end.isoformat()}.xlsx"
    return send_file(bio, mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", as_attachment=True, download_name=filename)


@bp.get("/<int:tid>")
@requires_permission("read", "timesheet")
def get_timesheet(tid: int):
    t = _get_in_company(tid)
    if not can_access_employee(g.user, t.employee):
        raise Forbidden("You cannot view this timesheet")
    return ok(_row(t, with_entries=True))


@bp.post("/<int:tid>/submit")
@requires_permission("write", "timesheet")
def submit_timesheet(tid: int):
    t = _get_in_company(tid)
    if t.employee_id != g.user.employee_id and not is_full_access(g.user):
        raise Forbidden("You can only submit your own timesheets")
    if t.status != "DRAFT":
        raise Conflict(f"Cannot submit a timesheet in status {t.status}")
    if not t.entries:
        raise Conflict("Cannot submit an empty timesheet")

    t.status = "SUBMITTED"
    t.submitted_at = datetime.utcnow()
    audit_service.record("submit", "timesheet", t.id, company_id=t.company_id,
                         old={"status": "DRAFT"}, new={"status": t.status})
    db.session.commit()
    return ok(_row(t))


@bp.post("/<int:tid>/approve")
@requires_permission("approve", "timesheet")
def approve_timesheet(tid: int):
    t = _get_in_company(tid)
    p = Payload(json_body())
    decision = p.enum("status", ("APPROVED", "REJECTED"), default="APPROVED")
    notes = p.str("notes")
    p.check()

    if not can_approve_timesheet(g.user, t):
        raise Forbidden("You cannot approve this timesheet")
    if t.status != "SUBMITTED":
        raise Conflict(f"Cannot decide on a timesheet in status {t.status}")

    t.status = decision
    t.approved_by_account_id = g.user.account_id
    t.approved_at = datetime.utcnow()
    if notes:
        t.notes = notes
    audit_service.record(decision.lower(), "timesheet", t.id, company_id=t.company_id,
                         old={"status": "SUBMITTED"}, new={"status": decision, "notes": notes})
    db.session.commit()
    return ok(_row(t))
