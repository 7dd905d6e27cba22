from __future__ import annotations

from flask import Blueprint, g, request

from nest_api.common.auth import current_company_id, requires_permission
from nest_api.common.errors import Conflict, Forbidden, NotFound
from nest_api.common.http import ok, iso
from nest_api.common.paging import apply_q_search, apply_sort, paginate
from nest_api.common.scoping import scope_to_employees
from nest_api.common.validation import Payload, arg_id, json_body
from nest_api.extensions import db
from nest_api.models.account import Account
from nest_api.models.company import AccountCompanyRole
from nest_api.models.employee import EMPLOYEE_STATUSES, EMPLOYMENT_TYPES, SALARY_PERIODS, Employee
from nest_api.rbac import can_access_employee
from nest_api.services import audit_service

bp = Blueprint("employees", __name__, url_prefix="/api/employees")

SORTABLE = {
    "first_name": Employee.first_name,
    "last_name": Employee.last_name,
    "hire_date": Employee.hire_date,
    "created_at": Employee.created_at,
}

def _row(x: Employee):
    return {
        "id": x.id,
        "company_id": x.company_id,
        "account_id": x.account_id,
        "manager_id": x.manager_id,
        "manager_name": x.manager.full_name if x.manager else None,
        "first_name": x.first_name,
        "last_name": x.last_name,
        "email": x.email,
        "phone": x.phone,
        "position_title": x.position_title,
        "department": x.department,
        "hire_date": iso(x.hire_date),
        "employment_type": x.employment_type,
        "base_salary": float(x.base_salary) if x.base_salary is not None else None,
        "salary_period": x.salary_period,
        "status": x.status,
        "onboarding_completed": x.onboarding_completed,
        "created_at": iso(x.created_at),
    }

def _get_in_company(eid: int) -> Employee:
    emp = Employee.query.filter_by(id=eid, company_id=current_company_id()).first()
    if not emp:
        raise NotFound("Employee not found")
    return emp

def _read_fields(p: Payload, creating: bool) -> dict:
    """Read the editable employee fields; on update only the keys present in the body."""
    readers = {
        "first_name": lambda: p.str("first_name", required=creating, max_len=80),
        "last_name": lambda: p.str("last_name", required=creating, max_len=80),
        "email": lambda: p.email("email", required=creating),
        "phone": lambda: p.str("phone", max_len=40),
        "position_title": lambda: p.str("position_title", required=creating, max_len=120),
        "department": lambda: p.str("department", max_len=120),
        "hire_date": lambda: p.date("hire_date"),
        "employment_type": lambda: p.enum("employment_type", EMPLOYMENT_TYPES, default="FULL_TIME"),
        "base_salary": lambda: p.number("base_salary", min_value=0),
        "salary_period": lambda: p.enum("salary_period", SALARY_PERIODS, default="MONTHLY"),
        "status": lambda: p.enum("status", EMPLOYEE_STATUSES, default="ACTIVE"),
        "onboarding_completed": lambda: p.bool("onboarding_completed", default=False),
        "manager_id": lambda: p.id("manager_id"),
    }
    out = {}
    for name, read in readers.items():
        if creating or p.has(name):
            out[name] = read()
    if not creating:
        for name in ("first_name", "last_name", "email", "position_title"):
            if name in out and not out[name] and name not in p.errors:
                p.add_error(name, "cannot be empty")
    return out

def _check_manager(p: Payload, company_id: int, manager_id, self_id=None):
    if manager_id is None:
        return
    if self_id is not None and manager_id == self_id:
        p.add_error("manager_id", "an employee cannot manage themselves")
        return
    if not Employee.query.filter_by(id=manager_id, company_id=company_id).first():
        p.add_error("manager_id", "not found in this company")


# ---------- list / create ----------

@bp.get("")
@requires_permission("read", "employee")
def list_employees():
    cid = current_company_id()
    q = Employee.query.filter(Employee.company_id == cid)
    q = scope_to_employees(q, g.user, Employee.id)

    status = (request.args.get("status") or "").strip().upper()
    if status:
        q = q.filter(Employee.status == status)
    dept = (request.args.get("department") or "").strip()
    if dept:
        q = q.filter(Employee.department == dept)
    mgr = arg_id("manager_id")
    if mgr:
        q = q.filter(Employee.manager_id == mgr)

    q = apply_q_search(q, Employee.first_name, Employee.last_name, Employee.email, Employee.position_title)
    q = apply_sort(q, SORTABLE, Employee.last_name.asc())
    items, meta = paginate(q)
    return ok([_row(x) for x in items], **meta)

@bp.post("")
@requires_permission("write", "employee")
def create_employee():
    cid = current_company_id()
    p = Payload(json_body())
    fields = _read_fields(p, creating=True)
    _check_manager(p, cid, fields.get("manager_id"))
    account_id = p.id("account_id")
    if account_id is not None and not db.session.get(Account, account_id):
        p.add_error("account_id", "not found")
    p.check()

    if account_id is not None and Employee.query.filter_by(company_id=cid, account_id=account_id).first():
        raise Conflict("This account is already linked to an employee in this company")

    emp = Employee(company_id=cid, account_id=account_id, **fields)
    db.session.add(emp)
    db.session.flush()
    audit_service.record("create", "employee", emp.id, company_id=cid, new=_row(emp))
    db.session.commit()
    return ok(_row(emp), status=201)


# ---------- item ----------

@bp.get("/<int:eid>")
@requires_permission("read", "employee")
def get_employee(eid: int):
    emp = _get_in_company(eid)
    if not can_access_employee(g.user, emp):
        raise Forbidden("You cannot view this employee")
    return ok(_row(emp))

@bp.put("/<int:eid>")
@requires_permission("write", "employee")
def update_employee(eid: int):
    emp = _get_in_company(eid)
    p = Payload(json_body())
    fields = _read_fields(p, creating=False)
    if "manager_id" in fields:
        _check_manager(p, emp.company_id, fields["manager_id"], self_id=emp.id)
    p.check()

    before = _row(emp)
    for k, v in fields.items():
        setattr(emp, k, v)
    db.session.flush()
    db.session.expire(emp, ["manager"])
    audit_service.record("update", "employee", emp.id, company_id=emp.company_id, old=before, new=_row(emp))
    db.session.commit()
    return ok(_row(emp))

@bp.delete("/<int:eid>")
@requires_permission("delete", "employee")
def deactivate_employee(eid: int):
    emp = _get_in_company(eid)
    before = _row(emp)
    emp.status = "INACTIVE"
    audit_service.record("deactivate", "employee", emp.id, company_id=emp.company_id, old=before, new=_row(emp))
    db.session.commit()
    return ok(_row(emp))


# ---------- account linking ----------

@bp.post("/<int:eid>/link-account")
@requires_permission("write", "employee")
def link_account(eid: int):
    emp = _get_in_company(eid)
    p = Payload(json_body())
    account_id = p.id("account_id")
    email = p.email("email")
    if account_id is None and not email:
        p.add_error("account_id", "account_id or email is required")
    p.check()

    acct = db.session.get(Account, account_id) if account_id is not None else Account.query.filter_by(email=email).first()
    if not acct:
        raise NotFound("Account not found")
    other = Employee.query.filter_by(company_id=emp.company_id, account_id=acct.id).first()
    if other and other.id != emp.id:
        raise Conflict("This account is already linked to another employee in this company")

    before = _row(emp)
    emp.account_id = acct.id
    # a linked account needs a membership to work in the company
    if not AccountCompanyRole.query.filter_by(account_id=acct.id, company_id=emp.company_id).first():
        db.session.add(AccountCompanyRole(account_id=acct.id, company_id=emp.company_id, role="EMPLOYEE"))
    audit_service.record("link_account", "employee", emp.id, company_id=emp.company_id, old=before, new=_row(emp))
    db.session.commit()
    return ok(_row(emp))

@bp.post("/<int:eid>/unlink-account")
@requires_permission("write", "employee")
def unlink_account(eid: int):
    emp = _get_in_company(eid)
    if emp.account_id is None:
        raise Conflict("Employee has no linked account")
    before = _row(emp)
    emp.account_id = None
    audit_service.record("unlink_account", "employee", emp.id, company_id=emp.company_id, old=before, new=_row(emp))
    db.session.commit()
    return ok(_row(emp))
