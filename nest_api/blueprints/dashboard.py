from datetime import date

from flask import Blueprint, g
from sqlalchemy import func

from nest_api.common.auth import current_company_id, requires_user
from nest_api.common.http import ok
from nest_api.extensions import db
from nest_api.models.employee import Employee
from nest_api.models.leave import LeaveRequest
from nest_api.models.payroll import PayrollCycle
from nest_api.models.timesheet import Timesheet

bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")

def _count(model, *criteria):
    return db.session.query(func.count(model.id)).filter(*criteria).scalar() or 0

@bp.get("/stats")
@requires_user
def stats():
    ctx = g.user
    cid = current_company_id()
    today = date.today()

    cycle = PayrollCycle.query.filter_by(company_id=cid, month=today.month, year=today.year).first()
    data = {
        "company_id": cid,
        "headcount": _count(Employee, Employee.company_id == cid, Employee.status == "ACTIVE"),
        "pending_timesheets": _count(Timesheet, Timesheet.company_id == cid, Timesheet.status == "SUBMITTED"),
        "pending_leave_requests": _count(LeaveRequest, LeaveRequest.company_id == cid, LeaveRequest.status == "SUBMITTED"),
        "uploaded_payroll_cycles": _count(PayrollCycle, PayrollCycle.company_id == cid, PayrollCycle.status == "UPLOADED"),
        "current_payroll": {
            "month": today.month,
            "year": today.year,
            "status": cycle.status if cycle else None,
        },
    }

    role = ctx.role
    if role == "EMPLOYEE" and ctx.employee_id:
        data["mine"] = {
            "pending_timesheets": _count(Timesheet, Timesheet.employee_id == ctx.employee_id, Timesheet.status == "SUBMITTED"),
            "pending_leave_requests": _count(LeaveRequest, LeaveRequest.employee_id == ctx.employee_id, LeaveRequest.status == "SUBMITTED"),
        }
    elif role == "MANAGER":
        report_ids = [r[0] for r in db.session.query(Employee.id).filter(
            Employee.company_id == cid, Employee.manager_id == ctx.employee_id
        ).all()] if ctx.employee_id else []
        data["direct_reports"] = {
            "count": len(report_ids),
            "pending_timesheets": _count(Timesheet, Timesheet.employee_id.in_(report_ids), Timesheet.status == "SUBMITTED") if report_ids else 0,
            "pending_leave_requests": _count(LeaveRequest, LeaveRequest.employee_id.in_(report_ids), LeaveRequest.status == "SUBMITTED") if report_ids else 0,
        }
    return ok(data)
