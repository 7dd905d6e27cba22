from datetime import date

from nest_api.models.employee import Employee
from nest_api.models.leave import LeaveRequest
from nest_api.models.payroll import PayrollCycle
from nest_api.models.timesheet import Timesheet
from nest_api.rbac import can, can_approve_leave, can_approve_timesheet

_PRIORITY = {"high": 3, "medium": 2, "low": 1}

APPROVAL_LIMIT = 5
ONBOARDING_LIMIT = 3


def _who(emp):
    return {"name": emp.full_name, "role": emp.position_title} if emp else None


def collect(ctx, today: date = None) -> list:
    """
    Work waiting on the caller in their current company, highest priority
    first and oldest first within a priority.
    """
    if ctx is None or ctx.company_id is None:
        return []
    today = today or date.today()
    company_id = ctx.company_id
    out = []

    if can(ctx.role, "approve", "timesheet"):
        rows = (
            Timesheet.query.filter_by(company_id=company_id, status="SUBMITTED")
            .order_by(Timesheet.created_at.asc(), Timesheet.id.asc())
            .all()
        )
        for ts in [t for t in rows if can_approve_timesheet(ctx, t)][:APPROVAL_LIMIT]:
            out.append({
                "id": ts.id,
                "type": "timesheet_approval",
                "title": "Timesheet Approval Required",
                "description": f"{ts.employee.full_name} - Week of {ts.week_start.isoformat()}",
                "priority": "medium",
                "timestamp": ts.created_at,
                "user": _who(ts.employee),
                "action_url": f"/admin/timesheets/{ts.id}/approve",
            })

    if can(ctx.role, "approve", "leave"):
        rows = (
            LeaveRequest.query.filter_by(company_id=company_id, status="SUBMITTED")
            .order_by(LeaveRequest.created_at.asc(), LeaveRequest.id.asc())
            .all()
        )
        for lr in [r for r in rows if can_approve_leave(ctx, r)][:APPROVAL_LIMIT]:
            out.append({
                "id": lr.id,
                "type": "leave_approval",
                "title": "Leave Request Approval Required",
                "description": f"{lr.employee.full_name} - {lr.start_date.isoformat()} to {lr.end_date.isoformat()}",
                "priority": "high",
                "timestamp": lr.created_at,
                "user": _who(lr.employee),
                "action_url": f"/admin/leave/{lr.id}/approve",
            })

    if can(ctx.role, "write", "employee"):
        rows = (
            Employee.query.filter_by(company_id=company_id, status="ACTIVE", onboarding_completed=False)
            .order_by(Employee.created_at.asc(), Employee.id.asc())
            .limit(ONBOARDING_LIMIT)
            .all()
        )
        for emp in rows:
            out.append({
                "id": emp.id,
                "type": "employee_onboarding",
                "title": "Employee Onboarding Required",
                "description": f"{emp.full_name} - {emp.position_title}",
                "priority": "medium",
                "timestamp": emp.created_at,
                "user": _who(emp),
                "action_url": f"/admin/employees/{emp.id}/onboarding",
            })

    if can(ctx.role, "write", "payroll"):
        exists = PayrollCycle.query.filter_by(
            company_id=company_id, month=today.month, year=today.year
        ).first()
        if exists is None:
            out.append({
                "id": f"payroll-{today.month}-{today.year}",
                "type": "payroll_processing",
                "title": "Payroll Processing Due",
                "description": f"Process payroll for {today.month}/{today.year}",
                "priority": "high",
                "timestamp": None,
                "user": {"name": "System", "role": "System"},
                "action_url": "/admin/payroll",
            })

    # stable sort: priority desc, then oldest first (reminders without a timestamp go last)
    out.sort(key=lambda a: (-_PRIORITY[a["priority"]], a["timestamp"] is None, a["timestamp"] or 0))
    for a in out:
        a["timestamp"] = a["timestamp"].isoformat() if a["timestamp"] else None
    return out
