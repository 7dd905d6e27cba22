from sqlalchemy import func

from nest_api.models.employee import Employee
from nest_api.models.leave import LeaveRequest
from nest_api.models.timesheet import Timesheet

PER_SOURCE = 5
FEED_LIMIT = 10


def _who(emp):
    return {"name": emp.full_name, "role": emp.position_title} if emp else None


def recent(company_id: int, limit: int = FEED_LIMIT) -> list:
    """Latest leave requests, timesheets and employee changes in a company, newest first."""
    out = []

    leave = (
        LeaveRequest.query.filter_by(company_id=company_id)
        .order_by(LeaveRequest.created_at.desc(), LeaveRequest.id.desc())
        .limit(PER_SOURCE)
        .all()
    )
    for lr in leave:
        out.append({
            "id": lr.id,
            "type": "leave_request",
            "title": f"{lr.employee.full_name} requested leave",
            "description": f"{lr.reason or 'No reason provided'} ({lr.start_date.isoformat()} to {lr.end_date.isoformat()})",
            "status": lr.status,
            "timestamp": lr.created_at,
            "user": _who(lr.employee),
        })

    sheets = (
        Timesheet.query.filter_by(company_id=company_id)
        .order_by(Timesheet.created_at.desc(), Timesheet.id.desc())
        .limit(PER_SOURCE)
        .all()
    )
    for ts in sheets:
        out.append({
            "id": ts.id,
            "type": "timesheet",
            "title": f"{ts.employee.full_name} filed a timesheet",
            "description": f"Week of {ts.week_start.isoformat()} - {float(ts.total_hours or 0):g} hours",
            "status": ts.status,
            "timestamp": ts.created_at,
            "user": _who(ts.employee),
        })

    touched = func.coalesce(Employee.updated_at, Employee.created_at)
    people = (
        Employee.query.filter_by(company_id=company_id, status="ACTIVE")
        .order_by(touched.desc(), Employee.id.desc())
        .limit(PER_SOURCE)
        .all()
    )
    for emp in people:
        out.append({
            "id": emp.id,
            "type": "employee_update",
            "title": f"{emp.full_name} profile updated",
            "description": f"Position: {emp.position_title}",
            "status": "completed",
            "timestamp": emp.updated_at or emp.created_at,
            "user": _who(emp),
        })

    out.sort(key=lambda a: a["timestamp"], reverse=True)
    out = out[:limit]
    for a in out:
        a["timestamp"] = a["timestamp"].isoformat()
    return out
