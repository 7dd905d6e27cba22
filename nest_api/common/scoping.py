# nest_api/common/scoping.py
from sqlalchemy import false, or_, select

from nest_api.models.employee import Employee
from nest_api.rbac import FULL_ACCESS_ROLES


def scope_to_employees(query, ctx, employee_col):
    """
    Narrow ``query`` to rows whose ``employee_col`` the caller may see:
    full-access roles see the whole company, MANAGER sees self and direct
    reports, everybody else sees only their own rows.
    """
    role = (ctx.role or "").upper()
    if role in FULL_ACCESS_ROLES:
        return query
    if ctx.employee_id is None:
        return query.filter(false())
    if role == "MANAGER":
        reports = select(Employee.id).where(Employee.manager_id == ctx.employee_id)
        return query.filter(or_(employee_col == ctx.employee_id, employee_col.in_(reports)))
    return query.filter(employee_col == ctx.employee_id)


def is_full_access(ctx) -> bool:
    return (ctx.role or "").upper() in FULL_ACCESS_ROLES
