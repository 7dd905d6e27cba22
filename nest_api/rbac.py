# nest_api/rbac.py
"""
Static role/action/entity permission matrix.

``can()`` is the only authorization primitive the API uses for coarse
checks. Record-level helpers below narrow a granted permission down to the
rows a MANAGER or EMPLOYEE may actually touch.
"""
from __future__ import annotations

ROLES = ("OWNER", "ADMIN", "HR", "MANAGER", "EMPLOYEE", "SUPERUSER")
ACTIONS = ("read", "write", "delete", "approve", "admin")
ENTITIES = ("employee", "timesheet", "leave", "payroll", "company", "settings", "audit")

_ALL = frozenset(ACTIONS)

def _full_grant():
    return {entity: _ALL for entity in ENTITIES}

# OWNER and HR are unconditional grants; missing entries deny.
PERMISSIONS: dict[str, dict[str, frozenset]] = {
    "OWNER": _full_grant(),
    "HR": _full_grant(),
    "SUPERUSER": _full_grant(),
    "ADMIN": {
        "employee":  _ALL,
        "timesheet": _ALL,
        "leave":     _ALL,
        "payroll":   _ALL,
        "company":   frozenset({"read", "write", "admin"}),
        "settings":  frozenset({"read", "write", "admin"}),
        "audit":     frozenset({"read"}),
    },
    "MANAGER": {
        "employee":  frozenset({"read"}),
        "timesheet": frozenset({"read", "approve"}),
        "leave":     frozenset({"read", "approve"}),
        "payroll":   frozenset({"read"}),
        "company":   frozenset({"read"}),
        "settings":  frozenset({"read"}),
    },
    "EMPLOYEE": {
        "employee":  frozenset({"read"}),
        "timesheet": frozenset({"read", "write"}),
        "leave":     frozenset({"read", "write"}),
        "payroll":   frozenset({"read"}),
        "company":   frozenset({"read"}),
        "settings":  frozenset({"read"}),
    },
}

# roles that see every record of their company
FULL_ACCESS_ROLES = frozenset({"OWNER", "ADMIN", "HR", "SUPERUSER"})


def _norm(v) -> str:
    return v.strip() if isinstance(v, str) else ""


def can(role, action, entity) -> bool:
    """True iff ``role`` may perform ``action`` on ``entity``. Never raises."""
    row = PERMISSIONS.get(_norm(role).upper())
    if not row:
        return False
    return _norm(action).lower() in row.get(_norm(entity).lower(), ())


def allowed_actions(role) -> dict[str, list[str]]:
    """entity -> sorted actions granted to ``role`` (used by /api/user/role)."""
    row = PERMISSIONS.get(_norm(role).upper()) or {}
    return {e: sorted(row.get(e, ())) for e in ENTITIES if row.get(e)}


# ---------- record-level helpers ----------

def _role(ctx) -> str:
    return _norm(getattr(ctx, "role", None)).upper()


def _same_company(ctx, row) -> bool:
    if getattr(ctx, "is_superuser", False) and getattr(ctx, "company_id", None) is None:
        return True
    return row is not None and row.company_id == getattr(ctx, "company_id", None)


def can_access_employee(ctx, employee) -> bool:
    if ctx is None or employee is None or not _same_company(ctx, employee):
        return False
    role = _role(ctx)
    if role in FULL_ACCESS_ROLES:
        return True
    own_id = getattr(ctx, "employee_id", None)
    if own_id is None:
        return False
    if role == "MANAGER":
        return employee.id == own_id or employee.manager_id == own_id
    if role == "EMPLOYEE":
        return employee.id == own_id
    return False


def _can_approve_for(ctx, row) -> bool:
    if ctx is None or row is None or not _same_company(ctx, row):
        return False
    role = _role(ctx)
    if role in FULL_ACCESS_ROLES:
        return True
    if role == "MANAGER":
        own_id = getattr(ctx, "employee_id", None)
        emp = getattr(row, "employee", None)
        if own_id is None or emp is None or emp.id == own_id:
            return False
        return emp.manager_id == own_id
    return False


def can_approve_timesheet(ctx, timesheet) -> bool:
    return _can_approve_for(ctx, timesheet)


def can_approve_leave(ctx, leave_request) -> bool:
    return _can_approve_for(ctx, leave_request)
