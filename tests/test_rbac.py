from types import SimpleNamespace

import pytest

from nest_api.rbac import (
    ACTIONS, ENTITIES, ROLES,
    allowed_actions, can, can_access_employee, can_approve_leave, can_approve_timesheet,
)


@pytest.mark.parametrize("role", ["OWNER", "HR"])
def test_owner_and_hr_are_granted_everything(role):
    for action in ACTIONS:
        for entity in ENTITIES:
            assert can(role, action, entity) is True


def test_employee_writes_own_work_but_not_people_or_pay():
    assert can("EMPLOYEE", "write", "timesheet")
    assert can("EMPLOYEE", "write", "leave")
    assert not can("EMPLOYEE", "write", "employee")
    assert not can("EMPLOYEE", "write", "payroll")
    assert not can("EMPLOYEE", "approve", "timesheet")
    assert can("EMPLOYEE", "read", "payroll")


def test_manager_approves_but_does_not_write():
    assert can("MANAGER", "approve", "timesheet")
    assert can("MANAGER", "approve", "leave")
    assert not can("MANAGER", "write", "timesheet")
    assert not can("MANAGER", "approve", "payroll")
    assert not can("MANAGER", "read", "audit")


def test_admin_row():
    assert can("ADMIN", "delete", "payroll")
    assert can("ADMIN", "admin", "settings")
    assert not can("ADMIN", "delete", "company")
    assert can("ADMIN", "read", "audit")
    assert not can("ADMIN", "write", "audit")


def test_unknown_inputs_deny_and_never_raise():
    assert can("INTERN", "read", "employee") is False
    assert can("EMPLOYEE", "fly", "employee") is False
    assert can("EMPLOYEE", "read", "spaceship") is False
    assert can(None, None, None) is False
    assert can(42, "read", "employee") is False
    assert can("", "", "") is False


def test_matching_is_case_insensitive_for_role_and_action():
    assert can("employee", "WRITE", "timesheet")
    assert can("Manager", "Approve", "leave")


def test_total_over_the_whole_domain():
    for role in ROLES:
        for action in ACTIONS:
            for entity in ENTITIES:
                assert isinstance(can(role, action, entity), bool)


def test_allowed_actions_lists_only_granted_entities():
    perms = allowed_actions("EMPLOYEE")
    assert perms["timesheet"] == ["read", "write"]
    assert "audit" not in perms
    assert allowed_actions("NOBODY") == {}


# ---------- record-level ----------

def _ctx(role, employee_id=None, company_id=1):
    return SimpleNamespace(role=role, employee_id=employee_id, company_id=company_id, is_superuser=False)


def _emp(id, manager_id=None, company_id=1):
    return SimpleNamespace(id=id, manager_id=manager_id, company_id=company_id)


def test_employee_sees_only_self():
    me = _ctx("EMPLOYEE", employee_id=10)
    assert can_access_employee(me, _emp(10))
    assert not can_access_employee(me, _emp(11))


def test_manager_sees_self_and_direct_reports():
    boss = _ctx("MANAGER", employee_id=5)
    assert can_access_employee(boss, _emp(5))
    assert can_access_employee(boss, _emp(6, manager_id=5))
    assert not can_access_employee(boss, _emp(7, manager_id=8))


def test_full_roles_limited_to_their_company():
    hr = _ctx("HR", employee_id=1, company_id=1)
    assert can_access_employee(hr, _emp(99, company_id=1))
    assert not can_access_employee(hr, _emp(99, company_id=2))


def test_manager_approves_reports_but_never_own():
    boss = _ctx("MANAGER", employee_id=5)
    report_sheet = SimpleNamespace(company_id=1, employee=_emp(6, manager_id=5))
    own_sheet = SimpleNamespace(company_id=1, employee=_emp(5, manager_id=5))
    stranger_leave = SimpleNamespace(company_id=1, employee=_emp(9, manager_id=3))
    assert can_approve_timesheet(boss, report_sheet)
    assert not can_approve_timesheet(boss, own_sheet)
    assert not can_approve_leave(boss, stranger_leave)


def test_employee_never_approves():
    me = _ctx("EMPLOYEE", employee_id=6)
    sheet = SimpleNamespace(company_id=1, employee=_emp(6, manager_id=6))
    assert not can_approve_timesheet(me, sheet)
    assert not can_approve_leave(me, sheet)
