from types import SimpleNamespace

from nest_api.services.portal import resolve_portal


def _user(role="EMPLOYEE", superuser=False):
    return SimpleNamespace(role=role, is_superuser=superuser)


def _co(cid, admin=False, emp=False):
    return {"company_id": cid, "is_admin": admin, "has_employee_access": emp}


def test_no_user_goes_to_login():
    assert resolve_portal(None, [_co(1, admin=True)], _co(1, admin=True)) == "/auth/login"


def test_superuser_without_companies_goes_to_onboarding():
    assert resolve_portal(_user(superuser=True), [], None) == "/admin/onboarding"
    assert resolve_portal(_user(role="SUPERUSER"), [], None) == "/admin/onboarding"


def test_regular_user_without_companies_is_unauthorized():
    assert resolve_portal(_user(), [], None) == "/unauthorized"


def test_single_company_admin_goes_to_admin_dashboard():
    # admin wins over employee access when there is only one company
    assert resolve_portal(_user(), [_co(1, admin=True, emp=True)], None) == "/admin/dashboard"


def test_single_company_employee_goes_to_employee_dashboard():
    assert resolve_portal(_user(), [_co(1, emp=True)], None) == "/employee/dashboard"


def test_single_company_without_flags_is_unauthorized():
    # a non-admin membership is not enough for the employee portal; it takes
    # an employee record in that company (has_employee_access)
    assert resolve_portal(_user(), [_co(1)], None) == "/unauthorized"


def test_many_companies_without_current_needs_selection():
    companies = [_co(1, admin=True), _co(2, emp=True)]
    assert resolve_portal(_user(), companies, None) == "/company-selection"


def test_many_companies_current_with_both_flags_needs_portal_selection():
    companies = [_co(1, admin=True, emp=True), _co(2, emp=True)]
    assert resolve_portal(_user(), companies, companies[0]) == "/portal-selection"


def test_many_companies_current_single_flag():
    companies = [_co(1, admin=True), _co(2, emp=True)]
    assert resolve_portal(_user(), companies, companies[0]) == "/admin/dashboard"
    assert resolve_portal(_user(), companies, companies[1]) == "/employee/dashboard"
    assert resolve_portal(_user(), companies, _co(3)) == "/unauthorized"


def test_is_idempotent_and_pure():
    companies = [_co(1, admin=True), _co(2, emp=True)]
    snapshot = [dict(c) for c in companies]
    first = resolve_portal(_user(), companies, companies[1])
    assert resolve_portal(_user(), companies, companies[1]) == first
    assert companies == snapshot
