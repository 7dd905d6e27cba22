LOGIN = "/auth/login"
ADMIN_ONBOARDING = "/admin/onboarding"
UNAUTHORIZED = "/unauthorized"
ADMIN_DASHBOARD = "/admin/dashboard"
EMPLOYEE_DASHBOARD = "/employee/dashboard"
COMPANY_SELECTION = "/company-selection"
PORTAL_SELECTION = "/portal-selection"


def _get(obj, name, default=None):
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _by_flags(company) -> str:
    is_admin = bool(_get(company, "is_admin"))
    has_emp = bool(_get(company, "has_employee_access"))
    if is_admin and has_emp:
        return PORTAL_SELECTION
    if is_admin:
        return ADMIN_DASHBOARD
    if has_emp:
        return EMPLOYEE_DASHBOARD
    return UNAUTHORIZED


def resolve_portal(user, companies, current_company) -> str:
    """
    Where a signed-in caller should land. Pure function of its inputs;
    the first matching rule wins.
    """
    if not user:
        return LOGIN

    companies = list(companies or [])
    superuser = bool(_get(user, "is_superuser")) or str(_get(user, "role") or "").upper() == "SUPERUSER"

    if not companies:
        return ADMIN_ONBOARDING if superuser else UNAUTHORIZED

    if len(companies) == 1:
        only = companies[0]
        if _get(only, "is_admin"):
            return ADMIN_DASHBOARD
        if _get(only, "has_employee_access"):
            return EMPLOYEE_DASHBOARD
        return UNAUTHORIZED

    if not current_company:
        return COMPANY_SELECTION

    return _by_flags(current_company)
