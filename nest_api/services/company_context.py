"""
Per-account "current company" pointer and the list of companies an account
may work in.

An account can use a company when it holds a membership there, or when it is
a superuser (superusers see every active company with admin access).
"""
import logging
from typing import Optional

from nest_api.common.errors import AccessDenied, NotFound
from nest_api.extensions import db
from nest_api.models.account import Account
from nest_api.models.company import AccountCompanyRole, Company
from nest_api.models.employee import Employee
from nest_api.services import audit_service

log = logging.getLogger(__name__)


def _employee_company_ids(account_id: int) -> set:
    rows = (
        db.session.query(Employee.company_id)
        .filter(Employee.account_id == account_id, Employee.status == "ACTIVE")
        .all()
    )
    return {r[0] for r in rows}


def _company_row(company: Company, role: str, is_admin: bool, has_employee_access: bool) -> dict:
    return {
        "company_id": company.id,
        "company_name": company.name,
        "role": role,
        "is_admin": bool(is_admin),
        "has_employee_access": bool(has_employee_access),
        "branding": company.branding(),
    }


def _membership(account_id: int, company_id: int) -> Optional[AccountCompanyRole]:
    return AccountCompanyRole.query.filter_by(account_id=account_id, company_id=company_id).first()


def is_superuser(account_id: int) -> bool:
    account = db.session.get(Account, account_id)
    return bool(account and account.is_superuser)


def get_account_companies(account_id: int) -> list:
    account = db.session.get(Account, account_id)
    if account is None:
        return []
    emp_ids = _employee_company_ids(account.id)

    if account.is_superuser:
        by_company = {m.company_id: m for m in account.memberships}
        out = []
        for c in Company.query.filter_by(is_active=True).order_by(Company.name.asc(), Company.id.asc()).all():
            m = by_company.get(c.id)
            out.append(_company_row(c, m.role if m else "SUPERUSER", True, c.id in emp_ids))
        return out

    memberships = (
        AccountCompanyRole.query.join(Company, Company.id == AccountCompanyRole.company_id)
        .filter(AccountCompanyRole.account_id == account.id, Company.is_active.is_(True))
        .order_by(AccountCompanyRole.created_at.asc(), AccountCompanyRole.id.asc())
        .all()
    )
    return [_company_row(m.company, m.role, m.is_admin, m.company_id in emp_ids) for m in memberships]


def get_current_company_info(account_id: int) -> Optional[dict]:
    account = db.session.get(Account, account_id)
    if account is None or account.current_company_id is None:
        return None
    company = db.session.get(Company, account.current_company_id)
    if company is None:
        return None

    m = _membership(account.id, company.id)
    if m is None and not account.is_superuser:
        return None
    emp = Employee.query.filter_by(account_id=account.id, company_id=company.id, status="ACTIVE").first()
    if m is not None:
        return _company_row(company, m.role, m.is_admin or account.is_superuser, emp is not None)
    return _company_row(company, "SUPERUSER", True, emp is not None)


def _can_use(account: Account, company: Company) -> bool:
    return account.is_superuser or _membership(account.id, company.id) is not None


def set_current_company(account_id: int, company_id: int) -> bool:
    """Move the pointer; False when the account may not use the company."""
    account = db.session.get(Account, account_id)
    company = db.session.get(Company, company_id) if company_id is not None else None
    if account is None or company is None or not company.is_active:
        return False
    if not _can_use(account, company):
        return False
    account.current_company_id = company.id
    db.session.commit()
    return True


def switch_company(account_id: int, target_company_id: int) -> dict:
    """
    Make ``target_company_id`` the account's current company and return the
    fresh current-company info. Raises NotFound / AccessDenied; on any error
    the transaction is rolled back and the previous pointer is kept.
    """
    try:
        account = db.session.get(Account, account_id)
        if account is None:
            raise NotFound("Account not found")
        company = db.session.get(Company, target_company_id)
        if company is None or not company.is_active:
            raise NotFound("Company not found")
        if not _can_use(account, company):
            log.warning("Company switch denied: account=%s company=%s", account.id, company.id)
            raise AccessDenied("You do not have access to this company")

        previous = account.current_company_id
        account.current_company_id = company.id
        db.session.flush()

        info = get_current_company_info(account.id)
        # recomputed on every switch, never carried over from the previous company
        info["has_employee_access"] = (
            Employee.query.filter_by(account_id=account.id, company_id=company.id, status="ACTIVE").first()
            is not None
        )

        audit_service.record(
            "switch_company", "account", account.id,
            company_id=company.id, actor=account,
            old={"current_company_id": previous}, new={"current_company_id": company.id},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    log.info("Account %s switched company %s -> %s", account_id, previous, target_company_id)
    return info


def ensure_current_company(account_id: int) -> Optional[int]:
    """
    Session bootstrap: when the account has no usable current company, the
    first available company becomes current. Returns the current company id.
    """
    account = db.session.get(Account, account_id)
    if account is None:
        return None
    if get_current_company_info(account.id) is not None:
        return account.current_company_id

    companies = get_account_companies(account.id)
    if not companies:
        return None
    account.current_company_id = companies[0]["company_id"]
    db.session.commit()
    return account.current_company_id
