import logging
from dataclasses import dataclass, asdict
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from nest_api.extensions import db
from nest_api.models.account import Account
from nest_api.models.company import AccountCompanyRole
from nest_api.models.employee import Employee

log = logging.getLogger(__name__)


@dataclass
class UserContext:
    account_id: int
    auth_user_id: str
    email: str
    role: str
    company_id: Optional[int]
    is_superuser: bool = False
    is_admin: bool = False
    is_active: bool = True
    employee_id: Optional[int] = None

    def to_dict(self):
        return asdict(self)


def active_membership(account: Account) -> Optional[AccountCompanyRole]:
    """
    The membership for the account's current company when the pointer is set,
    otherwise the earliest membership. None when the account has no memberships.
    """
    q = AccountCompanyRole.query.filter_by(account_id=account.id)
    if account.current_company_id is not None:
        m = q.filter_by(company_id=account.current_company_id).first()
        if m is not None:
            return m
    return q.order_by(AccountCompanyRole.created_at.asc(), AccountCompanyRole.id.asc()).first()


def linked_employee(account_id: int, company_id: Optional[int]) -> Optional[Employee]:
    if company_id is None:
        return None
    return Employee.query.filter_by(
        account_id=account_id, company_id=company_id, status="ACTIVE"
    ).first()


def resolve_user(auth_subject_id) -> Optional[UserContext]:
    """
    Account + effective role + company for an auth subject.

    Membership role wins over the account's global role. Without any
    membership the global role is used and company_id is None. Lookup
    failures are logged and reported as "not found".
    """
    if not auth_subject_id:
        return None
    try:
        account = Account.query.filter_by(auth_user_id=str(auth_subject_id)).first()
        if account is None:
            return None

        membership = active_membership(account)
        if account.is_superuser and account.current_company_id is not None and (
            membership is None or membership.company_id != account.current_company_id
        ):
            # superuser working inside a company it holds no membership for
            role = "SUPERUSER"
            company_id = account.current_company_id
            is_admin = True
        elif membership is not None:
            role = membership.role
            company_id = membership.company_id
            is_admin = bool(membership.is_admin)
        elif account.is_superuser:
            role = "SUPERUSER"
            company_id = None
            is_admin = True
        else:
            role = account.role
            company_id = None
            is_admin = False

        emp = linked_employee(account.id, company_id)
        return UserContext(
            account_id=account.id,
            auth_user_id=account.auth_user_id,
            email=account.email,
            role=(role or "EMPLOYEE").upper(),
            company_id=company_id,
            is_superuser=bool(account.is_superuser),
            is_admin=is_admin,
            is_active=bool(account.is_active),
            employee_id=emp.id if emp else None,
        )
    except SQLAlchemyError:
        db.session.rollback()
        log.exception("Error resolving user for subject %s", auth_subject_id)
        return None
