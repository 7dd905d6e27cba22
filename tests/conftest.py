import pytest
from flask_jwt_extended import create_access_token

from nest_api import create_app
from nest_api.extensions import db
from nest_api.models.account import Account
from nest_api.models.company import AccountCompanyRole, Company
from nest_api.models.employee import Employee


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setenv("JWT_SECRET_KEY", "test-secret-key-with-enough-length-0123456789")
    app = create_app()
    app.config["TESTING"] = True
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _account(email, role="EMPLOYEE", superuser=False, active=True):
    a = Account(email=email, first_name=email.split("@")[0].title(), last_name="Test",
                role=role, is_superuser=superuser, is_active=active)
    a.set_password("password123")
    db.session.add(a)
    db.session.flush()
    return a


def _member(a, c, role, is_admin=False):
    db.session.add(AccountCompanyRole(account_id=a.id, company_id=c.id, role=role, is_admin=is_admin))


def _employee(a, c, title, manager=None):
    e = Employee(company_id=c.id, account_id=a.id if a else None, manager_id=manager.id if manager else None,
                 first_name=a.first_name if a else "Nolink", last_name="Test",
                 email=a.email if a else "nolink@acme.test", position_title=title)
    db.session.add(e)
    db.session.flush()
    return e


@pytest.fixture
def world(app):
    """
    Acme: owner (admin), hr, manager, employee (reports to manager), dual (admin).
    Globex: outsider (employee), dual (employee with an employee record).
    Plus a superuser without memberships and an account with no companies.
    Returns plain ids so tests can open their own app contexts.
    """
    with app.app_context():
        acme = Company(name="Acme", country_code="US", currency="USD")
        globex = Company(name="Globex", country_code="GB", currency="GBP")
        db.session.add_all([acme, globex])
        db.session.flush()

        owner = _account("owner@acme.test", "OWNER")
        hr = _account("hr@acme.test", "HR")
        manager = _account("manager@acme.test", "MANAGER")
        employee = _account("employee@acme.test", "EMPLOYEE")
        outsider = _account("outsider@globex.test", "EMPLOYEE")
        dual = _account("dual@both.test", "ADMIN")
        root = _account("root@nest.test", "OWNER", superuser=True)
        orphan = _account("orphan@nowhere.test", "EMPLOYEE")

        _member(owner, acme, "OWNER", is_admin=True)
        _member(hr, acme, "HR", is_admin=True)
        _member(manager, acme, "MANAGER")
        _member(employee, acme, "EMPLOYEE")
        _member(outsider, globex, "EMPLOYEE")
        _member(dual, acme, "ADMIN", is_admin=True)
        _member(dual, globex, "EMPLOYEE")

        owner_emp = _employee(owner, acme, "CEO")
        hr_emp = _employee(hr, acme, "HR Lead")
        mgr_emp = _employee(manager, acme, "Engineering Manager")
        emp_emp = _employee(employee, acme, "Engineer", manager=mgr_emp)
        out_emp = _employee(outsider, globex, "Analyst")
        dual_emp = _employee(dual, globex, "Consultant")
        db.session.commit()

        return {
            "acme": acme.id,
            "globex": globex.id,
            "accounts": {
                "owner": owner.id, "hr": hr.id, "manager": manager.id, "employee": employee.id,
                "outsider": outsider.id, "dual": dual.id, "root": root.id, "orphan": orphan.id,
            },
            "subjects": {
                "owner": owner.auth_user_id, "hr": hr.auth_user_id, "manager": manager.auth_user_id,
                "employee": employee.auth_user_id, "outsider": outsider.auth_user_id,
                "dual": dual.auth_user_id, "root": root.auth_user_id, "orphan": orphan.auth_user_id,
            },
            "employees": {
                "owner": owner_emp.id, "hr": hr_emp.id, "manager": mgr_emp.id, "employee": emp_emp.id,
                "outsider": out_emp.id, "dual": dual_emp.id,
            },
        }


@pytest.fixture
def auth(app, world):
    """auth("hr") -> Authorization header for that seeded account."""
    def _headers(who):
        with app.app_context():
            token = create_access_token(identity=world["subjects"][who])
        return {"Authorization": f"Bearer {token}"}
    return _headers
