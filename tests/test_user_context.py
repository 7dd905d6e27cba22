from unittest import mock

from sqlalchemy.exc import OperationalError

from nest_api.extensions import db
from nest_api.models.account import Account
from nest_api.services.user_context import resolve_user


def test_membership_role_wins_over_account_role(app, world):
    with app.app_context():
        a = db.session.get(Account, world["accounts"]["dual"])
        assert a.role == "ADMIN"
        a.current_company_id = world["globex"]
        db.session.commit()

        ctx = resolve_user(world["subjects"]["dual"])
        assert ctx.role == "EMPLOYEE"
        assert ctx.company_id == world["globex"]
        assert ctx.is_admin is False
        assert ctx.employee_id == world["employees"]["dual"]


def test_earliest_membership_when_no_current_company(app, world):
    with app.app_context():
        ctx = resolve_user(world["subjects"]["dual"])
        assert ctx.company_id == world["acme"]
        assert ctx.role == "ADMIN"
        assert ctx.is_admin is True
        # no employee record in Acme
        assert ctx.employee_id is None


def test_falls_back_to_account_role_without_memberships(app, world):
    with app.app_context():
        ctx = resolve_user(world["subjects"]["orphan"])
        assert ctx.role == "EMPLOYEE"
        assert ctx.company_id is None


def test_superuser_without_memberships(app, world):
    with app.app_context():
        ctx = resolve_user(world["subjects"]["root"])
        assert ctx.is_superuser is True
        assert ctx.role == "SUPERUSER"
        assert ctx.company_id is None


def test_unknown_subject_is_none(app, world):
    with app.app_context():
        assert resolve_user("no-such-subject") is None
        assert resolve_user(None) is None


def test_database_errors_are_reported_as_not_found(app, world):
    with app.app_context():
        with mock.patch(
            "nest_api.services.user_context.active_membership",
            side_effect=OperationalError("SELECT", {}, Exception("db down")),
        ):
            assert resolve_user(world["subjects"]["owner"]) is None


def test_role_endpoint(client, auth, world):
    r = client.get("/api/user/role", headers=auth("manager"))
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["role"] == "MANAGER"
    assert data["company_id"] == world["acme"]
    assert data["permissions"]["timesheet"] == ["approve", "read"]


def test_role_endpoint_requires_token(client, world):
    r = client.get("/api/user/role")
    assert r.status_code == 401
    body = r.get_json()
    assert body["success"] is False
    assert body["error"]["code"] == "auth.missing"


def test_garbage_token_is_invalid(client, world):
    r = client.get("/api/user/role", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.get_json()["error"]["code"] == "auth.invalid"


def test_unknown_subject_gets_404(app, client, world):
    from flask_jwt_extended import create_access_token
    with app.app_context():
        token = create_access_token(identity="ghost")
    r = client.get("/api/user/role", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 404
    assert r.get_json()["error"]["message"] == "User not found"


def test_deactivated_account_gets_403(app, client, auth, world):
    with app.app_context():
        db.session.get(Account, world["accounts"]["employee"]).is_active = False
        db.session.commit()
    r = client.get("/api/user/role", headers=auth("employee"))
    assert r.status_code == 403
