from nest_api.extensions import db
from nest_api.models.account import Account


def test_login_returns_tokens_and_sets_current_company(app, client, world):
    r = client.post("/api/auth/login", json={"email": "employee@acme.test", "password": "password123"})
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["access"] and data["refresh"]
    assert data["user"]["email"] == "employee@acme.test"
    assert any("access_token_cookie" in h for h in r.headers.getlist("Set-Cookie"))

    with app.app_context():
        a = db.session.get(Account, world["accounts"]["employee"])
        assert a.last_login is not None
        assert a.current_company_id == world["acme"]


def test_login_rejects_bad_password(client, world):
    r = client.post("/api/auth/login", json={"email": "employee@acme.test", "password": "nope"})
    assert r.status_code == 401
    assert r.get_json()["success"] is False


def test_login_validation_reports_every_field(client, world):
    r = client.post("/api/auth/login", json={"email": "not-an-email"})
    assert r.status_code == 422
    errors = r.get_json()["error"]["errors"]
    assert set(errors) == {"email", "password"}


def test_login_rejects_inactive_account(app, client, world):
    with app.app_context():
        db.session.get(Account, world["accounts"]["hr"]).is_active = False
        db.session.commit()
    r = client.post("/api/auth/login", json={"email": "hr@acme.test", "password": "password123"})
    assert r.status_code == 403


def test_access_token_from_login_works(client, world):
    token = client.post(
        "/api/auth/login", json={"email": "owner@acme.test", "password": "password123"}
    ).get_json()["data"]["access"]
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.get_json()["data"]["context"]["role"] == "OWNER"


def test_refresh_issues_new_access_token(client, world):
    refresh = client.post(
        "/api/auth/login", json={"email": "owner@acme.test", "password": "password123"}
    ).get_json()["data"]["refresh"]
    r = client.post("/api/auth/refresh", headers={"Authorization": f"Bearer {refresh}"})
    assert r.status_code == 200
    assert r.get_json()["data"]["access"]


def test_session_bootstraps_company_and_portal(client, auth, world):
    r = client.get("/api/auth/session", headers=auth("employee"))
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["current_company"]["company_id"] == world["acme"]
    assert data["user"]["role"] == "EMPLOYEE"
    assert data["redirect_to"] == "/employee/dashboard"


def test_session_for_superuser_with_companies(client, auth, world):
    data = client.get("/api/auth/session", headers=auth("root")).get_json()["data"]
    assert len(data["companies"]) == 2
    # the first company becomes current, and superusers are admins there
    assert data["current_company"]["is_admin"] is True
    assert data["redirect_to"] == "/admin/dashboard"


def test_logout_clears_cookies(client, world):
    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert any("access_token_cookie=;" in h for h in r.headers.getlist("Set-Cookie"))


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.get_json()["data"]["database"] is True
