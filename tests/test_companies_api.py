from nest_api.models.company import AccountCompanyRole


def test_members_list_own_companies(client, auth, world):
    r = client.get("/api/companies", headers=auth("dual"))
    assert {c["id"] for c in r.get_json()["data"]} == {world["acme"], world["globex"]}
    r = client.get("/api/companies", headers=auth("employee"))
    assert [c["name"] for c in r.get_json()["data"]] == ["Acme"]


def test_only_superusers_create_companies(app, client, auth, world):
    assert client.post("/api/companies", json={"name": "Initech"}, headers=auth("owner")).status_code == 403

    r = client.post("/api/companies", json={"name": "Initech", "country_code": "de", "currency": "eur"}, headers=auth("root"))
    assert r.status_code == 201
    data = r.get_json()["data"]
    assert (data["country_code"], data["currency"]) == ("DE", "EUR")
    with app.app_context():
        m = AccountCompanyRole.query.filter_by(account_id=world["accounts"]["root"], company_id=data["id"]).one()
        assert m.is_admin is True


def test_create_company_requires_name(client, auth, world):
    r = client.post("/api/companies", json={}, headers=auth("root"))
    assert r.status_code == 422


def test_non_member_cannot_read_company(client, auth, world):
    r = client.get(f"/api/companies/{world['globex']}", headers=auth("owner"))
    assert r.status_code == 403
    assert client.get(f"/api/companies/{world['acme']}", headers=auth("employee")).status_code == 200
    assert client.get("/api/companies/9999", headers=auth("owner")).status_code == 404


def test_update_company(client, auth, world):
    r = client.put(f"/api/companies/{world['acme']}", json={"name": "Acme Inc"}, headers=auth("hr"))
    assert r.status_code == 200
    assert r.get_json()["data"]["name"] == "Acme Inc"
    assert client.put(f"/api/companies/{world['acme']}", json={"name": "x"}, headers=auth("employee")).status_code == 403
    assert client.put(f"/api/companies/{world['acme']}", json={"name": ""}, headers=auth("hr")).status_code == 422
    assert client.put(f"/api/companies/{world['acme']}", json={"is_active": False}, headers=auth("hr")).status_code == 403


def test_settings_round_trip(client, auth, world):
    body = {"primary_color": "#ff0000", "city": "Springfield", "contact_email": "Hello@Acme.test"}
    r = client.put(f"/api/companies/{world['acme']}/settings", json=body, headers=auth("owner"))
    assert r.status_code == 200
    data = client.get(f"/api/companies/{world['acme']}/settings", headers=auth("employee")).get_json()["data"]
    assert data["branding"]["color"] == "#ff0000"
    assert data["address"]["city"] == "Springfield"
    assert data["contact"]["email"] == "hello@acme.test"

    assert client.put(f"/api/companies/{world['acme']}/settings", json=body, headers=auth("manager")).status_code == 403
