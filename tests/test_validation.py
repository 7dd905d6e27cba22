import pytest

from nest_api.common.errors import ValidationError
from nest_api.common.validation import MAX_ID, Payload


@pytest.mark.parametrize("raw", ["NaN", "nan", "Infinity", "-Infinity", float("nan"), float("inf")])
def test_number_rejects_non_finite(raw):
    p = Payload({"hours": raw})
    assert p.number("hours", min_value=0, max_value=24) is None
    assert p.errors == {"hours": "must be a number"}


def test_int_rejects_fractional_floats():
    p = Payload({"a": 3.7, "b": 3.0, "c": "3.7"})
    assert p.int("a") is None
    assert p.int("b") == 3
    assert p.int("c") is None
    assert set(p.errors) == {"a", "c"}


def test_id_bounds():
    p = Payload({"a": 0, "b": MAX_ID + 1, "c": MAX_ID, "d": float("inf")})
    assert p.id("a") is None
    assert p.id("b") is None
    assert p.id("c") == MAX_ID
    assert p.id("d") is None
    assert set(p.errors) == {"a", "b", "d"}
    with pytest.raises(ValidationError):
        p.check()


@pytest.mark.parametrize("hours", ["NaN", "Infinity"])
def test_non_finite_hours_are_a_field_error(client, auth, world, hours):
    r = client.post("/api/timesheets", json={
        "week_start": "2026-03-02", "entries": [{"date": "2026-03-02", "hours": hours}],
    }, headers=auth("employee"))
    assert r.status_code == 422
    assert "entries[0].hours" in r.get_json()["error"]["errors"]


def test_non_finite_carry_over_is_a_field_error(client, auth, world):
    r = client.post("/api/leave/policies", json={"code": "PTO", "name": "PTO", "carry_over_max": "NaN"},
                    headers=auth("hr"))
    assert r.status_code == 422
    assert "carry_over_max" in r.get_json()["error"]["errors"]


def test_oversized_ids_in_bodies(client, auth, world):
    r = client.post("/api/timesheets", json={"week_start": "2026-03-02", "employee_id": 10 ** 30},
                    headers=auth("hr"))
    assert r.status_code == 422
    assert "employee_id" in r.get_json()["error"]["errors"]

    r = client.post("/api/leave", json={"start_date": "2026-04-06", "end_date": "2026-04-06",
                                        "leave_policy_id": 10 ** 30}, headers=auth("employee"))
    assert r.status_code == 422
    assert "leave_policy_id" in r.get_json()["error"]["errors"]


def test_oversized_company_switch_is_rejected(client, auth, world):
    client.post("/api/user/current-company", json={"company_id": world["acme"]}, headers=auth("dual"))
    r = client.post("/api/user/current-company", json={"company_id": 10 ** 30}, headers=auth("dual"))
    assert r.status_code == 400
    assert r.get_json()["error"]["code"] == "company_id.invalid"
    r = client.post("/api/user/current-company", json={"company_id": 2.5}, headers=auth("dual"))
    assert r.status_code == 400
    # pointer untouched
    assert client.get("/api/user/current-company", headers=auth("dual")).get_json()["data"]["company_id"] == world["acme"]


def test_oversized_ids_in_urls_and_query(client, auth, world):
    assert client.get(f"/api/payroll/{10 ** 30}", headers=auth("hr")).status_code == 404
    r = client.get(f"/api/timesheets?employee_id={10 ** 30}", headers=auth("hr"))
    assert r.status_code == 422
    assert client.get("/api/timesheets?employee_id=abc", headers=auth("hr")).status_code == 422
