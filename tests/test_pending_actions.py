from datetime import date

from nest_api.extensions import db
from nest_api.models.employee import Employee
from nest_api.services.pending_actions import collect
from nest_api.services.user_context import resolve_user


def _submitted_sheet(client, headers):
    tid = client.post("/api/timesheets", json={
        "week_start": "2026-03-02", "entries": [{"date": "2026-03-02", "hours": 8}],
    }, headers=headers).get_json()["data"]["id"]
    client.post(f"/api/timesheets/{tid}/submit", headers=headers)
    return tid


def test_manager_sees_only_approvable_work(client, auth, world):
    mine = _submitted_sheet(client, auth("employee"))
    _submitted_sheet(client, auth("hr"))
    client.post("/api/leave", json={"start_date": "2026-04-06", "end_date": "2026-04-06"}, headers=auth("employee"))

    r = client.get("/api/pending-actions", headers=auth("manager"))
    assert r.status_code == 200
    items = r.get_json()["data"]
    assert [i["type"] for i in items] == ["leave_approval", "timesheet_approval"]
    assert items[1]["id"] == mine


def test_employee_has_nothing_pending(client, auth, world):
    _submitted_sheet(client, auth("employee"))
    assert client.get("/api/pending-actions", headers=auth("employee")).get_json()["data"] == []


def test_hr_gets_onboarding_and_payroll_reminder(app, world):
    with app.app_context():
        ctx = resolve_user(world["subjects"]["hr"])
        items = collect(ctx, today=date(2026, 3, 15))
        types = [i["type"] for i in items]
        # high priority first
        assert types[0] == "payroll_processing"
        assert items[0]["id"] == "payroll-3-2026"
        # seeded employees have not completed onboarding
        assert types.count("employee_onboarding") == 3

        Employee.query.update({"onboarding_completed": True})
        db.session.commit()
        items = collect(ctx, today=date(2026, 3, 15))
        assert [i["type"] for i in items] == ["payroll_processing"]


def test_payroll_reminder_disappears_once_cycle_exists(client, auth, world):
    today = date.today()
    client.post("/api/payroll", json={"month": today.month, "year": today.year}, headers=auth("hr"))
    items = client.get("/api/pending-actions", headers=auth("hr")).get_json()["data"]
    assert "payroll_processing" not in [i["type"] for i in items]


def test_requires_a_current_company(client, auth, world):
    r = client.get("/api/pending-actions", headers=auth("orphan"))
    assert r.status_code == 403


def test_dashboard_stats(client, auth, world):
    _submitted_sheet(client, auth("employee"))
    r = client.get("/api/dashboard/stats", headers=auth("manager"))
    assert r.status_code == 200
    data = r.get_json()["data"]
    assert data["headcount"] == 4
    assert data["pending_timesheets"] == 1
    assert data["direct_reports"] == {"count": 1, "pending_timesheets": 1, "pending_leave_requests": 0}

    data = client.get("/api/dashboard/stats", headers=auth("employee")).get_json()["data"]
    assert data["mine"]["pending_timesheets"] == 1
