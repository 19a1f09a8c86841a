import pytest

from fakes import make_env
from hrm_core.main import create_app

HR = {"X-Actor-Id": "901", "X-Actor-Role": "HR_Manager"}
ALICE = {"X-Actor-Id": "11", "X-Actor-Role": "Employee", "X-Employee-Id": "1"}
BAO = {"X-Actor-Id": "12", "X-Actor-Role": "Employee", "X-Employee-Id": "2"}


@pytest.fixture
def env(monkeypatch):
    monkeypatch.setenv("APP_ENV", "testing")
    return make_env()


@pytest.fixture
def client(env):
    app = create_app(env.container)
    return app.test_client()


def test_health(client):
    assert client.get("/health").get_json() == {"status": "ok"}


def test_missing_actor_is_forbidden(client):
    resp = client.post("/api/attendance/check-in", json={"employee_id": 1, "date": "2026-02-02", "time": "09:00:00"})
    assert resp.status_code == 403
    assert resp.get_json()["rule"] == "actor_required"


def test_unknown_role_is_forbidden(client):
    resp = client.get("/api/employees/1/attendance", headers={"X-Actor-Id": "1", "X-Actor-Role": "Root"})
    assert resp.status_code == 403


def test_check_in_and_out(client, env):
    resp = client.post(
        "/api/attendance/check-in",
        json={"employee_id": 1, "date": "2026-02-02", "time": "09:20:00"},
        headers=ALICE,
    )
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["status"] == "LATE"
    assert body["check_in_time"] == "09:20:00"

    resp = client.post(
        "/api/attendance/check-out",
        json={"employee_id": 1, "date": "2026-02-02", "time": "17:20:00"},
        headers=ALICE,
    )
    assert resp.status_code == 200
    assert resp.get_json()["work_hours"] == 8.0

    again = client.post(
        "/api/attendance/check-in",
        json={"employee_id": 1, "date": "2026-02-02", "time": "09:00:00"},
        headers=ALICE,
    )
    assert again.status_code == 409
    assert again.get_json() == {
        "error": "conflict",
        "rule": "attendance_exists",
        "context": {"employee_id": 1, "work_date": "2026-02-02"},
    }


def test_error_kinds_map_to_status_codes(client):
    bad_time = client.post(
        "/api/attendance/check-in",
        json={"employee_id": 1, "date": "2026-02-02", "time": "9am"},
        headers=ALICE,
    )
    assert bad_time.status_code == 400

    not_mine = client.post(
        "/api/attendance/check-in",
        json={"employee_id": 1, "date": "2026-02-02", "time": "09:00:00"},
        headers=BAO,
    )
    assert not_mine.status_code == 403

    missing = client.get("/api/attendance/999", headers=HR)
    assert missing.status_code == 404

    too_long = client.post(
        "/api/leave-requests",
        json={"employee_id": 1, "leave_type": "CASUAL", "start_date": "2026-02-09", "end_date": "2026-02-13", "reason": "x"},
        headers=ALICE,
    )
    assert too_long.status_code == 422
    assert too_long.get_json()["rule"] == "max_consecutive_days_exceeded"


def test_leave_lifecycle(client, env):
    resp = client.post(
        "/api/leave-requests",
        json={"employee_id": 1, "leave_type": "annual", "start_date": "2026-02-09", "end_date": "2026-02-10", "reason": "trip"},
        headers=ALICE,
    )
    assert resp.status_code == 201
    request_id = resp.get_json()["request_id"]

    pending = client.get("/api/leave-requests/pending", headers=HR).get_json()["requests"]
    assert [r["request_id"] for r in pending] == [request_id]

    approved = client.post(f"/api/leave-requests/{request_id}/approve", json={"notes": "ok"}, headers=HR)
    assert approved.get_json()["status"] == "APPROVED"

    rejected_again = client.post(f"/api/leave-requests/{request_id}/reject", headers=HR)
    assert rejected_again.status_code == 409
    assert rejected_again.get_json()["error"] == "invalid_state"

    history = client.get("/api/employees/1/attendance?status=ON_LEAVE", headers=ALICE).get_json()
    assert [r["date"] for r in history["records"]] == ["2026-02-10", "2026-02-09"]

    balance = client.get("/api/employees/1/leave-balance", headers=ALICE).get_json()
    annual = next(b for b in balance["balances"] if b["leave_type"] == "ANNUAL")
    assert annual == {"leave_type": "ANNUAL", "annual_limit": 20, "used_days": 2, "pending_days": 0, "available_days": 18}

    assert client.delete(f"/api/leave-requests/{request_id}", headers=ALICE).status_code == 204
    assert client.get("/api/employees/1/attendance", headers=ALICE).get_json()["records"] == []


def test_leave_balances_report_failures(client):
    body = client.get("/api/leave-balances?employee_id=1&employee_id=42", headers=HR).get_json()
    assert [b["employee_id"] for b in body["balances"]] == [1]
    assert body["failures"][0]["employee_id"] == 42
    assert body["failures"][0]["error"] == "not_found"


def test_payroll_endpoints(client, env):
    env.clock.current = env.clock.current.replace(month=3)

    resp = client.post(
        "/api/salary-structures",
        json={"employee_id": 1, "basic_salary": "3000", "deductions": {"tax": "10%"}, "effective_from": "2026-01-01"},
        headers=HR,
    )
    assert resp.status_code == 201
    assert resp.get_json()["deductions"] == {"tax": "10%"}

    assert client.get("/api/employees/1/salary-structure", headers=ALICE).status_code == 200
    assert client.get("/api/employees/1/salary-structure", headers=BAO).status_code == 403

    generated = client.post("/api/payroll/generate", json={"employee_id": 1, "month": 2, "year": 2026}, headers=HR)
    assert generated.status_code == 201
    record = generated.get_json()
    assert record["net_salary"] == "0.00"
    assert record["working_days"] == 20

    duplicate = client.post("/api/payroll/generate", json={"employee_id": 1, "month": 2, "year": 2026}, headers=HR)
    assert duplicate.status_code == 409

    bulk = client.post("/api/payroll/generate-bulk", json={"month": 2, "year": 2026}, headers=HR).get_json()
    assert [f["employee_id"] for f in bulk["failures"]] == [1, 2, 3]

    assert client.get(f"/api/payroll/{record['payroll_id']}", headers=ALICE).status_code == 200
    assert client.get("/api/payroll?employee_id=1", headers=ALICE).get_json()["records"][0]["month"] == 2
    assert client.get("/api/payroll/summary?month=2&year=2026", headers=HR).get_json()["count"] == 1

    analytics = client.get("/api/payroll/analytics/2026", headers=HR).get_json()
    assert len(analytics["months"]) == 12
    assert analytics["total_net"] == "0.00"

    future = client.post("/api/payroll/generate", json={"employee_id": 1, "month": 5, "year": 2026}, headers=HR)
    assert future.status_code == 400
    assert future.get_json()["rule"] == "future_period"


def test_non_text_fields_are_bad_requests(client, env):
    leave = client.post(
        "/api/leave-requests",
        json={"employee_id": 1, "leave_type": "ANNUAL", "start_date": "2026-02-09", "end_date": "2026-02-10", "reason": 5},
        headers=ALICE,
    )
    assert leave.status_code == 400
    assert leave.get_json() == {"error": "invalid_input", "rule": "invalid_text", "context": {"field": "reason", "value": 5}}

    check_in = client.post(
        "/api/attendance/check-in",
        json={"employee_id": 1, "date": "2026-02-02", "time": "09:00:00", "notes": 42},
        headers=ALICE,
    )
    assert check_in.status_code == 400
    assert check_in.get_json()["rule"] == "invalid_text"
    assert env.attendance.by_id == {}


def test_attendance_reports(client):
    for employee_id, headers in ((1, ALICE), (2, BAO)):
        client.post(
            "/api/attendance/check-in",
            json={"employee_id": employee_id, "date": "2026-02-02", "time": "09:20:00" if employee_id == 2 else "09:00:00"},
            headers=headers,
        )

    listing = client.get("/api/attendance?department=Engineering&status=LATE", headers=HR).get_json()
    assert [r["employee_id"] for r in listing["records"]] == [2]

    stats = client.get("/api/attendance/stats?start_date=2026-02-01&end_date=2026-02-28", headers=HR).get_json()
    assert stats["total_records"] == 2
    assert stats["status_counts"]["LATE"] == 1

    daily = client.get("/api/attendance/daily-summary?date=2026-02-02", headers=HR).get_json()
    assert daily["departments"] == {"Engineering": {"PRESENT": 1, "LATE": 1}}

    assert client.get("/api/attendance", headers=ALICE).status_code == 403
    assert client.get("/api/attendance/stats?start_date=2026-03-01&end_date=2026-02-01", headers=HR).status_code == 400


def test_leave_reports(client):
    for body in (
        {"employee_id": 1, "leave_type": "ANNUAL", "start_date": "2026-02-09", "end_date": "2026-02-10", "reason": "trip"},
        {"employee_id": 3, "leave_type": "SICK", "start_date": "2026-02-11", "end_date": "2026-02-11", "reason": "flu"},
    ):
        assert client.post("/api/leave-requests", json=body, headers=HR).status_code == 201

    listing = client.get("/api/leave-requests?department=Finance", headers=HR).get_json()
    assert [r["employee_id"] for r in listing["requests"]] == [3]

    stats = client.get("/api/leave-requests/statistics", headers=HR).get_json()
    assert stats["total_requests"] == 2
    assert {t["leave_type"]: t["pending_requests"] for t in stats["by_type"]} == {"ANNUAL": 1, "SICK": 1}

    assert client.get("/api/leave-requests/statistics", headers=BAO).status_code == 403
