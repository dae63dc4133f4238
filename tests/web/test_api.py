from __future__ import annotations

from datetime import timedelta

import pytest

from club_attendance.container import Settings, assemble_container
from club_attendance.core.enums import AttendanceType
from club_attendance.main import create_app


@pytest.fixture
def container(members_repo, teams_repo, attendance_repo, registrations_repo, announcements_repo, audit_repo, clock):
    return assemble_container(
        members_repo=members_repo,
        teams_repo=teams_repo,
        attendance_repo=attendance_repo,
        registrations_repo=registrations_repo,
        announcements_repo=announcements_repo,
        audit_repo=audit_repo,
        settings=Settings(base_url="http://kiosk.test"),
        clock=clock,
    )


@pytest.fixture
def client(monkeypatch, container):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container)
    return app.test_client()


CALLBACK_HEADERS = {"X-Identity-Callback-Secret": "test-callback-secret"}


def login(client, provider_id):
    resp = client.post(
        "/auth/callback",
        json={"subject": f"{provider_id}@example.com", "provider_id": provider_id},
        headers=CALLBACK_HEADERS,
    )
    assert resp.status_code == 200
    return resp.get_json()


def test_callback_reports_registration(client):
    assert login(client, "ext-alice")["registered"] is True
    assert login(client, "ext-dave")["registered"] is False


def test_callback_requires_shared_secret(client):
    identity = {"subject": "alice@example.com", "provider_id": "ext-alice"}

    assert client.post("/auth/callback", json=identity).status_code == 401
    wrong = client.post("/auth/callback", json=identity, headers={"X-Identity-Callback-Secret": "nope"})
    assert wrong.status_code == 401
    assert client.get("/api/me").status_code == 401


def test_callback_rejects_incomplete_identity(client):
    resp = client.post("/auth/callback", json={"subject": "alice@example.com"}, headers=CALLBACK_HEADERS)

    assert resp.status_code == 400


def test_signout_clears_identity(client):
    login(client, "ext-alice")
    assert client.get("/api/me").status_code == 200

    assert client.post("/auth/signout").status_code == 200
    assert client.get("/api/me").status_code == 401


def test_kiosk_tap_toggles(client):
    first = client.post("/api/kiosk/tap", json={"card_id": "04:A1:B2:C3"})
    second = client.post("/api/kiosk/tap", json={"card_id": "04a1b2c3"})

    assert first.status_code == 200
    assert first.get_json()["type"] == "in"
    assert first.get_json()["headline"] == "alice (プログラミング班・10期生)"
    assert second.get_json()["message"] == "退勤しました"


def test_kiosk_tap_unknown_card(client):
    resp = client.post("/api/kiosk/tap", json={"card_id": "ffff"})

    assert resp.status_code == 404
    assert resp.get_json() == {"success": False, "message": "未登録のカードです。"}


def test_registration_round_trip(client, clock):
    begun = client.post("/api/kiosk/registrations", json={"card_id": "AA:BB:CC"}).get_json()
    token = begun["token"]
    assert begun["url"] == f"http://kiosk.test/register/{token}"

    status = client.get(f"/api/kiosk/registrations/{token}/status").get_json()
    assert status["accessed"] is False

    page = client.get(f"/api/register/{token}").get_json()
    assert page["authenticated"] is False
    assert client.get(f"/api/kiosk/registrations/{token}/status").get_json()["accessed"] is True

    form = {"display_name": "dave", "generation": 11, "team_id": 2}
    assert client.post(f"/api/register/{token}", json=form).status_code == 401

    login(client, "ext-dave")
    done = client.post(f"/api/register/{token}", json=form)
    assert done.status_code == 201
    assert done.get_json()["member"]["display_name"] == "dave"

    again = client.post(f"/api/register/{token}", json=form)
    assert again.status_code == 409


def test_registration_expired(client, clock):
    token = client.post("/api/kiosk/registrations", json={"card_id": "aabbcc"}).get_json()["token"]
    clock.now += timedelta(minutes=31)
    login(client, "ext-dave")

    resp = client.post(f"/api/register/{token}", json={"display_name": "dave", "generation": 11, "team_id": 2})

    assert resp.status_code == 410


def test_registration_qr_png(client):
    token = client.post("/api/kiosk/registrations", json={"card_id": "aabbcc"}).get_json()["token"]

    resp = client.get(f"/register/{token}/qr.png")

    assert resp.status_code == 200
    assert resp.mimetype == "image/png"
    assert client.get("/register/qr_missing/qr.png").status_code == 404


def test_me_endpoints_require_member(client):
    assert client.get("/api/me/attendance").status_code == 401

    login(client, "ext-unknown")
    assert client.get("/api/me/attendance").status_code == 403


def test_my_attendance_and_activity(client, attendance_repo, fixed_now):
    attendance_repo.add(1, AttendanceType.IN, fixed_now - timedelta(hours=3))
    attendance_repo.add(1, AttendanceType.OUT, fixed_now - timedelta(hours=1))
    login(client, "ext-alice")

    month = client.get("/api/me/attendance?month=2025-05").get_json()
    activity = client.get("/api/me/activity?days=7").get_json()

    assert month["days"] == [{"date": "2025-05-14", "status": "in"}]
    assert activity["hours"] == 2.0
    assert client.get("/api/me/attendance?month=May").status_code == 400


def test_team_detail_access(client):
    login(client, "ext-alice")

    assert client.get("/api/teams/1").status_code == 200
    assert client.get("/api/teams/2").status_code == 403


def test_admin_routes_require_admin(client):
    login(client, "ext-alice")

    assert client.get("/api/admin/members").status_code == 403


def test_admin_edit_and_logs(client):
    login(client, "ext-carol")

    resp = client.patch("/api/admin/members/1", json={"card_id": "AA:BB:CC"})
    logs = client.get("/api/admin/logs/user-edits").get_json()["logs"]

    assert resp.get_json()["changed"] == ["card_id"]
    assert logs[0]["new_value"] == "aabbcc"
    assert logs[0]["editor_id"] == 3


def test_admin_delete_team_in_use(client):
    login(client, "ext-carol")

    resp = client.delete("/api/admin/teams/1")

    assert resp.status_code == 409


def test_admin_force_logout_all(client, attendance_repo, fixed_now):
    attendance_repo.add(1, AttendanceType.IN, fixed_now - timedelta(hours=1))
    login(client, "ext-carol")

    first = client.post("/api/admin/attendance/logout-all").get_json()
    second = client.post("/api/admin/attendance/logout-all").get_json()
    runs = client.get("/api/admin/logs/daily-logout").get_json()["logs"]

    assert (first["affected_count"], second["affected_count"]) == (1, 0)
    assert [r["affected_count"] for r in runs] == [0, 1]


def test_kiosk_announcement(client):
    login(client, "ext-carol")
    client.post("/api/admin/announcements", json={"title": "部会", "content": "金曜17時", "is_current": True})

    resp = client.get("/api/kiosk/announcement").get_json()

    assert resp["announcement"]["title"] == "部会"
    assert resp["announcement"]["author"]["member_id"] == 3
