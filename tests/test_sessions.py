# tests/test_sessions.py
import uuid

import pytest
from sqlmodel import select

from fridaygt.models.run_session import RunSession, SessionAttendance


@pytest.fixture(name="organiser")
def organiser_fixture(make_user):
    return make_user(gamertag="Organiser")


@pytest.fixture(name="organiser_headers")
def organiser_headers_fixture(organiser, auth_headers):
    return auth_headers(organiser)


@pytest.fixture(name="run_list")
def run_list_fixture(client, organiser_headers):
    response = client.post("/api/run-lists", json={"name": "Friday Night"}, headers=organiser_headers)
    assert response.status_code == 201
    return response.json()


def _create(client, headers, run_list, **overrides):
    payload = {"run_list_id": run_list["id"], "name": "Week 1"}
    payload.update(overrides)
    return client.post("/api/sessions", json=payload, headers=headers)


def test_creator_is_marked_present(client, organiser, organiser_headers, run_list):
    response = _create(client, organiser_headers, run_list)
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "SCHEDULED"
    assert body["current_entry_order"] is None

    attendance = client.get(f"/api/sessions/{body['id']}/attendance").json()
    assert len(attendance) == 1
    assert attendance[0]["user_id"] == str(organiser.id)
    assert attendance[0]["status"] == "PRESENT"
    assert attendance[0]["gamertag"] == "Organiser"


def test_any_approved_user_may_create_on_public_list(client, auth_headers, make_user, run_list):
    guest = auth_headers(make_user())
    assert _create(client, guest, run_list, name="Guest night").status_code == 201

    pending = auth_headers(make_user(role="PENDING"))
    assert _create(client, pending, run_list).status_code == 403
    assert _create(client, {}, run_list).status_code == 401


def test_private_list_requires_visibility(client, organiser_headers, auth_headers, make_user):
    private = client.post(
        "/api/run-lists",
        json={"name": "Secret", "is_public": False},
        headers=organiser_headers,
    ).json()
    outsider = auth_headers(make_user())

    assert _create(client, outsider, private).status_code == 403
    assert _create(client, organiser_headers, private).status_code == 201


def test_create_validation(client, organiser_headers, run_list):
    missing = _create(client, organiser_headers, {"id": str(uuid.uuid4())})
    assert missing.status_code == 404
    assert missing.json()["error"] == "Run list not found"

    bad_status = _create(client, organiser_headers, run_list, status="PAUSED")
    assert bad_status.status_code == 400


def test_starting_a_session_sets_first_entry(client, organiser_headers, run_list):
    started = _create(client, organiser_headers, run_list, status="IN_PROGRESS").json()
    assert started["current_entry_order"] == 1

    scheduled = _create(client, organiser_headers, run_list, name="Week 2").json()
    response = client.patch(
        f"/api/sessions/{scheduled['id']}",
        json={"status": "IN_PROGRESS"},
        headers=organiser_headers,
    )
    assert response.status_code == 200
    assert response.json()["current_entry_order"] == 1

    advanced = client.patch(
        f"/api/sessions/{scheduled['id']}",
        json={"current_entry_order": 3},
        headers=organiser_headers,
    ).json()
    assert advanced["current_entry_order"] == 3
    assert advanced["status"] == "IN_PROGRESS"


def test_only_list_creator_or_admin_edits(client, organiser_headers, auth_headers, make_user, run_list):
    created = _create(client, organiser_headers, run_list).json()
    guest = auth_headers(make_user())
    admin = auth_headers(make_user(role="ADMIN"))

    url = f"/api/sessions/{created['id']}"
    assert client.patch(url, json={"name": "Hijack"}, headers=guest).status_code == 403
    assert client.delete(url, headers=guest).status_code == 403

    renamed = client.patch(url, json={"name": "Week 1 (rescheduled)"}, headers=admin)
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Week 1 (rescheduled)"


def test_tonight(client, organiser_headers, run_list):
    assert client.get("/api/sessions/tonight").json() == {"session": None}

    _create(client, organiser_headers, run_list, name="Later")
    live = _create(client, organiser_headers, run_list, name="Now", status="IN_PROGRESS").json()

    tonight = client.get("/api/sessions/tonight").json()["session"]
    assert tonight["id"] == live["id"]
    assert tonight["current_entry_order"] == 1
    assert len(tonight["attendance"]) == 1


def test_list_filters(client, organiser_headers, run_list):
    _create(client, organiser_headers, run_list, name="Planned")
    _create(client, organiser_headers, run_list, name="Running", status="IN_PROGRESS")

    running = client.get("/api/sessions", params={"status": "IN_PROGRESS"}).json()
    assert [s["name"] for s in running] == ["Running"]

    by_list = client.get("/api/sessions", params={"run_list_id": run_list["id"]}).json()
    assert {s["name"] for s in by_list} == {"Planned", "Running"}
    assert client.get("/api/sessions", params={"run_list_id": str(uuid.uuid4())}).json() == []


def test_join_leave_rejoin(client, organiser_headers, auth_headers, make_user, run_list):
    created = _create(client, organiser_headers, run_list).json()
    driver = make_user(gamertag="Slipstream")
    headers = auth_headers(driver)
    url = f"/api/sessions/{created['id']}/attendance"

    not_attending = client.delete(url, headers=headers)
    assert not_attending.status_code == 404
    assert not_attending.json()["error"] == "Not attending this session"

    joined = client.post(url, headers=headers)
    assert joined.status_code == 200
    assert joined.json()["status"] == "PRESENT"
    assert joined.json()["gamertag"] == "Slipstream"

    again = client.post(url, headers=headers)
    assert again.status_code == 400
    assert again.json()["error"] == "Already attending this session"

    left = client.delete(url, headers=headers)
    assert left.status_code == 200
    assert left.json()["status"] == "LEFT"
    assert left.json()["left_at"] is not None

    assert client.delete(url, headers=headers).json()["error"] == "Already left this session"

    rejoined = client.post(url, headers=headers).json()
    assert rejoined["status"] == "PRESENT"
    assert rejoined["left_at"] is None
    assert rejoined["id"] == joined.json()["id"]


def test_detail_includes_session_laps(client, session, organiser, organiser_headers, run_list, make_lap, track, car):
    created = _create(client, organiser_headers, run_list).json()
    lap = make_lap(organiser, track, car, 95_500)
    lap.session_id = uuid.UUID(created["id"])
    session.add(lap)
    session.commit()

    detail = client.get(f"/api/sessions/{created['id']}").json()
    assert [l["id"] for l in detail["lap_times"]] == [str(lap.id)]


def test_delete_detaches_laps(client, session, organiser, organiser_headers, run_list, make_lap, track, car):
    created = _create(client, organiser_headers, run_list).json()
    lap = make_lap(organiser, track, car, 95_500)
    lap.session_id = uuid.UUID(created["id"])
    session.add(lap)
    session.commit()

    response = client.delete(f"/api/sessions/{created['id']}", headers=organiser_headers)
    assert response.status_code == 200

    assert session.exec(select(RunSession)).all() == []
    assert session.exec(select(SessionAttendance)).all() == []
    session.refresh(lap)
    assert lap.session_id is None

    assert client.get(f"/api/sessions/{created['id']}").status_code == 404


def test_private_list_sessions_hidden_from_outsiders(client, organiser_headers, auth_headers, make_user):
    private = client.post(
        "/api/run-lists",
        json={"name": "Secret", "is_public": False},
        headers=organiser_headers,
    ).json()
    live = _create(client, organiser_headers, private, name="Closed door", status="IN_PROGRESS").json()
    outsider = auth_headers(make_user())
    admin = auth_headers(make_user(role="ADMIN"))

    assert client.get("/api/sessions/tonight").json() == {"session": None}
    assert client.get("/api/sessions/tonight", headers=outsider).json() == {"session": None}
    assert client.get("/api/sessions/tonight", headers=organiser_headers).json()["session"]["id"] == live["id"]

    def names(headers=None):
        return [s["name"] for s in client.get("/api/sessions", headers=headers or {}).json()]

    assert names() == []
    assert names(outsider) == []
    assert names(organiser_headers) == ["Closed door"]
    assert names(admin) == ["Closed door"]

    url = f"/api/sessions/{live['id']}/attendance"
    assert client.get(url).status_code == 401
    assert client.get(url, headers=outsider).status_code == 403
    assert client.get(url, headers=organiser_headers).status_code == 200

    assert client.post(url, headers=outsider).status_code == 403
