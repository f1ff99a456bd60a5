# tests/test_run_lists.py
import uuid

import pytest
from sqlmodel import select

from fridaygt.models.lap_time import LapTime
from fridaygt.models.run_list import RunListEntry, RunListEntryCar
from fridaygt.models.run_session import RunSession, SessionAttendance


@pytest.fixture(name="owner")
def owner_fixture(make_user):
    return make_user(gamertag="Organiser")


@pytest.fixture(name="owner_headers")
def owner_headers_fixture(owner, auth_headers):
    return auth_headers(owner)


def _new_list(client, headers, **overrides):
    payload = {"name": "Friday Night"}
    payload.update(overrides)
    response = client.post("/api/run-lists", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


def _add_entry(client, headers, run_list_id, track, car, **overrides):
    payload = {"track_id": str(track.id), "cars": [{"car_id": str(car.id)}]}
    payload.update(overrides)
    return client.post(f"/api/run-lists/{run_list_id}/entries", json=payload, headers=headers)


def test_create_defaults_public(client, owner, owner_headers):
    run_list = _new_list(client, owner_headers, description="  GT4 week  ")
    assert run_list["is_public"] is True
    assert run_list["is_active"] is False
    assert run_list["created_by_id"] == str(owner.id)
    assert run_list["description"] == "GT4 week"


def test_name_is_required(client, owner_headers):
    response = client.post("/api/run-lists", json={"name": " "}, headers=owner_headers)
    assert response.status_code == 400
    assert response.json()["error"] == "Name is required"


def test_private_lists_hidden_from_others(client, owner_headers, auth_headers, make_user):
    public = _new_list(client, owner_headers, name="Open")
    private = _new_list(client, owner_headers, name="Secret", is_public=False)
    outsider = auth_headers(make_user())
    admin = auth_headers(make_user(role="ADMIN"))

    def names(headers=None, **params):
        return {r["name"] for r in client.get("/api/run-lists", params=params, headers=headers or {}).json()}

    assert names() == {"Open"}
    assert names(outsider) == {"Open"}
    assert names(owner_headers) == {"Open", "Secret"}
    assert names(admin) == {"Open", "Secret"}
    assert names(owner_headers, public="true") == {"Open"}
    assert names(outsider, mine="true") == set()

    assert client.get(f"/api/run-lists/{public['id']}").status_code == 200
    assert client.get(f"/api/run-lists/{private['id']}", headers=outsider).status_code == 403


def test_entries_ordered_and_renumbered(client, session, owner_headers, track, car, other_car):
    run_list = _new_list(client, owner_headers)
    ids = []
    for c in (car, other_car, car):
        response = _add_entry(client, owner_headers, run_list["id"], track, c)
        assert response.status_code == 201
        ids.append(response.json()["id"])

    detail = client.get(f"/api/run-lists/{run_list['id']}").json()
    assert [e["order"] for e in detail["entries"]] == [1, 2, 3]
    assert detail["entries"][1]["cars"][0]["car_id"] == str(other_car.id)

    assert client.delete(f"/api/run-lists/{run_list['id']}/entries/{ids[0]}", headers=owner_headers).status_code == 200

    detail = client.get(f"/api/run-lists/{run_list['id']}").json()
    assert [(e["id"], e["order"]) for e in detail["entries"]] == [(ids[1], 1), (ids[2], 2)]

    appended = _add_entry(client, owner_headers, run_list["id"], track, car).json()
    assert appended["order"] == 3


def test_entry_validation(client, owner, owner_headers, make_build, track, car, other_car):
    run_list = _new_list(client, owner_headers)

    no_cars = _add_entry(client, owner_headers, run_list["id"], track, car, cars=[])
    assert no_cars.status_code == 400

    unknown_track = _add_entry(client, owner_headers, run_list["id"], track, car, track_id=str(uuid.uuid4()))
    assert unknown_track.status_code == 404

    wrong_build = make_build(owner, other_car)
    mismatch = _add_entry(
        client,
        owner_headers,
        run_list["id"],
        track,
        car,
        cars=[{"car_id": str(car.id), "build_id": str(wrong_build.id)}],
    )
    assert mismatch.status_code == 400
    assert mismatch.json()["error"] == "Build is for a different car"


def test_update_entry_replaces_cars(client, owner_headers, track, car, other_car):
    run_list = _new_list(client, owner_headers)
    entry = _add_entry(client, owner_headers, run_list["id"], track, car).json()

    response = client.patch(
        f"/api/run-lists/{run_list['id']}/entries/{entry['id']}",
        json={"notes": "Wet weather", "cars": [{"car_id": str(other_car.id)}, {"car_id": str(car.id)}]},
        headers=owner_headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["notes"] == "Wet weather"
    assert {c["car_id"] for c in body["cars"]} == {str(car.id), str(other_car.id)}


def test_only_creator_edits(client, owner_headers, auth_headers, make_user, track, car):
    run_list = _new_list(client, owner_headers)
    outsider = auth_headers(make_user())

    assert client.patch(f"/api/run-lists/{run_list['id']}", json={"name": "Mine"}, headers=outsider).status_code == 403
    assert _add_entry(client, outsider, run_list["id"], track, car).status_code == 403


def test_single_active_per_creator_and_single_live(client, owner_headers, auth_headers, make_user):
    first = _new_list(client, owner_headers, name="One")
    second = _new_list(client, owner_headers, name="Two")
    other_headers = auth_headers(make_user())
    foreign = _new_list(client, other_headers, name="Theirs")

    client.patch(f"/api/run-lists/{first['id']}", json={"is_active": True}, headers=owner_headers)
    client.patch(f"/api/run-lists/{foreign['id']}", json={"is_active": True}, headers=other_headers)
    client.patch(f"/api/run-lists/{second['id']}", json={"is_active": True}, headers=owner_headers)

    lists = {r["name"]: r for r in client.get("/api/run-lists").json()}
    assert lists["One"]["is_active"] is False
    assert lists["Two"]["is_active"] is True
    assert lists["Theirs"]["is_active"] is True

    client.patch(f"/api/run-lists/{foreign['id']}", json={"is_live": True}, headers=other_headers)
    client.patch(f"/api/run-lists/{first['id']}", json={"is_live": True}, headers=owner_headers)

    live = [r["name"] for r in client.get("/api/run-lists").json() if r["is_live"]]
    assert live == ["One"]


def test_delete_removes_entries_and_sessions(
    client, session, owner, owner_headers, make_lap, track, car
):
    run_list = _new_list(client, owner_headers)
    _add_entry(client, owner_headers, run_list["id"], track, car)
    created = client.post(
        "/api/sessions",
        json={"run_list_id": run_list["id"], "name": "Week 1"},
        headers=owner_headers,
    ).json()
    lap = make_lap(owner, track, car, 97_000)
    lap.session_id = uuid.UUID(created["id"])
    session.add(lap)
    session.commit()

    assert client.delete(f"/api/run-lists/{run_list['id']}", headers=owner_headers).status_code == 200

    for model in (RunListEntry, RunListEntryCar, RunSession, SessionAttendance):
        assert session.exec(select(model)).all() == [], model.__name__
    session.refresh(lap)
    assert lap.session_id is None
    assert len(session.exec(select(LapTime)).all()) == 1


def test_reorder_moves_entry_and_renumbers(client, owner_headers, auth_headers, make_user, track, car):
    run_list = _new_list(client, owner_headers)
    ids = [_add_entry(client, owner_headers, run_list["id"], track, car).json()["id"] for _ in range(4)]
    url = f"/api/run-lists/{run_list['id']}/reorder"

    moved = client.patch(url, json={"entry_id": ids[3], "new_order": 1}, headers=owner_headers)
    assert moved.status_code == 200
    assert [(e["id"], e["order"]) for e in moved.json()["entries"]] == [
        (ids[3], 1),
        (ids[0], 2),
        (ids[1], 3),
        (ids[2], 4),
    ]

    to_end = client.patch(url, json={"entry_id": ids[3], "new_order": 99}, headers=owner_headers).json()
    assert [e["id"] for e in to_end["entries"]] == [ids[0], ids[1], ids[2], ids[3]]
    assert [e["order"] for e in to_end["entries"]] == [1, 2, 3, 4]

    detail = client.get(f"/api/run-lists/{run_list['id']}").json()
    assert [e["id"] for e in detail["entries"]] == [ids[0], ids[1], ids[2], ids[3]]

    missing = client.patch(url, json={"entry_id": str(uuid.uuid4()), "new_order": 1}, headers=owner_headers)
    assert missing.status_code == 404
    assert missing.json()["error"] == "Entry not found"

    assert client.patch(url, json={"entry_id": ids[0], "new_order": 0}, headers=owner_headers).status_code == 400
    assert client.patch(url, json={"new_order": 1}, headers=owner_headers).status_code == 400

    outsider = auth_headers(make_user())
    assert client.patch(url, json={"entry_id": ids[0], "new_order": 2}, headers=outsider).status_code == 403


def test_active_list_for_caller(client, owner_headers, auth_headers, make_user, track, car):
    assert client.get("/api/run-lists/active").status_code == 401
    assert client.get("/api/run-lists/active", headers=owner_headers).json() == {"run_list": None}

    run_list = _new_list(client, owner_headers, name="This week", is_public=False)
    _add_entry(client, owner_headers, run_list["id"], track, car)
    client.patch(f"/api/run-lists/{run_list['id']}", json={"is_active": True}, headers=owner_headers)

    active = client.get("/api/run-lists/active", headers=owner_headers).json()["run_list"]
    assert active["id"] == run_list["id"]
    assert active["entries"][0]["cars"][0]["car_id"] == str(car.id)

    other = auth_headers(make_user())
    assert client.get("/api/run-lists/active", headers=other).json() == {"run_list": None}

    no_user = client.get("/api/run-lists/active", headers=auth_headers("newcomer@example.com"))
    assert no_user.status_code == 404
    assert no_user.json()["error"] == "User not found"


def test_entry_cannot_use_someone_elses_private_build(
    client, owner_headers, make_user, make_build, track, car
):
    run_list = _new_list(client, owner_headers)
    hidden = make_build(make_user(), car, is_public=False)

    added = _add_entry(
        client,
        owner_headers,
        run_list["id"],
        track,
        car,
        cars=[{"car_id": str(car.id), "build_id": str(hidden.id)}],
    )
    assert added.status_code == 403

    entry = _add_entry(client, owner_headers, run_list["id"], track, car).json()
    updated = client.patch(
        f"/api/run-lists/{run_list['id']}/entries/{entry['id']}",
        json={"cars": [{"car_id": str(car.id), "build_id": str(hidden.id)}]},
        headers=owner_headers,
    )
    assert updated.status_code == 403
