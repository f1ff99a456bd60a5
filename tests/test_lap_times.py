# tests/test_lap_times.py
import uuid


def _payload(track, car, **overrides):
    payload = {"track_id": str(track.id), "car_id": str(car.id), "time_ms": 95_432}
    payload.update(overrides)
    return payload


def test_create_snapshots_build_name(client, session, auth_headers, make_user, make_build, track, car):
    driver = make_user()
    build = make_build(driver, car, name="Quali Trim")
    headers = auth_headers(driver)

    response = client.post("/api/lap-times", json=_payload(track, car, build_id=str(build.id)), headers=headers)
    assert response.status_code == 201
    lap = response.json()
    assert lap["build_name"] == "Quali Trim"
    assert lap["session_type"] == "R"
    assert lap["user_id"] == str(driver.id)

    client.patch(f"/api/builds/{build.id}", json={"name": "Race Trim"}, headers=headers)
    mine = client.get("/api/lap-times", headers=headers).json()
    assert mine[0]["build_name"] == "Quali Trim"


def test_build_name_is_not_client_settable(client, auth_headers, make_user, track, car):
    response = client.post(
        "/api/lap-times",
        json=_payload(track, car, build_name="Fake"),
        headers=auth_headers(make_user()),
    )
    assert response.status_code == 400


def test_build_for_another_car_is_400(client, auth_headers, make_user, make_build, track, car, other_car):
    driver = make_user()
    build = make_build(driver, other_car)

    response = client.post(
        "/api/lap-times",
        json=_payload(track, car, build_id=str(build.id)),
        headers=auth_headers(driver),
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Build is for a different car"


def test_someone_elses_private_build_is_403(client, auth_headers, make_user, make_build, track, car):
    hidden = make_build(make_user(), car, name="Secret Trim")
    headers = auth_headers(make_user())

    response = client.post("/api/lap-times", json=_payload(track, car, build_id=str(hidden.id)), headers=headers)
    assert response.status_code == 403

    shared = make_build(make_user(), car, name="Shared Trim", is_public=True)
    allowed = client.post("/api/lap-times", json=_payload(track, car, build_id=str(shared.id)), headers=headers)
    assert allowed.status_code == 201
    assert allowed.json()["build_name"] == "Shared Trim"


def test_missing_references_are_404(client, auth_headers, make_user, track, car):
    headers = auth_headers(make_user())
    missing = str(uuid.uuid4())

    assert client.post("/api/lap-times", json=_payload(track, car, track_id=missing), headers=headers).json() == {
        "error": "Track not found"
    }
    assert client.post("/api/lap-times", json=_payload(track, car, car_id=missing), headers=headers).status_code == 404
    assert client.post("/api/lap-times", json=_payload(track, car, build_id=missing), headers=headers).status_code == 404
    assert client.post("/api/lap-times", json=_payload(track, car, session_id=missing), headers=headers).status_code == 404


def test_time_bounds(client, auth_headers, make_user, track, car):
    headers = auth_headers(make_user())

    too_fast = client.post("/api/lap-times", json=_payload(track, car, time_ms=9_999), headers=headers)
    assert too_fast.status_code == 400
    assert too_fast.json()["error"] == "Lap time must be at least 10 seconds"

    too_slow = client.post("/api/lap-times", json=_payload(track, car, time_ms=1_800_001), headers=headers)
    assert too_slow.json()["error"] == "Lap time must be at most 30 minutes"

    edge = client.post("/api/lap-times", json=_payload(track, car, time_ms=10_000), headers=headers)
    assert edge.status_code == 201


def test_list_own_filters_and_limit(client, auth_headers, make_user, make_lap, track, car, other_car):
    me, someone = make_user(), make_user()
    make_lap(me, track, car, 100_000)
    make_lap(me, track, other_car, 101_000)
    make_lap(someone, track, car, 99_000)
    headers = auth_headers(me)

    assert len(client.get("/api/lap-times", headers=headers).json()) == 2
    only_car = client.get("/api/lap-times", params={"car_id": str(car.id)}, headers=headers).json()
    assert [lap["time_ms"] for lap in only_car] == [100_000]
    assert len(client.get("/api/lap-times", params={"limit": 1}, headers=headers).json()) == 1

    bad = client.get("/api/lap-times", params={"limit": 0}, headers=headers)
    assert bad.status_code == 400
    assert bad.json()["error"] == "Limit must be a positive number"


def test_list_requires_auth(client):
    assert client.get("/api/lap-times").status_code == 401


def test_owner_edits_and_others_cannot(client, auth_headers, make_user, make_lap, track, car):
    owner, other = make_user(), make_user()
    admin = make_user(role="ADMIN")
    lap = make_lap(owner, track, car, 100_000)

    updated = client.patch(f"/api/lap-times/{lap.id}", json={"time_ms": 99_500, "notes": " clean "}, headers=auth_headers(owner))
    assert updated.status_code == 200
    assert updated.json()["time_ms"] == 99_500
    assert updated.json()["notes"] == "clean"

    assert client.patch(f"/api/lap-times/{lap.id}", json={"notes": "x"}, headers=auth_headers(other)).status_code == 403
    assert client.delete(f"/api/lap-times/{lap.id}", headers=auth_headers(other)).status_code == 403
    assert client.delete(f"/api/lap-times/{lap.id}", headers=auth_headers(admin)).status_code == 200
    assert client.delete(f"/api/lap-times/{lap.id}", headers=auth_headers(admin)).status_code == 404
