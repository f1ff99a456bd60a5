# tests/test_builds.py
import uuid

from sqlmodel import select

from fridaygt.models.build import CarBuild
from fridaygt.models.lap_time import LapTime


def _create(client, headers, car, **overrides):
    payload = {"car_id": str(car.id), "name": "Suzuka Setup"}
    payload.update(overrides)
    return client.post("/api/builds", json=payload, headers=headers)


# -------- Create --------


def test_create_snapshots_part_and_setting_names(client, auth_headers, make_user, car, catalog_parts):
    headers = auth_headers(make_user())
    response = _create(
        client,
        headers,
        car,
        is_public=True,
        final_drive="3.900",
        upgrades=[
            {"part_id": str(catalog_parts["turbo"].id)},
            {"part_id": str(uuid.uuid4())},
            {"category": "Body", "part": "Weight Reduction Stage 1"},
        ],
        settings=[
            {"setting_id": str(catalog_parts["ride_height"].id), "value": "85"},
            {"setting_id": str(catalog_parts["ride_height"].id)},
        ],
    )

    assert response.status_code == 201
    body = response.json()
    assert body["final_drive"] == "3.900"
    assert [(u["category"], u["part"]) for u in body["upgrades"]] == [
        ("Body", "Weight Reduction Stage 1"),
        ("Engine", "Turbo Kit"),
    ]
    assert [(s["category"], s["setting"], s["value"]) for s in body["settings"]] == [
        ("Suspension", "Ride Height", "85"),
    ]
    assert body["statistics"]["total_laps"] == 0


def test_create_requires_name(client, auth_headers, make_user, car):
    response = _create(client, auth_headers(make_user()), car, name="   ")
    assert response.status_code == 400
    assert response.json()["error"] == "Build name is required"


def test_create_unknown_car_is_404(client, auth_headers, make_user):
    response = client.post(
        "/api/builds",
        json={"car_id": str(uuid.uuid4()), "name": "Ghost"},
        headers=auth_headers(make_user()),
    )
    assert response.status_code == 404


def test_pending_and_tagless_users_cannot_create(client, auth_headers, make_user, car):
    pending = _create(client, auth_headers(make_user(role="PENDING")), car)
    assert pending.status_code == 403
    assert pending.json()["error"] == "Your account is pending approval"

    tagless = _create(client, auth_headers(make_user(gamertag=None)), car)
    assert tagless.status_code == 403
    assert tagless.json()["error"] == "Please set a gamertag in your profile first"

    anonymous = _create(client, {}, car)
    assert anonymous.status_code == 401


def test_quick_build_is_private(client, auth_headers, make_user, car):
    response = client.post(
        "/api/builds/quick",
        json={"car_id": str(car.id), "name": "Quick one"},
        headers=auth_headers(make_user()),
    )
    assert response.status_code == 201
    assert response.json()["is_public"] is False


# -------- Visibility --------


def test_listing_visibility(client, auth_headers, make_user, make_build, car):
    owner, other = make_user(), make_user()
    admin = make_user(role="ADMIN")
    public = make_build(owner, car, name="Public", is_public=True)
    private = make_build(owner, car, name="Private")

    def names(headers=None, **params):
        return {b["name"] for b in client.get("/api/builds", params=params, headers=headers or {}).json()}

    assert names() == {"Public"}
    assert names(auth_headers(other)) == {"Public"}
    assert names(auth_headers(owner)) == {"Public", "Private"}
    assert names(auth_headers(admin)) == {"Public", "Private"}
    assert names(auth_headers(owner), public="true") == {"Public"}
    assert names(auth_headers(other), mine="true") == set()
    assert client.get("/api/builds", params={"mine": "true"}).status_code == 401

    assert client.get(f"/api/builds/{public.id}").status_code == 200
    assert client.get(f"/api/builds/{private.id}").status_code == 401
    assert client.get(f"/api/builds/{private.id}", headers=auth_headers(other)).status_code == 403
    assert client.get(f"/api/builds/{private.id}", headers=auth_headers(owner)).status_code == 200


def test_detail_includes_lap_statistics(client, make_user, make_build, make_lap, track, car):
    owner = make_user()
    build = make_build(owner, car, is_public=True)
    make_lap(owner, track, car, 100_000, build=build)
    make_lap(owner, track, car, 101_001, build=build)

    stats = client.get(f"/api/builds/{build.id}").json()["statistics"]
    assert stats["total_laps"] == 2
    assert stats["fastest_time_ms"] == 100_000
    assert stats["average_time_ms"] == 100_500
    assert stats["unique_tracks"] == 1


# -------- Update --------


def test_update_replaces_upgrades(client, auth_headers, make_user, car, catalog_parts):
    headers = auth_headers(make_user())
    created = _create(
        client,
        headers,
        car,
        upgrades=[{"category": "Engine", "part": "Stage 1"}, {"category": "Tyres", "part": "Racing Hard"}],
        settings=[{"category": "LSD", "setting": "Initial Torque", "value": "10"}],
    ).json()

    response = client.patch(
        f"/api/builds/{created['id']}",
        json={"name": "Renamed", "upgrades": [{"part_id": str(catalog_parts["turbo"].id)}]},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Renamed"
    assert [u["part"] for u in body["upgrades"]] == ["Turbo Kit"]
    # settings untouched when omitted
    assert [s["setting"] for s in body["settings"]] == ["Initial Torque"]

    cleared = client.patch(f"/api/builds/{created['id']}", json={"settings": []}, headers=headers)
    assert cleared.json()["settings"] == []


def test_only_owner_or_admin_can_edit(client, auth_headers, make_user, make_build, car):
    owner, other = make_user(), make_user()
    admin = make_user(role="ADMIN")
    build = make_build(owner, car, is_public=True)

    forbidden = client.patch(f"/api/builds/{build.id}", json={"name": "Mine now"}, headers=auth_headers(other))
    assert forbidden.status_code == 403

    by_admin = client.patch(f"/api/builds/{build.id}", json={"name": "Moderated"}, headers=auth_headers(admin))
    assert by_admin.status_code == 200


def test_transfer_is_admin_only_and_needs_approved_target(client, auth_headers, make_user, make_build, car):
    owner, target = make_user(), make_user()
    pending = make_user(role="PENDING")
    admin = make_user(role="ADMIN")
    build = make_build(owner, car)

    by_owner = client.patch(
        f"/api/builds/{build.id}", json={"user_id": str(target.id)}, headers=auth_headers(owner)
    )
    assert by_owner.status_code == 403

    to_pending = client.patch(
        f"/api/builds/{build.id}", json={"user_id": str(pending.id)}, headers=auth_headers(admin)
    )
    assert to_pending.status_code == 400

    moved = client.patch(
        f"/api/builds/{build.id}", json={"user_id": str(target.id)}, headers=auth_headers(admin)
    )
    assert moved.status_code == 200
    assert moved.json()["user_id"] == str(target.id)


# -------- Delete / clone --------


def test_delete_detaches_lap_times(client, session, auth_headers, make_user, make_build, make_lap, track, car):
    owner = make_user()
    build = make_build(owner, car, name="Old Setup")
    lap = make_lap(owner, track, car, 98_000, build=build)

    response = client.delete(f"/api/builds/{build.id}", headers=auth_headers(owner))
    assert response.status_code == 200
    assert session.exec(select(CarBuild)).all() == []

    session.refresh(lap)
    assert lap.build_id is None
    assert lap.build_name == "Old Setup"
    assert len(session.exec(select(LapTime)).all()) == 1


def test_clone_public_build(client, auth_headers, make_user, make_build, car):
    owner = make_user(gamertag="Tuner")
    cloner = make_user()
    headers = auth_headers(owner)
    source = _create(
        client,
        headers,
        car,
        name="Spa Quali",
        description="Low downforce",
        is_public=True,
        gear_1="3.2",
        upgrades=[{"category": "Engine", "part": "Stage 2"}],
    ).json()

    response = client.post(f"/api/builds/{source['id']}/clone", headers=auth_headers(cloner))
    assert response.status_code == 201
    clone = response.json()
    assert clone["name"] == "Spa Quali (Copy)"
    assert clone["user_id"] == str(cloner.id)
    assert clone["is_public"] is False
    assert clone["gear_1"] == "3.2"
    assert clone["description"].startswith("Low downforce")
    assert clone["description"].endswith("Cloned from Tuner's build")
    assert [u["part"] for u in clone["upgrades"]] == ["Stage 2"]


def test_clone_long_name_stays_within_limit(client, auth_headers, make_user, make_build, car):
    owner = make_user()
    source = make_build(owner, car, name="x" * 100)

    clone = client.post(f"/api/builds/{source.id}/clone", headers=auth_headers(owner)).json()
    assert len(clone["name"]) == 100
    assert clone["name"].endswith(" (Copy)")


def test_cannot_clone_someone_elses_private_build(client, auth_headers, make_user, make_build, car):
    source = make_build(make_user(), car)
    response = client.post(f"/api/builds/{source.id}/clone", headers=auth_headers(make_user()))
    assert response.status_code == 403


def test_clone_with_long_owner_label_stays_within_limit(client, session, auth_headers, make_user, make_build, car):
    owner = make_user(email="a" * 490 + "@example.com", gamertag=None)
    source = make_build(owner, car, is_public=True)
    source.description = "Low downforce"
    session.add(source)
    session.commit()

    clone = client.post(f"/api/builds/{source.id}/clone", headers=auth_headers(make_user()))
    assert clone.status_code == 201
    description = clone.json()["description"]
    assert len(description) <= 500
    assert description.startswith("Cloned from a")
