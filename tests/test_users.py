# tests/test_users.py


def test_profile_requires_auth(client):
    assert client.get("/api/user/profile").status_code == 401


def test_profile_404_without_app_user(client, auth_headers):
    response = client.get("/api/user/profile", headers=auth_headers("ghost@example.com"))
    assert response.status_code == 404
    assert response.json() == {"error": "User not found"}


def test_read_profile(client, auth_headers, make_user):
    member = make_user(email="member@example.com", gamertag="Apex_Hunter", name="Sam")

    body = client.get("/api/user/profile", headers=auth_headers(member)).json()
    assert body["email"] == "member@example.com"
    assert body["gamertag"] == "Apex_Hunter"
    assert body["name"] == "Sam"
    assert body["role"] == "USER"


def test_pending_user_sets_gamertag_without_approval(client, session, auth_headers, make_user):
    newcomer = make_user(role="PENDING", gamertag=None)

    response = client.patch(
        "/api/user/profile",
        json={"gamertag": "  Late-Braker  "},
        headers=auth_headers(newcomer),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["gamertag"] == "Late-Braker"
    assert body["role"] == "PENDING"

    session.refresh(newcomer)
    assert newcomer.role == "PENDING"


def test_gamertag_validation_messages(client, auth_headers, make_user):
    headers = auth_headers(make_user())

    cases = {
        "ab": "Gamertag must be at least 3 characters",
        "x" * 21: "Gamertag must be at most 20 characters",
        "bad tag!": "Gamertag can only contain letters, numbers, hyphens, and underscores",
    }
    for gamertag, message in cases.items():
        response = client.patch("/api/user/profile", json={"gamertag": gamertag}, headers=headers)
        assert response.status_code == 400
        assert response.json()["error"] == message
        assert response.json()["errors"] == {"gamertag": message}


def test_duplicate_gamertag_is_409(client, auth_headers, make_user):
    make_user(gamertag="Taken")
    me = make_user(gamertag="Mine")

    response = client.patch("/api/user/profile", json={"gamertag": "Taken"}, headers=auth_headers(me))
    assert response.status_code == 409
    assert response.json()["error"] == "Gamertag is already taken"


def test_keeping_own_gamertag_is_fine(client, auth_headers, make_user):
    me = make_user(gamertag="Mine")
    response = client.patch(
        "/api/user/profile",
        json={"gamertag": "Mine", "name": "New Name"},
        headers=auth_headers(me),
    )
    assert response.status_code == 200
    assert response.json()["name"] == "New Name"


def test_role_is_not_accepted_in_profile(client, auth_headers, make_user):
    me = make_user(role="PENDING")
    response = client.patch("/api/user/profile", json={"role": "ADMIN"}, headers=auth_headers(me))
    assert response.status_code == 400
