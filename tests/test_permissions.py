# tests/test_permissions.py
import uuid

import pytest
from fastapi import HTTPException

from fridaygt.core import permissions
from fridaygt.core.permissions import Principal, ResourceRef, authorize, enforce

OWNER_ID = uuid.uuid4()
OTHER_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()

owner = Principal(email="owner@example.com", role="USER", user_id=OWNER_ID, gamertag="owner")
other = Principal(email="other@example.com", role="USER", user_id=OTHER_ID, gamertag="other")
admin = Principal(email="admin@example.com", role="ADMIN", user_id=ADMIN_ID, gamertag="boss")
pending = Principal(email="new@example.com", role="PENDING", user_id=uuid.uuid4())
no_row = Principal(email="ghost@example.com")

private_build = ResourceRef(owner_id=OWNER_ID, is_public=False)
public_build = ResourceRef(owner_id=OWNER_ID, is_public=True)


def test_anonymous_can_view_public_only():
    assert authorize(None, "view", public_build).allowed
    assert authorize(None, "view").allowed

    decision = authorize(None, "view", private_build)
    assert not decision.allowed
    assert decision.status_code == 401


@pytest.mark.parametrize("action", ["create", "edit", "delete", "transfer", "administer"])
def test_anonymous_writes_are_401(action):
    decision = authorize(None, action, private_build)
    assert decision.status_code == 401
    assert decision.reason == "Unauthorized"


def test_private_resource_visible_to_owner_and_admin():
    assert authorize(owner, "view", private_build).allowed
    assert authorize(admin, "view", private_build).allowed

    decision = authorize(other, "view", private_build)
    assert decision.status_code == 403


@pytest.mark.parametrize("principal", [pending, no_row])
def test_pending_cannot_write(principal):
    for action in ("create", "edit", "delete"):
        decision = authorize(principal, action, ResourceRef(owner_id=principal.user_id))
        assert not decision.allowed
        assert decision.status_code == 403
        assert decision.reason == "Your account is pending approval"


def test_edit_requires_owner_or_admin():
    assert authorize(owner, "edit", private_build).allowed
    assert authorize(admin, "delete", private_build).allowed
    assert authorize(other, "edit", public_build).reason == "Forbidden"


def test_transfer_and_administer_are_admin_only():
    assert authorize(admin, "transfer", private_build).allowed
    assert authorize(admin, "administer").allowed

    decision = authorize(owner, "transfer", private_build)
    assert decision.status_code == 403
    assert decision.reason == "Admin access required"


def test_gamertag_gate_applies_to_writes_only():
    tagless = Principal(email="t@example.com", role="USER", user_id=OWNER_ID)

    assert authorize(tagless, "create", require_gamertag=False).allowed
    decision = authorize(tagless, "create", require_gamertag=True)
    assert decision.reason == "Please set a gamertag in your profile first"
    assert authorize(tagless, "view", private_build, require_gamertag=True).allowed


def test_admin_role_without_user_row_is_not_admin():
    ghost_admin = Principal(email="x@example.com", role="ADMIN")
    assert not ghost_admin.is_admin
    assert authorize(ghost_admin, "administer").status_code == 403


def test_edit_without_resource_is_a_programming_error():
    with pytest.raises(ValueError):
        authorize(owner, "edit")


def test_unknown_action_rejected():
    with pytest.raises(ValueError):
        authorize(owner, "publish")


def test_enforce_raises_http_exception(monkeypatch):
    monkeypatch.setattr(permissions.get_settings(), "REQUIRE_GAMERTAG_FOR_WRITES", True)
    tagless = Principal(email="t@example.com", role="USER", user_id=OWNER_ID)

    with pytest.raises(HTTPException) as exc_info:
        enforce(tagless, "create")
    assert exc_info.value.status_code == 403

    enforce(owner, "edit", private_build)
