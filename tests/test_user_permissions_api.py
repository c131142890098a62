# tests/test_user_permissions_api.py

"""
Tests for the per-user permission editor endpoints.
"""

from fastapi.testclient import TestClient


def test_staff_cannot_open_the_editor(client: TestClient, act_as):
    act_as("staff-1")
    assert client.get("/users/staff-2/permissions").status_code == 403


def test_editor_lists_grantable_controls(client: TestClient, act_as, fake_store):
    fake_store.flags["visa_board"] = False
    fake_store.overrides["staff-1"] = {"employers": False}
    act_as("admin-1")

    response = client.get("/users/staff-1/permissions")

    assert response.status_code == 200
    data = response.json()
    assert data["role"] == "staff"
    values = {c["key"]: c["value"] for c in data["controls"]}
    assert values["employers"] is False
    assert values["job_orders"] is None
    assert "visa_board" not in values
    assert "bulk_import" not in values


def test_save_overrides(client: TestClient, act_as, fake_store):
    act_as("admin-1")

    response = client.put(
        "/users/staff-1/permissions",
        json={"overrides": {"employers": False, "job_orders": None}},
    )

    assert response.status_code == 200
    assert fake_store.overrides["staff-1"] == {"employers": False, "job_orders": None}


def test_invalid_save_is_rejected_whole(client: TestClient, act_as, fake_store):
    fake_store.flags["visa_board"] = False
    act_as("admin-1")

    response = client.put(
        "/users/staff-1/permissions",
        json={"overrides": {"employers": False, "visa_board": True, "bulk_import": True}},
    )

    assert response.status_code == 403
    violations = response.json()["detail"]["violations"]
    assert {v["key"] for v in violations} == {"visa_board", "bulk_import"}
    assert fake_store.overrides == {}


def test_overrides_for_admin_targets_are_rejected(client: TestClient, act_as, fake_store):
    act_as("super-1")

    response = client.put(
        "/users/admin-1/permissions",
        json={"overrides": {"employers": False}},
    )

    assert response.status_code == 403
    assert fake_store.overrides == {}


def test_save_tabs_for_admin(client: TestClient, act_as, fake_store):
    act_as("super-1")

    response = client.put(
        "/users/admin-1/tabs",
        json={"tabs": {"tab_profile": True, "tab_financial": False}},
    )

    assert response.status_code == 200
    assert fake_store.tabs["admin-1"] == {"tab_profile": True, "tab_financial": False}

    act_as("admin-1")
    tabs = client.get("/permissions/tabs").json()
    assert [t["key"] for t in tabs["tabs"]] == ["tab_profile"]


def test_tab_editor_defaults_to_unassigned(client: TestClient, act_as, fake_store):
    fake_store.tabs["staff-1"] = {"tab_medical": True}
    act_as("super-1")

    data = client.get("/users/staff-1/tabs").json()
    values = {c["key"]: c["value"] for c in data["controls"]}

    assert values["tab_medical"] is True
    assert values["tab_profile"] is False


def test_persist_failure_is_502(client: TestClient, act_as, fake_store):
    fake_store.fail.add("persist_granular_tab_set")
    act_as("admin-1")
    fake_store.tabs["admin-1"] = {"tab_profile": True}

    response = client.put("/users/staff-1/tabs", json={"tabs": {"tab_profile": True}})

    assert response.status_code == 502
    assert "staff-1" not in fake_store.tabs


def test_unknown_target_is_502(client: TestClient, act_as):
    act_as("admin-1")

    response = client.put("/users/nobody/permissions", json={"overrides": {"employers": True}})

    assert response.status_code == 502


def test_single_key_grant_check(client: TestClient, act_as, fake_store):
    fake_store.flags["visa_board"] = False
    act_as("admin-1")

    def can_grant(user_id, key):
        return client.get(f"/users/{user_id}/grants/{key}").json()["can_grant"]

    assert can_grant("staff-1", "employers") is True
    assert can_grant("staff-1", "visa_board") is False
    assert can_grant("staff-1", "bulk_import") is False
    assert can_grant("nobody", "employers") is False


def test_admin_editor_for_another_admin_is_empty(client: TestClient, act_as):
    act_as("admin-1")

    for path in ("/users/admin-2/permissions", "/users/super-1/permissions", "/users/admin-2/tabs"):
        response = client.get(path)
        assert response.status_code == 200
        assert response.json()["controls"] == []

    assert client.get("/users/admin-2/grants/employers").json()["can_grant"] is False
    assert client.get("/users/super-1/grants/tab_profile").json()["can_grant"] is False
