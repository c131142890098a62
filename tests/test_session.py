# tests/test_session.py

"""
Tests for PermissionService: session lifecycle, generations,
fail-closed fetches and the write paths.
"""

import asyncio

import pytest

from core.cache import GLOBAL_SCOPE, user_scope
from core.errors import FetchFailure, InvalidGrantAttempt, PersistFailure
from core.session import PermissionService
from models.enums import Role


def run(coro):
    return asyncio.run(coro)


# -----------------------------------------------------
# Resolution
# -----------------------------------------------------
def test_staff_session_applies_overrides_under_the_ceiling(service, fake_store):
    fake_store.flags["visa_board"] = False
    fake_store.overrides["staff-1"] = {"visa_board": True, "employers": False}
    fake_store.tabs["staff-1"] = {"tab_profile": True}

    session = run(service.start_session("staff-1", Role.staff))

    assert session.warnings == []
    assert session.can("visa_board") is False
    assert session.can("employers") is False
    assert session.can("job_orders") is True
    assert session.can("tab_profile") is True
    assert session.can("tab_financial") is False
    assert session.generation == (0, 0)


def test_super_admin_can_everything_and_skips_user_fetches(service, fake_store):
    fake_store.flags["employers"] = False

    session = run(service.start_session("super-1", Role.super_admin))

    assert session.can("employers") is True
    assert session.can("tab_medical") is True
    assert "fetch_granular_tabs" not in fake_store.calls
    assert "fetch_user_overrides" not in fake_store.calls
    # Menu still follows the resolved set
    keys = [s.key for n in session.menu() for s in n.submenus]
    assert "employers" not in keys


def test_admin_ignores_overrides(service, fake_store):
    fake_store.overrides["admin-1"] = {"employers": False}
    session = run(service.start_session("admin-1", Role.admin))

    assert session.can("employers") is True
    assert "fetch_user_overrides" not in fake_store.calls


def test_can_any_and_can_all(service):
    session = run(service.start_session("staff-1", Role.staff))

    assert session.can_any(["ghost", "employers"]) is True
    assert session.can_all(["ghost", "employers"]) is False
    assert session.can_any([]) is False
    assert session.can_all([]) is False


def test_super_admin_short_circuits_can_any_and_can_all(service, fake_store):
    fake_store.flags["employers"] = False
    session = run(service.start_session("super-1", Role.super_admin))

    assert session.can_any([]) is True
    assert session.can_all([]) is True
    assert session.can_all(["employers", "ghost"]) is True


# -----------------------------------------------------
# Fail closed
# -----------------------------------------------------
def test_flag_fetch_failure_denies_every_module(service, fake_store):
    fake_store.fail.add("fetch_global_flags")

    session = run(service.start_session("admin-1", Role.admin))

    assert "Global feature flags unavailable" in session.warnings
    assert not any(session.effective.modules.values())
    assert session.can_access_route("/") is True
    assert session.can_access_route("/employers") is False


def test_override_fetch_failure_closes_staff_ceiling(service, fake_store):
    fake_store.fail.add("fetch_user_overrides")

    session = run(service.start_session("staff-1", Role.staff))

    assert "Permission overrides unavailable" in session.warnings
    assert not any(session.effective.modules.values())


def test_tab_fetch_failure_denies_every_tab(service, fake_store):
    fake_store.tabs["staff-1"] = {"tab_profile": True}
    fake_store.fail.add("fetch_granular_tabs")

    session = run(service.start_session("staff-1", Role.staff))

    assert "Tab permissions unavailable" in session.warnings
    assert session.candidate_tabs().is_empty is True
    assert session.can("employers") is True


def test_catalog_fetch_failure_leaves_an_empty_menu(service, fake_store):
    fake_store.fail.add("fetch_module_catalog")

    session = run(service.start_session("staff-1", Role.staff))

    assert "Module catalog unavailable" in session.warnings
    assert session.menu() == []
    assert session.candidate_tabs().is_empty is True


def test_slow_fetch_times_out_closed(fake_store):
    fake_store.delay = 0.3
    slow_service = PermissionService(fake_store, fetch_timeout=0.05)

    session = run(slow_service.start_session("staff-1", Role.staff))

    assert "Global feature flags unavailable" in session.warnings
    assert not any(session.effective.modules.values())


# -----------------------------------------------------
# Generations
# -----------------------------------------------------
def test_ensure_fresh_reuses_a_current_session(service, fake_store):
    first = run(service.start_session("staff-1", Role.staff))
    calls = len(fake_store.calls)

    again = run(service.ensure_fresh("staff-1", Role.staff))

    assert again is first
    assert len(fake_store.calls) == calls


def test_ensure_fresh_re_resolves_after_a_bump(service, fake_store):
    run(service.start_session("staff-1", Role.staff))
    fake_store.overrides["staff-1"] = {"employers": False}

    service.generations.bump(user_scope("staff-1"))
    session = run(service.ensure_fresh("staff-1", Role.staff))

    assert session.can("employers") is False
    assert session.generation == (0, 1)


def test_ensure_fresh_starts_a_session_lazily(service):
    session = run(service.ensure_fresh("staff-2", Role.staff))
    assert session.user_id == "staff-2"
    assert len(service.active_sessions()) == 1


def test_refresh_keeps_ui_state(service):
    session = run(service.start_session("staff-1", Role.staff))
    session.toggle_menu("management")
    session.candidate_tabs("tab_profile")

    refreshed = run(service.refresh_permissions("staff-1", Role.staff))

    assert refreshed is session
    assert "management" in refreshed.menu_state.expanded


def test_end_session_discards_derived_state(service):
    run(service.start_session("staff-1", Role.staff))
    service.end_session("staff-1")

    assert service.active_sessions() == []
    assert service.sessions.get("staff-1") is None


def test_candidate_tabs_remember_the_active_tab(service, fake_store):
    fake_store.tabs["staff-1"] = {"tab_profile": True, "tab_medical": True}
    session = run(service.start_session("staff-1", Role.staff))

    assert session.candidate_tabs("tab_medical").active_key == "tab_medical"
    assert session.candidate_tabs().active_key == "tab_medical"
    assert session.candidate_tabs("tab_travel").active_key == "tab_profile"


# -----------------------------------------------------
# Global flag toggle
# -----------------------------------------------------
def test_toggle_re_resolves_every_active_session(service, fake_store):
    owner = run(service.start_session("super-1", Role.super_admin))
    staff = run(service.start_session("staff-1", Role.staff))
    admin = run(service.start_session("admin-1", Role.admin))
    assert staff.can("employers") is True

    run(service.toggle_global_flag(owner, "employers", False))

    assert fake_store.flags["employers"] is False
    assert service.generations.current(GLOBAL_SCOPE) == 1
    assert staff.can("employers") is False
    assert admin.can("employers") is False


def test_only_super_admin_toggles_flags(service, fake_store):
    admin = run(service.start_session("admin-1", Role.admin))

    with pytest.raises(InvalidGrantAttempt):
        run(service.toggle_global_flag(admin, "employers", False))

    assert "persist_global_flag_toggle" not in fake_store.calls
    assert service.generations.current(GLOBAL_SCOPE) == 0


def test_toggle_rejects_unknown_and_tab_keys(service, fake_store):
    owner = run(service.start_session("super-1", Role.super_admin))

    for key in ("ghost", "tab_profile"):
        with pytest.raises(InvalidGrantAttempt):
            run(service.toggle_global_flag(owner, key, True))

    assert "persist_global_flag_toggle" not in fake_store.calls


# -----------------------------------------------------
# Override / tab saves
# -----------------------------------------------------
def test_admin_saves_staff_overrides(service, fake_store):
    admin = run(service.start_session("admin-1", Role.admin))
    staff = run(service.start_session("staff-1", Role.staff))

    run(service.save_user_overrides(admin, "staff-1", {"employers": False, "job_orders": None}))

    assert fake_store.overrides["staff-1"] == {"employers": False, "job_orders": None}
    assert service.generations.current(user_scope("staff-1")) == 1
    assert staff.can("employers") is False
    assert staff.can("job_orders") is True


def test_rejected_save_writes_nothing(service, fake_store):
    fake_store.flags["bulk_import"] = False
    admin = run(service.start_session("admin-1", Role.admin))
    assert admin.can_grant("bulk_import") is False

    with pytest.raises(InvalidGrantAttempt) as exc:
        run(service.save_user_overrides(
            admin, "staff-1", {"employers": False, "bulk_import": True}
        ))

    assert [v["key"] for v in exc.value.violations] == ["bulk_import"]
    assert "persist_override_set" not in fake_store.calls
    assert fake_store.overrides == {}
    assert service.generations.current(user_scope("staff-1")) == 0


def test_admin_cannot_edit_another_admin(service, fake_store):
    admin = run(service.start_session("admin-1", Role.admin))

    with pytest.raises(InvalidGrantAttempt):
        run(service.save_granular_tabs(admin, "admin-2", {"tab_profile": True}))

    assert "persist_granular_tab_set" not in fake_store.calls


def test_save_re_checks_against_a_fresh_grantor(service, fake_store):
    admin = run(service.start_session("admin-1", Role.admin))
    owner = run(service.start_session("super-1", Role.super_admin))

    # Ceiling closes between rendering the editor and saving
    run(service.toggle_global_flag(owner, "employers", False))

    with pytest.raises(InvalidGrantAttempt):
        run(service.save_user_overrides(admin, "staff-1", {"employers": True}))


def test_super_admin_assigns_admin_tabs(service, fake_store):
    owner = run(service.start_session("super-1", Role.super_admin))
    admin = run(service.start_session("admin-1", Role.admin))
    assert admin.candidate_tabs().is_empty is True

    run(service.save_granular_tabs(owner, "admin-1", {"tab_profile": True}))

    assert fake_store.tabs["admin-1"] == {"tab_profile": True}
    assert admin.candidate_tabs().active_key == "tab_profile"


def test_persist_failure_leaves_generation_alone(service, fake_store):
    admin = run(service.start_session("admin-1", Role.admin))
    fake_store.fail.add("persist_override_set")

    with pytest.raises(PersistFailure):
        run(service.save_user_overrides(admin, "staff-1", {"employers": False}))

    assert service.generations.current(user_scope("staff-1")) == 0


def test_unknown_target_user(service):
    admin = run(service.start_session("admin-1", Role.admin))

    with pytest.raises(FetchFailure):
        run(service.save_user_overrides(admin, "nobody", {"employers": False}))


# -----------------------------------------------------
# Permission editor
# -----------------------------------------------------
def test_grant_controls_show_only_grantable_keys(service, fake_store):
    fake_store.flags["visa_board"] = False
    fake_store.overrides["staff-1"] = {"employers": False}
    admin = run(service.start_session("admin-1", Role.admin))

    controls = run(service.grant_controls(admin, "staff-1", tabs=False))
    values = {c.key: c.value for c in controls}

    assert values["employers"] is False
    assert values["job_orders"] is None
    assert "visa_board" not in values
    assert "bulk_import" not in values
    assert "advanced_reports" not in values


@pytest.mark.parametrize("target", ["admin-2", "super-1"])
def test_grant_controls_agree_with_the_save_path(service, fake_store, target):
    admin = run(service.start_session("admin-1", Role.admin))
    target_role = fake_store.roles[target]

    assert run(service.grant_controls(admin, target, tabs=False)) == []
    assert run(service.grant_controls(admin, target, tabs=True)) == []
    assert admin.can_grant("employers", target_role) is False

    with pytest.raises(InvalidGrantAttempt):
        run(service.save_user_overrides(admin, target, {"employers": False}))


def test_super_admin_sees_tab_controls_only_for_admins(service, fake_store):
    owner = run(service.start_session("super-1", Role.super_admin))

    assert run(service.grant_controls(owner, "admin-1", tabs=False)) == []
    tab_controls = run(service.grant_controls(owner, "admin-1", tabs=True))
    assert [c.key for c in tab_controls][:2] == ["tab_profile", "tab_passport"]


def test_grant_controls_for_tabs_default_false(service, fake_store):
    fake_store.tabs["admin-1"] = {"tab_profile": True, "tab_passport": True}
    fake_store.tabs["staff-1"] = {"tab_passport": True}
    admin = run(service.start_session("admin-1", Role.admin))

    controls = run(service.grant_controls(admin, "staff-1", tabs=True))

    assert {c.key: c.value for c in controls} == {
        "tab_profile": False,
        "tab_passport": True,
    }
