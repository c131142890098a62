# tests/conftest.py

"""
Pytest configuration and shared fixtures for testing.
"""

import os

# Must be set before core.config is imported (skips startup validation)
os.environ.setdefault("ENV", "test")

import pytest
from fastapi.testclient import TestClient
from unittest.mock import Mock
from typing import Generator

from core.errors import FetchFailure, PersistFailure
from core.permissions import catalog_for_role, default_flags
from core.session import PermissionService
from dependencies.auth import CurrentUser, get_current_user
from dependencies.permissions import get_permission_service
from main import create_app
from models.enums import Role


USER_ROLES = {
    "super-1": Role.super_admin,
    "admin-1": Role.admin,
    "admin-2": Role.admin,
    "staff-1": Role.staff,
    "staff-2": Role.staff,
}


class FakePermissionStore:
    """
    In-memory PermissionStore.

    Put an operation name in `fail` to make it raise; `delay` (seconds)
    slows every fetch down. Every call is recorded in `calls`.
    """

    def __init__(self, roles=None):
        self.flags = default_flags()
        self.overrides = {}
        self.tabs = {}
        self.roles = dict(USER_ROLES if roles is None else roles)
        self.fail = set()
        self.delay = 0
        self.calls = []

    def _enter(self, name):
        self.calls.append(name)
        if self.delay and name.startswith("fetch"):
            import time
            time.sleep(self.delay)
        if name in self.fail:
            if name.startswith("persist"):
                raise PersistFailure(name, "simulated failure")
            raise FetchFailure(name, "simulated failure")

    # Reads
    def fetch_global_flags(self):
        self._enter("fetch_global_flags")
        return dict(self.flags)

    def fetch_user_overrides(self, user_id):
        self._enter("fetch_user_overrides")
        return dict(self.overrides.get(user_id, {}))

    def fetch_granular_tabs(self, user_id):
        self._enter("fetch_granular_tabs")
        return dict(self.tabs.get(user_id, {}))

    def fetch_module_catalog(self, role):
        self._enter("fetch_module_catalog")
        return catalog_for_role(role)

    def fetch_user_role(self, user_id):
        self._enter("fetch_user_role")
        if user_id not in self.roles:
            raise FetchFailure("fetch_user_role", "User not found")
        return self.roles[user_id]

    # Writes
    def persist_global_flag_toggle(self, key, enabled):
        self._enter("persist_global_flag_toggle")
        self.flags[key] = enabled

    def persist_override_set(self, user_id, overrides):
        self._enter("persist_override_set")
        self.overrides.setdefault(user_id, {}).update(overrides)

    def persist_granular_tab_set(self, user_id, tabs):
        self._enter("persist_granular_tab_set")
        self.tabs.setdefault(user_id, {}).update(tabs)


@pytest.fixture
def fake_store():
    return FakePermissionStore()


@pytest.fixture
def service(fake_store):
    """PermissionService wired to the in-memory store."""
    return PermissionService(fake_store, fetch_timeout=5)


@pytest.fixture(scope="function")
def app(service):
    """Create a test FastAPI application instance."""
    application = create_app()
    application.dependency_overrides[get_permission_service] = lambda: service
    return application


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client for the FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


def make_user(user_id: str) -> CurrentUser:
    return CurrentUser(
        id=user_id,
        email=f"{user_id}@example.com",
        role=USER_ROLES[user_id],
    )


@pytest.fixture
def act_as(app):
    """
    Switch the authenticated user for subsequent requests.

        act_as("staff-1")
    """

    def _act_as(user_id: str) -> CurrentUser:
        user = make_user(user_id)
        app.dependency_overrides[get_current_user] = lambda: user
        return user

    return _act_as


@pytest.fixture
def mock_current_user():
    """Create a mock current user for testing."""
    return make_user("admin-1")


@pytest.fixture
def mock_supabase_client():
    """Create a mock Supabase client."""
    mock_client = Mock()
    mock_table = Mock()
    mock_client.table.return_value = mock_table
    return mock_client


@pytest.fixture(autouse=True)
def reset_service_singleton():
    """Drop the process-wide PermissionService between tests."""
    get_permission_service.cache_clear()
    yield
    get_permission_service.cache_clear()
