# core/permission_store.py

from typing import Dict, List, Optional, Protocol

from core.config import settings
from core.errors import FetchFailure, PersistFailure, fetch_failure, persist_failure
from core.logging_config import logger
from core.permissions import catalog_for_role, default_flags
from core.roles import parse_role
from core.supabase_client import get_supabase_client
from models.enums import Role
from models.permissions import ModuleDefinition


# =================================================================
#  PERSISTENCE CONTRACT
# =================================================================
# Reads raise FetchFailure, writes raise PersistFailure.
# Override values: True / False = explicit, None = inherit.
# Every persist_* call is all-or-nothing.
# =================================================================

class PermissionStore(Protocol):

    def fetch_global_flags(self) -> Dict[str, bool]:
        ...

    def fetch_user_overrides(self, user_id: str) -> Dict[str, Optional[bool]]:
        ...

    def fetch_granular_tabs(self, user_id: str) -> Dict[str, bool]:
        ...

    def fetch_module_catalog(self, role: Role) -> List[ModuleDefinition]:
        ...

    def fetch_user_role(self, user_id: str) -> Role:
        ...

    def persist_global_flag_toggle(self, key: str, enabled: bool) -> None:
        ...

    def persist_override_set(self, user_id: str, overrides: Dict[str, Optional[bool]]) -> None:
        ...

    def persist_granular_tab_set(self, user_id: str, tabs: Dict[str, bool]) -> None:
        ...


# =================================================================
#  SUPABASE IMPLEMENTATION
# =================================================================

class SupabasePermissionStore:
    """
    Tables:
        feature_flags              (module_key PK, enabled bool)
        user_permission_overrides  (user_id, module_key, enabled bool NULL)
        user_tab_permissions       (user_id, tab_key, enabled bool)

    Each save is one bulk upsert, which PostgREST executes as a single
    statement.
    """

    def __init__(self, client=None):
        self._client = client

    def _get_client(self, operation: str, failure):
        client = self._client or get_supabase_client()
        if client is None:
            raise failure(operation, "Supabase client not configured")
        return client

    # -----------------------------------------------------
    # Reads
    # -----------------------------------------------------
    def fetch_global_flags(self) -> Dict[str, bool]:
        operation = "Fetch global feature flags"
        client = self._get_client(operation, FetchFailure)

        try:
            result = (
                client.table(settings.FEATURE_FLAGS_TABLE)
                .select("module_key, enabled")
                .execute()
            )
        except Exception as e:
            raise fetch_failure(e, operation)

        flags = default_flags()
        for row in result.data or []:
            flags[row["module_key"]] = row.get("enabled") is True
        return flags

    def fetch_user_overrides(self, user_id: str) -> Dict[str, Optional[bool]]:
        operation = f"Fetch overrides for user {user_id}"
        client = self._get_client(operation, FetchFailure)

        try:
            result = (
                client.table(settings.USER_OVERRIDES_TABLE)
                .select("module_key, enabled")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise fetch_failure(e, operation)

        return {row["module_key"]: row.get("enabled") for row in (result.data or [])}

    def fetch_granular_tabs(self, user_id: str) -> Dict[str, bool]:
        operation = f"Fetch tab permissions for user {user_id}"
        client = self._get_client(operation, FetchFailure)

        try:
            result = (
                client.table(settings.USER_TABS_TABLE)
                .select("tab_key, enabled")
                .eq("user_id", user_id)
                .execute()
            )
        except Exception as e:
            raise fetch_failure(e, operation)

        return {row["tab_key"]: row.get("enabled") is True for row in (result.data or [])}

    def fetch_module_catalog(self, role: Role) -> List[ModuleDefinition]:
        # Static catalog, filtered by role before the engine sees it
        return catalog_for_role(role)

    def fetch_user_role(self, user_id: str) -> Role:
        operation = f"Fetch role for user {user_id}"
        client = self._get_client(operation, FetchFailure)

        try:
            result = client.auth.admin.get_user_by_id(user_id)
        except Exception as e:
            raise fetch_failure(e, operation)

        user = getattr(result, "user", None)
        if user is None:
            raise FetchFailure(operation, "User not found")

        return parse_role((user.user_metadata or {}).get("role"))

    # -----------------------------------------------------
    # Writes
    # -----------------------------------------------------
    def persist_global_flag_toggle(self, key: str, enabled: bool) -> None:
        operation = f"Toggle feature flag {key}"
        client = self._get_client(operation, PersistFailure)

        try:
            (
                client.table(settings.FEATURE_FLAGS_TABLE)
                .upsert({"module_key": key, "enabled": enabled}, on_conflict="module_key")
                .execute()
            )
        except Exception as e:
            raise persist_failure(e, operation)

        logger.info(f"Feature flag {key} set to {enabled}")

    def persist_override_set(self, user_id: str, overrides: Dict[str, Optional[bool]]) -> None:
        if not overrides:
            return

        operation = f"Save overrides for user {user_id}"
        client = self._get_client(operation, PersistFailure)
        rows = [
            {"user_id": user_id, "module_key": key, "enabled": value}
            for key, value in overrides.items()
        ]

        try:
            (
                client.table(settings.USER_OVERRIDES_TABLE)
                .upsert(rows, on_conflict="user_id,module_key")
                .execute()
            )
        except Exception as e:
            raise persist_failure(e, operation)

        logger.info(f"Saved {len(rows)} override(s) for user {user_id}")

    def persist_granular_tab_set(self, user_id: str, tabs: Dict[str, bool]) -> None:
        if not tabs:
            return

        operation = f"Save tab permissions for user {user_id}"
        client = self._get_client(operation, PersistFailure)
        rows = [
            {"user_id": user_id, "tab_key": key, "enabled": bool(value)}
            for key, value in tabs.items()
        ]

        try:
            (
                client.table(settings.USER_TABS_TABLE)
                .upsert(rows, on_conflict="user_id,tab_key")
                .execute()
            )
        except Exception as e:
            raise persist_failure(e, operation)

        logger.info(f"Saved {len(rows)} tab permission(s) for user {user_id}")
