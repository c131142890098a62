# core/session.py

"""
Session-scoped permission state and the service that keeps it current.

A PermissionSession holds everything derived for one signed-in user: the
role-filtered catalog, the resolved permission set, menu expansion and the
active candidate tab. Nothing here is persisted; ending a session discards
it and the next login recomputes from scratch.

Freshness is tracked with generation counters (core.cache). Every flag
toggle bumps the global generation, every override/tab write bumps the
target user's generation, and a session whose stamp no longer matches is
re-resolved before it is used again.
"""

import asyncio
from typing import Dict, Iterable, List, Optional

from core.cache import GLOBAL_SCOPE, GenerationCache, GenerationCounter, user_scope
from core.config import settings
from core.delegation import can_grant, grantable_definitions, validate_changes
from core.errors import InvalidGrantAttempt
from core.logging_config import logger
from core.menu import MenuState, build_candidate_tabs, build_menu
from core.permission_store import PermissionStore
from core.permissions import catalog_by_key, coarse_keys, tab_keys
from core.resolver import closed_flags, resolve
from core.route_guard import can_access_route, require_route
from models.enums import OverrideState, Role
from models.permissions import (
    CandidateTabList,
    EffectivePermissionSet,
    GlobalFlagSet,
    GrantControl,
    GranularTabSet,
    MenuNode,
    ModuleDefinition,
    OverrideSet,
    PermissionSnapshot,
    RouteDecision,
)


class PermissionSession:

    def __init__(self, user_id: str, role: Role):
        self.user_id = user_id
        self.role = role
        self.catalog: List[ModuleDefinition] = []
        self.effective = EffectivePermissionSet()
        self.generation = (0, 0)
        self.warnings: List[str] = []
        self.menu_state = MenuState()
        self.active_tab: Optional[str] = None

    # -----------------------------------------------------
    # Checks
    # -----------------------------------------------------
    def can(self, key: str) -> bool:
        if self.role == Role.super_admin:
            return True
        return self.effective.allows(key)

    def can_any(self, keys: Iterable[str]) -> bool:
        if self.role == Role.super_admin:
            return True
        return any(self.can(key) for key in keys)

    def can_all(self, keys: Iterable[str]) -> bool:
        if self.role == Role.super_admin:
            return True
        keys = list(keys)
        if not keys:
            return False
        return all(self.can(key) for key in keys)

    def can_access_route(self, route: str) -> bool:
        return can_access_route(self.role, self.effective, self.catalog, route)

    def require_route(self, route: str) -> RouteDecision:
        return require_route(self.role, self.effective, self.catalog, route)

    def can_grant(self, key: str, target_role: Optional[Role] = None) -> bool:
        definition = catalog_by_key(self.catalog).get(key)
        return can_grant(self.role, self.effective, definition, target_role)

    # -----------------------------------------------------
    # Views
    # -----------------------------------------------------
    def menu(self, current_route: Optional[str] = None) -> List[MenuNode]:
        nodes = build_menu(self.catalog, self.effective, current_route, expanded=set())
        return self.menu_state.apply(nodes)

    def toggle_menu(self, key: str) -> bool:
        return self.menu_state.toggle(key)

    def candidate_tabs(self, active_tab: Optional[str] = None) -> CandidateTabList:
        requested = active_tab if active_tab is not None else self.active_tab
        result = build_candidate_tabs(self.catalog, self.effective, requested)
        self.active_tab = result.active_key
        return result

    def snapshot(self) -> PermissionSnapshot:
        return PermissionSnapshot(
            user_id=self.user_id,
            role=self.role,
            effective=self.effective,
            generation=list(self.generation),
            warnings=list(self.warnings),
        )


class PermissionService:
    """
    Owns the active sessions and every read/write path of the engine.
    One active session per user id.
    """

    def __init__(
        self,
        store: PermissionStore,
        generations: Optional[GenerationCounter] = None,
        fetch_timeout: Optional[float] = None,
    ):
        self.store = store
        self.generations = generations or GenerationCounter()
        self.sessions = GenerationCache()
        self.fetch_timeout = (
            fetch_timeout
            if fetch_timeout is not None
            else settings.PERMISSION_FETCH_TIMEOUT_SECONDS
        )

    # =====================================================
    # Session lifecycle
    # =====================================================
    async def start_session(self, user_id: str, role: Role) -> PermissionSession:
        """Login: drop anything left over and resolve from scratch."""
        self.sessions.delete(user_id)
        session = PermissionSession(user_id, role)
        await self._resolve_into(session)
        return session

    async def refresh_permissions(self, user_id: str, role: Role) -> PermissionSession:
        """Forced re-fetch + re-resolution. Keeps menu/tab UI state."""
        entry = self.sessions.peek(user_id)
        session = entry.value if entry is not None else None
        if session is None or session.role != role:
            session = PermissionSession(user_id, role)
        await self._resolve_into(session)
        return session

    async def ensure_fresh(self, user_id: str, role: Role) -> PermissionSession:
        """Current session, re-resolved first if a write made it stale."""
        session = self.sessions.get(user_id, self.generations.stamp(user_id))
        if session is not None and session.role == role:
            return session
        return await self.refresh_permissions(user_id, role)

    def end_session(self, user_id: str) -> None:
        """Logout: discard every derived set."""
        self.sessions.delete(user_id)
        logger.info(f"Permission session ended for user {user_id}")

    def active_sessions(self) -> List[PermissionSession]:
        return self.sessions.values()

    # =====================================================
    # Resolution (join point)
    # =====================================================
    async def _fetch(self, func, *args):
        return await asyncio.wait_for(asyncio.to_thread(func, *args), self.fetch_timeout)

    async def _resolve_into(self, session: PermissionSession) -> None:
        user_id, role = session.user_id, session.role
        stamp = self.generations.stamp(user_id)

        calls = {
            "flags": self._fetch(self.store.fetch_global_flags),
            "catalog": self._fetch(self.store.fetch_module_catalog, role),
        }
        if role == Role.staff:
            calls["overrides"] = self._fetch(self.store.fetch_user_overrides, user_id)
        if role != Role.super_admin:
            calls["tabs"] = self._fetch(self.store.fetch_granular_tabs, user_id)

        results = await asyncio.gather(*calls.values(), return_exceptions=True)
        fetched = dict(zip(calls.keys(), results))

        warnings = []

        def failed(name: str, message: str) -> bool:
            error = fetched.get(name)
            if not isinstance(error, BaseException):
                return False
            logger.warning(f"{message} for user {user_id}: {error!r}")
            warnings.append(message)
            return True

        catalog = [] if failed("catalog", "Module catalog unavailable") else fetched["catalog"]
        all_coarse = coarse_keys(catalog)

        if failed("flags", "Global feature flags unavailable"):
            global_flags = closed_flags(all_coarse)
        else:
            global_flags = GlobalFlagSet(flags=fetched["flags"], generation=stamp[0])

        overrides = None
        if "overrides" in calls:
            if failed("overrides", "Permission overrides unavailable"):
                # Unknown restrictions: close the ceiling for this staff user
                global_flags = closed_flags(all_coarse)
            else:
                overrides = OverrideSet(
                    user_id=user_id,
                    overrides={
                        key: OverrideState.from_value(value)
                        for key, value in fetched["overrides"].items()
                    },
                )

        granular = None
        if "tabs" in calls:
            if failed("tabs", "Tab permissions unavailable"):
                granular = GranularTabSet(user_id=user_id)
            else:
                granular = GranularTabSet(user_id=user_id, tabs=fetched["tabs"])

        session.catalog = list(catalog)
        session.effective = resolve(
            role, global_flags, overrides, granular, tab_keys(catalog)
        )
        session.warnings = warnings
        session.generation = stamp
        self.sessions.set(user_id, session, stamp)

        logger.info(
            f"Resolved permissions for user {user_id} ({role}) at generation {stamp}"
        )

    async def _refresh_affected(self, user_ids: Optional[Iterable[str]] = None) -> None:
        """Forced re-resolution of active sessions after a write."""
        wanted = None if user_ids is None else set(user_ids)
        targets = [
            s for s in self.active_sessions()
            if wanted is None or s.user_id in wanted
        ]
        await asyncio.gather(
            *[self.refresh_permissions(s.user_id, s.role) for s in targets]
        )

    # =====================================================
    # Writes
    # =====================================================
    async def toggle_global_flag(
        self, actor: PermissionSession, key: str, enabled: bool
    ) -> None:
        if actor.role != Role.super_admin:
            raise InvalidGrantAttempt("Only a super_admin may change global feature flags")

        definition = catalog_by_key(actor.catalog).get(key)
        if definition is None or definition.is_tab:
            raise InvalidGrantAttempt(
                "Unknown feature flag",
                [{"key": key, "reason": "unknown module key"}],
            )

        await asyncio.to_thread(self.store.persist_global_flag_toggle, key, bool(enabled))
        self.generations.bump(GLOBAL_SCOPE)
        logger.info(f"{actor.user_id} set feature flag {key} to {enabled}")

        await self._refresh_affected()

    async def fetch_target_role(self, user_id: str) -> Role:
        return await self._fetch(self.store.fetch_user_role, user_id)

    async def save_user_overrides(
        self,
        actor: PermissionSession,
        target_user_id: str,
        changes: Dict[str, Optional[bool]],
    ) -> None:
        """All-or-nothing override save (Admin -> Staff)."""
        actor = await self.ensure_fresh(actor.user_id, actor.role)
        target_role = await self.fetch_target_role(target_user_id)

        validate_changes(
            actor.role, actor.effective, actor.catalog, target_role, changes, tabs=False
        )
        if not changes:
            return

        await asyncio.to_thread(self.store.persist_override_set, target_user_id, dict(changes))
        self.generations.bump(user_scope(target_user_id))
        logger.info(
            f"{actor.user_id} updated {len(changes)} override(s) for user {target_user_id}"
        )

        await self._refresh_affected([target_user_id])

    async def save_granular_tabs(
        self,
        actor: PermissionSession,
        target_user_id: str,
        tabs: Dict[str, bool],
    ) -> None:
        """All-or-nothing tab permission save."""
        actor = await self.ensure_fresh(actor.user_id, actor.role)
        target_role = await self.fetch_target_role(target_user_id)

        validate_changes(
            actor.role, actor.effective, actor.catalog, target_role, tabs, tabs=True
        )
        if not tabs:
            return

        await asyncio.to_thread(self.store.persist_granular_tab_set, target_user_id, dict(tabs))
        self.generations.bump(user_scope(target_user_id))
        logger.info(
            f"{actor.user_id} updated {len(tabs)} tab permission(s) for user {target_user_id}"
        )

        await self._refresh_affected([target_user_id])

    # =====================================================
    # Permission editor
    # =====================================================
    async def grant_controls(
        self, actor: PermissionSession, target_user_id: str, tabs: bool
    ) -> List[GrantControl]:
        """Controls the actor may see for this target, with stored values."""
        target_role = await self.fetch_target_role(target_user_id)
        definitions = grantable_definitions(
            actor.role, actor.effective, actor.catalog, target_role, tabs
        )
        if not definitions:
            return []

        if tabs:
            stored = await self._fetch(self.store.fetch_granular_tabs, target_user_id)
            stored = {key: value is True for key, value in stored.items()}
        else:
            stored = await self._fetch(self.store.fetch_user_overrides, target_user_id)

        return [
            GrantControl(
                key=entry.key,
                display_name=entry.display_name,
                category=entry.category,
                value=stored.get(entry.key, False if tabs else None),
            )
            for entry in definitions
        ]
