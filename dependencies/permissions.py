from functools import lru_cache
from fastapi import Depends, HTTPException

from core.logging_config import logger
from core.permission_store import SupabasePermissionStore
from core.route_guard import ACCESS_DENIED_MESSAGE
from core.config import settings
from core.session import PermissionService, PermissionSession
from dependencies.auth import CurrentUser, get_current_user


# ============================================================
# Service (one per process)
# ============================================================
@lru_cache()
def get_permission_service() -> PermissionService:
    return PermissionService(SupabasePermissionStore())


# ============================================================
# Session for the calling user (re-resolved when stale)
# ============================================================
async def get_permission_session(
    current_user: CurrentUser = Depends(get_current_user),
    service: PermissionService = Depends(get_permission_service),
) -> PermissionSession:
    return await service.ensure_fresh(current_user.id, current_user.role)


def _denied(reason: str) -> HTTPException:
    return HTTPException(
        status_code=403,
        detail={
            "message": ACCESS_DENIED_MESSAGE,
            "reason": reason,
            "redirect_to": settings.ROOT_ROUTE,
        },
    )


# ============================================================
# MODULE GUARD
# ============================================================
def requires_module(module_key: str):
    """
    Usage:
        @router.get("/", dependencies=[Depends(requires_module("employers"))])
    """

    def dependency(session: PermissionSession = Depends(get_permission_session)):
        if not session.can(module_key):
            logger.info(f"Module {module_key} denied for user {session.user_id}")
            raise _denied(f"'{module_key}' required")
        return session

    return dependency


# ============================================================
# ROUTE GUARD
# ============================================================
def requires_route(route: str):
    def dependency(session: PermissionSession = Depends(get_permission_session)):
        decision = session.require_route(route)
        if not decision.allowed:
            logger.info(f"Route {route} denied for user {session.user_id}")
            raise _denied(f"route '{route}' not permitted")
        return session

    return dependency
