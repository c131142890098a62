# core/route_guard.py

from typing import Iterable

from core.config import settings
from models.enums import ModuleKind, Role
from models.permissions import EffectivePermissionSet, ModuleDefinition, RouteDecision


ACCESS_DENIED_MESSAGE = "Access denied: you do not have permission to view this page"


def is_public_route(route: str) -> bool:
    """Login and the application root are always reachable."""
    return route in ("", settings.ROOT_ROUTE, settings.LOGIN_ROUTE)


def can_access_route(
    role: Role,
    effective: EffectivePermissionSet,
    catalog: Iterable[ModuleDefinition],
    route: str,
) -> bool:
    if is_public_route(route):
        return True

    if role == Role.super_admin:
        return True

    for entry in catalog:
        if entry.kind not in (ModuleKind.menu, ModuleKind.submenu):
            continue
        if entry.route == route and effective.module_enabled(entry.key):
            return True

    return False


def require_route(
    role: Role,
    effective: EffectivePermissionSet,
    catalog: Iterable[ModuleDefinition],
    route: str,
) -> RouteDecision:
    """
    Decision for the presentation layer: render, or show the denial
    message and go to the root. Never raises.
    """
    try:
        allowed = can_access_route(role, effective, catalog, route)
    except Exception:
        from core.logging_config import logger

        logger.error(f"Route check failed for {route}", exc_info=True)
        allowed = False

    if allowed:
        return RouteDecision(route=route, allowed=True)

    return RouteDecision(
        route=route,
        allowed=False,
        redirect_to=settings.ROOT_ROUTE,
        message=ACCESS_DENIED_MESSAGE,
    )
