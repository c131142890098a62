# routers/permissions.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.session import PermissionService, PermissionSession
from dependencies.auth import CurrentUser, get_current_user
from dependencies.permissions import get_permission_service, get_permission_session
from models.enums import CheckMode
from models.permissions import (
    CandidateTabList,
    MenuNode,
    ModuleDefinition,
    PermissionSnapshot,
    RouteDecision,
)


router = APIRouter(
    prefix="/permissions",
    tags=["Permissions"],
)


# -----------------------------------------------------
# GET /permissions/me
# Resolved permission set for the current session
# -----------------------------------------------------
@router.get("/me", response_model=PermissionSnapshot, summary="Effective permissions")
def read_effective_permissions(
    session: PermissionSession = Depends(get_permission_session),
):
    return session.snapshot()


# -----------------------------------------------------
# POST /permissions/refresh
# Forced re-fetch + re-resolution
# -----------------------------------------------------
@router.post("/refresh", response_model=PermissionSnapshot, summary="Refresh permissions")
async def refresh_permissions(
    current_user: CurrentUser = Depends(get_current_user),
    service: PermissionService = Depends(get_permission_service),
):
    session = await service.refresh_permissions(current_user.id, current_user.role)
    return session.snapshot()


# -----------------------------------------------------
# GET /permissions/check?keys=a&keys=b&mode=any
# -----------------------------------------------------
@router.get("/check", summary="Can / CanAny / CanAll")
def check_permissions(
    keys: List[str] = Query(...),
    mode: CheckMode = CheckMode.one,
    session: PermissionSession = Depends(get_permission_session),
):
    if mode == CheckMode.any:
        allowed = session.can_any(keys)
    elif mode == CheckMode.all:
        allowed = session.can_all(keys)
    else:
        allowed = len(keys) == 1 and session.can(keys[0])

    return {"keys": keys, "mode": mode, "allowed": allowed}


# -----------------------------------------------------
# Menu
# -----------------------------------------------------
@router.get("/menu", response_model=List[MenuNode], summary="Sidebar menu")
def read_menu(
    current_route: Optional[str] = None,
    session: PermissionSession = Depends(get_permission_session),
):
    return session.menu(current_route)


@router.post("/menu/{key}/toggle", response_model=List[MenuNode], summary="Expand / collapse one menu")
def toggle_menu(
    key: str,
    current_route: Optional[str] = None,
    session: PermissionSession = Depends(get_permission_session),
):
    session.toggle_menu(key)
    return session.menu(current_route)


# -----------------------------------------------------
# Candidate detail tabs
# -----------------------------------------------------
@router.get("/tabs", response_model=CandidateTabList, summary="Candidate detail tabs")
def read_candidate_tabs(
    active_tab: Optional[str] = None,
    session: PermissionSession = Depends(get_permission_session),
):
    return session.candidate_tabs(active_tab)


# -----------------------------------------------------
# GET /permissions/routes/check?route=/employers
# Evaluated on every route change, never cached
# -----------------------------------------------------
@router.get("/routes/check", response_model=RouteDecision, summary="Route guard")
def check_route(
    route: str,
    session: PermissionSession = Depends(get_permission_session),
):
    return session.require_route(route)


# -----------------------------------------------------
# GET /permissions/catalog
# -----------------------------------------------------
@router.get("/catalog", response_model=List[ModuleDefinition], summary="Module catalog for this role")
def read_catalog(
    session: PermissionSession = Depends(get_permission_session),
):
    return session.catalog
