# routers/user_permissions.py

from fastapi import APIRouter, Depends, HTTPException

from core.errors import FetchFailure, PersistFailure
from core.session import PermissionService, PermissionSession
from dependencies.auth import requires_role
from dependencies.permissions import get_permission_service, get_permission_session
from models.enums import Role
from models.permissions import (
    OverrideUpdateRequest,
    TabUpdateRequest,
    UserPermissionsView,
)


router = APIRouter(
    prefix="/users",
    tags=["User Permissions"],
    dependencies=[Depends(requires_role([Role.super_admin, Role.admin]))],
)


async def _controls_view(
    service: PermissionService,
    session: PermissionSession,
    user_id: str,
    tabs: bool,
) -> UserPermissionsView:
    try:
        target_role = await service.fetch_target_role(user_id)
        controls = await service.grant_controls(session, user_id, tabs=tabs)
    except FetchFailure as e:
        raise HTTPException(502, f"Failed to load permissions: {e.detail}")

    return UserPermissionsView(user_id=user_id, role=target_role, controls=controls)


# ============================================================
# Coarse module overrides (staff accounts)
# ============================================================
@router.get(
    "/{user_id}/permissions",
    response_model=UserPermissionsView,
    summary="Overrides the caller may edit for this user",
)
async def read_user_permissions(
    user_id: str,
    session: PermissionSession = Depends(get_permission_session),
    service: PermissionService = Depends(get_permission_service),
):
    return await _controls_view(service, session, user_id, tabs=False)


@router.put(
    "/{user_id}/permissions",
    summary="Save overrides (all-or-nothing)",
)
async def save_user_permissions(
    user_id: str,
    payload: OverrideUpdateRequest,
    session: PermissionSession = Depends(get_permission_session),
    service: PermissionService = Depends(get_permission_service),
):
    try:
        await service.save_user_overrides(session, user_id, payload.overrides)
    except FetchFailure as e:
        raise HTTPException(502, f"Failed to load target user: {e.detail}")
    except PersistFailure as e:
        raise HTTPException(502, f"Failed to save permissions: {e.detail}")

    return {"success": True, "user_id": user_id, "saved": len(payload.overrides)}


# ============================================================
# Granular candidate tabs
# ============================================================
@router.get(
    "/{user_id}/tabs",
    response_model=UserPermissionsView,
    summary="Tab permissions the caller may edit for this user",
)
async def read_user_tabs(
    user_id: str,
    session: PermissionSession = Depends(get_permission_session),
    service: PermissionService = Depends(get_permission_service),
):
    return await _controls_view(service, session, user_id, tabs=True)


@router.put(
    "/{user_id}/tabs",
    summary="Save tab permissions (all-or-nothing)",
)
async def save_user_tabs(
    user_id: str,
    payload: TabUpdateRequest,
    session: PermissionSession = Depends(get_permission_session),
    service: PermissionService = Depends(get_permission_service),
):
    try:
        await service.save_granular_tabs(session, user_id, payload.tabs)
    except FetchFailure as e:
        raise HTTPException(502, f"Failed to load target user: {e.detail}")
    except PersistFailure as e:
        raise HTTPException(502, f"Failed to save tab permissions: {e.detail}")

    return {"success": True, "user_id": user_id, "saved": len(payload.tabs)}


# ============================================================
# Single key (before rendering one grant/revoke control)
# ============================================================
@router.get(
    "/{user_id}/grants/{key}",
    summary="Whether the caller may grant this key to the user",
)
async def read_can_grant(
    user_id: str,
    key: str,
    session: PermissionSession = Depends(get_permission_session),
    service: PermissionService = Depends(get_permission_service),
):
    try:
        target_role = await service.fetch_target_role(user_id)
    except FetchFailure:
        # Unknown target: deny
        return {"user_id": user_id, "key": key, "can_grant": False}

    return {
        "user_id": user_id,
        "key": key,
        "can_grant": session.can_grant(key, target_role),
    }
