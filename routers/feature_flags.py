# routers/feature_flags.py

import asyncio

from fastapi import APIRouter, Depends, HTTPException

from core.errors import FetchFailure, PersistFailure
from core.session import PermissionService, PermissionSession
from dependencies.auth import requires_role
from dependencies.permissions import get_permission_service, get_permission_session
from models.enums import Role
from models.permissions import FlagToggleRequest


router = APIRouter(
    prefix="/feature-flags",
    tags=["Feature Flags"],
)


# -----------------------------------------------------
# GET /feature-flags
# Global ceiling (admins read it to understand what they can delegate)
# -----------------------------------------------------
@router.get(
    "",
    summary="Global feature flags",
    dependencies=[Depends(requires_role([Role.super_admin, Role.admin]))],
)
async def list_feature_flags(
    service: PermissionService = Depends(get_permission_service),
):
    try:
        flags = await asyncio.to_thread(service.store.fetch_global_flags)
    except FetchFailure as e:
        raise HTTPException(502, f"Failed to load feature flags: {e.detail}")

    return {"success": True, "data": flags}


# -----------------------------------------------------
# PUT /feature-flags/{key}
# Super admin only; every active session is re-resolved
# -----------------------------------------------------
@router.put(
    "/{key}",
    summary="Toggle a global feature flag",
    dependencies=[Depends(requires_role([Role.super_admin]))],
)
async def toggle_feature_flag(
    key: str,
    payload: FlagToggleRequest,
    session: PermissionSession = Depends(get_permission_session),
    service: PermissionService = Depends(get_permission_service),
):
    try:
        await service.toggle_global_flag(session, key, payload.enabled)
    except PersistFailure as e:
        raise HTTPException(502, f"Failed to save feature flag: {e.detail}")

    return {"success": True, "key": key, "enabled": payload.enabled}
