import asyncio

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.logging_config import logger
from core.roles import parse_role
from core.session import PermissionService
from core.supabase_client import get_supabase_client
from dependencies.auth import CurrentUser, get_current_user
from dependencies.permissions import get_permission_service
from models.permissions import PermissionSnapshot


router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
)


# ============================================================
# MODELS
# ============================================================
class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    permissions: PermissionSnapshot


# ============================================================
# LOGIN (SUPABASE AUTH) + permission session start
# ============================================================
@router.post("/login", response_model=TokenResponse, summary="Authenticate user")
async def login(
    payload: LoginRequest,
    service: PermissionService = Depends(get_permission_service),
):
    email = payload.email.strip().lower()

    client = get_supabase_client()
    if not client:
        raise HTTPException(500, "Supabase client not configured")

    try:
        response = await asyncio.to_thread(
            client.auth.sign_in_with_password,
            {"email": email, "password": payload.password},
        )
    except Exception as e:
        # Log the error for debugging but don't expose details to user
        logger.warning(f"Login attempt failed for {email}: {type(e).__name__}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not response.session or not response.session.access_token or not response.user:
        raise HTTPException(401, "Invalid email or password")

    user = response.user
    role = parse_role((user.user_metadata or {}).get("role"))

    # Fetch failures fail closed inside the service; login is never blocked
    session = await service.start_session(user.id, role)
    for warning in session.warnings:
        logger.warning(f"Login for {email} continued with reduced access: {warning}")

    return TokenResponse(
        access_token=response.session.access_token,
        permissions=session.snapshot(),
    )


# ============================================================
# LOGOUT (discards every derived permission set)
# ============================================================
@router.post("/logout", summary="End the permission session")
def logout(
    current_user: CurrentUser = Depends(get_current_user),
    service: PermissionService = Depends(get_permission_service),
):
    service.end_session(current_user.id)
    return {"success": True}


# ============================================================
# CURRENT USER
# ============================================================
@router.get("/me", response_model=CurrentUser, summary="Current authenticated user")
def read_me(current_user: CurrentUser = Depends(get_current_user)):
    return current_user
