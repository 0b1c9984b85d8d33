"""
Authentication API endpoints for the PIM
- Email/password login through Supabase Auth
- Logout
- Current user (from the Supabase JWT)
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from supabase import Client

from pim.core.auth import TokenUser, get_current_user
from pim.core.database import get_supabase


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])


# =============================================================================
# Pydantic Models
# =============================================================================

class LoginRequest(BaseModel):
    email: str
    password: str


class SessionResponse(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"
    user: TokenUser


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/login", response_model=SessionResponse)
async def login(credentials: LoginRequest, sb: Client = Depends(get_supabase)):
    """Exchange email/password for a Supabase session"""
    try:
        result = sb.auth.sign_in_with_password({
            "email": credentials.email,
            "password": credentials.password,
        })
    except Exception as e:
        logger.info(f"Login failed for {credentials.email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    session = result.session
    if not session or not result.user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )

    return SessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user=TokenUser(
            id=str(result.user.id),
            email=result.user.email or credentials.email,
            role=result.user.role or "authenticated",
        ),
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    user: TokenUser = Depends(get_current_user),
    sb: Client = Depends(get_supabase)
):
    """End the current session"""
    try:
        sb.auth.sign_out()
    except Exception as e:
        logger.warning(f"Supabase sign out failed for {user.email}: {e}")


@router.get("/me", response_model=TokenUser)
async def me(user: TokenUser = Depends(get_current_user)):
    """Get current authenticated user"""
    return user
