from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import Optional

from ...core.database import get_db
from ...api.deps import (
    get_current_identity, get_current_identity_optional, rate_limit_check
)
from ...services.auth_service import AuthService
from ...services.identity_service import IdentityService
from ...schemas.auth import (
    UserLogin, UserRegister, TokenResponse, RefreshTokenRequest, Identity
)

router = APIRouter(prefix="/auth", tags=["Authentication"])

@router.post("/register", response_model=Identity, status_code=status.HTTP_201_CREATED)
async def register(
    user_data: UserRegister,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Register a new user. The role chosen here is permanent."""
    user = AuthService(db).register_user(user_data)
    return IdentityService(db).resolve(user)

@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: UserLogin,
    db: Session = Depends(get_db),
    _: None = Depends(rate_limit_check)
):
    """Authenticate user and return access tokens plus the portal to open."""
    return AuthService(db).authenticate_user(login_data)

@router.post("/refresh", response_model=TokenResponse)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Refresh access token using refresh token."""
    return AuthService(db).refresh_access_token(refresh_data.refresh_token)

@router.post("/logout")
async def logout(
    refresh_data: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """Logout user by revoking refresh token."""
    success = AuthService(db).logout_user(refresh_data.refresh_token)

    return {"message": "Successfully logged out" if success else "Logout completed", "portal": "/"}

@router.get("/session", response_model=Optional[Identity])
async def get_session(
    identity: Optional[Identity] = Depends(get_current_identity_optional)
):
    """Current identity, or null when signed out."""
    return identity

@router.get("/me", response_model=Identity)
async def get_current_user_info(
    identity: Identity = Depends(get_current_identity)
):
    """Get current user information."""
    return identity
