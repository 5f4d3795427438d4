from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from typing import Optional, List

from ..core.config import settings
from ..core.database import get_db, get_redis
from ..core.security import (
    security, optional_security, verify_token, AuthenticationError,
    AuthorizationError, UserRole, TokenPayload, portal_for
)
from ..models.user import User
from ..schemas.auth import Identity
from ..services.auth_service import AuthService
from ..services.identity_service import IdentityService

async def get_current_user_token(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> TokenPayload:
    """Extract and verify JWT token from Authorization header."""
    token_payload = verify_token(credentials.credentials)
    if not token_payload:
        raise AuthenticationError("Invalid or expired token")

    if token_payload.token_type != "access":
        raise AuthenticationError("Invalid token type")

    return token_payload

async def get_current_user(
    token_payload: TokenPayload = Depends(get_current_user_token),
    db: Session = Depends(get_db)
) -> User:
    """Get current authenticated user from database."""
    if not token_payload.sub:
        raise AuthenticationError("Invalid token payload")

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user:
        raise AuthenticationError("User not found")

    if not user.is_active:
        raise AuthenticationError("User account is deactivated")

    if not AuthService(db).is_session_active(user.id, token_payload.sid):
        raise AuthenticationError("Session has ended, please sign in again")

    return user

async def get_current_identity(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
) -> Identity:
    """Resolve role and display name for the authenticated user."""
    return IdentityService(db).resolve(current_user)

async def get_current_identity_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    db: Session = Depends(get_db)
) -> Optional[Identity]:
    """Identity when a valid access token is presented, None otherwise."""
    if credentials is None:
        return None

    token_payload = verify_token(credentials.credentials)
    if not token_payload or not token_payload.sub or token_payload.token_type != "access":
        return None

    user = db.query(User).filter(User.id == token_payload.sub).first()
    if not user or not user.is_active:
        return None

    if not AuthService(db).is_session_active(user.id, token_payload.sid):
        return None

    return IdentityService(db).resolve(user)

# Role-based access control dependencies
def require_role(allowed_roles: List[UserRole]):
    """Create a dependency that admits only the given roles.

    Other roles get a 403 whose X-Redirect-To header names their own portal.
    """
    async def role_checker(
        identity: Identity = Depends(get_current_identity)
    ) -> Identity:
        if identity.role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}",
                redirect_to=portal_for(identity.role),
            )
        return identity

    return role_checker

get_admin_identity = require_role([UserRole.ADMIN])
get_doctor_identity = require_role([UserRole.DOCTOR])
get_patient_identity = require_role([UserRole.PATIENT])

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Basic rate limiting for authentication endpoints."""
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{request.url.path}:{client_ip}"

    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_REQUESTS:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later."
            )
        redis_client.incr(key)
