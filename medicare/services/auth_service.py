from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import datetime, timedelta
import hashlib
import logging

from ..models.user import User, Profile, UserRoleAssignment, RefreshToken
from ..models.doctor import Doctor
from ..core.config import settings
from ..core.security import (
    verify_password, get_password_hash, create_token_pair,
    verify_token, portal_for, UserRole
)
from ..schemas.auth import UserLogin, UserRegister, TokenResponse
from .identity_service import IdentityService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, db: Session):
        self.db = db
        self.identities = IdentityService(db)
    
    def register_user(self, user_data: UserRegister) -> User:
        """Register a new user with profile, role and, for doctors, a doctor record."""
        if user_data.role == UserRole.ADMIN and not settings.ALLOW_ADMIN_SIGNUP:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Admin registration is disabled"
            )
        
        existing_user = self.db.query(User).filter(
            User.email == user_data.email
        ).first()
        
        if existing_user:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Email already registered"
            )
        
        new_user = User(
            email=user_data.email,
            password_hash=get_password_hash(user_data.password),
            is_active=True,
        )
        self.db.add(new_user)
        self.db.flush()
        
        self.db.add(Profile(user_id=new_user.id, full_name=user_data.full_name))
        self.db.add(UserRoleAssignment(user_id=new_user.id, role=user_data.role))
        
        if user_data.role == UserRole.DOCTOR:
            self.db.add(Doctor(
                user_id=new_user.id,
                full_name=user_data.full_name,
                specialization=user_data.specialization.strip(),
                availability=settings.DEFAULT_DOCTOR_AVAILABILITY,
            ))
        
        self.db.commit()
        self.db.refresh(new_user)
        
        logger.info(f"Registered {user_data.role.value} account {new_user.id}")
        return new_user
    
    def authenticate_user(self, login_data: UserLogin) -> TokenResponse:
        """Authenticate user and return tokens."""
        user = self.db.query(User).filter(
            User.email == login_data.email
        ).first()
        
        if not user or not verify_password(login_data.password, user.password_hash):
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid email or password"
            )
        
        if not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Account is deactivated"
            )
        
        return self._issue_tokens(user)
    
    def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """Refresh access token using refresh token."""
        token_payload = verify_token(refresh_token)
        if not token_payload or token_payload.token_type != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid refresh token"
            )
        
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == _hash_token(refresh_token),
            RefreshToken.is_revoked == False,
            RefreshToken.expires_at > datetime.utcnow()
        ).first()
        
        if not stored_token:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid or expired refresh token"
            )
        
        user = self.db.query(User).filter(
            User.id == token_payload.sub
        ).first()
        
        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="User not found or inactive"
            )
        
        return self._issue_tokens(user)
    
    def logout_user(self, refresh_token: str) -> bool:
        """Sign out by revoking the refresh token; False if it was unknown."""
        stored_token = self.db.query(RefreshToken).filter(
            RefreshToken.token_hash == _hash_token(refresh_token)
        ).first()
        
        if not stored_token:
            return False
        
        stored_token.is_revoked = True
        self.db.commit()
        logger.info(f"Session {stored_token.session_id} of {stored_token.user_id} signed out")
        return True

    def is_session_active(self, user_id: str, session_id: str) -> bool:
        """True while the sign-in that issued a token has not been revoked or rotated."""
        if not session_id:
            return False

        return self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id,
            RefreshToken.session_id == session_id,
            RefreshToken.is_revoked == False,
            RefreshToken.expires_at > datetime.utcnow()
        ).first() is not None

    def _issue_tokens(self, user: User) -> TokenResponse:
        tokens = create_token_pair(user.id, user.email)
        self._store_refresh_token(user.id, tokens.refresh_token, tokens.session_id)
        self.db.commit()
        
        identity = self.identities.resolve(user)
        return TokenResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            user=identity,
            portal=portal_for(identity.role),
        )
    
    def _store_refresh_token(self, user_id: str, refresh_token: str, session_id: str):
        """Store refresh token in database, revoking any earlier ones."""
        token_payload = verify_token(refresh_token)
        expires_at = datetime.utcfromtimestamp(token_payload.exp) if token_payload and token_payload.exp else datetime.utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        
        self.db.query(RefreshToken).filter(
            RefreshToken.user_id == user_id
        ).update({"is_revoked": True})
        
        self.db.add(RefreshToken(
            user_id=user_id,
            token_hash=_hash_token(refresh_token),
            session_id=session_id,
            expires_at=expires_at
        ))

def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()
