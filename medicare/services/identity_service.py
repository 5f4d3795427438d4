from sqlalchemy.orm import Session
from typing import Optional

from ..models.user import User, Profile, UserRoleAssignment
from ..core.security import UserRole
from ..schemas.auth import Identity

DEFAULT_ROLE = UserRole.PATIENT
DEFAULT_DISPLAY_NAME = "User"

class IdentityService:
    """Resolves an authenticated user into the identity the portals work with."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, user: Optional[User]) -> Optional[Identity]:
        """Look up role and display name; None when signed out."""
        if user is None:
            return None

        role_row = self.db.query(UserRoleAssignment).filter(
            UserRoleAssignment.user_id == user.id
        ).first()

        profile = self.db.query(Profile).filter(
            Profile.user_id == user.id
        ).first()

        return Identity(
            id=user.id,
            email=user.email or "",
            role=role_row.role if role_row else DEFAULT_ROLE,
            full_name=profile.full_name if profile and profile.full_name else DEFAULT_DISPLAY_NAME,
        )
