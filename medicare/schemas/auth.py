from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional

from ..core.security import UserRole

class UserRegister(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    full_name: str
    role: UserRole = UserRole.PATIENT
    specialization: Optional[str] = None

    @field_validator("full_name")
    @classmethod
    def full_name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Full name is required")
        return v.strip()

    @model_validator(mode="after")
    def doctor_needs_specialization(self):
        if self.role == UserRole.DOCTOR and not (self.specialization or "").strip():
            raise ValueError("Specialization is required for doctors")
        return self

class UserLogin(BaseModel):
    email: EmailStr
    password: str

class RefreshTokenRequest(BaseModel):
    refresh_token: str

class Identity(BaseModel):
    """The signed-in user as seen by every portal."""
    id: str
    email: str
    role: UserRole
    full_name: str

class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user: Identity
    portal: str

class PortalResponse(BaseModel):
    role: UserRole
    portal: str
