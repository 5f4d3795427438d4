from pydantic import BaseModel, Field, field_validator
from datetime import date, datetime
from typing import Optional, List, Dict

from ..core.timeutils import clinic_today
from ..models.appointment import AppointmentStatus, TIME_SLOTS

class AppointmentCreate(BaseModel):
    doctor_id: str
    patient_name: str
    patient_age: int = Field(..., ge=1, le=150)
    symptoms: str
    preferred_date: date
    preferred_time: str

    @field_validator("doctor_id", "patient_name", "symptoms")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("This field is required")
        return v.strip()

    @field_validator("preferred_date")
    @classmethod
    def not_in_past(cls, v: date) -> date:
        if v < clinic_today():
            raise ValueError("Preferred date cannot be in the past")
        return v

    @field_validator("preferred_time")
    @classmethod
    def known_slot(cls, v: str) -> str:
        if v not in TIME_SLOTS:
            raise ValueError(f"Preferred time must be one of: {', '.join(TIME_SLOTS)}")
        return v

class AcceptRequest(BaseModel):
    assigned_time: str

    @field_validator("assigned_time")
    @classmethod
    def assigned_time_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Please assign a time before accepting")
        return v.strip()

class DoctorSummary(BaseModel):
    full_name: str
    specialization: str

    class Config:
        from_attributes = True

class AppointmentResponse(BaseModel):
    id: str
    patient_user_id: str
    patient_name: str
    patient_age: int
    symptoms: str
    doctor_id: str
    preferred_date: date
    preferred_time: str
    status: AppointmentStatus
    token_number: Optional[int] = None
    assigned_time: Optional[str] = None
    created_at: Optional[datetime] = None
    doctor: Optional[DoctorSummary] = None
    actions: List[str] = []

    class Config:
        from_attributes = True

class AppointmentListResponse(BaseModel):
    appointments: List[AppointmentResponse]
    total: int
    message: Optional[str] = None

class AppointmentBoard(BaseModel):
    """All appointments partitioned by status, for the admin portal."""
    pending: List[AppointmentResponse]
    accepted: List[AppointmentResponse]
    rejected: List[AppointmentResponse]
    counts: Dict[str, int]
    messages: Dict[str, str] = {}

class ReviewResponse(BaseModel):
    message: str
    appointment: AppointmentResponse

class DoctorSchedule(BaseModel):
    selected_date: date
    total: int
    appointments: List[AppointmentResponse]
    message: Optional[str] = None
