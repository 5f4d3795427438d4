from sqlalchemy import (
    Column, Integer, String, ForeignKey, DateTime, Date, Text,
    CheckConstraint, Enum as SQLEnum
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from ..core.database import Base
from .user import _uuid

class AppointmentStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

# Slots a patient may request; the admin assigns the concrete time
TIME_SLOTS = (
    "9:00 AM", "10:00 AM", "11:00 AM", "12:00 PM",
    "2:00 PM", "3:00 PM", "4:00 PM", "5:00 PM",
)

class Appointment(Base):
    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint(
            "(status = 'accepted' AND token_number IS NOT NULL AND assigned_time IS NOT NULL)"
            " OR (status != 'accepted' AND token_number IS NULL AND assigned_time IS NULL)",
            name="ck_appointments_token_matches_status",
        ),
    )
    
    id = Column(String(36), primary_key=True, default=_uuid)
    
    # Relationships
    patient_user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    doctor_id = Column(String(36), ForeignKey("doctors.id"), nullable=False, index=True)
    
    # Request details, as entered by the patient
    patient_name = Column(String(200), nullable=False)
    patient_age = Column(Integer, nullable=False)
    symptoms = Column(Text, nullable=False)
    preferred_date = Column(Date, nullable=False, index=True)
    preferred_time = Column(String(20), nullable=False)
    
    # Review outcome
    status = Column(
        SQLEnum(
            AppointmentStatus,
            name="appointment_status",
            values_callable=lambda e: [m.value for m in e],
        ),
        nullable=False,
        default=AppointmentStatus.PENDING,
        index=True,
    )
    token_number = Column(Integer, nullable=True)
    assigned_time = Column(String(20), nullable=True)
    
    # Tracking
    created_at = Column(DateTime, default=datetime.utcnow, server_default=func.now())
    
    doctor = relationship("Doctor", back_populates="appointments")
    
    def __repr__(self):
        return f"<Appointment(id={self.id}, doctor_id={self.doctor_id}, status='{self.status}', token={self.token_number})>"

class TokenCounter(Base):
    """Server-side sequence backing token numbers."""
    __tablename__ = "token_counters"
    
    name = Column(String(50), primary_key=True)
    value = Column(Integer, nullable=False, default=0)
    
    def __repr__(self):
        return f"<TokenCounter(name='{self.name}', value={self.value})>"
