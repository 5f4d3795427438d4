from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import SQLAlchemyError
from fastapi import HTTPException, status
from typing import List
import logging

from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..schemas.auth import Identity
from ..schemas.appointment import AppointmentCreate

logger = logging.getLogger(__name__)

class AppointmentService:
    """Patient side of the workflow: requesting appointments and viewing history."""

    def __init__(self, db: Session):
        self.db = db

    def request_appointment(self, patient: Identity, data: AppointmentCreate) -> Appointment:
        """Create one pending appointment for the signed-in patient."""
        doctor = self.db.query(Doctor).filter(Doctor.id == data.doctor_id).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor not found"
            )

        appointment = Appointment(
            patient_user_id=patient.id,
            patient_name=data.patient_name,
            patient_age=data.patient_age,
            symptoms=data.symptoms,
            doctor_id=doctor.id,
            preferred_date=data.preferred_date,
            preferred_time=data.preferred_time,
            status=AppointmentStatus.PENDING,
            token_number=None,
            assigned_time=None,
        )

        try:
            self.db.add(appointment)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to store appointment request for patient {patient.id}")
            raise

        self.db.refresh(appointment)
        logger.info(
            f"Appointment {appointment.id} requested by {patient.id} "
            f"with doctor {doctor.id} for {data.preferred_date} {data.preferred_time}"
        )
        return appointment

    def list_for_patient(self, patient: Identity) -> List[Appointment]:
        """The patient's own appointments, newest first."""
        return (
            self.db.query(Appointment)
            .options(joinedload(Appointment.doctor))
            .filter(Appointment.patient_user_id == patient.id)
            .order_by(Appointment.created_at.desc())
            .all()
        )

    def list_doctors(self) -> List[Doctor]:
        return self.db.query(Doctor).order_by(Doctor.full_name).all()
