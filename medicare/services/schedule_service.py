from sqlalchemy.orm import Session
from fastapi import HTTPException, status
from datetime import date
from typing import List

from ..core.timeutils import clock_sort_key
from ..models.appointment import Appointment, AppointmentStatus
from ..models.doctor import Doctor
from ..schemas.auth import Identity

class ScheduleService:
    def __init__(self, db: Session):
        self.db = db

    def doctor_for(self, identity: Identity) -> Doctor:
        doctor = self.db.query(Doctor).filter(Doctor.user_id == identity.id).first()
        if not doctor:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Doctor profile not found"
            )
        return doctor

    def schedule_for(self, identity: Identity, day: date) -> List[Appointment]:
        """Accepted appointments for the signed-in doctor on one day, by assigned time."""
        doctor = self.doctor_for(identity)

        appointments = (
            self.db.query(Appointment)
            .filter(
                Appointment.doctor_id == doctor.id,
                Appointment.status == AppointmentStatus.ACCEPTED,
                Appointment.preferred_date == day,
            )
            .order_by(Appointment.assigned_time.asc())
            .all()
        )
        return sorted(appointments, key=lambda a: clock_sort_key(a.assigned_time))
