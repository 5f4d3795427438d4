from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from datetime import date
from typing import Optional

from ...core.database import get_db
from ...core.timeutils import clinic_today
from ...api.deps import get_doctor_identity
from ...schemas.auth import Identity
from ...schemas.appointment import AppointmentResponse, DoctorSchedule
from ...services.schedule_service import ScheduleService

router = APIRouter(prefix="/doctor", tags=["Doctor"])

@router.get("/schedule", response_model=DoctorSchedule)
async def my_schedule(
    day: Optional[date] = Query(None, alias="date", description="YYYY-MM-DD, defaults to today"),
    db: Session = Depends(get_db),
    doctor: Identity = Depends(get_doctor_identity)
):
    """Accepted appointments for the signed-in doctor on one day, earliest first."""
    selected = day or clinic_today()
    appointments = ScheduleService(db).schedule_for(doctor, selected)

    return DoctorSchedule(
        selected_date=selected,
        total=len(appointments),
        appointments=[AppointmentResponse.from_orm(a) for a in appointments],
        message=None if appointments else "No patients scheduled for this date.",
    )
