from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_patient_identity
from ...schemas.auth import Identity
from ...schemas.appointment import (
    AppointmentCreate, AppointmentResponse, AppointmentListResponse
)
from ...services.appointment_service import AppointmentService

router = APIRouter(prefix="/patient", tags=["Patient"])

@router.post(
    "/appointments",
    response_model=AppointmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_appointment(
    data: AppointmentCreate,
    db: Session = Depends(get_db),
    patient: Identity = Depends(get_patient_identity)
):
    """Send an appointment request; it stays pending until an admin reviews it."""
    appointment = AppointmentService(db).request_appointment(patient, data)
    return AppointmentResponse.from_orm(appointment)

@router.get("/appointments", response_model=AppointmentListResponse)
async def my_appointments(
    db: Session = Depends(get_db),
    patient: Identity = Depends(get_patient_identity)
):
    """The caller's appointment history, newest first."""
    appointments = AppointmentService(db).list_for_patient(patient)
    return AppointmentListResponse(
        appointments=[AppointmentResponse.from_orm(a) for a in appointments],
        total=len(appointments),
        message=None if appointments else "No appointments yet.",
    )
