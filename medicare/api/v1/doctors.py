from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from ...core.database import get_db
from ...api.deps import get_current_identity
from ...schemas.auth import Identity
from ...schemas.doctor import DoctorResponse
from ...services.appointment_service import AppointmentService

router = APIRouter(prefix="/doctors", tags=["Doctors"])

@router.get("", response_model=List[DoctorResponse])
async def list_doctors(
    db: Session = Depends(get_db),
    _: Identity = Depends(get_current_identity)
):
    """Doctors a patient can book with."""
    return [DoctorResponse.from_orm(d) for d in AppointmentService(db).list_doctors()]
