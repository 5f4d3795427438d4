from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...core.database import get_db
from ...api.deps import get_admin_identity
from ...models.appointment import AppointmentStatus
from ...schemas.auth import Identity
from ...schemas.appointment import (
    AcceptRequest, AppointmentBoard, AppointmentResponse, ReviewResponse
)
from ...services.review_service import ReviewService

router = APIRouter(prefix="/admin", tags=["Admin"])

REVIEW_ACTIONS = ["accept", "reject"]

@router.get("/appointments", response_model=AppointmentBoard)
async def appointment_board(
    db: Session = Depends(get_db),
    _: Identity = Depends(get_admin_identity)
):
    """All appointments grouped by status. Only pending ones can be acted on."""
    grouped = ReviewService(db).board()

    columns = {}
    for appointment_status, appointments in grouped.items():
        items = []
        for appointment in appointments:
            item = AppointmentResponse.from_orm(appointment)
            if appointment_status == AppointmentStatus.PENDING:
                item.actions = list(REVIEW_ACTIONS)
            items.append(item)
        columns[appointment_status.value] = items

    return AppointmentBoard(
        **columns,
        counts={name: len(items) for name, items in columns.items()},
        messages={
            name: f"No {name} appointments."
            for name, items in columns.items() if not items
        },
    )

@router.post("/appointments/{appointment_id}/accept", response_model=ReviewResponse)
async def accept_appointment(
    appointment_id: str,
    data: AcceptRequest,
    db: Session = Depends(get_db),
    _: Identity = Depends(get_admin_identity)
):
    """Accept a pending request and hand out the next token number."""
    appointment = ReviewService(db).accept(appointment_id, data.assigned_time)
    return ReviewResponse(
        message=f"Appointment accepted! Token #{appointment.token_number} assigned.",
        appointment=AppointmentResponse.from_orm(appointment),
    )

@router.post("/appointments/{appointment_id}/reject", response_model=ReviewResponse)
async def reject_appointment(
    appointment_id: str,
    db: Session = Depends(get_db),
    _: Identity = Depends(get_admin_identity)
):
    appointment = ReviewService(db).reject(appointment_id)
    return ReviewResponse(
        message="Appointment rejected.",
        appointment=AppointmentResponse.from_orm(appointment),
    )
