from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from fastapi import HTTPException, status
from typing import Dict, List
import logging

from ..core.config import settings
from ..models.appointment import Appointment, AppointmentStatus, TokenCounter

logger = logging.getLogger(__name__)

TOKEN_COUNTER_NAME = "appointment_token"

class ReviewService:
    """Admin side of the workflow: the status board, acceptance and rejection.

    Token numbers form one global sequence. With ``TOKEN_STRATEGY = "sequence"``
    the next value comes from an atomic increment of a counter row, so
    concurrent acceptances cannot share a token. ``"max_plus_one"`` reads the
    highest accepted token and adds one; two admins accepting at the same
    moment may then both receive the same number.
    """

    def __init__(self, db: Session):
        self.db = db

    def board(self) -> Dict[AppointmentStatus, List[Appointment]]:
        """All appointments grouped by status, newest first within each group."""
        appointments = (
            self.db.query(Appointment)
            .options(joinedload(Appointment.doctor))
            .order_by(Appointment.created_at.desc())
            .all()
        )

        grouped = {s: [] for s in AppointmentStatus}
        for appointment in appointments:
            grouped[appointment.status].append(appointment)
        return grouped

    def reject(self, appointment_id: str) -> Appointment:
        """Move a pending appointment to rejected, leaving every other field alone."""
        appointment = self._get_pending(appointment_id)

        self._apply(appointment_id, {"status": AppointmentStatus.REJECTED})
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment_id} rejected")
        return appointment

    def accept(self, appointment_id: str, assigned_time: str) -> Appointment:
        """Accept a pending appointment, assigning the next token and the given time."""
        appointment = self._get_pending(appointment_id)

        token = self.next_token()
        self._apply(appointment_id, {
            "status": AppointmentStatus.ACCEPTED,
            "token_number": token,
            "assigned_time": assigned_time,
        })
        self.db.refresh(appointment)

        logger.info(f"Appointment {appointment_id} accepted with token #{token} at {assigned_time}")
        return appointment

    def next_token(self) -> int:
        if settings.TOKEN_STRATEGY == "max_plus_one":
            return self._max_accepted_token() + 1
        if settings.TOKEN_STRATEGY == "sequence":
            return self._increment_counter()
        raise ValueError(f"Unknown TOKEN_STRATEGY: {settings.TOKEN_STRATEGY}")

    def _max_accepted_token(self) -> int:
        current = self.db.query(func.max(Appointment.token_number)).filter(
            Appointment.status == AppointmentStatus.ACCEPTED
        ).scalar()
        return current or 0

    def _increment_counter(self) -> int:
        stmt = (
            update(TokenCounter)
            .where(TokenCounter.name == TOKEN_COUNTER_NAME)
            .values(value=TokenCounter.value + 1)
            .returning(TokenCounter.value)
            .execution_options(synchronize_session=False)
        )
        value = self.db.execute(stmt).scalar_one_or_none()
        if value is None:
            self._seed_counter()
            value = self.db.execute(stmt).scalar_one()
        return value

    def _seed_counter(self):
        """Create the counter row, starting from the tokens already handed out."""
        start = self._max_accepted_token()
        try:
            with self.db.begin_nested():
                self.db.add(TokenCounter(name=TOKEN_COUNTER_NAME, value=start))
        except IntegrityError:
            # another session created it first; only the savepoint is undone
            logger.info("Token counter already seeded by another session")

    def _get_pending(self, appointment_id: str) -> Appointment:
        appointment = self.db.query(Appointment).filter(
            Appointment.id == appointment_id
        ).first()

        if not appointment:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Appointment not found"
            )

        if appointment.status != AppointmentStatus.PENDING:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Appointment has already been {appointment.status.value}"
            )

        return appointment

    def _apply(self, appointment_id: str, values: dict):
        """Single UPDATE, only taking effect while the row is still pending."""
        stmt = (
            update(Appointment)
            .where(
                Appointment.id == appointment_id,
                Appointment.status == AppointmentStatus.PENDING,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )

        try:
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                self.db.rollback()
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Appointment has already been reviewed"
                )
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Failed to update appointment {appointment_id}")
            raise
