"""
Persistence for itinerary requests and the chat message log.

All state transitions that must be atomic are single conditional UPDATE
statements; edit-window checks compare against the database clock.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import sessionmaker

from tripbot.models import ItineraryRequest, MessageLog, PaymentStatus

logger = logging.getLogger(__name__)

EDIT_WINDOW = timedelta(days=3)


def _window_open():
    return or_(
        ItineraryRequest.editable_until.is_(None),
        ItineraryRequest.editable_until >= func.now(),
    )


class ItineraryRepository:
    def __init__(self, session_factory: sessionmaker):
        self._sessions = session_factory

    # ---------------------------
    # Lifecycle writes
    # ---------------------------
    def create_pending(
        self,
        sender: str,
        last_service: Optional[str],
        last_destination: Optional[str],
        raw_details: str,
        amount: int,
        currency: str,
    ) -> ItineraryRequest:
        with self._sessions() as db:
            row = ItineraryRequest(
                sender=sender,
                last_service=last_service,
                last_destination=last_destination,
                raw_details=raw_details,
                amount=amount,
                currency=currency,
                payment_status=PaymentStatus.PENDING.value,
            )
            db.add(row)
            db.commit()
            db.refresh(row)
            return row

    def attach_payment_reference(self, request_id: int, reference: str) -> None:
        with self._sessions() as db:
            db.execute(
                update(ItineraryRequest)
                .where(ItineraryRequest.id == request_id)
                .values(payment_reference=reference)
            )
            db.commit()

    def mark_paid(self, reference: str) -> Optional[ItineraryRequest]:
        """
        pending -> paid for the row carrying `reference`, stamping the edit window.

        Returns the updated row, or None when nothing matched (unknown
        reference or already paid), which makes redelivered notifications
        a no-op.
        """
        editable_until = datetime.now(timezone.utc) + EDIT_WINDOW
        with self._sessions() as db:
            row = db.scalars(
                update(ItineraryRequest)
                .where(
                    ItineraryRequest.payment_reference == reference,
                    ItineraryRequest.payment_status == PaymentStatus.PENDING.value,
                )
                .values(payment_status=PaymentStatus.PAID.value, editable_until=editable_until)
                .returning(ItineraryRequest)
            ).first()
            db.commit()
            return row

    def save_itinerary_text(self, request_id: int, text: str) -> None:
        with self._sessions() as db:
            db.execute(
                update(ItineraryRequest)
                .where(ItineraryRequest.id == request_id)
                .values(itinerary_text=text)
            )
            db.commit()

    def save_pdf_url(self, request_id: int, url: str) -> None:
        with self._sessions() as db:
            db.execute(
                update(ItineraryRequest)
                .where(ItineraryRequest.id == request_id)
                .values(itinerary_pdf_url=url)
            )
            db.commit()

    def apply_edit(self, request_id: int, text: str, raw_details: str) -> bool:
        """Overwrite text/details only while the edit window is still open."""
        with self._sessions() as db:
            result = db.execute(
                update(ItineraryRequest)
                .where(ItineraryRequest.id == request_id, _window_open())
                .values(itinerary_text=text, raw_details=raw_details)
                .execution_options(synchronize_session=False)
            )
            db.commit()
            return result.rowcount == 1

    # ---------------------------
    # Lookups
    # ---------------------------
    def get(self, request_id: int) -> Optional[ItineraryRequest]:
        with self._sessions() as db:
            return db.get(ItineraryRequest, request_id)

    def get_by_reference(self, reference: str) -> Optional[ItineraryRequest]:
        with self._sessions() as db:
            return db.scalars(
                select(ItineraryRequest).where(ItineraryRequest.payment_reference == reference)
            ).first()

    def latest_paid(self, sender: str) -> Optional[ItineraryRequest]:
        with self._sessions() as db:
            return db.scalars(
                select(ItineraryRequest)
                .where(
                    ItineraryRequest.sender == sender,
                    ItineraryRequest.payment_status == PaymentStatus.PAID.value,
                )
                .order_by(ItineraryRequest.created_at.desc(), ItineraryRequest.id.desc())
                .limit(1)
            ).first()

    def editable_for(self, sender: str, request_id: Optional[int] = None) -> Optional[ItineraryRequest]:
        stmt = select(ItineraryRequest).where(
            ItineraryRequest.sender == sender,
            ItineraryRequest.payment_status == PaymentStatus.PAID.value,
            _window_open(),
        )
        if request_id is not None:
            stmt = stmt.where(ItineraryRequest.id == request_id)
        stmt = stmt.order_by(ItineraryRequest.created_at.desc(), ItineraryRequest.id.desc()).limit(1)
        with self._sessions() as db:
            return db.scalars(stmt).first()

    # ---------------------------
    # Message log
    # ---------------------------
    def log_message(
        self,
        sender: str,
        direction: str,
        body: str,
        media_url: Optional[str] = None,
        status: Optional[str] = None,
    ) -> None:
        try:
            with self._sessions() as db:
                db.add(MessageLog(
                    sender=sender,
                    direction=direction,
                    body=body or "",
                    media_url=media_url,
                    status=status,
                ))
                db.commit()
        except Exception:
            logger.exception("Failed to log %s message for %s.", direction, sender)

    def messages_for(self, sender: str) -> list[MessageLog]:
        with self._sessions() as db:
            return list(db.scalars(
                select(MessageLog).where(MessageLog.sender == sender).order_by(MessageLog.id)
            ))
