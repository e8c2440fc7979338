import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    PAID = "paid"


class ItineraryRequest(Base):
    __tablename__ = "itinerary_requests"
    __table_args__ = (
        Index("ix_itinerary_requests_sender_created", "sender", "created_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sender: Mapped[str] = mapped_column(String(64))  # e.g. "whatsapp:+2547..."

    # snapshot of the triggering request
    last_service: Mapped[Optional[str]] = mapped_column(String(16))
    last_destination: Mapped[Optional[str]] = mapped_column(Text)
    raw_details: Mapped[Optional[str]] = mapped_column(Text)

    amount: Mapped[int] = mapped_column(Integer)  # smallest currency unit
    currency: Mapped[str] = mapped_column(String(3))

    payment_status: Mapped[str] = mapped_column(String(16), default=PaymentStatus.PENDING.value)
    payment_reference: Mapped[Optional[str]] = mapped_column(String(64), unique=True)

    itinerary_text: Mapped[Optional[str]] = mapped_column(Text)
    itinerary_pdf_url: Mapped[Optional[str]] = mapped_column(Text)
    editable_until: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID.value


class MessageLog(Base):
    __tablename__ = "message_log"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    sender: Mapped[str] = mapped_column(String(64), index=True)
    direction: Mapped[str] = mapped_column(String(16))  # "inbound" | "outbound"
    body: Mapped[str] = mapped_column(Text, default="")
    media_url: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[Optional[str]] = mapped_column(String(32))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
