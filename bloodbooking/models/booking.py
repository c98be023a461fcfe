from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bloodbooking.db.base import Base


class Booking(Base):
    __tablename__ = "bookings"

    # Insertion order; the summary roster is filled in store order
    row_no: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True, index=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    phone: Mapped[str] = mapped_column(String(32), nullable=False, index=True)

    timeslot: Mapped[str] = mapped_column(String(5), nullable=False, index=True)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")  # pending/confirmed/cancelled/expired/rejected

    last_transition_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    note: Mapped[str] = mapped_column(String(255), nullable=False, default="")


class SummaryEntry(Base):
    __tablename__ = "summary_rows"

    row_no: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    slot: Mapped[str] = mapped_column(String(5), nullable=False)
    booking_id: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    phone: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="")
    note: Mapped[str] = mapped_column(String(255), nullable=False, default="")
