from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    REJECTED = "rejected"


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})
INACTIVE_STATUSES = frozenset({BookingStatus.CANCELLED, BookingStatus.EXPIRED, BookingStatus.REJECTED})


class BookingRecord(BaseModel):
    """One row of the booking table."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    phone: str
    timeslot: str
    status: BookingStatus
    # Written at creation, overwritten on every status transition
    last_transition_at: datetime | None = None
    note: str = ""

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES


class SummaryRow(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    slot: str
    booking_id: str = ""
    name: str = ""
    email: str = ""
    phone: str = ""
    status: str = ""
    note: str = ""


class ReservationCreate(BaseModel):
    # Plain strings: format checks happen in the booking service so that
    # every failure is reported with a field-specific message.
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    phone: str = ""
    timeslot: str = ""
    note: str = Field(default="", max_length=255)


class ReservationCreated(BaseModel):
    status: str = "success"
    id: str


class TransitionResult(BaseModel):
    status: str  # success|info|canceled
    message: str


class BookingSummaryOut(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    booking_id: str
    name: str
    email: str
    phone: str
    timeslot: str
    status: BookingStatus
    deadline: datetime | None


class BookingSummaryResponse(BaseModel):
    status: str = "success"
    data: BookingSummaryOut
