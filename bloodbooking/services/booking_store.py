from __future__ import annotations

import abc
import logging
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator
from zoneinfo import ZoneInfo

from sqlalchemy import delete, select, update
from sqlalchemy.orm import sessionmaker

from bloodbooking.core.errors import SystemBusyError
from bloodbooking.models.booking import Booking, SummaryEntry
from bloodbooking.schemas.booking import BookingRecord, BookingStatus, SummaryRow
from bloodbooking.services.sheets import (
    format_timestamp,
    parse_timestamp,
    status_from_cell,
    status_to_cell,
)

logger = logging.getLogger(__name__)

BOOKING_HEADER = ["id", "name", "email", "phone", "timeslot", "status", "lastTransitionTimestamp", "note"]
SUMMARY_HEADER = ["slot", "id", "name", "email", "phone", "status", "note"]


@contextmanager
def acquire_store_lock(lock: threading.Lock, timeout: float) -> Iterator[None]:
    """Hold ``lock`` for the body, waiting at most ``timeout`` seconds.

    Raises SystemBusyError when the wait times out; the lock is then not held.
    The lock is released on every exit path once acquired.
    """
    if not lock.acquire(timeout=timeout):
        logger.warning("Booking store lock wait timed out after %.1fs", timeout)
        raise SystemBusyError()
    try:
        yield
    finally:
        lock.release()


class BookingStore(abc.ABC):
    """Row store for bookings plus the denormalized summary roster.

    Each instance owns the mutex that serializes reservation creation, so a
    process must share one instance across requests.
    """

    def __init__(self) -> None:
        self.mutex = threading.Lock()

    @abc.abstractmethod
    def list_bookings(self) -> list[BookingRecord]:
        """All booking rows, in store order."""

    @abc.abstractmethod
    def append_booking(self, record: BookingRecord) -> None:
        ...

    @abc.abstractmethod
    def update_status(self, booking_id: str, status: BookingStatus, at: datetime) -> bool:
        """Set status and transition time. Returns False if the id is unknown."""

    @abc.abstractmethod
    def replace_summary(self, rows: list[SummaryRow]) -> None:
        """Clear the summary projection and write ``rows`` in one go."""

    def get_booking(self, booking_id: str) -> BookingRecord | None:
        for record in self.list_bookings():
            if record.id == booking_id:
                return record
        return None


class SheetBookingStore(BookingStore):
    """Bookings kept in a Google Sheets worksheet (one row per booking)."""

    def __init__(self, spreadsheet, *, booking_worksheet: str, summary_worksheet: str, tz: ZoneInfo):
        super().__init__()
        self.spreadsheet = spreadsheet
        self.booking_worksheet = booking_worksheet
        self.summary_worksheet = summary_worksheet
        self.tz = tz

    def _worksheet(self, title: str, header: list[str]):
        try:
            return self.spreadsheet.worksheet(title)
        except Exception:
            ws = self.spreadsheet.add_worksheet(title=title, rows="1000", cols=str(len(header)))
            ws.update(values=[header], range_name="A1", value_input_option="RAW")
            return ws

    def _row_to_record(self, row: list[str]) -> BookingRecord | None:
        cells = (list(row) + [""] * len(BOOKING_HEADER))[: len(BOOKING_HEADER)]
        booking_id, name, email, phone, timeslot, status_cell, ts_cell, note = (str(c) for c in cells)
        if not booking_id.strip():
            return None
        status = status_from_cell(status_cell)
        if status is None:
            logger.warning("Booking %s has unknown status %r; skipped", booking_id, status_cell)
            return None
        return BookingRecord(
            id=booking_id.strip(),
            name=name,
            email=email,
            # Phone cells written by hand may carry a leading apostrophe
            phone=phone.lstrip("'"),
            timeslot=timeslot,
            status=status,
            last_transition_at=parse_timestamp(ts_cell, self.tz),
            note=note,
        )

    def list_bookings(self) -> list[BookingRecord]:
        ws = self._worksheet(self.booking_worksheet, BOOKING_HEADER)
        values = ws.get_all_values()
        records = []
        for row in values[1:]:
            record = self._row_to_record(row)
            if record is not None:
                records.append(record)
        return records

    def append_booking(self, record: BookingRecord) -> None:
        ws = self._worksheet(self.booking_worksheet, BOOKING_HEADER)
        ws.append_row(
            [
                record.id,
                record.name,
                record.email,
                record.phone,
                record.timeslot,
                status_to_cell(record.status),
                format_timestamp(record.last_transition_at, self.tz) if record.last_transition_at else "",
                record.note,
            ],
            value_input_option="RAW",
        )

    def update_status(self, booking_id: str, status: BookingStatus, at: datetime) -> bool:
        ws = self._worksheet(self.booking_worksheet, BOOKING_HEADER)
        ids = ws.col_values(1)
        try:
            # Sheet rows are 1-based; row 1 is the header
            row_no = ids.index(booking_id, 1) + 1
        except ValueError:
            return False
        ws.update(
            values=[[status_to_cell(status), format_timestamp(at, self.tz)]],
            range_name=f"F{row_no}:G{row_no}",
            value_input_option="RAW",
        )
        return True

    def replace_summary(self, rows: list[SummaryRow]) -> None:
        ws = self._worksheet(self.summary_worksheet, SUMMARY_HEADER)
        ws.batch_clear(["A2:G"])
        if not rows:
            return
        values = [[r.slot, r.booking_id, r.name, r.email, r.phone, r.status, r.note] for r in rows]
        ws.update(values=values, range_name=f"A2:G{len(values) + 1}", value_input_option="RAW")


class SqlBookingStore(BookingStore):
    """Bookings kept in the ``bookings`` table via SQLAlchemy."""

    def __init__(self, session_factory: sessionmaker):
        super().__init__()
        self.session_factory = session_factory

    @staticmethod
    def _to_record(row: Booking) -> BookingRecord:
        record = BookingRecord.model_validate(row)
        if record.last_transition_at is not None and record.last_transition_at.tzinfo is None:
            # SQLite drops the offset; values are always written in UTC
            record.last_transition_at = record.last_transition_at.replace(tzinfo=timezone.utc)
        return record

    def list_bookings(self) -> list[BookingRecord]:
        with self.session_factory() as db:
            rows = db.execute(select(Booking).order_by(Booking.row_no.asc())).scalars().all()
            return [self._to_record(r) for r in rows]

    def get_booking(self, booking_id: str) -> BookingRecord | None:
        with self.session_factory() as db:
            row = db.execute(select(Booking).where(Booking.id == booking_id)).scalar_one_or_none()
            return self._to_record(row) if row else None

    def append_booking(self, record: BookingRecord) -> None:
        with self.session_factory() as db:
            db.add(
                Booking(
                    id=record.id,
                    name=record.name,
                    email=record.email,
                    phone=record.phone,
                    timeslot=record.timeslot,
                    status=record.status.value,
                    last_transition_at=record.last_transition_at.astimezone(timezone.utc) if record.last_transition_at else None,
                    note=record.note,
                )
            )
            db.commit()

    def update_status(self, booking_id: str, status: BookingStatus, at: datetime) -> bool:
        with self.session_factory() as db:
            result = db.execute(
                update(Booking)
                .where(Booking.id == booking_id)
                .values(status=status.value, last_transition_at=at.astimezone(timezone.utc))
            )
            db.commit()
            return result.rowcount > 0

    def replace_summary(self, rows: list[SummaryRow]) -> None:
        with self.session_factory() as db:
            db.execute(delete(SummaryEntry))
            db.add_all([SummaryEntry(**r.model_dump()) for r in rows])
            db.commit()

    def list_summary(self) -> list[SummaryRow]:
        with self.session_factory() as db:
            rows = db.execute(select(SummaryEntry).order_by(SummaryEntry.row_no.asc())).scalars().all()
            return [SummaryRow.model_validate(r) for r in rows]
