from __future__ import annotations

import logging
import re
import uuid
from datetime import date, datetime, time, timedelta
from typing import Callable
from zoneinfo import ZoneInfo

from bloodbooking.core.errors import (
    BookingNotFoundError,
    BookingValidationError,
    DuplicateContactError,
    SlotFullError,
    SystemBusyError,
)
from bloodbooking.schemas.availability import ActivityInfo, AvailabilityResponse
from bloodbooking.schemas.booking import (
    ACTIVE_STATUSES,
    BookingRecord,
    BookingStatus,
    BookingSummaryOut,
    TransitionResult,
)
from bloodbooking.schemas.settings import SettingsSnapshot
from bloodbooking.services.booking_store import BookingStore, acquire_store_lock
from bloodbooking.services.notifications import Notifier
from bloodbooking.services.settings_service import SettingsProvider
from bloodbooking.services.summary_service import resync_summary
from bloodbooking.services.timeslots import generate_time_slots, normalize_time

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MOBILE_RE = re.compile(r"^09[0-9]{8}$")
LANDLINE_RE = re.compile(r"^(0(?:2|3|4|5|6|7|8|82|836|89))-?[0-9]{6,8}$")

# (action, current status) -> new status. Anything else is not applied.
TRANSITIONS = {
    ("confirm", BookingStatus.PENDING): BookingStatus.CONFIRMED,
    ("cancel", BookingStatus.PENDING): BookingStatus.CANCELLED,
    ("cancel", BookingStatus.CONFIRMED): BookingStatus.CANCELLED,
    ("expire", BookingStatus.PENDING): BookingStatus.EXPIRED,
}
USER_ACTIONS = ("confirm", "cancel")

_SUCCESS_MESSAGES = {
    "confirm": "預約確認成功",
    "cancel": "預約已取消",
}


def normalize_phone(phone: str) -> str:
    # Keep ASCII digits only
    return re.sub(r"[^0-9]", "", phone)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_booking_id(now: datetime) -> str:
    # Example: Q4-2026-3f9a1c2e
    quarter = (now.month + 2) // 3
    return f"Q{quarter}-{now.year}-{uuid.uuid4().hex[:8]}"


def local_midnight(d: date, tz: ZoneInfo) -> datetime:
    return datetime.combine(d, time.min).replace(tzinfo=tz)


def compute_deadline(created_at: datetime, cutoff_date: date, tz: ZoneInfo, window_days: int = 7) -> datetime:
    """Earlier of (created_at + window) and the start of the cutoff date."""
    return min(created_at + timedelta(days=window_days), local_midnight(cutoff_date, tz))


def validate_contact(name: str, email: str, phone: str, timeslot: str) -> None:
    for field, value in (("name", name), ("email", email), ("phone", phone), ("timeslot", timeslot)):
        if not (value or "").strip():
            raise BookingValidationError(field, "缺少必要欄位")
    if not EMAIL_RE.match(email.strip()):
        raise BookingValidationError("email", "Email 格式不正確，請重新輸入")
    phone = phone.strip()
    if not MOBILE_RE.match(phone) and not LANDLINE_RE.match(phone):
        raise BookingValidationError("phone", "電話格式不正確")


class BookingService:
    """Booking lifecycle: reserve, confirm/cancel/expire, availability.

    Settings are loaded from ``settings_provider`` on every call. Only
    ``reserve`` takes the store mutex; transitions are single-row updates and
    the last writer wins.
    """

    def __init__(
        self,
        store: BookingStore,
        settings_provider: SettingsProvider,
        notifier: Notifier,
        *,
        tz: ZoneInfo,
        lock_timeout: float = 10.0,
        confirm_window_days: int = 7,
        clock: Callable[[], datetime] | None = None,
    ):
        self.store = store
        self.settings_provider = settings_provider
        self.notifier = notifier
        self.tz = tz
        self.lock_timeout = lock_timeout
        self.confirm_window_days = confirm_window_days
        self.clock = clock or (lambda: datetime.now(tz=self.tz))

    def now(self) -> datetime:
        return self.clock()

    def time_slots(self, settings: SettingsSnapshot) -> list[str]:
        return generate_time_slots(settings.slot_start_time, settings.slot_end_time, settings.slot_interval_minutes)

    def deadline_for(self, record: BookingRecord, settings: SettingsSnapshot) -> datetime | None:
        if record.last_transition_at is None:
            return None
        return compute_deadline(record.last_transition_at, settings.booking_cutoff_date, self.tz, self.confirm_window_days)

    # -- reservation -------------------------------------------------------

    def reserve(self, *, name: str, email: str, phone: str, timeslot: str, note: str = "") -> BookingRecord:
        validate_contact(name, email, phone, timeslot)

        settings = self.settings_provider.load()
        timeslot = timeslot.strip()
        if timeslot not in self.time_slots(settings):
            raise BookingValidationError("timeslot", "時段無效，請重新選擇")

        email_norm = normalize_email(email)
        phone_clean = phone.strip()
        phone_norm = normalize_phone(phone_clean)

        with acquire_store_lock(self.store.mutex, self.lock_timeout):
            # Re-read under the lock; nothing read before this point is trusted
            settings = self.settings_provider.load()
            rows = self.store.list_bookings()

            collided = []
            if any(normalize_email(r.email) == email_norm and r.is_active for r in rows):
                collided.append("email")
            if any(normalize_phone(r.phone) == phone_norm and r.is_active for r in rows):
                collided.append("phone")
            if collided:
                logger.warning("Reservation rejected: duplicate %s", "+".join(collided))
                raise DuplicateContactError(tuple(collided))

            taken = sum(1 for r in rows if normalize_time(r.timeslot) == timeslot and r.status in ACTIVE_STATUSES)
            if taken >= settings.max_per_slot:
                logger.warning("Reservation rejected: slot %s full (%d/%d)", timeslot, taken, settings.max_per_slot)
                raise SlotFullError()

            now = self.now()
            existing_ids = {r.id for r in rows}
            booking_id = generate_booking_id(now)
            # Avoid collisions
            for _ in range(5):
                if booking_id not in existing_ids:
                    break
                booking_id = generate_booking_id(now)

            record = BookingRecord(
                id=booking_id,
                name=name.strip(),
                email=email_norm,
                phone=phone_clean,
                timeslot=timeslot,
                status=BookingStatus.PENDING,
                last_transition_at=now,
                note=(note or "").strip(),
            )
            self.store.append_booking(record)
            resync_summary(self.store, settings)

        logger.info("Booking %s admitted for slot %s", record.id, record.timeslot)
        self.notifier.booking_received(record, settings)
        return record

    # -- transitions -------------------------------------------------------

    def apply_transition(self, record: BookingRecord, action: str) -> BookingStatus | None:
        """Write the status change for ``action`` if the table allows it.

        Returns the new status, or None when the pair is not a transition.
        Does not resync the summary.
        """
        target = TRANSITIONS.get((action, record.status))
        if target is None:
            return None
        if not self.store.update_status(record.id, target, self.now()):
            raise BookingNotFoundError()
        logger.info("Booking %s: %s -> %s", record.id, record.status.value, target.value)
        return target

    def transition(self, booking_id: str, action: str) -> TransitionResult:
        if action not in USER_ACTIONS:
            raise ValueError(f"Unknown action: {action}")

        record = self.store.get_booking(booking_id) if booking_id else None
        if record is None:
            raise BookingNotFoundError()

        if self.apply_transition(record, action) is None:
            if action == "confirm" and record.status == BookingStatus.CANCELLED:
                return TransitionResult(status="canceled", message="預約已取消")
            return TransitionResult(status="info", message="狀態不需操作")

        self.refresh_summary()
        return TransitionResult(status="success", message=_SUCCESS_MESSAGES[action])

    def refresh_summary(self, settings: SettingsSnapshot | None = None) -> None:
        """Rebuild the summary under the store mutex.

        Runs after a status write that has already landed, so a busy lock only
        skips the rebuild; the next reservation or transition redoes it.
        """
        try:
            with acquire_store_lock(self.store.mutex, self.lock_timeout):
                resync_summary(self.store, settings or self.settings_provider.load())
        except SystemBusyError:
            logger.warning("Summary resync skipped: store lock busy")

    def confirm(self, booking_id: str) -> TransitionResult:
        return self.transition(booking_id, "confirm")

    def cancel(self, booking_id: str) -> TransitionResult:
        return self.transition(booking_id, "cancel")

    # -- queries -----------------------------------------------------------

    def compute_deadline(self, booking_id: str) -> datetime | None:
        record = self.store.get_booking(booking_id)
        if record is None:
            raise BookingNotFoundError()
        return self.deadline_for(record, self.settings_provider.load())

    def get_summary(self, booking_id: str) -> BookingSummaryOut:
        record = self.store.get_booking(booking_id) if booking_id else None
        if record is None:
            raise BookingNotFoundError()
        settings = self.settings_provider.load()
        return BookingSummaryOut(
            booking_id=record.id,
            name=record.name,
            email=record.email,
            phone=record.phone,
            timeslot=record.timeslot,
            status=record.status,
            deadline=self.deadline_for(record, settings),
        )

    def compute_availability(self) -> AvailabilityResponse:
        settings = self.settings_provider.load()
        slots = self.time_slots(settings)
        remaining = {slot: settings.max_per_slot for slot in slots}

        for r in self.store.list_bookings():
            slot = normalize_time(r.timeslot)
            if slot in remaining and r.status in ACTIVE_STATUSES:
                remaining[slot] = max(0, remaining[slot] - 1)

        now = self.now()
        return AvailabilityResponse(
            data=remaining,
            booking_closed=now >= local_midnight(settings.booking_cutoff_date, self.tz),
            not_yet_open=now < local_midnight(settings.start_date, self.tz),
            activity_info=ActivityInfo(
                date=f"{settings.activity_date:%Y/%m/%d}",
                booking_cutoff_date=f"{settings.booking_cutoff_date:%Y/%m/%d}",
                start_date=f"{settings.start_date:%Y/%m/%d}",
                place=settings.activity_place,
                place_map_url=settings.activity_map_url,
                contact=settings.activity_contact,
                promo_text=settings.promo_text,
                promo_image=settings.promo_image,
                promo_link=settings.promo_link,
                second_promo_image=settings.second_promo_image,
                second_promo_link=settings.second_promo_link,
            ),
        )
