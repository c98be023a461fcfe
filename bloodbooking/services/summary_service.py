from __future__ import annotations

import logging

from bloodbooking.schemas.booking import BookingRecord, SummaryRow
from bloodbooking.schemas.settings import SettingsSnapshot
from bloodbooking.services.booking_store import BookingStore
from bloodbooking.services.sheets import status_to_cell
from bloodbooking.services.timeslots import generate_time_slots, normalize_time

logger = logging.getLogger(__name__)


def build_summary_rows(slots: list[str], bookings: list[BookingRecord], max_per_slot: int) -> list[SummaryRow]:
    """Roster with exactly ``max_per_slot`` rows per slot.

    Seats are filled with active bookings in store order; the rest are blank.
    """
    seated: dict[str, list[BookingRecord]] = {slot: [] for slot in slots}
    for b in bookings:
        seats = seated.get(normalize_time(b.timeslot))
        if seats is not None and b.is_active and len(seats) < max_per_slot:
            seats.append(b)

    rows: list[SummaryRow] = []
    for slot in slots:
        taken = seated[slot]
        for i in range(max_per_slot):
            if i < len(taken):
                b = taken[i]
                rows.append(
                    SummaryRow(
                        slot=slot,
                        booking_id=b.id,
                        name=b.name,
                        email=b.email,
                        phone=b.phone,
                        status=status_to_cell(b.status),
                        note=b.note,
                    )
                )
            else:
                rows.append(SummaryRow(slot=slot))
    return rows


def resync_summary(store: BookingStore, settings: SettingsSnapshot) -> int:
    """Rebuild the whole summary projection from the booking rows."""
    slots = generate_time_slots(settings.slot_start_time, settings.slot_end_time, settings.slot_interval_minutes)
    rows = build_summary_rows(slots, store.list_bookings(), settings.max_per_slot)
    store.replace_summary(rows)
    logger.debug("Summary rebuilt: %d rows for %d slots", len(rows), len(slots))
    return len(rows)
