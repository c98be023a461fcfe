"""Scheduled jobs: confirmation expiry and the day-before event reminder.

Neither job holds the reservation lock while writing statuses. The expiry
sweep only moves ``pending`` rows to ``expired``, which can only lower slot
counts; its summary rebuild runs under the lock.
"""

from __future__ import annotations

import logging
import math
from datetime import timedelta

from bloodbooking.schemas.booking import BookingStatus
from bloodbooking.services.booking_service import BookingService

logger = logging.getLogger(__name__)

ONE_DAY = timedelta(days=1)


def run_expiry_sweep(service: BookingService) -> dict:
    """Remind pending bookings one day before their deadline; expire overdue ones.

    Returns:
        dict: {"reminded": n, "expired": n}
    """
    settings = service.settings_provider.load()
    now = service.now()
    summary = {"reminded": 0, "expired": 0}

    for record in service.store.list_bookings():
        if record.status != BookingStatus.PENDING:
            continue
        deadline = service.deadline_for(record, settings)
        if deadline is None:
            logger.warning("Booking %s has no transition timestamp; skipped by expiry sweep", record.id)
            continue

        days_left = math.ceil((deadline - now) / ONE_DAY)
        if days_left == 1:
            service.notifier.confirmation_reminder(record, deadline, settings)
            summary["reminded"] += 1
        elif days_left < 0:
            if service.apply_transition(record, "expire") is None:
                continue
            summary["expired"] += 1
            service.notifier.expired_notice(record, settings)

    if summary["expired"]:
        service.refresh_summary(settings)

    logger.info("Expiry sweep: reminded=%d expired=%d", summary["reminded"], summary["expired"])
    return summary


def run_event_reminder(service: BookingService) -> int:
    """Email every confirmed booking on the day before the activity."""
    settings = service.settings_provider.load()
    today = service.now().astimezone(service.tz).date()
    if today != settings.activity_date - ONE_DAY:
        logger.info("Event reminder: today %s is not the day before %s", today, settings.activity_date)
        return 0

    sent = 0
    for record in service.store.list_bookings():
        if record.status != BookingStatus.CONFIRMED:
            continue
        service.notifier.event_reminder(record, settings)
        sent += 1

    logger.info("Event reminder: %d emails", sent)
    return sent
