from __future__ import annotations

import threading
from zoneinfo import ZoneInfo

from bloodbooking.core.config import get_settings
from bloodbooking.db.session import get_session_factory
from bloodbooking.services.booking_service import BookingService
from bloodbooking.services.booking_store import BookingStore, SheetBookingStore, SqlBookingStore
from bloodbooking.services.mailer import send_email
from bloodbooking.services.notifications import Notifier
from bloodbooking.services.settings_service import SettingsProvider, SheetSettingsProvider, SqlSettingsProvider
from bloodbooking.services.sheets import open_spreadsheet


def _spreadsheet():
    settings = get_settings()
    return open_spreadsheet(settings.google_service_account_json, settings.spreadsheet_id)


_store: BookingStore | None = None
_store_lock = threading.Lock()


def get_booking_store() -> BookingStore:
    """Process-wide store; its mutex guards reservation creation.

    Built once under ``_store_lock`` so concurrent first requests share it.
    """
    global _store
    if _store is None:
        with _store_lock:
            if _store is None:
                _store = _build_booking_store()
    return _store


def _build_booking_store() -> BookingStore:
    settings = get_settings()
    backend = settings.storage_backend.lower()
    if backend == "sheets":
        return SheetBookingStore(
            _spreadsheet(),
            booking_worksheet=settings.booking_worksheet,
            summary_worksheet=settings.summary_worksheet,
            tz=ZoneInfo(settings.timezone),
        )
    if backend == "sql":
        return SqlBookingStore(get_session_factory())
    raise ValueError(f"Unknown storage_backend: {settings.storage_backend}")


def get_settings_provider() -> SettingsProvider:
    settings = get_settings()
    if settings.storage_backend.lower() == "sql":
        return SqlSettingsProvider(get_session_factory())
    return SheetSettingsProvider(_spreadsheet(), settings.settings_worksheet)


def get_booking_service() -> BookingService:
    settings = get_settings()
    return BookingService(
        get_booking_store(),
        get_settings_provider(),
        Notifier(send_email, settings.frontend_base_url),
        tz=ZoneInfo(settings.timezone),
        lock_timeout=settings.lock_timeout_seconds,
        confirm_window_days=settings.confirm_window_days,
    )
