from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo

import pytest

from bloodbooking.db.base import Base
from bloodbooking.db.session import make_engine, make_session_factory
import bloodbooking.models  # noqa: F401
from bloodbooking.schemas.settings import SettingsSnapshot
from bloodbooking.services.booking_service import BookingService
from bloodbooking.services.booking_store import SqlBookingStore
from bloodbooking.services.notifications import Notifier
from bloodbooking.services.settings_service import SettingsProvider

TZ = ZoneInfo("Asia/Taipei")


class FixedSettings(SettingsProvider):
    def __init__(self, snapshot: SettingsSnapshot):
        self.snapshot = snapshot

    def load(self) -> SettingsSnapshot:
        return self.snapshot

    def update(self, **changes) -> None:
        self.snapshot = self.snapshot.model_copy(update=changes)


class RecordingSender:
    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    def __call__(self, to_email, subject, body, html_body=None):
        if self.fail:
            raise OSError("smtp down")
        self.sent.append({"to": to_email, "subject": subject, "body": body, "html": html_body})

    def to(self, email: str) -> list[dict]:
        return [m for m in self.sent if m["to"] == email]


class Clock:
    def __init__(self, now: datetime):
        self.current = now

    def __call__(self) -> datetime:
        return self.current


@pytest.fixture
def settings_provider():
    return FixedSettings(
        SettingsSnapshot(
            activity_date=date(2026, 3, 10),
            start_date=date(2026, 2, 1),
            booking_cutoff_date=date(2026, 3, 8),
            slot_start_time="09:00",
            slot_end_time="10:00",
            slot_interval_minutes=30,
            max_per_slot=1,
            activity_place="市民廣場",
            activity_map_url="https://maps.app.goo.gl/abc",
            activity_contact="https://facebook.com/example",
        )
    )


@pytest.fixture
def store(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'bookings.db'}")
    Base.metadata.create_all(bind=engine)
    yield SqlBookingStore(make_session_factory(engine))
    engine.dispose()


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def clock():
    return Clock(datetime(2026, 3, 1, 10, 0, tzinfo=TZ))


@pytest.fixture
def service(store, settings_provider, sender, clock):
    return BookingService(
        store,
        settings_provider,
        Notifier(sender, "https://booking.example.org"),
        tz=TZ,
        lock_timeout=5.0,
        clock=clock,
    )
