from __future__ import annotations

import abc

from sqlalchemy.orm import Session, sessionmaker

from bloodbooking.models.settings import ActivitySettings
from bloodbooking.schemas.settings import SettingsSnapshot
from bloodbooking.services.sheets import parse_date
from bloodbooking.services.timeslots import normalize_time

# Cell layout of the settings worksheet
SETTINGS_CELLS = {
    "activity_date": "C2",
    "start_date": "C3",
    "booking_cutoff_date": "C4",
    "slot_start_time": "C6",
    "slot_end_time": "C7",
    "slot_interval_minutes": "C8",
    "max_per_slot": "C9",
    "activity_place": "C10",
    "activity_map_url": "C11",
    "promo_text": "C12",
    "activity_contact": "C14",
    "promo_image": "C15",
    "promo_link": "C16",
    "second_promo_image": "C17",
    "second_promo_link": "C18",
}
_DATE_FIELDS = ("activity_date", "start_date", "booking_cutoff_date")


class SettingsProvider(abc.ABC):
    """Source of activity settings. ``load`` is called once per operation."""

    @abc.abstractmethod
    def load(self) -> SettingsSnapshot:
        ...


def _to_int(value: str, default: int) -> int:
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return default


def settings_from_cells(cells: dict[str, str]) -> SettingsSnapshot:
    """Build a snapshot from the C-column cells, keyed by cell address."""
    data = {field: str(cells.get(addr, "") or "").strip() for field, addr in SETTINGS_CELLS.items()}

    for field in _DATE_FIELDS:
        parsed = parse_date(data[field])
        if parsed is None:
            raise ValueError(f"Settings cell {SETTINGS_CELLS[field]} ({field}) is not a date: {data[field]!r}")
        data[field] = parsed

    data["slot_start_time"] = normalize_time(data["slot_start_time"])
    data["slot_end_time"] = normalize_time(data["slot_end_time"])
    # Blank interval falls back to 30 minutes
    data["slot_interval_minutes"] = _to_int(data["slot_interval_minutes"], 30) if data["slot_interval_minutes"] else 30
    data["max_per_slot"] = max(0, _to_int(data["max_per_slot"], 0))

    return SettingsSnapshot(**data)


class SheetSettingsProvider(SettingsProvider):
    def __init__(self, spreadsheet, worksheet: str):
        self.spreadsheet = spreadsheet
        self.worksheet = worksheet

    def load(self) -> SettingsSnapshot:
        ws = self.spreadsheet.worksheet(self.worksheet)
        column = ws.get("C1:C18")
        cells = {}
        for i, row in enumerate(column, start=1):
            cells[f"C{i}"] = row[0] if row else ""
        return settings_from_cells(cells)


def get_or_create_settings(db: Session) -> ActivitySettings:
    s = db.get(ActivitySettings, 1)
    if s is None:
        s = ActivitySettings(id=1)
        db.add(s)
        db.commit()
        db.refresh(s)
    return s


class SqlSettingsProvider(SettingsProvider):
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def load(self) -> SettingsSnapshot:
        with self.session_factory() as db:
            return SettingsSnapshot.model_validate(get_or_create_settings(db))
