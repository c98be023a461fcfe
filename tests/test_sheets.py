from __future__ import annotations

import re
from datetime import date, datetime, timezone

import pytest

from bloodbooking.schemas.booking import BookingRecord, BookingStatus, SummaryRow
from bloodbooking.services.booking_store import BOOKING_HEADER, SheetBookingStore
from bloodbooking.services.settings_service import SheetSettingsProvider, settings_from_cells
from bloodbooking.services.sheets import parse_date, parse_timestamp, status_from_cell

from conftest import TZ


def _col_index(letters: str) -> int:
    return ord(letters) - ord("A")


class FakeWorksheet:
    """In-memory stand-in for a gspread Worksheet (only the calls we use)."""

    def __init__(self, rows=None):
        self.rows = [list(r) for r in (rows or [])]

    def get_all_values(self):
        return [list(r) for r in self.rows]

    def get(self, range_name):
        m = re.match(r"^([A-Z])(\d+):([A-Z])(\d+)$", range_name)
        col = _col_index(m.group(1))
        first, last = int(m.group(2)), int(m.group(4))
        return [[r[col]] if col < len(r) and r[col] else [] for r in self.rows[first - 1 : last]]

    def append_row(self, values, value_input_option=None):
        assert value_input_option == "RAW"
        self.rows.append(list(values))

    def col_values(self, col):
        return [r[col - 1] for r in self.rows if len(r) >= col]

    def update(self, values=None, range_name=None, value_input_option=None):
        m = re.match(r"^([A-Z])(\d+)", range_name)
        col, row = _col_index(m.group(1)), int(m.group(2))
        for i, line in enumerate(values):
            while len(self.rows) < row + i:
                self.rows.append([])
            target = self.rows[row + i - 1]
            while len(target) < col + len(line):
                target.append("")
            target[col : col + len(line)] = line

    def batch_clear(self, ranges):
        assert ranges == ["A2:G"]
        self.rows = self.rows[:1]


class FakeSpreadsheet:
    def __init__(self, sheets):
        self.sheets = sheets

    def worksheet(self, title):
        if title not in self.sheets:
            raise KeyError(title)
        return self.sheets[title]

    def add_worksheet(self, title, rows, cols):
        self.sheets[title] = FakeWorksheet()
        return self.sheets[title]


@pytest.fixture
def booking_ws():
    return FakeWorksheet(
        [
            BOOKING_HEADER,
            ["Q4-2025-aaaa0001", "王小明", "ming@example.com", "'0912345678", "9:00", "已確認", "2025/12/01 09:15", ""],
            ["Q4-2025-aaaa0002", "李小華", "hua@example.com", "02-12345678", "09:30", "待確認", "2025-12-02T10:00:00+08:00", "late"],
            ["", "", "", "", "", "", "", ""],
            ["Q4-2025-aaaa0003", "陳大文", "man@example.com", "0987654321", "09:30", "???", "", ""],
        ]
    )


@pytest.fixture
def sheet_store(booking_ws):
    spreadsheet = FakeSpreadsheet({"BookingData": booking_ws})
    return SheetBookingStore(spreadsheet, booking_worksheet="BookingData", summary_worksheet="BookingSummary", tz=TZ)


def test_status_cells_accept_labels_and_enum_values():
    assert status_from_cell("回覆逾期") == BookingStatus.EXPIRED
    assert status_from_cell(" confirmed ") == BookingStatus.CONFIRMED
    assert status_from_cell("whatever") is None


def test_parse_timestamp_formats():
    assert parse_timestamp("2026/03/01 09:05", TZ) == datetime(2026, 3, 1, 9, 5, tzinfo=TZ)
    assert parse_timestamp("2026/03/01 09:05:30", TZ) == datetime(2026, 3, 1, 9, 5, 30, tzinfo=TZ)
    assert parse_timestamp("2026-03-01T01:05:00Z", TZ) == datetime(2026, 3, 1, 1, 5, tzinfo=timezone.utc)
    assert parse_timestamp("", TZ) is None
    assert parse_timestamp("yesterday", TZ) is None


def test_parse_date_formats():
    assert parse_date("2026/03/10") == date(2026, 3, 10)
    assert parse_date("2026-03-10") == date(2026, 3, 10)
    assert parse_date("") is None


def test_list_bookings_parses_rows(sheet_store):
    rows = sheet_store.list_bookings()

    assert [r.id for r in rows] == ["Q4-2025-aaaa0001", "Q4-2025-aaaa0002"]
    assert rows[0].phone == "0912345678"
    assert rows[0].status == BookingStatus.CONFIRMED
    assert rows[0].last_transition_at == datetime(2025, 12, 1, 9, 15, tzinfo=TZ)
    assert rows[1].note == "late"


def test_append_booking_writes_canonical_cells(sheet_store, booking_ws):
    sheet_store.append_booking(
        BookingRecord(
            id="Q1-2026-0000abcd",
            name="林",
            email="lin@example.com",
            phone="0911222333",
            timeslot="09:00",
            status=BookingStatus.PENDING,
            last_transition_at=datetime(2026, 3, 1, 2, 30, tzinfo=timezone.utc),
        )
    )

    assert booking_ws.rows[-1] == [
        "Q1-2026-0000abcd", "林", "lin@example.com", "0911222333", "09:00", "待確認", "2026/03/01 10:30", "",
    ]


def test_update_status_by_id(sheet_store, booking_ws):
    at = datetime(2026, 3, 2, 8, 0, tzinfo=TZ)

    assert sheet_store.update_status("Q4-2025-aaaa0002", BookingStatus.CANCELLED, at) is True
    assert booking_ws.rows[2][5:7] == ["已取消", "2026/03/02 08:00"]
    assert sheet_store.update_status("missing", BookingStatus.CANCELLED, at) is False


def test_replace_summary_creates_and_rewrites_sheet(sheet_store):
    sheet_store.replace_summary([SummaryRow(slot="09:00", booking_id="X", name="A"), SummaryRow(slot="09:30")])
    sheet_store.replace_summary([SummaryRow(slot="10:00")])

    summary = sheet_store.spreadsheet.worksheet("BookingSummary")
    assert summary.rows[0] == ["slot", "id", "name", "email", "phone", "status", "note"]
    assert summary.rows[1:] == [["10:00", "", "", "", "", "", ""]]


def test_settings_from_cells():
    snapshot = settings_from_cells(
        {
            "C2": "2026/03/10",
            "C3": "2026/02/01",
            "C4": "2026-03-08",
            "C6": "9:00:00",
            "C7": "12:00",
            "C8": "",
            "C9": "4",
            "C10": "市民廣場",
            "C14": "https://facebook.com/example",
        }
    )

    assert snapshot.activity_date == date(2026, 3, 10)
    assert snapshot.booking_cutoff_date == date(2026, 3, 8)
    assert snapshot.slot_start_time == "09:00"
    assert snapshot.slot_interval_minutes == 30
    assert snapshot.max_per_slot == 4
    assert snapshot.activity_contact == "https://facebook.com/example"
    assert snapshot.promo_link == ""


def test_settings_require_dates():
    with pytest.raises(ValueError):
        settings_from_cells({"C2": "soon", "C3": "2026/02/01", "C4": "2026/03/08"})


def test_sheet_settings_provider_reads_column_c():
    rows = [["", "", ""] for _ in range(18)]
    for addr, value in {2: "2026/03/10", 3: "2026/02/01", 4: "2026/03/08", 6: "08:30", 7: "11:30", 8: "45", 9: "3"}.items():
        rows[addr - 1][2] = value
    provider = SheetSettingsProvider(FakeSpreadsheet({"設定": FakeWorksheet(rows)}), "設定")

    snapshot = provider.load()

    assert snapshot.slot_start_time == "08:30"
    assert snapshot.slot_interval_minutes == 45
    assert snapshot.max_per_slot == 3
