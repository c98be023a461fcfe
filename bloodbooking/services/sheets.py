from __future__ import annotations

import logging
from datetime import date, datetime
from functools import lru_cache
from zoneinfo import ZoneInfo

from bloodbooking.schemas.booking import BookingStatus

logger = logging.getLogger(__name__)

# Canonical timestamp written to the booking sheet (local time)
TIMESTAMP_FORMAT = "%Y/%m/%d %H:%M"
_LEGACY_TIMESTAMP_FORMATS = ("%Y/%m/%d %H:%M:%S", "%Y-%m-%d %H:%M", "%Y-%m-%d %H:%M:%S")
_DATE_FORMATS = ("%Y/%m/%d", "%Y-%m-%d", "%Y/%m/%d %H:%M:%S", "%Y-%m-%d %H:%M:%S")

# Status cells keep the labels the volunteers already use in the sheet
STATUS_LABELS = {
    BookingStatus.PENDING: "待確認",
    BookingStatus.CONFIRMED: "已確認",
    BookingStatus.CANCELLED: "已取消",
    BookingStatus.EXPIRED: "回覆逾期",
    BookingStatus.REJECTED: "已拒絕",
}
_LABEL_TO_STATUS = {label: status for status, label in STATUS_LABELS.items()}


def _get_gspread_client(service_account_json_path: str):
    import gspread
    from google.oauth2.service_account import Credentials

    scopes = ["https://www.googleapis.com/auth/spreadsheets"]
    creds = Credentials.from_service_account_file(service_account_json_path, scopes=scopes)
    return gspread.authorize(creds)


@lru_cache
def open_spreadsheet(service_account_json_path: str, spreadsheet_id: str):
    client = _get_gspread_client(service_account_json_path)
    return client.open_by_key(spreadsheet_id)


def status_to_cell(status: BookingStatus) -> str:
    return STATUS_LABELS[status]


def status_from_cell(value: str) -> BookingStatus | None:
    text = (value or "").strip()
    if text in _LABEL_TO_STATUS:
        return _LABEL_TO_STATUS[text]
    try:
        return BookingStatus(text.lower())
    except ValueError:
        return None


def format_timestamp(value: datetime, tz: ZoneInfo) -> str:
    return value.astimezone(tz).strftime(TIMESTAMP_FORMAT)


def parse_timestamp(value: str, tz: ZoneInfo) -> datetime | None:
    """Parse a timestamp cell into an aware datetime.

    Naive values are local time in ``tz``. ISO-8601 strings carrying an
    offset keep it. Older rows written with seconds or dashes are accepted.
    """
    text = (value or "").strip()
    if not text:
        return None
    for fmt in (TIMESTAMP_FORMAT,) + _LEGACY_TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(text, fmt).replace(tzinfo=tz)
        except ValueError:
            continue
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Unparseable timestamp cell %r", text)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def parse_date(value: str) -> date | None:
    text = (value or "").strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None
