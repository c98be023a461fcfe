from __future__ import annotations


class BookingError(Exception):
    """Base class for errors reported to callers as ``{"status": "error"}``."""

    default_message = "預約失敗"
    http_status = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class BookingValidationError(BookingError):
    default_message = "資料格式不正確"

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message)


class DuplicateContactError(BookingError):
    http_status = 409

    _labels = {"email": "電子郵件", "phone": "電話"}

    def __init__(self, fields: tuple[str, ...]):
        self.fields = fields
        label = "與".join(self._labels[f] for f in fields)
        super().__init__(f"此{label}已預約過")


class SlotFullError(BookingError):
    default_message = "此時段已額滿"
    http_status = 409


class SystemBusyError(BookingError):
    default_message = "系統繁忙，請稍後再試。"
    http_status = 503


class BookingNotFoundError(BookingError):
    default_message = "查無預約資料"
    http_status = 404
