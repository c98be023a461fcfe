from __future__ import annotations

import html
import logging
import re
from datetime import datetime
from typing import Callable
from urllib.parse import quote

from bloodbooking.schemas.booking import BookingRecord
from bloodbooking.schemas.settings import SettingsSnapshot

logger = logging.getLogger(__name__)

SendFn = Callable[..., None]


def to_clickable_map_url(raw_url: str, place_name: str) -> str:
    """A map link that opens in a mail client.

    Embed codes, direction links and Drive-hosted URLs do not open in mail
    clients, so those fall back to a Google Maps search for the place.
    """
    raw_url = (raw_url or "").strip()
    unusable = (
        not raw_url
        or "/embed" in raw_url
        or "/dir" in raw_url
        or "googleusercontent.com" in raw_url
        or not re.match(r"^https?://", raw_url, re.IGNORECASE)
    )
    if unusable:
        if place_name:
            return f"https://www.google.com/maps/search/?api=1&query={quote(place_name)}"
        return ""
    return raw_url


def _html_to_text(markup: str) -> str:
    text = re.sub(r"<br\s*/?>|</p>|</li>", "\n", markup)
    text = re.sub(r"<[^>]+>", "", text)
    lines = [html.unescape(line).strip() for line in text.splitlines()]
    return "\n".join(line for line in lines if line)


class Notifier:
    """Templated emails for each booking lifecycle transition.

    Delivery failures are logged and reported as False; they never propagate
    into the booking operation that triggered them.
    """

    def __init__(self, send: SendFn, frontend_base_url: str):
        self.send = send
        self.frontend_base_url = frontend_base_url.rstrip("/")

    def confirm_url(self, booking_id: str) -> str:
        return f"{self.frontend_base_url}/confirm?token={quote(booking_id)}"

    def cancel_url(self, booking_id: str) -> str:
        return f"{self.frontend_base_url}/cancel?token={quote(booking_id)}"

    def _contact_line(self, settings: SettingsSnapshot) -> str:
        contact = html.escape(settings.activity_contact, quote=True)
        return f'<p>聯絡資訊：請私訊<a href="{contact}">活動粉絲專頁</a></p>'

    def _deliver(self, to_email: str, subject: str, html_body: str) -> bool:
        try:
            self.send(to_email, subject, _html_to_text(html_body), html_body=html_body)
        except Exception:
            logger.exception("Failed to send %r to %s", subject, to_email)
            return False
        logger.info("Sent %r to %s", subject, to_email)
        return True

    def booking_received(self, record: BookingRecord, settings: SettingsSnapshot) -> bool:
        name = html.escape(record.name)
        place = html.escape(settings.activity_place)
        map_link = html.escape(to_clickable_map_url(settings.activity_map_url, settings.activity_place), quote=True)
        body = (
            f"<p>親愛的 {name}，</p>"
            f"<p>感謝您使用本系統預約於 {settings.activity_date:%Y/%m/%d} 舉辦的捐血活動</p>"
            f'<p>本次捐血地點為： <a href="{map_link}">{place}</a></p>'
            f"<p>您已申請預約 {record.timeslot} 捐血時段，請點選下方連結完成確認：</p>"
            f'<p><a href="{self.confirm_url(record.id)}">👉 點我完成預約確認</a></p>'
            f'<p>若您希望取消此次預約，可點選：<a href="{self.cancel_url(record.id)}">取消預約</a></p>'
            f"<p>請您於預約時間<strong>10分鐘</strong>前至捐血地點完成報到</p>"
            f"<p>預約將為您保留<strong>15分鐘</strong>，若超時則將取消預約資料並需改為現場抽號碼牌</p>"
            f"<p>感謝配合，並誠摯謝謝您的熱心捐血！</p>"
            + self._contact_line(settings)
        )
        return self._deliver(record.email, "🩸 捐血預約確認通知", body)

    def confirmation_reminder(self, record: BookingRecord, deadline: datetime, settings: SettingsSnapshot) -> bool:
        body = (
            f"<p>親愛的 {html.escape(record.name)}，</p>"
            f"<p>請盡速完成您於 <strong>{record.timeslot}</strong> 的捐血預約確認，"
            f"確認截止日為 <strong>{deadline:%Y/%m/%d}</strong>：</p>"
            f'<p><a href="{self.confirm_url(record.id)}">✅ 點我完成預約確認</a></p>'
            f'<p>若您已不克前來，可忽略此信，或點此<a href="{self.cancel_url(record.id)}">取消預約</a>。</p>'
            + self._contact_line(settings)
        )
        return self._deliver(record.email, "🔔 捐血預約確認提醒", body)

    def expired_notice(self, record: BookingRecord, settings: SettingsSnapshot) -> bool:
        body = (
            f"<p>親愛的 {html.escape(record.name)}，</p>"
            f"<p>由於您未於期限內完成捐血活動的預約確認，您預約的 <strong>{record.timeslot}</strong> 時段已被系統自動取消。</p>"
            f'<p>若仍想參與，可<a href="{self.frontend_base_url}">重新預約</a>尚有空位的時段。感謝您的支持！</p>'
            + self._contact_line(settings)
        )
        return self._deliver(record.email, "❌ 預約已取消（逾期未確認）", body)

    def event_reminder(self, record: BookingRecord, settings: SettingsSnapshot) -> bool:
        place = html.escape(settings.activity_place)
        map_link = html.escape(to_clickable_map_url(settings.activity_map_url, settings.activity_place), quote=True)
        body = (
            f"<p>親愛的 {html.escape(record.name)}，</p>"
            f"<p>感謝您預約參加我們的捐血活動！以下為明日活動資訊，請準時前往：</p>"
            f"<ul>"
            f"<li><strong>預約時段：</strong> {record.timeslot}</li>"
            f'<li><strong>活動地點：</strong> <a href="{map_link}">{place}</a></li>'
            f"</ul>"
            f"<p>若您無法前來，請儘早告知以便釋出名額。</p>"
            f"<p>謝謝您支持捐血活動，期待與您見面！</p>"
            + self._contact_line(settings)
        )
        return self._deliver(record.email, "📢 捐血提醒通知（明日活動）", body)
