from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class SettingsSnapshot(BaseModel):
    """Activity settings as read at the start of one operation."""

    model_config = ConfigDict(from_attributes=True)

    activity_date: date
    start_date: date
    booking_cutoff_date: date

    # Raw "HH:MM" strings; the slot generator is fail-soft on bad values
    slot_start_time: str
    slot_end_time: str
    slot_interval_minutes: int = 30
    max_per_slot: int = Field(default=0, ge=0)

    activity_place: str = ""
    activity_map_url: str = ""
    activity_contact: str = ""

    promo_text: str = ""
    promo_image: str = ""
    promo_link: str = ""
    second_promo_image: str = ""
    second_promo_link: str = ""
