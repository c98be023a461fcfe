from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ActivityInfo(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    date: str  # YYYY/MM/DD
    booking_cutoff_date: str
    start_date: str
    place: str
    place_map_url: str
    contact: str
    promo_text: str
    promo_image: str
    promo_link: str
    second_promo_image: str
    second_promo_link: str


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: str = "success"
    # slot label -> remaining seats, in slot order
    data: dict[str, int]
    booking_closed: bool
    not_yet_open: bool
    activity_info: ActivityInfo
