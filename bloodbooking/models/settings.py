from __future__ import annotations

from datetime import date

from sqlalchemy import Date, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from bloodbooking.db.base import Base


class ActivitySettings(Base):
    __tablename__ = "activity_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)

    # Calendar
    activity_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    start_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)
    booking_cutoff_date: Mapped[date] = mapped_column(Date, nullable=False, default=date.today)

    # Slot geometry (local "HH:MM")
    slot_start_time: Mapped[str] = mapped_column(String(5), nullable=False, default="09:00")
    slot_end_time: Mapped[str] = mapped_column(String(5), nullable=False, default="17:00")
    slot_interval_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    max_per_slot: Mapped[int] = mapped_column(Integer, nullable=False, default=5)

    # Venue / contact
    activity_place: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    activity_map_url: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    activity_contact: Mapped[str] = mapped_column(String(2000), nullable=False, default="")

    # Promotion
    promo_text: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    promo_image: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    promo_link: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    second_promo_image: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
    second_promo_link: Mapped[str] = mapped_column(String(2000), nullable=False, default="")
