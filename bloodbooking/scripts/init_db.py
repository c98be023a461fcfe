from __future__ import annotations

import argparse
from datetime import date

from bloodbooking.db.base import Base
from bloodbooking.db.session import get_engine, get_session_factory

# Import models to register with SQLAlchemy
import bloodbooking.models  # noqa: F401
from bloodbooking.services.settings_service import get_or_create_settings


def main() -> int:
    p = argparse.ArgumentParser(description="Create tables and the activity settings row (sql backend)")
    p.add_argument("--activity-date", type=date.fromisoformat)
    p.add_argument("--start-date", type=date.fromisoformat)
    p.add_argument("--cutoff-date", type=date.fromisoformat)
    p.add_argument("--slot-start")
    p.add_argument("--slot-end")
    p.add_argument("--interval", type=int)
    p.add_argument("--max-per-slot", type=int)
    p.add_argument("--place")
    args = p.parse_args()

    Base.metadata.create_all(bind=get_engine())

    updates = {
        "activity_date": args.activity_date,
        "start_date": args.start_date,
        "booking_cutoff_date": args.cutoff_date,
        "slot_start_time": args.slot_start,
        "slot_end_time": args.slot_end,
        "slot_interval_minutes": args.interval,
        "max_per_slot": args.max_per_slot,
        "activity_place": args.place,
    }

    db = get_session_factory()()
    try:
        s = get_or_create_settings(db)
        for k, v in updates.items():
            if v is not None:
                setattr(s, k, v)
        db.commit()
    finally:
        db.close()

    print("DB initialized")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
