from __future__ import annotations

import logging

from bloodbooking.core.config import get_settings
from bloodbooking.core.deps import get_booking_service
from bloodbooking.services.sweeps import run_event_reminder


def main() -> int:
    logging.basicConfig(level=get_settings().log_level.upper())
    sent = run_event_reminder(get_booking_service())
    print(f"reminded: {sent}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
