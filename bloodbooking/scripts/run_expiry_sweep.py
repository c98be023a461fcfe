from __future__ import annotations

import logging

from bloodbooking.core.config import get_settings
from bloodbooking.core.deps import get_booking_service
from bloodbooking.services.sweeps import run_expiry_sweep


def main() -> int:
    logging.basicConfig(level=get_settings().log_level.upper())
    service = get_booking_service()

    result = run_expiry_sweep(service)
    if not result["reminded"] and not result["expired"]:
        print("no_targets")
        return 0

    print(f"reminded: {result['reminded']} expired: {result['expired']}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
