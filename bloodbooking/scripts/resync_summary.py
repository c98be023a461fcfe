from __future__ import annotations

from bloodbooking.core.deps import get_booking_store, get_settings_provider
from bloodbooking.services.summary_service import resync_summary


def main() -> int:
    n = resync_summary(get_booking_store(), get_settings_provider().load())
    print(f"summary_rows={n}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
