from __future__ import annotations

import time
from datetime import datetime, timezone


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def format_duration_minutes(total_minutes: int) -> str:
    """Render minutes as "H hours and M minutes", "H hours" or "M minutes"."""
    total = max(0, int(total_minutes))
    hours, minutes = divmod(total, 60)
    if hours > 0 and minutes > 0:
        return f"{hours} hours and {minutes} minutes"
    if hours > 0:
        return f"{hours} hours"
    return f"{minutes} minutes"
