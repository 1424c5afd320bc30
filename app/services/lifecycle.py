from datetime import date, datetime, timezone
from typing import Optional

from app.services.taxonomy import StatusLike, is_active_like


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def membership_expiry(now: datetime) -> date:
    """End of the academic year: August 31, next year from September on."""
    year = now.year + 1 if now.month >= 9 else now.year
    return date(year, 8, 31)


def enters_active_like(old_status: StatusLike, new_status: StatusLike) -> bool:
    return is_active_like(new_status) and not is_active_like(old_status)


def approval_stamp(old_status: StatusLike, new_status: StatusLike, now: Optional[datetime] = None) -> dict:
    """Column values to set when a member becomes active-like, else {}."""
    if not enters_active_like(old_status, new_status):
        return {}
    now = now or utcnow()
    return {"approved_at": now, "expires_at": membership_expiry(now)}
