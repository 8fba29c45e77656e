"""
Rule lifecycle over time.

    scheduled -> active -> expired

`inactive` is set by hand and no time-based transition touches it.
Everything here is a pure function of a rule's window and `now`.
"""
from datetime import datetime, timezone
from typing import Optional

from dynamic_pricing.db.models import RuleStatus, utc_now


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # stored windows are naive, aware inputs are converted to UTC first
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _window(rule) -> tuple[Optional[datetime], Optional[datetime]]:
    return as_naive_utc(rule.schedule_from), as_naive_utc(rule.schedule_to)


def is_scheduled_active(rule, now: datetime) -> bool:
    """True when `now` falls inside the rule's window. Status is not consulted."""
    now = as_naive_utc(now)
    start, end = _window(rule)

    if start is None and end is None:
        return True
    if start is not None and now < start:
        return False
    if end is not None and now > end:
        return False
    return True


def time_until_start(rule, now: datetime) -> Optional[float]:
    """Seconds until the window opens, None when unbounded or already open."""
    now = as_naive_utc(now)
    start, _ = _window(rule)

    if start is None or start <= now:
        return None
    return (start - now).total_seconds()


def time_until_end(rule, now: datetime) -> Optional[float]:
    """Seconds until the window closes, 0 once closed, None when unbounded."""
    now = as_naive_utc(now)
    _, end = _window(rule)

    if end is None:
        return None
    if end <= now:
        return 0
    return (end - now).total_seconds()


def should_activate(rule, now: datetime) -> bool:
    now = as_naive_utc(now)
    start, end = _window(rule)
    return (
        rule.status == RuleStatus.scheduled
        and start is not None
        and now >= start
        and (end is None or now <= end)
    )


def should_expire(rule, now: datetime) -> bool:
    now = as_naive_utc(now)
    _, end = _window(rule)
    return rule.status == RuleStatus.active and end is not None and now > end


def next_status(rule, now: datetime) -> str:
    """Status the periodic status check leaves the rule in."""
    if should_activate(rule, now):
        return RuleStatus.active.value
    if should_expire(rule, now):
        return RuleStatus.expired.value
    return str(getattr(rule.status, "value", rule.status))
