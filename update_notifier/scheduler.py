"""
Check throttling.
"""

from __future__ import annotations

from datetime import datetime, tzinfo
from typing import Optional

from .models import CheckFrequency
from .time_utils import calendar_days_between


def is_due(
    last_check: Optional[datetime],
    frequency: CheckFrequency,
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> bool:
    """Return True when a remote check should run at ``now``.

    A check is due when none was ever recorded, when the frequency is
    ``IMMEDIATE``, or when at least ``frequency`` calendar days have passed
    since ``last_check``. Days roll over at midnight in ``tz``, the host's
    local timezone by default.
    """
    if last_check is None or frequency is CheckFrequency.IMMEDIATE:
        return True
    return calendar_days_between(last_check, now, tz) >= int(frequency)
