"""Period filtering."""

from __future__ import annotations

from typing import Iterable, Optional

from .models import Entry, Period


def period_from_args(date_from: Optional[str] = None, date_to: Optional[str] = None) -> Optional[Period]:
    """Build a Period from optional YYYY-MM-DD strings.

    Returns None when neither bound is given. A lone ``date_from`` selects
    that single day.

    Raises:
        ValueError: If only ``date_to`` is given or a date is malformed
    """
    if not date_from and not date_to:
        return None
    if not date_from:
        raise ValueError("date_to requires date_from")
    return Period.parse(date_from, date_to)


def filter_period(entries: Iterable[Entry], period: Optional[Period]) -> list[Entry]:
    """Keep entries whose timestamp lies inside the period, inclusive.

    Entries without a timestamp are always excluded. ``period=None`` keeps
    every timestamped entry.
    """
    if period is None:
        return [e for e in entries if e.timestamp is not None]
    return [e for e in entries if period.contains(e.timestamp)]
