"""Grouping and aggregation of timeline entries.

A group specification is either a string or a callable mapping an Entry to
a key. Strings name a registered derivation (``day``, ``week``, ``month``,
``tag`` or one supplied by the project config) and otherwise fall back to a
property lookup, so ``"PROJECT"`` groups on the ``TIMELOG-PROJECT``
property.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional, Sequence, Union

from .models import DATE_FORMAT, Entry, format_duration, format_timestamp

GroupKeyFunc = Callable[[Entry], Optional[str]]
GroupSpec = Union[str, GroupKeyFunc]

ALL_GROUP = "all"
MISSING_KEY = "(none)"
KEY_SEPARATOR = " / "


def _day(entry: Entry) -> Optional[str]:
    return entry.timestamp.strftime(DATE_FORMAT) if entry.timestamp else None


def _week(entry: Entry) -> Optional[str]:
    if entry.timestamp is None:
        return None
    year, week, _ = entry.timestamp.isocalendar()
    return f"{year}-W{week:02d}"


def _month(entry: Entry) -> Optional[str]:
    return entry.timestamp.strftime("%Y-%m") if entry.timestamp else None


def _tag(entry: Entry) -> Optional[str]:
    """First tag, from either an org tag token or a whitespace list."""
    if not entry.tags:
        return None
    tags = [t for t in entry.tags.replace(":", " ").split() if t]
    return tags[0] if tags else None


DERIVATIONS: dict[str, GroupKeyFunc] = {
    "day": _day,
    "week": _week,
    "month": _month,
    "tag": _tag,
}


@dataclass
class Group:
    """A named partition of the timeline."""
    name: str
    entries: list[Entry] = field(default_factory=list)


@dataclass
class GroupSummary:
    """Aggregate figures for one group."""
    name: str
    count: int
    total: timedelta
    first: Optional[datetime] = None
    last: Optional[datetime] = None

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "count": self.count,
            "total_seconds": format_duration(self.total),
            "first": format_timestamp(self.first) if self.first else None,
            "last": format_timestamp(self.last) if self.last else None,
        }


def resolve_spec(spec: GroupSpec, derivations: Optional[dict[str, GroupKeyFunc]] = None) -> GroupKeyFunc:
    """Turn a group specification into a key function."""
    if callable(spec):
        return spec

    registry = dict(DERIVATIONS)
    if derivations:
        registry.update(derivations)

    if spec in registry:
        return registry[spec]

    def by_field(entry: Entry) -> Optional[str]:
        return entry.get(spec)

    return by_field


def group_entries(
    entries: Iterable[Entry],
    specs: Optional[Sequence[GroupSpec]] = None,
    derivations: Optional[dict[str, GroupKeyFunc]] = None,
) -> list[Group]:
    """Partition entries into named groups.

    Groups appear in order of first occurrence and keep input order inside
    each group. No specs means a single group holding everything.
    """
    entries = list(entries)
    if not specs:
        return [Group(ALL_GROUP, entries)]

    key_funcs = [resolve_spec(s, derivations) for s in specs]
    groups: dict[str, Group] = {}

    for entry in entries:
        parts = []
        for func in key_funcs:
            value = func(entry)
            parts.append(str(value) if value not in (None, "") else MISSING_KEY)
        name = KEY_SEPARATOR.join(parts)
        if name not in groups:
            groups[name] = Group(name)
        groups[name].entries.append(entry)

    return list(groups.values())


def summarize(groups: Iterable[Group]) -> list[GroupSummary]:
    """Compute count, total duration and time span per group."""
    summaries = []
    for group in groups:
        total = timedelta()
        for entry in group.entries:
            total += entry.duration or timedelta()
        stamps = [e.timestamp for e in group.entries if e.timestamp is not None]
        summaries.append(GroupSummary(
            name=group.name,
            count=len(group.entries),
            total=total,
            first=min(stamps) if stamps else None,
            last=max(stamps) if stamps else None,
        ))
    return summaries
