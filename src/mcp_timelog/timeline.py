"""Timeline reconstruction - merge, sort, and compute durations."""

from __future__ import annotations

import dataclasses
from typing import Iterable

from loguru import logger

from .models import Entry, format_duration


def _with_duration(entry: Entry, value: str) -> Entry:
    properties = dict(entry.properties)
    properties["DURATION"] = value
    return dataclasses.replace(entry, properties=properties)


def compute_durations(sorted_entries: list[Entry]) -> list[Entry]:
    """Annotate an already sorted sequence with durations.

    Each entry lasts until its chronological successor. The last entry is
    still ongoing and gets a zero duration.
    """
    result = []
    for current, successor in zip(sorted_entries, sorted_entries[1:]):
        result.append(_with_duration(current, format_duration(successor.timestamp - current.timestamp)))
    if sorted_entries:
        result.append(_with_duration(sorted_entries[-1], "0"))
    return result


def reconstruct(entries: Iterable[Entry]) -> list[Entry]:
    """Rebuild the chronological timeline from an unordered entry set.

    Entries without a timestamp are dropped. The sort is stable, so entries
    sharing a timestamp keep their input order. Input entries are not
    modified; annotated copies are returned.
    """
    ordered = []
    dropped = 0
    for entry in entries:
        if entry.timestamp is None:
            dropped += 1
            continue
        ordered.append(entry)

    if dropped:
        logger.debug("Excluded {} entries without a timestamp from the timeline", dropped)

    ordered.sort(key=lambda e: e.timestamp)
    return compute_durations(ordered)
