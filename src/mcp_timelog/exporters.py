"""Report renderers: CSV rows and the native document format."""

from __future__ import annotations

from typing import Callable, Sequence, Union

from .errors import UnknownExporterError
from .grouping import ALL_GROUP, Group
from .models import Entry, Report

CSV_SEPARATOR = ", "
GROUP_FIELD = "GROUP"
DOCUMENT_HEADER = "#+TITLE: Timelog export"

Renderable = Union[Sequence[Entry], Sequence[Group]]


def _as_groups(items: Renderable) -> list[Group]:
    """Accept either a flat entry sequence or already grouped entries."""
    items = list(items)
    if items and all(isinstance(i, Group) for i in items):
        return items
    return [Group(ALL_GROUP, items)]


def csv_quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def render_csv(items: Renderable, fields: Sequence[str]) -> Report:
    """Render entries as CSV.

    The header lists the field names as given; every value is double quoted
    and missing values are empty. ``line_count`` includes the header.

    Raises:
        ValueError: If no fields are requested
    """
    if not fields:
        raise ValueError("CSV export requires at least one field")

    groups = _as_groups(items)
    lines = [CSV_SEPARATOR.join(fields)]

    for group in groups:
        for entry in group.entries:
            values = []
            for name in fields:
                if name.upper() == GROUP_FIELD:
                    value = group.name
                else:
                    value = entry.get(name)
                values.append(csv_quote(value or ""))
            lines.append(CSV_SEPARATOR.join(values))

    return Report(
        format="csv",
        text="\n".join(lines),
        row_count=len(lines) - 1,
        line_count=len(lines),
        groups=[g.name for g in groups],
    )


def render_document(items: Renderable, fields: Sequence[str] = ()) -> Report:
    """Re-serialize entries into a consolidated native document.

    Groups are written one after another; the document itself is flat so it
    can be parsed back like any other source document.
    """
    groups = _as_groups(items)
    blocks = [DOCUMENT_HEADER, ""]
    rows = 0

    for group in groups:
        for entry in group.entries:
            blocks.append(entry.to_document())
            rows += 1

    text = "\n".join(blocks)
    return Report(
        format="document",
        text=text,
        row_count=rows,
        line_count=len(text.splitlines()),
        groups=[g.name for g in groups],
    )


EXPORTERS: dict[str, Callable[..., Report]] = {
    "csv": render_csv,
    "document": render_document,
}

EXTENSIONS = {
    "csv": "csv",
    "document": "org",
}


def get_exporter(name: str) -> Callable[..., Report]:
    """Look up a renderer by format name."""
    try:
        return EXPORTERS[name]
    except KeyError:
        raise UnknownExporterError(
            f"Unknown export format '{name}'. Available: {sorted(EXPORTERS)}"
        ) from None
