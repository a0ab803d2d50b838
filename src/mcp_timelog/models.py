"""Data models for log entries, periods, and reports."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

NAMESPACE = "TIMELOG"
PROPERTIES_START = ":PROPERTIES:"
PROPERTIES_END = ":END:"
DEFAULT_TITLE = "Untitled"

# Fixed width, so plain string comparison orders timestamps within a day
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S.%f"
DATE_FORMAT = "%Y-%m-%d"

# Keys owned by the log system; never supplied by callers of the writer
RESERVED_KEYS = ("ID", "TIMESTAMP", "DURATION")

# Property keys the parser can read back
PROPERTY_KEY_PATTERN = r"[A-Za-z0-9_][A-Za-z0-9_.-]*"
PROPERTY_KEY_RE = re.compile(PROPERTY_KEY_PATTERN)

# Body lines that would read as a heading get a leading comma, as in org
_ESCAPE_RE = re.compile(r"^(,*\*)")
_UNESCAPE_RE = re.compile(r"^,(,*\*)")


def utc_now() -> datetime:
    """Get current UTC time as a naive datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_timestamp(dt: datetime) -> str:
    """Format datetime as ``YYYY-MM-DD HH:MM:SS.ffffff``."""
    return dt.strftime(TIMESTAMP_FORMAT)


def parse_timestamp(s: str) -> datetime:
    """Parse a stored timestamp string.

    Accepts the fixed format with or without the fractional part, and the
    ISO ``T`` separator. Aware values are converted to naive UTC.

    Raises:
        ValueError: If the string is not a timestamp
    """
    dt = datetime.fromisoformat(s.strip())
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def generate_entry_id(host: str, dt: datetime) -> str:
    """Generate entry ID in format <host>-YYYYmmddHHMMSSfff."""
    return f"{host}-{dt.strftime('%Y%m%d%H%M%S')}{dt.microsecond // 1000:03d}"


def format_duration(delta: timedelta) -> str:
    """Format a duration as seconds, ``"0"`` when nothing elapsed."""
    if not delta:
        return "0"
    return str(delta.total_seconds())


def normalize_key(key: str) -> str:
    """Upper-case a property key and strip the namespace prefix if present.

    Runs of whitespace become ``_`` so ``"client name"`` and
    ``"CLIENT_NAME"`` name the same property.
    """
    key = "_".join(key.upper().split())
    prefix = f"{NAMESPACE}-"
    while key.startswith(prefix):
        key = key[len(prefix):]
    return key


def is_valid_key(key: str) -> bool:
    """Check that a normalized key survives a write and read back."""
    return PROPERTY_KEY_RE.fullmatch(key) is not None


def escape_body(body: str) -> str:
    return "\n".join(_ESCAPE_RE.sub(r",\1", line) for line in body.splitlines())


def unescape_body(body: str) -> str:
    return "\n".join(_UNESCAPE_RE.sub(r"\1", line) for line in body.splitlines())


@dataclass
class Entry:
    """A single logged event."""
    entry_id: str
    timestamp: Optional[datetime]
    title: str = DEFAULT_TITLE
    tags: Optional[str] = None

    # Namespaced properties, keys upper-cased without the prefix
    properties: dict[str, str] = field(default_factory=dict)
    # Hand-written properties without the namespace prefix
    user_properties: dict[str, str] = field(default_factory=dict)

    body: Optional[str] = None
    source: Optional[str] = None

    def get(self, name: str) -> Optional[str]:
        """Look up a field value by name.

        Namespaced properties win, then hand-written ones, then the core
        fields (so a title taken from the heading is still reported).
        """
        key = normalize_key(name)
        if key in self.properties:
            return self.properties[key]
        if key in self.user_properties:
            return self.user_properties[key]
        if key == "ID":
            return self.entry_id
        if key == "TITLE":
            return self.title
        if key == "TAGS":
            return self.tags
        if key == "TIMESTAMP" and self.timestamp is not None:
            return format_timestamp(self.timestamp)
        return None

    @property
    def duration(self) -> Optional[timedelta]:
        """Computed duration, or None if the timeline has not been reconstructed."""
        value = self.properties.get("DURATION")
        if value is None:
            return None
        try:
            return timedelta(seconds=float(value))
        except ValueError:
            return None

    def heading(self) -> str:
        """Render the heading line."""
        parts = ["*", self.title or DEFAULT_TITLE]
        if self.tags:
            parts.append(self.tags)
        return " ".join(parts)

    def to_document(self) -> str:
        """Render entry as a native document block."""
        lines = [self.heading(), PROPERTIES_START]

        # ID and TIMESTAMP lead the block; the rest keep insertion order
        ordered = ["ID", "TIMESTAMP"] + [k for k in self.properties if k not in ("ID", "TIMESTAMP")]
        for key in ordered:
            value = self.properties.get(key)
            if value is None:
                continue
            lines.append(f"{NAMESPACE}-{key}: {value}")
        for key, value in self.user_properties.items():
            lines.append(f"{key}: {value}")

        lines.append(PROPERTIES_END)

        if self.body:
            lines.append(escape_body(self.body))

        lines.append("")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Convert entry to dictionary for JSON serialization."""
        return {
            "entry_id": self.entry_id,
            "timestamp": format_timestamp(self.timestamp) if self.timestamp else None,
            "title": self.title,
            "tags": self.tags,
            "duration": self.properties.get("DURATION"),
            "properties": dict(self.properties),
            "user_properties": dict(self.user_properties),
            "body": self.body,
            "source": self.source,
        }


@dataclass(frozen=True)
class Period:
    """An inclusive, day-granular date range."""
    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"Period start {self.start} is after end {self.end}")

    @classmethod
    def parse(cls, start: str, end: Optional[str] = None) -> "Period":
        """Build a period from YYYY-MM-DD strings; end defaults to start."""
        start_date = datetime.strptime(start.strip(), DATE_FORMAT).date()
        end_date = datetime.strptime(end.strip(), DATE_FORMAT).date() if end else start_date
        return cls(start_date, end_date)

    def bounds(self) -> tuple[datetime, datetime]:
        """Return (start of first day, last microsecond of last day)."""
        return (
            datetime.combine(self.start, time.min),
            datetime.combine(self.end, time.max),
        )

    def contains(self, timestamp: Optional[datetime]) -> bool:
        """Check whether a timestamp falls inside the period."""
        if timestamp is None:
            return False
        lower, upper = self.bounds()
        return lower <= timestamp <= upper

    def label(self) -> str:
        """Short label used in default export file names."""
        return f"{self.start.strftime(DATE_FORMAT)}-{self.end.strftime(DATE_FORMAT)}"

    def to_dict(self) -> dict:
        return {
            "start": self.start.strftime(DATE_FORMAT),
            "end": self.end.strftime(DATE_FORMAT),
        }


@dataclass
class Report:
    """A rendered export artifact."""
    format: str
    text: str
    row_count: int
    line_count: int
    groups: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.row_count == 0

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "format": self.format,
            "row_count": self.row_count,
            "line_count": self.line_count,
            "groups": self.groups,
            "text": self.text,
        }
