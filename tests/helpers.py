"""Builders for entries and raw document text used across the tests."""

from datetime import datetime

from mcp_timelog.models import Entry


def make_entry(timestamp, entry_id=None, title="Task", tags=None, **properties):
    """Build an Entry the way the parser would from stored text.

    ``timestamp`` is either a datetime or the stored string; ``None`` makes
    an entry without a timestamp.
    """
    if isinstance(timestamp, datetime):
        raw = timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")
        parsed = timestamp
    elif timestamp is None:
        raw = None
        parsed = None
    else:
        raw = timestamp
        parsed = datetime.fromisoformat(timestamp)

    entry_id = entry_id or f"testhost-{raw or 'none'}"
    props = {"ID": entry_id}
    if raw is not None:
        props["TIMESTAMP"] = raw
    props["TITLE"] = title
    if tags:
        props["TAGS"] = tags
    props.update({k.upper(): v for k, v in properties.items()})

    return Entry(
        entry_id=entry_id,
        timestamp=parsed,
        title=title,
        tags=tags,
        properties=props,
    )


def block(entry_id, timestamp, title="Task", tags=None, body=None, **properties):
    """Render a raw document block by hand."""
    heading = f"* {title}" + (f" {tags}" if tags else "")
    lines = [heading, ":PROPERTIES:", f"TIMELOG-ID: {entry_id}"]
    if timestamp is not None:
        lines.append(f"TIMELOG-TIMESTAMP: {timestamp}")
    for key, value in properties.items():
        lines.append(f"TIMELOG-{key.upper()}: {value}")
    lines.append(":END:")
    if body:
        lines.append(body)
    return "\n".join(lines) + "\n"
