"""The append-only write path."""

from __future__ import annotations

import socket
from datetime import datetime
from pathlib import Path
from typing import Optional

from loguru import logger

from .errors import InvalidPropertyError, ReservedPropertyError
from .models import (
    DEFAULT_TITLE,
    RESERVED_KEYS,
    Entry,
    format_timestamp,
    generate_entry_id,
    is_valid_key,
    normalize_key,
    utc_now,
)
from .store import LogStore


def default_host() -> str:
    """Host identifier used in entry IDs."""
    return socket.gethostname().split(".")[0] or "localhost"


def build_entry(
    title: Optional[str] = None,
    tags: Optional[str] = None,
    body: Optional[str] = None,
    properties: Optional[dict[str, str]] = None,
    host: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Entry:
    """Create a new entry with an assigned ID and the current timestamp.

    Every non-null field except the body becomes a property.

    Raises:
        ReservedPropertyError: If ``properties`` tries to set ID, TIMESTAMP or DURATION
        InvalidPropertyError: If a property key cannot be stored as written
    """
    now = now or utc_now()
    # Heading and property values are single lines
    if title:
        title = " ".join(title.split())
    if tags:
        tags = " ".join(tags.split())
    entry_id = generate_entry_id(host or default_host(), now)

    props: dict[str, str] = {
        "ID": entry_id,
        "TIMESTAMP": format_timestamp(now),
    }
    if title:
        props["TITLE"] = title
    if tags:
        props["TAGS"] = tags

    for key, value in (properties or {}).items():
        if value is None:
            continue
        norm = normalize_key(key)
        if norm in RESERVED_KEYS:
            raise ReservedPropertyError(f"Property '{norm}' is assigned by the timelog and cannot be set")
        if not is_valid_key(norm):
            raise InvalidPropertyError(
                f"Property key {key!r} must be letters, digits, '_', '.' or '-'"
            )
        props[norm] = " ".join(str(value).splitlines())

    return Entry(
        entry_id=entry_id,
        timestamp=now,
        title=title or DEFAULT_TITLE,
        tags=tags,
        properties=props,
        body=body,
    )


def render_entry(entry: Entry) -> str:
    """Canonical text of one entry plus the separating blank line."""
    return entry.to_document() + "\n"


def append_entry(store: LogStore, document: Path, entry: Entry) -> Entry:
    """Append an entry to the active source document."""
    store.append(document, render_entry(entry))
    entry.source = str(document)
    logger.info("Appended entry {} to {}", entry.entry_id, document)
    return entry
