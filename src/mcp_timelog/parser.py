"""Parse native timelog documents into entries.

A document is a sequence of blocks::

    * Title :tag:
    :PROPERTIES:
    TIMELOG-ID: host-20240101100000000
    TIMELOG-TIMESTAMP: 2024-01-01 10:00:00.000000
    :END:
    Free text body.

Malformed blocks are skipped and logged; they never abort the rest of the
document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from loguru import logger

from .models import (
    DEFAULT_TITLE,
    NAMESPACE,
    PROPERTIES_END,
    PROPERTIES_START,
    PROPERTY_KEY_PATTERN,
    Entry,
    format_timestamp,
    parse_timestamp,
    unescape_body,
)

HEADING_RE = re.compile(r"^\*+\s+(.*?)\s*$")
PROPERTY_RE = re.compile(rf"^:?({PROPERTY_KEY_PATTERN}):\s?(.*)$")
TAGS_RE = re.compile(r"^(.*?)\s+(:[^\s]+:)$")


@dataclass
class ParseResult:
    """Entries recovered from a document plus the number of skipped blocks."""
    entries: list[Entry] = field(default_factory=list)
    skipped: int = 0


class MalformedBlock(ValueError):
    """A block that cannot become an entry."""
    pass


def _split_blocks(lines: list[str]) -> list[tuple[int, list[str]]]:
    """Split lines into (line_number, block_lines) at each heading."""
    blocks: list[tuple[int, list[str]]] = []
    current: Optional[list[str]] = None

    for number, line in enumerate(lines, start=1):
        if HEADING_RE.match(line):
            current = [line]
            blocks.append((number, current))
        elif current is not None:
            current.append(line)
        # Lines before the first heading are document header

    return blocks


def _split_heading(text: str) -> tuple[str, Optional[str]]:
    """Split heading text into title and a trailing org tag token."""
    match = TAGS_RE.match(text)
    if match:
        return match.group(1).strip(), match.group(2)
    return text.strip(), None


def _has_offset(raw: str) -> bool:
    return datetime.fromisoformat(raw.strip()).tzinfo is not None


def parse_block(block: list[str], source: Optional[str] = None) -> Entry:
    """Parse one heading block into an Entry.

    Raises:
        MalformedBlock: If the properties block or the entry ID is missing
    """
    heading = HEADING_RE.match(block[0])
    heading_text = heading.group(1) if heading else ""

    rest = block[1:]
    # Skip blank lines between heading and properties
    index = 0
    while index < len(rest) and not rest[index].strip():
        index += 1

    if index >= len(rest) or rest[index].strip().upper() != PROPERTIES_START:
        raise MalformedBlock("missing properties block")

    properties: dict[str, str] = {}
    user_properties: dict[str, str] = {}
    prefix = f"{NAMESPACE}-"
    closed = False

    for offset, line in enumerate(rest[index + 1:], start=index + 1):
        stripped = line.strip()
        if stripped.upper() == PROPERTIES_END:
            closed = True
            body_lines = rest[offset + 1:]
            break
        match = PROPERTY_RE.match(stripped)
        if not match:
            continue
        key = match.group(1).upper()
        value = match.group(2).strip()
        if key.startswith(prefix):
            properties[key[len(prefix):]] = value
        else:
            user_properties[key] = value

    if not closed:
        raise MalformedBlock("unterminated properties block")

    entry_id = properties.get("ID")
    if not entry_id:
        raise MalformedBlock("missing entry ID")

    timestamp = None
    raw_timestamp = properties.get("TIMESTAMP")
    if raw_timestamp:
        try:
            timestamp = parse_timestamp(raw_timestamp)
        except ValueError:
            logger.debug("Entry {} has unparseable timestamp {!r}", entry_id, raw_timestamp)
        else:
            # Hand-edited offsets are reported in the same UTC form they sort by
            if _has_offset(raw_timestamp):
                properties["TIMESTAMP"] = format_timestamp(timestamp)
    else:
        logger.debug("Entry {} has no timestamp", entry_id)

    heading_title, heading_tags = _split_heading(heading_text)
    title = properties.get("TITLE") or heading_title or DEFAULT_TITLE
    tags = properties.get("TAGS") or heading_tags

    body = unescape_body("\n".join(body_lines).strip("\n"))
    return Entry(
        entry_id=entry_id,
        timestamp=timestamp,
        title=title,
        tags=tags,
        properties=properties,
        user_properties=user_properties,
        body=body if body.strip() else None,
        source=source,
    )


def parse_document_with_stats(text: str, source: Optional[str] = None) -> ParseResult:
    """Parse document text, counting blocks that had to be skipped."""
    result = ParseResult()

    for line_number, block in _split_blocks(text.splitlines()):
        try:
            result.entries.append(parse_block(block, source))
        except MalformedBlock as e:
            result.skipped += 1
            logger.warning(
                "Skipping malformed entry at {}:{}: {}",
                source or "<text>", line_number, e,
            )

    return result


def parse_document(text: str, source: Optional[str] = None) -> list[Entry]:
    """Parse document text into entries, preserving document order."""
    return parse_document_with_stats(text, source).entries
