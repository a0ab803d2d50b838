"""Core timelog engine - append entries, rebuild reports from sources."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Sequence

from loguru import logger

from .config import TimelogConfig
from .exporters import EXTENSIONS, get_exporter
from .grouping import Group, GroupSpec, GroupSummary, group_entries, summarize
from .models import Entry, Period, Report
from .parser import parse_document_with_stats
from .period import filter_period
from .store import LogStore
from .timeline import reconstruct
from .writer import append_entry, build_entry


class ExportStatus(Enum):
    """Outcome of a successful export."""
    WRITTEN = "written"
    EMPTY = "empty"


@dataclass
class ExportResult:
    """Result of writing a report to its destination."""
    status: ExportStatus
    destination: Path
    report: Report

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "destination": str(self.destination),
            "format": self.report.format,
            "row_count": self.report.row_count,
            "line_count": self.report.line_count,
            "groups": self.report.groups,
        }


class TimelogEngine:
    """Append-only activity log with reports rebuilt from source documents."""

    def __init__(self, config: TimelogConfig):
        self.config = config
        self.store = LogStore(
            config.get_log_path(),
            config.get_export_path(),
            lock_timeout=config.lock_timeout,
        )

    # ========== Write path ==========

    def append(
        self,
        title: Optional[str] = None,
        tags: Optional[str] = None,
        body: Optional[str] = None,
        properties: Optional[dict[str, str]] = None,
    ) -> Entry:
        """Append a new entry to the active source document.

        Returns:
            The created Entry with assigned ID and timestamp.

        Raises:
            ReservedPropertyError: If properties try to set ID, TIMESTAMP or DURATION.
            DestinationError: If the active document cannot be written.
        """
        entry = build_entry(
            title=title,
            tags=tags,
            body=body,
            properties=properties,
            host=self.config.host,
        )

        if "pre_append" in self.config.hooks:
            entry = self.config.hooks["pre_append"](entry)

        document = self.config.get_active_document(entry.timestamp)
        append_entry(self.store, document, entry)

        if "post_append" in self.config.hooks:
            self.config.hooks["post_append"](entry)

        return entry

    # ========== Read path ==========

    def sources(self, period: Optional[Period] = None) -> list[Path]:
        """List the source documents a report would read."""
        return self.store.list_source_documents(period)

    def load_entries(self, period: Optional[Period] = None) -> list[Entry]:
        """Read and parse every source document, in document order.

        Nothing is cached; each call rebuilds from the files on disk.
        """
        entries: list[Entry] = []
        skipped = 0
        had_text = False

        for path, text in self.store.read_all(period):
            if text.strip():
                had_text = True
            result = parse_document_with_stats(text, source=str(path))
            entries.extend(result.entries)
            skipped += result.skipped

        if had_text and not entries:
            logger.warning("Source documents contain text but no well-formed entries ({} skipped)", skipped)
        else:
            logger.debug("Loaded {} entries ({} skipped)", len(entries), skipped)

        return entries

    def timeline(
        self,
        period: Optional[Period] = None,
        group_by: Optional[Sequence[GroupSpec]] = None,
    ) -> list[Group]:
        """Sorted, duration-annotated, filtered and grouped entries.

        Durations are computed over the whole log before filtering, so the
        last entry of a period runs until whatever followed it.
        """
        entries = reconstruct(self.load_entries(period))
        entries = filter_period(entries, period)
        specs = self.config.group_by if group_by is None else group_by
        return group_entries(entries, specs, self.config.derivations)

    def summary(
        self,
        period: Optional[Period] = None,
        group_by: Optional[Sequence[GroupSpec]] = None,
    ) -> list[GroupSummary]:
        """Count and total duration per group."""
        return summarize(self.timeline(period, group_by))

    def report(
        self,
        format: str = "csv",
        fields: Optional[Sequence[str]] = None,
        period: Optional[Period] = None,
        group_by: Optional[Sequence[GroupSpec]] = None,
    ) -> Report:
        """Render a report without writing it anywhere."""
        renderer = get_exporter(format)
        groups = self.timeline(period, group_by)
        return renderer(groups, list(fields or self.config.csv_fields))

    def default_destination(self, format: str, period: Optional[Period] = None) -> Path:
        label = period.label() if period else "all"
        return self.config.get_export_path() / f"timelog-{label}.{EXTENSIONS[format]}"

    def export(
        self,
        format: str = "csv",
        destination: Optional[Path] = None,
        fields: Optional[Sequence[str]] = None,
        period: Optional[Period] = None,
        group_by: Optional[Sequence[GroupSpec]] = None,
    ) -> ExportResult:
        """Render a report and persist it.

        An empty report is still written and reported as EMPTY, which is a
        success.

        Raises:
            UnknownExporterError: If the format is not registered.
            DestinationError: If the destination cannot be written.
        """
        report = self.report(format, fields=fields, period=period, group_by=group_by)
        if destination is None:
            destination = self.default_destination(format, period)
        else:
            destination = Path(destination)
            if not destination.is_absolute():
                destination = self.config.project_root / destination

        self.store.write(destination, report.text if report.text.endswith("\n") else report.text + "\n")

        status = ExportStatus.EMPTY if report.is_empty else ExportStatus.WRITTEN
        logger.info("Exported {} {} rows to {}", report.row_count, report.format, destination)
        return ExportResult(status=status, destination=destination, report=report)

    def describe(self) -> dict[str, Any]:
        """Basic facts about the log, for tooling."""
        sources = self.sources()
        return {
            "project": self.config.project_name,
            "log_dir": str(self.config.get_log_path()),
            "active_document": str(self.config.get_active_document()),
            "source_count": len(sources),
            "sources": [str(p) for p in sources],
        }
