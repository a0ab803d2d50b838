"""Exceptions raised by timelog operations."""

from __future__ import annotations


class TimelogError(Exception):
    """Base exception for timelog operations."""
    pass


class DestinationError(TimelogError):
    """Raised when a report or entry cannot be written to its destination."""

    def __init__(self, destination, reason: str):
        self.destination = destination
        self.reason = reason
        super().__init__(f"Cannot write to {destination}: {reason}")


class ReservedPropertyError(TimelogError):
    """Raised when a caller supplies a property the log system assigns itself."""
    pass


class UnknownExporterError(TimelogError):
    """Raised when an export format is not registered."""
    pass


class InvalidPropertyError(TimelogError):
    """Raised when a property key could not be read back once written."""
    pass
