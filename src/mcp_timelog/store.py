"""File-backed source documents and report destinations."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import portalocker
from loguru import logger

from .errors import DestinationError
from .locking import locked_append, locked_atomic_write
from .models import Period

DOCUMENT_GLOB = "*.org"


class LogStore:
    """Read source documents and write reports under a log directory."""

    def __init__(self, log_dir: Path, export_dir: Optional[Path] = None, lock_timeout: float = 10.0):
        self.log_dir = Path(log_dir)
        self.export_dir = Path(export_dir) if export_dir else self.log_dir / "exports"
        self.lock_timeout = lock_timeout

    def list_source_documents(self, period: Optional[Period] = None) -> list[Path]:
        """List every source document under the log directory.

        The period hint is accepted but not used to prune documents: an
        entry's file says nothing reliable about its timestamp, so the
        period filter decides what is in range.
        """
        if not self.log_dir.exists():
            return []

        documents = []
        for path in sorted(self.log_dir.rglob(DOCUMENT_GLOB)):
            if not path.is_file():
                continue
            # Rendered exports are not sources
            if self.export_dir in path.parents:
                continue
            documents.append(path)
        return documents

    def read(self, path: Path) -> str:
        """Read the raw text of one source document.

        Undecodable bytes are replaced so only the block holding them is lost.
        """
        data = Path(path).read_bytes()
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Invalid UTF-8 in {} at byte {}; replacing undecodable bytes", path, e.start)
            return data.decode("utf-8", errors="replace")

    def read_all(self, period: Optional[Period] = None) -> list[tuple[Path, str]]:
        """Read every source document, skipping ones that cannot be read."""
        contents = []
        for path in self.list_source_documents(period):
            try:
                contents.append((path, self.read(path)))
            except OSError as e:
                logger.warning("Cannot read source document {}: {}", path, e)
        return contents

    def write(self, destination: Path, text: str) -> Path:
        """Replace ``destination`` with ``text``.

        Raises:
            DestinationError: If the destination cannot be created or written
        """
        destination = Path(destination)
        try:
            with locked_atomic_write(destination, timeout=self.lock_timeout) as f:
                f.write(text)
        except (OSError, portalocker.LockException) as e:
            raise DestinationError(destination, str(e)) from e
        logger.debug("Wrote {} characters to {}", len(text), destination)
        return destination

    def append(self, destination: Path, text: str) -> Path:
        """Append ``text`` to ``destination``, creating it if needed.

        Raises:
            DestinationError: If the destination cannot be created or written
        """
        destination = Path(destination)
        try:
            with locked_append(destination, timeout=self.lock_timeout) as f:
                f.write(text)
        except (OSError, portalocker.LockException) as e:
            raise DestinationError(destination, str(e)) from e
        logger.debug("Appended {} characters to {}", len(text), destination)
        return destination
