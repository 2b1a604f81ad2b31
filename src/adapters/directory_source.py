"""Directory document source — every .ics file below a folder.

Files are listed eagerly and read lazily, so an unreadable file only
fails its own CalendarDocument.read().
"""

from __future__ import annotations

import logging
from pathlib import Path

from src.ports.document_port import CalendarDocument

logger = logging.getLogger(__name__)


class DirectorySource:
    """DocumentSource over ``*.ics`` files (any case) under ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory) if directory else None

    def list_documents(self) -> list[CalendarDocument]:
        if self._directory is None:
            logger.warning("ICS directory not set. Please configure ICS_DIRECTORY.")
            return []
        if not self._directory.is_dir():
            logger.warning("ICS directory %s does not exist", self._directory)
            return []

        files = sorted(
            p for p in self._directory.rglob("*")
            if p.is_file() and p.suffix.lower() == ".ics"
        )
        logger.info("Found %d ICS file(s) in %s", len(files), self._directory)
        return [
            CalendarDocument(identifier=str(path), reader=path.read_bytes)
            for path in files
        ]
