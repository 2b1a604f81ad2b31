"""Document port — abstract interface for whatever supplies calendar documents.

The event store only ever sees CalendarDocument objects; where the text
comes from (a directory, a CalDAV server, an HTTP feed) is an adapter's
business.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol


class DocumentReadFailure(Exception):
    """Raised when the text of one calendar document cannot be obtained."""


@dataclass(frozen=True)
class CalendarDocument:
    """A calendar document identified by ``identifier``, read lazily."""

    identifier: str
    reader: Callable[[], str | bytes]

    def read(self) -> str | bytes:
        try:
            return self.reader()
        except DocumentReadFailure:
            raise
        except Exception as exc:
            raise DocumentReadFailure(f"{self.identifier}: {exc}") from exc

    @classmethod
    def from_text(cls, identifier: str, text: str | bytes) -> CalendarDocument:
        return cls(identifier=identifier, reader=lambda: text)


class DocumentSource(Protocol):
    """Abstract document supplier used by the bot and the scheduler."""

    def list_documents(self) -> list[CalendarDocument]: ...
