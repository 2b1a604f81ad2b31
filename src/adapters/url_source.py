"""URL document source — subscribed ICS feeds fetched over HTTP.

One CalendarDocument per configured URL. The download happens when the
document is read, so one unreachable feed does not affect the others.
"""

from __future__ import annotations

import logging

import httpx

from src.ports.document_port import CalendarDocument, DocumentReadFailure

logger = logging.getLogger(__name__)


def fetch_ics(url: str, timeout: float) -> bytes:
    """Download one feed. Raises DocumentReadFailure on any HTTP problem."""
    try:
        resp = httpx.get(url, timeout=timeout, follow_redirects=True)
        resp.raise_for_status()
    except httpx.HTTPError as exc:
        logger.error("ICS feed error for %s: %s", url, exc)
        raise DocumentReadFailure(f"Failed to fetch {url}: {exc}") from exc

    logger.info("Fetched %d bytes from %s", len(resp.content), url)
    return resp.content


class UrlSource:
    """DocumentSource over a fixed list of feed URLs."""

    def __init__(self, urls: list[str], timeout: float = 10.0) -> None:
        self._urls = list(urls)
        self._timeout = timeout

    def list_documents(self) -> list[CalendarDocument]:
        if not self._urls:
            logger.warning("ICS_URLS not set. Please configure at least one feed.")
        return [
            CalendarDocument(
                identifier=url,
                reader=lambda url=url: fetch_ics(url, self._timeout),
            )
            for url in self._urls
        ]
