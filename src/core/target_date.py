"""
ICS Reader — Target date resolution.

Figures out which day a request is about: a ``date: YYYY-MM-DD`` line in a
note's front matter wins, then a bare ISO date, then today.
"""

from __future__ import annotations

import logging
import re
from datetime import date

logger = logging.getLogger(__name__)

_FRONTMATTER_DATE = re.compile(r"date:\s*(\d{4}-\d{2}-\d{2})")


def parse_target_date(text: str | None) -> date | None:
    """Return the date named in ``text``, or None if it names none."""
    if not text or not text.strip():
        return None

    match = _FRONTMATTER_DATE.search(text)
    candidate = match.group(1) if match else text.strip()

    try:
        return date.fromisoformat(candidate)
    except ValueError:
        if match:
            logger.warning("Ignoring invalid front matter date '%s'", candidate)
        return None


def resolve_target_date(text: str | None, today: date | None = None) -> date:
    """Return the date named in ``text``, falling back to ``today``.

    Args:
        text: Note contents or a command argument. May be None or empty.
        today: The clock's idea of today; ``date.today()`` when omitted.
    """
    return parse_target_date(text) or today or date.today()
