"""Sequential issue identifiers: SF-001, SF-002, ..."""

import re
from collections.abc import Iterable

DEFAULT_PREFIX = "SF"
_PAD = 3


def _pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}-(\d+)$")


def issue_number(issue_id: str, prefix: str = DEFAULT_PREFIX) -> int | None:
    """Return the numeric suffix of issue_id, or None if it is not PREFIX-NNN."""
    match = _pattern(prefix).match(issue_id)
    return int(match.group(1)) if match else None


def next_issue_id(existing_ids: Iterable[str], prefix: str = DEFAULT_PREFIX, floor: int = 0) -> str:
    """Return the identifier after the highest one in existing_ids.

    floor is the highest number ever issued for the prefix, so that ids freed by
    deletion are not handed out again. Malformed ids are ignored.
    """
    numbers = (issue_number(issue_id, prefix) for issue_id in existing_ids)
    highest = max((n for n in numbers if n is not None), default=0)
    return f"{prefix}-{max(highest, floor) + 1:0{_PAD}d}"
