"""Placeholder values the presentation layer uses for "no selection"."""

from collections.abc import Collection

# Form-layer literals; never persisted.
UNASSIGNED_FORM_VALUE = "_SELECT_UNASSIGNED_"
METHOD_NA_FORM_VALUE = "_API_METHOD_NA_"

# What the interpreter reports for "nobody".
UNASSIGNED_INTENT_VALUE = "unassigned"

# Placeholder context id sent to the interpreter when the caller supplies none.
NO_CONTEXT_ID = "NO_CONTEXT_ID"

ASSIGNEE_SENTINELS = frozenset({UNASSIGNED_FORM_VALUE, UNASSIGNED_INTENT_VALUE})
METHOD_SENTINELS = frozenset({METHOD_NA_FORM_VALUE})


def resolve_sentinel(raw: str | None, sentinels: Collection[str]) -> str | None:
    """Map None, "" and any sentinel literal (case-insensitively) to None."""
    if raw is None or raw == "":
        return None
    if raw.casefold() in {s.casefold() for s in sentinels}:
        return None
    return raw
