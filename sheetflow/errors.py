"""Exception hierarchy; everything below the form and command boundary raises these."""


class SheetflowError(Exception):
    pass


class ValidationFailed(SheetflowError):
    """All field-level problems of one submission, keyed by form field name."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        self.errors = errors
        super().__init__(self.message)

    @property
    def message(self) -> str:
        parts = [f"{field}: {', '.join(messages)}" for field, messages in self.errors.items()]
        return "Validation failed: " + "; ".join(parts)


class IssueNotFoundError(SheetflowError, LookupError):
    def __init__(self, issue_id: str) -> None:
        self.issue_id = issue_id
        super().__init__(f"Issue {issue_id} not found.")


class InterpreterError(SheetflowError):
    """The interpreter call failed, timed out or returned something unusable."""


class UnfulfillableCommandError(SheetflowError):
    """The interpretation lacks data its intent kind requires."""


class StoreError(SheetflowError):
    """The store could not persist a change; the change was rolled back."""
