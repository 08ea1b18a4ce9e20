"""Abstract base class for issue stores."""

from abc import ABC, abstractmethod

from sheetflow.models import Issue


class IssueStore(ABC):
    @abstractmethod
    def list_issues(self) -> list[Issue]:
        """Return issues most-recent-first."""

    @abstractmethod
    def get_issue(self, issue_id: str) -> Issue:
        """Raise IssueNotFoundError when issue_id is unknown."""

    @abstractmethod
    def add_issue(self, issue: Issue, number: int) -> None:
        """Insert at the head and record number as issued for the id's prefix."""

    @abstractmethod
    def save_issue(self, issue: Issue) -> None:
        """Replace the stored issue with the same id, keeping its position."""

    @abstractmethod
    def delete_issue(self, issue_id: str) -> None: ...

    @abstractmethod
    def last_issued(self, prefix: str) -> int:
        """Highest number ever issued for prefix, including deleted issues."""

    @abstractmethod
    def list_assignees(self) -> list[str]: ...

    @abstractmethod
    def add_assignee(self, name: str) -> bool:
        """Return False if the name is already registered (case-insensitive)."""

    @abstractmethod
    def remove_assignee(self, name: str) -> bool:
        """Return False if the name is not registered."""
