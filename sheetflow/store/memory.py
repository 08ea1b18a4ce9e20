"""In-process issue store backed by plain lists."""

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

import structlog

from sheetflow.errors import IssueNotFoundError, StoreError
from sheetflow.models import Issue
from sheetflow.store.base import IssueStore

logger = structlog.get_logger()


class MemoryStore(IssueStore):
    def __init__(
        self,
        issues: Iterable[Issue] = (),
        assignees: Iterable[str] = (),
        issued: dict[str, int] | None = None,
    ) -> None:
        self._issues: list[Issue] = list(issues)
        self._assignees: list[str] = []
        for name in assignees:
            if self._find_assignee(name) is None:
                self._assignees.append(name)
        self._issued: dict[str, int] = dict(issued or {})

    def _commit(self) -> None:
        """Hook for subclasses that persist after each mutation; raises StoreError."""

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        """Commit the changes made in the block, or restore the prior state if the commit fails."""
        snapshot = (list(self._issues), list(self._assignees), dict(self._issued))
        yield
        try:
            self._commit()
        except StoreError:
            self._issues, self._assignees, self._issued = snapshot
            raise

    def _index(self, issue_id: str) -> int:
        for i, issue in enumerate(self._issues):
            if issue.id == issue_id:
                return i
        raise IssueNotFoundError(issue_id)

    def _find_assignee(self, name: str) -> int | None:
        wanted = name.casefold()
        for i, existing in enumerate(self._assignees):
            if existing.casefold() == wanted:
                return i
        return None

    def list_issues(self) -> list[Issue]:
        return list(self._issues)

    def get_issue(self, issue_id: str) -> Issue:
        return self._issues[self._index(issue_id)]

    def add_issue(self, issue: Issue, number: int) -> None:
        prefix = issue.id.rsplit("-", 1)[0]
        with self._mutation():
            self._issues.insert(0, issue)
            self._issued[prefix] = max(self._issued.get(prefix, 0), number)
        logger.debug("Issue added", issue_id=issue.id)

    def save_issue(self, issue: Issue) -> None:
        with self._mutation():
            self._issues[self._index(issue.id)] = issue
        logger.debug("Issue saved", issue_id=issue.id)

    def delete_issue(self, issue_id: str) -> None:
        with self._mutation():
            del self._issues[self._index(issue_id)]
        logger.debug("Issue deleted", issue_id=issue_id)

    def last_issued(self, prefix: str) -> int:
        return self._issued.get(prefix, 0)

    def list_assignees(self) -> list[str]:
        return list(self._assignees)

    def add_assignee(self, name: str) -> bool:
        if self._find_assignee(name) is not None:
            return False
        with self._mutation():
            self._assignees.append(name)
        return True

    def remove_assignee(self, name: str) -> bool:
        index = self._find_assignee(name)
        if index is None:
            return False
        with self._mutation():
            del self._assignees[index]
        return True
