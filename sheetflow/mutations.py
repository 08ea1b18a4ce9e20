"""Commit validated actions to an issue store."""

from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from sheetflow.ids import DEFAULT_PREFIX, issue_number, next_issue_id
from sheetflow.models import Action, CreateIssue, DeleteIssue, Issue, UpdateIssue
from sheetflow.store.base import IssueStore

logger = structlog.get_logger()


def utcnow() -> datetime:
    return datetime.now(UTC)


class MutationApplier:
    """Applies create/update/delete actions to one store.

    Each method computes the complete new record before touching the store, so
    a failure (unknown id) leaves the store as it was.
    """

    def __init__(
        self,
        store: IssueStore,
        id_prefix: str = DEFAULT_PREFIX,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.id_prefix = id_prefix
        self._clock = clock

    def apply(self, action: Action) -> Issue | None:
        match action:
            case CreateIssue():
                return self.create(action)
            case UpdateIssue():
                return self.update(action)
            case DeleteIssue():
                self.delete(action)
                return None

    def create(self, action: CreateIssue) -> Issue:
        existing = [issue.id for issue in self.store.list_issues()]
        issue_id = next_issue_id(existing, self.id_prefix, floor=self.store.last_issued(self.id_prefix))
        now = self._clock()
        issue = Issue(
            id=issue_id,
            title=action.title,
            status=action.status,
            priority=action.priority,
            assignee=action.assignee,
            reporter=action.reporter,
            created_at=now,
            updated_at=now,
            description=action.description,
            labels=list(action.labels),
        )
        self.store.add_issue(issue, issue_number(issue_id, self.id_prefix))
        logger.info("Issue created", issue_id=issue_id, reporter=action.reporter)
        return issue

    def update(self, action: UpdateIssue) -> Issue:
        current = self.store.get_issue(action.issue_id)
        changes = {
            "assignee": action.assignee.apply(current.assignee),
            "description": action.description.merge(current.description),
            # updated_at never moves backwards, even if the clock does
            "updated_at": max(self._clock(), current.updated_at),
        }
        if action.title is not None:
            changes["title"] = action.title
        if action.status is not None:
            changes["status"] = action.status
        if action.priority is not None:
            changes["priority"] = action.priority
        if action.labels is not None:
            changes["labels"] = list(action.labels)

        updated = current.model_copy(update=changes)
        self.store.save_issue(updated)
        logger.info("Issue updated", issue_id=updated.id)
        return updated

    def delete(self, action: DeleteIssue) -> None:
        self.store.delete_issue(action.issue_id)
        logger.info("Issue deleted", issue_id=action.issue_id)
