"""Form entry points: validate a submission, commit it, report a tagged result."""

import structlog

from sheetflow.errors import IssueNotFoundError, StoreError, ValidationFailed
from sheetflow.models import ActionResult
from sheetflow.mutations import MutationApplier
from sheetflow.store.base import IssueStore
from sheetflow.validation import (
    FormData,
    validate_assignee_form,
    validate_create_form,
    validate_delete_form,
    validate_update_form,
)

logger = structlog.get_logger()


def _invalid(exc: ValidationFailed) -> ActionResult:
    logger.info("Submission rejected", fields=sorted(exc.errors))
    return ActionResult(status="error", message=exc.message, errors=exc.errors)


def _error(message: str) -> ActionResult:
    return ActionResult(status="error", message=message)


def create_issue(applier: MutationApplier, form: FormData) -> ActionResult:
    try:
        action = validate_create_form(form, applier.store.list_assignees())
    except ValidationFailed as exc:
        return _invalid(exc)
    try:
        issue = applier.create(action)
    except StoreError as exc:
        return _error(str(exc))
    return ActionResult(
        status="success",
        message=f'New issue {issue.id}: "{issue.title}" created.',
        issue_id=issue.id,
        issue=issue,
    )


def update_issue(applier: MutationApplier, form: FormData) -> ActionResult:
    try:
        action = validate_update_form(form, applier.store.list_assignees())
        issue = applier.update(action)
    except ValidationFailed as exc:
        return _invalid(exc)
    except (IssueNotFoundError, StoreError) as exc:
        return _error(str(exc))
    return ActionResult(status="success", message=f"Issue {issue.id} updated.", issue_id=issue.id, issue=issue)


def delete_issue(applier: MutationApplier, form: FormData) -> ActionResult:
    try:
        action = validate_delete_form(form)
        applier.delete(action)
    except ValidationFailed as exc:
        return _invalid(exc)
    except (IssueNotFoundError, StoreError) as exc:
        return _error(str(exc))
    return ActionResult(status="success", message=f"Issue {action.issue_id} deleted.", issue_id=action.issue_id)


def add_assignee(store: IssueStore, form: FormData) -> ActionResult:
    try:
        name = validate_assignee_form(form, new=True)
    except ValidationFailed as exc:
        return _invalid(exc)
    try:
        added = store.add_assignee(name)
    except StoreError as exc:
        return _error(str(exc))
    if not added:
        return _error(f'Assignee "{name}" already exists.')
    logger.info("Assignee added", assignee=name)
    return ActionResult(status="success", message=f'Assignee "{name}" added.')


def remove_assignee(store: IssueStore, form: FormData) -> ActionResult:
    try:
        name = validate_assignee_form(form)
    except ValidationFailed as exc:
        return _invalid(exc)
    try:
        removed = store.remove_assignee(name)
    except StoreError as exc:
        return _error(str(exc))
    if not removed:
        return _error(f'Assignee "{name}" not found.')
    logger.info("Assignee removed", assignee=name)
    return ActionResult(status="success", message=f'Assignee "{name}" removed.')
