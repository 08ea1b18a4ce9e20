"""Free-text command resolution: interpret, dispatch by intent kind, commit."""

import structlog

from sheetflow.errors import (
    InterpreterError,
    IssueNotFoundError,
    StoreError,
    UnfulfillableCommandError,
    ValidationFailed,
)
from sheetflow.interpreters.base import CommandInterpreter
from sheetflow.models import CommandResult, Intent, IntentKind
from sheetflow.mutations import MutationApplier
from sheetflow.sentinels import NO_CONTEXT_ID
from sheetflow.validation import FormData, action_from_intent, validate_command_form

logger = structlog.get_logger()

NO_ACTION_MESSAGE = (
    "Command interpreted. No action taken: no issue identifier was found "
    "for an update and it was not a create command."
)


def _resolve_target(intent: Intent, context_id: str | None) -> str | None:
    for candidate in (intent.target_id, context_id):
        if candidate and candidate.strip() and candidate != NO_CONTEXT_ID:
            return candidate.strip()
    return None


def _dispatch(applier: MutationApplier, kind: IntentKind, intent: Intent, target_id: str | None) -> CommandResult:
    store = applier.store
    match kind:
        case IntentKind.CREATE:
            issue = applier.create(action_from_intent(kind, intent, None, store.list_assignees()))
            return CommandResult(
                status="success",
                message=f'New issue {issue.id}: "{issue.title}" created.',
                issue_id=issue.id,
                issue=issue,
                interpretation=intent,
            )
        case IntentKind.UNKNOWN if target_id is None:
            return CommandResult(status="success", message=NO_ACTION_MESSAGE, interpretation=intent)
        case IntentKind.UNKNOWN:
            issue = store.get_issue(target_id)
            return CommandResult(
                status="success",
                message=f"Command for issue {issue.id} understood as '{intent.kind}', which is not supported. "
                "No changes made.",
                issue_id=issue.id,
                issue=issue,
                interpretation=intent,
            )
        case _:
            if target_id is not None:
                store.get_issue(target_id)  # not-found takes precedence over missing fields
            issue = applier.update(action_from_intent(kind, intent, target_id, store.list_assignees()))
            return CommandResult(
                status="success",
                message=f"Issue {issue.id} updated. Action: {kind.value}.",
                issue_id=issue.id,
                issue=issue,
                interpretation=intent,
            )


def process_command(
    applier: MutationApplier,
    interpreter: CommandInterpreter,
    command: str,
    context_id: str | None = None,
) -> CommandResult:
    """Interpret command and apply at most one mutation.

    context_id is the fallback target when the command names no issue. Errors
    are reported in the result, never raised.
    """
    command = (command or "").strip()
    if not command:
        return CommandResult(
            status="error",
            message="Command cannot be empty.",
            errors={"command": ["Command cannot be empty."]},
        )

    try:
        intent = interpreter.interpret(command, context_id or NO_CONTEXT_ID)
    except InterpreterError as exc:
        logger.warning("Interpreter failed", error=str(exc))
        return CommandResult(status="error", message=str(exc))
    except Exception as exc:
        logger.exception("Interpreter raised unexpectedly")
        return CommandResult(status="error", message=f"Failed to interpret command: {exc}")

    kind = IntentKind.from_raw(intent.kind)
    target_id = _resolve_target(intent, context_id)
    logger.info("Dispatching command", kind=kind.value, target_id=target_id)

    try:
        return _dispatch(applier, kind, intent, target_id)
    except (UnfulfillableCommandError, IssueNotFoundError) as exc:
        logger.info("Command not applied", kind=kind.value, reason=str(exc))
        return CommandResult(status="error", message=str(exc), issue_id=target_id, interpretation=intent)
    except StoreError as exc:
        logger.error("Command not saved", kind=kind.value, error=str(exc))
        return CommandResult(status="error", message=str(exc), issue_id=target_id, interpretation=intent)


def process_command_form(applier: MutationApplier, interpreter: CommandInterpreter, form: FormData) -> CommandResult:
    try:
        command, context_id = validate_command_form(form)
    except ValidationFailed as exc:
        return CommandResult(status="error", message=exc.message, errors=exc.errors)
    return process_command(applier, interpreter, command, context_id)
