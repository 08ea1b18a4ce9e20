"""Turn raw form submissions and interpreter intents into typed actions.

Form submissions are strict: every problem is collected and raised together as
ValidationFailed. Interpreter intents are lenient on creates (unknown status or
priority fall back to defaults) and strict on targeted updates.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Self

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic_core import PydanticCustomError

from sheetflow.errors import UnfulfillableCommandError, ValidationFailed
from sheetflow.models import (
    ApiMethod,
    CreateIssue,
    DeleteIssue,
    DescriptionPatch,
    FieldPatch,
    Intent,
    IntentKind,
    IssueDescription,
    IssuePriority,
    IssueStatus,
    UpdateIssue,
)
from sheetflow.sentinels import ASSIGNEE_SENTINELS, METHOD_SENTINELS, resolve_sentinel

logger = structlog.get_logger()

FormData = Mapping[str, str | None]

FORM_REPORTER = "Manual Form Entry"
COMMAND_REPORTER = "AI Command Bar"

ASSIGNEE_NAME_MAX = 50

_TRUTHY = {"true", "on", "1", "yes"}


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_member(enum_cls: type, value: Any) -> bool:
    return value in {member.value for member in enum_cls}


def match_assignee(name: str, assignees: Iterable[str]) -> str | None:
    """Return the registered spelling of name, or None if it is not registered."""
    wanted = name.strip().casefold()
    for known in assignees:
        if known.casefold() == wanted:
            return known
    return None


def _field_errors(exc: ValidationError) -> dict[str, list[str]]:
    errors: dict[str, list[str]] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err["loc"] else "form"
        message = "This field is required." if err["type"] == "missing" else err["msg"]
        errors.setdefault(field, []).append(message)
    return errors


# ---------------------------------------------------------------------------
# Forms
# ---------------------------------------------------------------------------


class _Form(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    @classmethod
    def parse(cls, form: FormData, assignees: Iterable[str] = ()) -> Self:
        # None means the field was not submitted at all
        data = {key: value for key, value in form.items() if value is not None}
        try:
            return cls.model_validate(data, context={"assignees": list(assignees)})
        except ValidationError as exc:
            raise ValidationFailed(_field_errors(exc)) from exc


def _required(value: Any, message: str) -> str:
    if _is_blank(value):
        raise PydanticCustomError("required", message)
    return value.strip()


class _IssueFields(_Form):
    """Fields shared by the create and update forms."""

    status: IssueStatus | None = None
    priority: IssuePriority | None = None
    assignee: str | None = None
    labels: list[str] | None = None
    api_name: str | None = Field(default=None, alias="description_apiName")
    method: ApiMethod | None = Field(default=None, alias="description_method")
    payload: str | None = Field(default=None, alias="description_payload")
    response: str | None = Field(default=None, alias="description_response")
    response_code: int | None = Field(default=None, alias="description_responseCode")
    image_data_uri: str | None = Field(default=None, alias="description_imageDataUri")
    general_notes: str | None = Field(default=None, alias="description_generalNotes")

    @field_validator("status", mode="before")
    @classmethod
    def check_status(cls, value: Any) -> Any:
        if _is_blank(value):
            return None
        if not _is_member(IssueStatus, value):
            raise PydanticCustomError("invalid_status", "Invalid status value '{value}'", {"value": value})
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def check_priority(cls, value: Any) -> Any:
        if _is_blank(value):
            return None
        if not _is_member(IssuePriority, value):
            raise PydanticCustomError("invalid_priority", "Invalid priority value '{value}'", {"value": value})
        return value

    @field_validator("assignee", mode="before")
    @classmethod
    def check_assignee(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_blank(value):
            return None
        name = resolve_sentinel(value.strip(), ASSIGNEE_SENTINELS)
        if name is None:
            return None
        known = match_assignee(name, (info.context or {}).get("assignees", []))
        if known is None:
            raise PydanticCustomError("unknown_assignee", "Unknown assignee '{name}'", {"name": name})
        return known

    @field_validator("labels", mode="before")
    @classmethod
    def split_labels(cls, value: Any) -> Any:
        if isinstance(value, str):
            labels = [label.strip() for label in value.split(",")]
            return list(dict.fromkeys(label for label in labels if label))
        return value

    @field_validator("method", mode="before")
    @classmethod
    def check_method(cls, value: Any) -> Any:
        method = resolve_sentinel(value, METHOD_SENTINELS)
        if method is None:
            return None
        if not _is_member(ApiMethod, method):
            raise PydanticCustomError("invalid_method", "Invalid API method '{value}'", {"value": method})
        return method

    @field_validator("response_code", mode="before")
    @classmethod
    def parse_response_code(cls, value: Any) -> Any:
        if _is_blank(value):
            return None
        try:
            return int(str(value).strip())
        except ValueError:
            raise PydanticCustomError("invalid_response_code", "Response code must be an integer") from None

    @field_validator("api_name", "payload", "response", "image_data_uri", "general_notes", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return None if _is_blank(value) else value


class CreateIssueForm(_IssueFields):
    title: str | None = Field(default=None, validate_default=True)

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, value: Any) -> str:
        return _required(value, "Title is required.")

    def to_action(self, reporter: str = FORM_REPORTER) -> CreateIssue:
        return CreateIssue(
            title=self.title,
            status=self.status or IssueStatus.TODO,
            priority=self.priority or IssuePriority.MEDIUM,
            assignee=self.assignee,
            reporter=reporter,
            labels=self.labels or [],
            description=IssueDescription(
                api_name=self.api_name,
                method=self.method,
                payload=self.payload,
                response=self.response,
                response_code=self.response_code,
                image_data_uri=self.image_data_uri,
                general_notes=self.general_notes,
            ),
        )


class UpdateIssueForm(_IssueFields):
    """A key missing from the submission leaves that field untouched."""

    id: str | None = Field(default=None, validate_default=True)
    title: str | None = None
    clear_image: bool = Field(default=False, alias="description_imageDataUri_clear")

    @field_validator("id", mode="before")
    @classmethod
    def check_id(cls, value: Any) -> str:
        return _required(value, "Issue ID is required.")

    @field_validator("title", mode="before")
    @classmethod
    def check_title(cls, value: Any) -> str:
        return _required(value, "Title is required.")

    @field_validator("clear_image", mode="before")
    @classmethod
    def truthy(cls, value: Any) -> bool:
        return str(value).strip().lower() in _TRUTHY

    def _patch(self, name: str) -> FieldPatch:
        if name not in self.model_fields_set:
            return FieldPatch.keep()
        value = getattr(self, name)
        return FieldPatch.clear() if value is None else FieldPatch.replace(value)

    def _image_patch(self) -> FieldPatch:
        if self.clear_image:
            return FieldPatch.clear()
        if self.image_data_uri is not None:
            return FieldPatch.replace(self.image_data_uri)
        return FieldPatch.keep()

    def to_action(self) -> UpdateIssue:
        return UpdateIssue(
            issue_id=self.id,
            title=self.title,
            status=self.status,
            priority=self.priority,
            assignee=self._patch("assignee"),
            labels=(self.labels or []) if "labels" in self.model_fields_set else None,
            description=DescriptionPatch(
                api_name=self._patch("api_name"),
                method=self._patch("method"),
                payload=self._patch("payload"),
                response=self._patch("response"),
                response_code=self._patch("response_code"),
                image_data_uri=self._image_patch(),
                general_notes=self._patch("general_notes"),
            ),
        )


class DeleteIssueForm(_Form):
    issue_id: str | None = Field(default=None, alias="issueId", validate_default=True)

    @field_validator("issue_id", mode="before")
    @classmethod
    def check_issue_id(cls, value: Any) -> str:
        return _required(value, "Issue ID is required for deletion.")


class CommandForm(_Form):
    command: str | None = Field(default=None, validate_default=True)
    context_id: str | None = Field(default=None, alias="issueIdContext")

    @field_validator("command", mode="before")
    @classmethod
    def check_command(cls, value: Any) -> str:
        return _required(value, "Command cannot be empty.")

    @field_validator("context_id", mode="before")
    @classmethod
    def blank_context(cls, value: Any) -> Any:
        return None if _is_blank(value) else value.strip()


class AssigneeForm(_Form):
    name: str | None = Field(default=None, alias="assigneeName", validate_default=True)

    @field_validator("name", mode="before")
    @classmethod
    def check_name(cls, value: Any) -> str:
        name = _required(value, "Assignee name cannot be empty.")
        if len(name) > ASSIGNEE_NAME_MAX:
            raise PydanticCustomError("too_long", "Assignee name too long.")
        return name


class NewAssigneeForm(AssigneeForm):
    @field_validator("name")
    @classmethod
    def check_not_reserved(cls, value: str) -> str:
        # a registered "Unassigned" could never be assigned
        if resolve_sentinel(value, ASSIGNEE_SENTINELS) is None:
            raise PydanticCustomError("reserved_name", "'{name}' is a reserved name.", {"name": value})
        return value


def validate_create_form(form: FormData, assignees: Iterable[str] = ()) -> CreateIssue:
    return CreateIssueForm.parse(form, assignees).to_action()


def validate_update_form(form: FormData, assignees: Iterable[str] = ()) -> UpdateIssue:
    return UpdateIssueForm.parse(form, assignees).to_action()


def validate_delete_form(form: FormData) -> DeleteIssue:
    return DeleteIssue(issue_id=DeleteIssueForm.parse(form).issue_id)


def validate_command_form(form: FormData) -> tuple[str, str | None]:
    parsed = CommandForm.parse(form)
    return parsed.command, parsed.context_id


def validate_assignee_form(form: FormData, new: bool = False) -> str:
    """new=True also rejects names reserved for "no assignee"."""
    return (NewAssigneeForm if new else AssigneeForm).parse(form).name


# ---------------------------------------------------------------------------
# Interpreter intents
# ---------------------------------------------------------------------------


def _intent_create(intent: Intent, assignees: list[str]) -> CreateIssue:
    title = (intent.title or "").strip()
    if not title:
        raise UnfulfillableCommandError("Cannot create issue: title is missing from the interpretation.")

    assignee = resolve_sentinel(intent.assignee, ASSIGNEE_SENTINELS)
    if assignee is not None:
        known = match_assignee(assignee, assignees)
        if known is None:
            logger.warning("Dropping unknown assignee from interpreted create", assignee=assignee)
        assignee = known

    return CreateIssue(
        title=title,
        status=IssueStatus.coerce(intent.status) or IssueStatus.TODO,
        priority=IssuePriority.coerce(intent.priority) or IssuePriority.MEDIUM,
        assignee=assignee,
        reporter=COMMAND_REPORTER,
        description=IssueDescription(general_notes=intent.description or None),
    )


def _intent_assignee(intent: Intent, assignees: list[str]) -> FieldPatch:
    if _is_blank(intent.assignee):
        raise UnfulfillableCommandError("Cannot assign: no assignee in the interpretation.")
    name = resolve_sentinel(intent.assignee.strip(), ASSIGNEE_SENTINELS)
    if name is None:
        return FieldPatch.clear()
    known = match_assignee(name, assignees)
    if known is None:
        raise UnfulfillableCommandError(f"Cannot assign: '{name}' is not a known assignee.")
    return FieldPatch.replace(known)


def action_from_intent(
    kind: IntentKind,
    intent: Intent,
    target_id: str | None,
    assignees: Iterable[str] = (),
) -> CreateIssue | UpdateIssue:
    """Build the action an interpreted command asks for.

    Raises UnfulfillableCommandError when the interpretation lacks what its
    kind requires. target_id is the resolved target (the interpreter's id or
    the caller's context id); creates ignore it.
    """
    known = list(assignees)
    if kind is IntentKind.CREATE:
        return _intent_create(intent, known)
    if kind is IntentKind.UNKNOWN:
        raise UnfulfillableCommandError(f"Unsupported command kind '{intent.kind}'.")
    if not target_id:
        raise UnfulfillableCommandError(f"Cannot {kind.value.replace('-', ' ')}: no issue identifier found.")

    match kind:
        case IntentKind.ASSIGN:
            return UpdateIssue(issue_id=target_id, assignee=_intent_assignee(intent, known))
        case IntentKind.UPDATE_STATUS:
            if _is_blank(intent.status):
                raise UnfulfillableCommandError("Cannot update status: no status in the interpretation.")
            status = IssueStatus.coerce(intent.status)
            if status is None:
                raise UnfulfillableCommandError(f"Invalid status: {intent.status}.")
            return UpdateIssue(issue_id=target_id, status=status)
        case IntentKind.UPDATE_PRIORITY:
            if _is_blank(intent.priority):
                raise UnfulfillableCommandError("Cannot update priority: no priority in the interpretation.")
            priority = IssuePriority.coerce(intent.priority)
            if priority is None:
                raise UnfulfillableCommandError(f"Invalid priority: {intent.priority}.")
            return UpdateIssue(issue_id=target_id, priority=priority)
        case IntentKind.UPDATE_TITLE:
            if _is_blank(intent.title):
                raise UnfulfillableCommandError("Cannot update title: no title in the interpretation.")
            return UpdateIssue(issue_id=target_id, title=intent.title.strip())
        case IntentKind.UPDATE_DESCRIPTION:
            if intent.description is None:
                raise UnfulfillableCommandError("Cannot update description: no description in the interpretation.")
            notes = FieldPatch.replace(intent.description) if intent.description else FieldPatch.clear()
            return UpdateIssue(issue_id=target_id, description=DescriptionPatch(general_notes=notes))
