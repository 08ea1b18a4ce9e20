"""Shared pydantic models — the contract between the store, the core and main.py."""

import re
from datetime import datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class IssueStatus(StrEnum):
    TODO = "To Do"
    IN_PROGRESS = "In Progress"
    DONE = "Done"
    BACKLOG = "Backlog"
    CANCELLED = "Cancelled"

    @classmethod
    def coerce(cls, value: str | None) -> "IssueStatus | None":
        """Case-insensitive lookup; None for anything that is not a member."""
        return _coerce(cls, value)


class IssuePriority(StrEnum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"

    @classmethod
    def coerce(cls, value: str | None) -> "IssuePriority | None":
        return _coerce(cls, value)


class ApiMethod(StrEnum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"
    OTHER = "OTHER"


def _coerce(enum_cls: type[StrEnum], value: str | None) -> Any:
    if not value:
        return None
    wanted = value.strip().casefold()
    for member in enum_cls:
        if member.value.casefold() == wanted:
            return member
    return None


CLOSED_STATUSES = frozenset({IssueStatus.DONE, IssueStatus.CANCELLED})


class IssueDescription(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_name: str | None = None
    method: ApiMethod | None = None
    payload: str | None = None  # opaque, never parsed
    response: str | None = None
    response_code: int | None = None
    image_data_uri: str | None = None
    general_notes: str | None = None


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str  # SF-001
    title: str
    status: IssueStatus = IssueStatus.TODO
    priority: IssuePriority = IssuePriority.MEDIUM
    assignee: str | None = None
    reporter: str | None = None
    created_at: datetime
    updated_at: datetime
    due_date: datetime | None = None
    description: IssueDescription = IssueDescription()
    labels: list[str] = []


# ---------------------------------------------------------------------------
# Patches
# ---------------------------------------------------------------------------


class FieldPatch(BaseModel):
    """One field of a partial update: keep the stored value, replace it, or clear it."""

    model_config = ConfigDict(frozen=True)

    op: Literal["keep", "replace", "clear"] = "keep"
    value: Any = None

    @classmethod
    def keep(cls) -> "FieldPatch":
        return cls()

    @classmethod
    def replace(cls, value: Any) -> "FieldPatch":
        return cls(op="replace", value=value)

    @classmethod
    def clear(cls) -> "FieldPatch":
        return cls(op="clear")

    def apply(self, current: Any) -> Any:
        match self.op:
            case "keep":
                return current
            case "replace":
                return self.value
            case "clear":
                return None


class DescriptionPatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    api_name: FieldPatch = FieldPatch()
    method: FieldPatch = FieldPatch()
    payload: FieldPatch = FieldPatch()
    response: FieldPatch = FieldPatch()
    response_code: FieldPatch = FieldPatch()
    image_data_uri: FieldPatch = FieldPatch()
    general_notes: FieldPatch = FieldPatch()

    def merge(self, description: IssueDescription) -> IssueDescription:
        """Apply each field patch on top of the stored description."""
        merged = {
            name: getattr(self, name).apply(getattr(description, name)) for name in IssueDescription.model_fields
        }
        return IssueDescription(**merged)


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


class CreateIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    status: IssueStatus = IssueStatus.TODO
    priority: IssuePriority = IssuePriority.MEDIUM
    assignee: str | None = None
    reporter: str | None = None
    description: IssueDescription = IssueDescription()
    labels: list[str] = []


class UpdateIssue(BaseModel):
    """Partial update; None on title/status/priority/labels means unchanged."""

    model_config = ConfigDict(frozen=True)

    issue_id: str
    title: str | None = None
    status: IssueStatus | None = None
    priority: IssuePriority | None = None
    assignee: FieldPatch = FieldPatch()
    labels: list[str] | None = None
    description: DescriptionPatch = DescriptionPatch()


class DeleteIssue(BaseModel):
    model_config = ConfigDict(frozen=True)

    issue_id: str


Action = CreateIssue | UpdateIssue | DeleteIssue


# ---------------------------------------------------------------------------
# Interpreter contract
# ---------------------------------------------------------------------------


class IntentKind(StrEnum):
    CREATE = "create"
    ASSIGN = "assign"
    UPDATE_STATUS = "update-status"
    UPDATE_PRIORITY = "update-priority"
    UPDATE_TITLE = "update-title"
    UPDATE_DESCRIPTION = "update-description"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw: str) -> "IntentKind":
        """Map the interpreter's free-form kind (update-status, updateIssueStatus, ...) to a member."""
        return _INTENT_ALIASES.get(re.sub(r"[^a-z]", "", raw.lower()), cls.UNKNOWN)


_INTENT_ALIASES = {
    "create": IntentKind.CREATE,
    "createissue": IntentKind.CREATE,
    "assign": IntentKind.ASSIGN,
    "assignissue": IntentKind.ASSIGN,
    "updatestatus": IntentKind.UPDATE_STATUS,
    "updateissuestatus": IntentKind.UPDATE_STATUS,
    "updatepriority": IntentKind.UPDATE_PRIORITY,
    "updateissuepriority": IntentKind.UPDATE_PRIORITY,
    "updatetitle": IntentKind.UPDATE_TITLE,
    "updateissuetitle": IntentKind.UPDATE_TITLE,
    "updatedescription": IntentKind.UPDATE_DESCRIPTION,
    "updateissuedescription": IntentKind.UPDATE_DESCRIPTION,
}


class Intent(BaseModel):
    """Structured interpretation of a free-text command."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    kind: str
    target_id: str | None = Field(default=None, alias="targetId")
    title: str | None = None
    description: str | None = None
    assignee: str | None = None
    status: str | None = None
    priority: str | None = None


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class ActionResult(BaseModel):
    """Tagged outcome of a form submission or command; never raised."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success", "error"]
    message: str
    errors: dict[str, list[str]] = {}
    issue_id: str | None = None
    issue: Issue | None = None

    @property
    def ok(self) -> bool:
        return self.status == "success"


class CommandResult(ActionResult):
    interpretation: Intent | None = None
