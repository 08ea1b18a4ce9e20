"""Shared test fixtures."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import pytest

from sheetflow.errors import InterpreterError
from sheetflow.interpreters.base import CommandInterpreter
from sheetflow.models import ApiMethod, Intent, Issue, IssueDescription, IssuePriority, IssueStatus
from sheetflow.mutations import MutationApplier
from sheetflow.store import MemoryStore

T0 = datetime(2024, 1, 1, 9, 0, tzinfo=UTC)


class Clock:
    """Deterministic clock: each call advances one minute."""

    def __init__(self, start: datetime = T0 + timedelta(days=30)) -> None:
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(minutes=1)
        return self.now


class FakeInterpreter(CommandInterpreter):
    def __init__(self, intent: Intent | None = None, error: Exception | None = None) -> None:
        self.intent = intent
        self.error = error
        self.calls: list[tuple[str, str]] = []

    def interpret(self, command: str, context_id: str) -> Intent:
        self.calls.append((command, context_id))
        if self.error is not None:
            raise self.error
        assert self.intent is not None
        return self.intent

    def summarize(self, issues: list[Issue]) -> str:
        if self.error is not None:
            raise InterpreterError(str(self.error))
        return f"{len(issues)} open issues."


def _build_issue(number: int, **overrides) -> Issue:
    fields = {
        "id": f"SF-{number:03d}",
        "title": f"Issue {number}",
        "reporter": "Project Lead",
        "created_at": T0,
        "updated_at": T0,
    }
    fields.update(overrides)
    return Issue(**fields)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def make_issue() -> Callable[..., Issue]:
    """Factory for issues SF-NNN created and updated at T0."""
    return _build_issue


@pytest.fixture
def fake_interpreter() -> Callable[..., FakeInterpreter]:
    """Factory: fake_interpreter(intent) or fake_interpreter(error=exc)."""
    return FakeInterpreter


@pytest.fixture
def assignees() -> list[str]:
    return ["Alice Wonderland", "Bob The Builder", "Charlie Brown"]


@pytest.fixture
def seeded_issues() -> list[Issue]:
    return [
        _build_issue(3, title="Integrate Google Sheets API", status=IssueStatus.BACKLOG),
        _build_issue(
            2,
            title="Design issue list UI",
            priority=IssuePriority.HIGH,
            assignee="Bob The Builder",
            labels=["ui", "frontend"],
            description=IssueDescription(general_notes="Responsive list with filters."),
        ),
        _build_issue(
            1,
            title="Implement user authentication API",
            status=IssueStatus.IN_PROGRESS,
            priority=IssuePriority.URGENT,
            assignee="Alice Wonderland",
            description=IssueDescription(
                api_name="/auth/login",
                method=ApiMethod.POST,
                payload='{"email": "user@example.com"}',
                response='{"token": "jwt"}',
                response_code=200,
                image_data_uri="https://placehold.co/300x200.png",
                general_notes="Login endpoint.",
            ),
        ),
    ]


@pytest.fixture
def store(seeded_issues: list[Issue], assignees: list[str]) -> MemoryStore:
    return MemoryStore(issues=seeded_issues, assignees=assignees, issued={"SF": 3})


@pytest.fixture
def empty_store(assignees: list[str]) -> MemoryStore:
    return MemoryStore(assignees=assignees)


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def applier(store: MemoryStore, clock: Clock) -> MutationApplier:
    return MutationApplier(store, clock=clock)
