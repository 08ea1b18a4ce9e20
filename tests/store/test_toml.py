"""Tests for sheetflow.store.toml."""

import os
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest
import tomlkit

from sheetflow.errors import StoreError
from sheetflow.models import ApiMethod, CreateIssue, DeleteIssue, IssueDescription, UpdateIssue
from sheetflow.mutations import MutationApplier
from sheetflow.store import TomlStore


def test_missing_file_is_empty(tmp_path: Path) -> None:
    store = TomlStore(tmp_path / "issues.toml")
    assert store.list_issues() == []
    assert store.list_assignees() == []
    assert not (tmp_path / "issues.toml").exists()


def test_persists_across_instances(tmp_path: Path, clock: Callable[[], datetime]) -> None:
    path = tmp_path / "data" / "issues.toml"
    store = TomlStore(path)
    store.add_assignee("Alice")
    applier = MutationApplier(store, clock=clock)
    created = applier.create(
        CreateIssue(
            title="Login API",
            assignee="Alice",
            description=IssueDescription(method=ApiMethod.POST, response_code=200, payload='{\n  "a": 1\n}'),
            labels=["api"],
        )
    )
    applier.create(CreateIssue(title="Second"))

    reloaded = TomlStore(path)
    assert [i.id for i in reloaded.list_issues()] == ["SF-002", "SF-001"]
    assert reloaded.get_issue("SF-001") == created
    assert reloaded.list_assignees() == ["Alice"]
    assert reloaded.last_issued("SF") == 2


def test_absent_fields_omitted(tmp_path: Path, clock: Callable[[], datetime]) -> None:
    path = tmp_path / "issues.toml"
    MutationApplier(TomlStore(path), clock=clock).create(CreateIssue(title="Bare"))
    doc = tomlkit.parse(path.read_text()).unwrap()
    raw = doc["issues"][0]
    assert "assignee" not in raw
    assert raw["description"] == {}
    assert raw["status"] == "To Do"


def test_high_water_survives_delete(tmp_path: Path, clock: Callable[[], datetime]) -> None:
    path = tmp_path / "issues.toml"
    applier = MutationApplier(TomlStore(path), clock=clock)
    applier.create(CreateIssue(title="One"))
    applier.create(CreateIssue(title="Two"))
    applier.delete(DeleteIssue(issue_id="SF-002"))

    reopened = MutationApplier(TomlStore(path), clock=clock)
    assert reopened.create(CreateIssue(title="Three")).id == "SF-003"


def test_update_written(tmp_path: Path, clock: Callable[[], datetime]) -> None:
    path = tmp_path / "issues.toml"
    applier = MutationApplier(TomlStore(path), clock=clock)
    applier.create(CreateIssue(title="Old"))
    applier.update(UpdateIssue(issue_id="SF-001", title="New"))
    assert TomlStore(path).get_issue("SF-001").title == "New"


def _make_unwritable(path: Path) -> None:
    path.unlink(missing_ok=True)
    path.mkdir()


def test_failed_write_rolls_back_create(tmp_path: Path, clock: Callable[[], datetime]) -> None:
    path = tmp_path / "issues.toml"
    store = TomlStore(path)
    _make_unwritable(path)

    with pytest.raises(StoreError, match="Could not save issues"):
        MutationApplier(store, clock=clock).create(CreateIssue(title="Lost"))

    assert store.list_issues() == []
    assert store.last_issued("SF") == 0
    assert sorted(p.name for p in tmp_path.iterdir()) == ["issues.toml"]


def test_failed_write_keeps_previous_issue(tmp_path: Path, clock: Callable[[], datetime]) -> None:
    path = tmp_path / "issues.toml"
    store = TomlStore(path)
    applier = MutationApplier(store, clock=clock)
    original = applier.create(CreateIssue(title="Old"))
    _make_unwritable(path)

    with pytest.raises(StoreError):
        applier.update(UpdateIssue(issue_id="SF-001", title="New"))
    with pytest.raises(StoreError):
        applier.delete(DeleteIssue(issue_id="SF-001"))

    assert store.list_issues() == [original]


def test_failed_write_leaves_document_intact(
    tmp_path: Path, clock: Callable[[], datetime], monkeypatch: pytest.MonkeyPatch
) -> None:
    path = tmp_path / "issues.toml"
    applier = MutationApplier(TomlStore(path), clock=clock)
    applier.create(CreateIssue(title="Kept"))
    before = path.read_text()

    def fail_replace(src: str, dst: Path) -> None:
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(os, "replace", fail_replace)
    with pytest.raises(StoreError, match="Permission denied"):
        applier.create(CreateIssue(title="Dropped"))

    assert path.read_text() == before
    assert [i.id for i in applier.store.list_issues()] == ["SF-001"]
    assert sorted(p.name for p in tmp_path.iterdir()) == ["issues.toml"]
