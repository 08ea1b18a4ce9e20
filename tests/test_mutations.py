"""Tests for sheetflow.mutations."""

from collections.abc import Callable
from datetime import datetime

import pytest

from sheetflow.errors import IssueNotFoundError
from sheetflow.models import (
    ApiMethod,
    CreateIssue,
    DeleteIssue,
    DescriptionPatch,
    FieldPatch,
    IssueDescription,
    IssuePriority,
    IssueStatus,
    UpdateIssue,
)
from sheetflow.mutations import MutationApplier
from sheetflow.store import MemoryStore


class TestCreate:
    def test_empty_store(self, empty_store: MemoryStore, clock: Callable[[], datetime]) -> None:
        applier = MutationApplier(empty_store, clock=clock)
        issue = applier.create(CreateIssue(title="Fix login"))
        assert issue.id == "SF-001"
        assert issue.status is IssueStatus.TODO
        assert issue.priority is IssuePriority.MEDIUM
        assert issue.assignee is None
        assert issue.created_at == issue.updated_at
        assert empty_store.list_issues() == [issue]

    def test_next_after_seed(self, applier: MutationApplier) -> None:
        assert applier.create(CreateIssue(title="Another")).id == "SF-004"

    def test_inserted_at_head(self, applier: MutationApplier, store: MemoryStore) -> None:
        issue = applier.create(CreateIssue(title="Newest"))
        assert [i.id for i in store.list_issues()] == [issue.id, "SF-003", "SF-002", "SF-001"]

    def test_deleted_ids_never_reused(self, applier: MutationApplier, store: MemoryStore) -> None:
        first = applier.create(CreateIssue(title="Temp"))
        applier.delete(DeleteIssue(issue_id=first.id))
        second = applier.create(CreateIssue(title="After delete"))
        assert first.id == "SF-004"
        assert second.id == "SF-005"

    def test_deleting_middle_id_does_not_matter(self, applier: MutationApplier) -> None:
        applier.delete(DeleteIssue(issue_id="SF-002"))
        assert applier.create(CreateIssue(title="X")).id == "SF-004"

    def test_carries_description_and_labels(self, applier: MutationApplier) -> None:
        description = IssueDescription(api_name="/users", method=ApiMethod.GET, response_code=200)
        issue = applier.create(CreateIssue(title="List users", description=description, labels=["api"]))
        assert issue.description == description
        assert issue.labels == ["api"]

    def test_custom_prefix(self, store: MemoryStore, clock: Callable[[], datetime]) -> None:
        applier = MutationApplier(store, id_prefix="OPS", clock=clock)
        assert applier.create(CreateIssue(title="Ops work")).id == "OPS-001"


class TestUpdate:
    def test_status_only_leaves_rest_untouched(self, applier: MutationApplier, store: MemoryStore) -> None:
        before = store.get_issue("SF-001")
        after = applier.update(UpdateIssue(issue_id="SF-001", status=IssueStatus.DONE))
        assert after.status is IssueStatus.DONE
        assert after.updated_at > before.updated_at
        assert after.model_dump(exclude={"status", "updated_at"}) == before.model_dump(
            exclude={"status", "updated_at"}
        )

    def test_preserves_order(self, applier: MutationApplier, store: MemoryStore) -> None:
        applier.update(UpdateIssue(issue_id="SF-002", title="Renamed"))
        assert [i.id for i in store.list_issues()] == ["SF-003", "SF-002", "SF-001"]
        assert store.get_issue("SF-002").title == "Renamed"

    def test_clear_assignee(self, applier: MutationApplier) -> None:
        updated = applier.update(UpdateIssue(issue_id="SF-002", assignee=FieldPatch.clear()))
        assert updated.assignee is None
        assert updated.priority is IssuePriority.HIGH

    def test_description_merged_not_replaced(self, applier: MutationApplier) -> None:
        patch = DescriptionPatch(response_code=FieldPatch.replace(201), general_notes=FieldPatch.clear())
        updated = applier.update(UpdateIssue(issue_id="SF-001", description=patch))
        assert updated.description.response_code == 201
        assert updated.description.general_notes is None
        assert updated.description.api_name == "/auth/login"
        assert updated.description.method is ApiMethod.POST

    def test_image_three_way(self, applier: MutationApplier) -> None:
        original = "https://placehold.co/300x200.png"
        unchanged = applier.update(UpdateIssue(issue_id="SF-001", title="Same image"))
        assert unchanged.description.image_data_uri == original

        replaced = applier.update(
            UpdateIssue(
                issue_id="SF-001",
                description=DescriptionPatch(image_data_uri=FieldPatch.replace("data:image/png;base64,CC")),
            )
        )
        assert replaced.description.image_data_uri == "data:image/png;base64,CC"

        cleared = applier.update(
            UpdateIssue(issue_id="SF-001", description=DescriptionPatch(image_data_uri=FieldPatch.clear()))
        )
        assert cleared.description.image_data_uri is None

    def test_updated_at_never_moves_backwards(self, store: MemoryStore, t0: datetime) -> None:
        applier = MutationApplier(store, clock=lambda: t0.replace(year=2020))
        updated = applier.update(UpdateIssue(issue_id="SF-003", priority=IssuePriority.LOW))
        assert updated.updated_at == t0
        assert updated.updated_at >= updated.created_at

    def test_not_found_leaves_store_unchanged(self, applier: MutationApplier, store: MemoryStore) -> None:
        before = store.list_issues()
        with pytest.raises(IssueNotFoundError, match="SF-404"):
            applier.update(UpdateIssue(issue_id="SF-404", status=IssueStatus.DONE))
        assert store.list_issues() == before


class TestDelete:
    def test_removes(self, applier: MutationApplier, store: MemoryStore) -> None:
        applier.delete(DeleteIssue(issue_id="SF-002"))
        assert [i.id for i in store.list_issues()] == ["SF-003", "SF-001"]

    def test_not_found(self, applier: MutationApplier) -> None:
        with pytest.raises(IssueNotFoundError):
            applier.delete(DeleteIssue(issue_id="SF-999"))


def test_apply_dispatches(applier: MutationApplier, store: MemoryStore) -> None:
    created = applier.apply(CreateIssue(title="Via apply"))
    assert created is not None and created.id == "SF-004"
    updated = applier.apply(UpdateIssue(issue_id="SF-004", status=IssueStatus.BACKLOG))
    assert updated is not None and updated.status is IssueStatus.BACKLOG
    assert applier.apply(DeleteIssue(issue_id="SF-004")) is None
    assert len(store.list_issues()) == 3
