"""TOML-file issue store: a MemoryStore that rewrites its file after every mutation."""

import os
import tempfile
from pathlib import Path

import structlog
import tomlkit

from sheetflow.errors import StoreError
from sheetflow.models import Issue
from sheetflow.store.memory import MemoryStore

logger = structlog.get_logger()


class TomlStore(MemoryStore):
    """Document layout:

        assignees = ["Alice", "Bob"]

        [issued]
        SF = 4

        [[issues]]
        id = "SF-004"
        title = "..."
        [issues.description]
        general_notes = "..."

    Absent fields are omitted; TOML has no null. Writes go to a temporary file
    in the same directory which then replaces the document, so a failed write
    leaves the previous document intact.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        if path.exists():
            data = tomlkit.parse(path.read_text()).unwrap()
            logger.debug("Store loaded", path=str(path), issues=len(data.get("issues", [])))
        else:
            data = {}
        super().__init__(
            issues=[Issue.model_validate(raw) for raw in data.get("issues", [])],
            assignees=data.get("assignees", []),
            issued=data.get("issued", {}),
        )

    def _commit(self) -> None:
        doc = tomlkit.document()
        doc.add("assignees", self._assignees)
        doc.add("issued", self._issued)
        if self._issues:
            doc.add("issues", [issue.model_dump(mode="json", exclude_none=True) for issue in self._issues])
        self._write(tomlkit.dumps(doc))

    def _write(self, text: str) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                tmp.write(text)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            logger.error("Store write failed", path=str(self.path), error=str(exc))
            raise StoreError(f"Could not save issues to {self.path}: {exc.strerror or exc}") from exc
