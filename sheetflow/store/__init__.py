from sheetflow.store.base import IssueStore
from sheetflow.store.memory import MemoryStore
from sheetflow.store.toml import TomlStore

__all__ = ["IssueStore", "MemoryStore", "TomlStore"]
