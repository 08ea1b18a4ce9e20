"""Abstract base class for natural-language command interpreters."""

from abc import ABC, abstractmethod

from sheetflow.models import Intent, Issue


class CommandInterpreter(ABC):
    @abstractmethod
    def interpret(self, command: str, context_id: str) -> Intent:
        """Raise InterpreterError if the command cannot be interpreted."""

    @abstractmethod
    def summarize(self, issues: list[Issue]) -> str: ...
