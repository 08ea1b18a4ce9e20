"""Interpreter backed by an OpenAI-compatible chat completions API."""

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from sheetflow.errors import InterpreterError
from sheetflow.interpreters.base import CommandInterpreter
from sheetflow.interpreters.prompts import (
    INTERPRET_SYSTEM,
    SUMMARIZE_SYSTEM,
    interpret_user_message,
    summarize_user_message,
)
from sheetflow.models import Intent, Issue
from sheetflow.settings import SheetflowSettings

logger = structlog.get_logger()


class _Summary(BaseModel):
    summary: str


class LlmInterpreter(CommandInterpreter):
    def __init__(self, settings: SheetflowSettings) -> None:
        if not settings.interpreter_api_key:
            raise InterpreterError("interpreter_api_key is required")
        self._api_key = settings.interpreter_api_key.get_secret_value()
        self._endpoint = settings.interpreter_url.rstrip("/") + "/chat/completions"
        self._model = settings.interpreter_model
        self._timeout = settings.interpreter_timeout

    def _complete(self, system: str, user: str) -> str:
        try:
            response = httpx.post(
                self._endpoint,
                json={
                    "model": self._model,
                    "temperature": 0,
                    "response_format": {"type": "json_object"},
                    "messages": [
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                },
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self._timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise InterpreterError(f"Interpreter did not respond within {self._timeout:g}s") from exc
        except httpx.HTTPStatusError as exc:
            raise InterpreterError(f"Interpreter returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise InterpreterError(f"Interpreter request failed: {exc}") from exc

        try:
            return response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise InterpreterError("Interpreter response had no message content") from exc

    def interpret(self, command: str, context_id: str) -> Intent:
        content = self._complete(INTERPRET_SYSTEM, interpret_user_message(command, context_id))
        try:
            intent = Intent.model_validate_json(content)
        except ValidationError as exc:
            raise InterpreterError(f"Interpreter returned an unusable interpretation: {content}") from exc
        logger.debug("Command interpreted", kind=intent.kind, target_id=intent.target_id)
        return intent

    def summarize(self, issues: list[Issue]) -> str:
        content = self._complete(SUMMARIZE_SYSTEM, summarize_user_message(issues))
        try:
            return _Summary.model_validate_json(content).summary
        except ValidationError as exc:
            raise InterpreterError("Interpreter returned an unusable summary") from exc
