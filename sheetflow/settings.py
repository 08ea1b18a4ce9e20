"""Settings resolution with a profile precedence chain."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
import typer
from pydantic import SecretStr
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "sheetflow" / "config.toml"
DATA_PATH = Path.home() / ".local" / "share" / "sheetflow" / "issues.toml"


class SheetflowSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="SHEETFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # Store
    store_path: Path = DATA_PATH
    id_prefix: str = "SF"

    # Interpreter (OpenAI-compatible chat completions endpoint)
    interpreter_url: str = "https://api.openai.com/v1"
    interpreter_api_key: SecretStr | None = None
    interpreter_model: str = "gpt-4o-mini"
    interpreter_timeout: float = 30.0  # seconds

    log_level: str = "WARNING"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values arrive as init kwargs; env and .env win over them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/sheetflow/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> SheetflowSettings:
    """Resolve the active profile and return a fully populated SheetflowSettings.

    Precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. SHEETFLOW_PROFILE env var
    3. default_profile key in ~/.config/sheetflow/config.toml
    4. First profile defined in ~/.config/sheetflow/config.toml

    With no profile at all, settings come from env vars and .env alone.
    """
    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("SHEETFLOW_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            profile_defaults = dict(toml_config[active])
        else:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    return SheetflowSettings(**profile_defaults)
