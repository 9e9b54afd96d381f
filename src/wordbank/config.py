"""User settings for Wordbank.

Settings are kept as JSON under the Wordbank home directory
(``$WORDBANK_HOME``, ``~/.wordbank`` by default). API keys and the debug flag
can also come from the environment or a ``.env`` file, which take precedence
over the stored values.
"""

import os
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Union

import structlog
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

logger = structlog.get_logger(__name__)

SETTINGS_FILENAME = "settings.json"
DATABASE_FILENAME = "wordbank.duckdb"

_API_KEY_ENV = {"openai": "OPENAI_API_KEY", "gemini": "GEMINI_API_KEY"}


class GeneralSettings(BaseModel):
    theme: Literal["light", "dark", "system"] = "system"
    language: str = "en"
    words_per_session: int = Field(default=10, ge=1)
    srs_method: str = "default"


class AISettings(BaseModel):
    service: Literal["openai", "gemini"] = "openai"
    api_url: str = "https://api.openai.com/v1/"
    api_key: str = ""
    # None selects the default model of the chosen service
    model_name: Optional[str] = None


class AdvancedSettings(BaseModel):
    debug_mode: bool = False


class Settings(BaseModel):
    """All user-adjustable settings."""

    general: GeneralSettings = Field(default_factory=GeneralSettings)
    ai: AISettings = Field(default_factory=AISettings)
    advanced: AdvancedSettings = Field(default_factory=AdvancedSettings)

    def is_ai_configured(self) -> bool:
        return bool(self.ai.api_key)


def get_home_dir() -> Path:
    """Returns the directory holding settings and the wordbank database."""
    return Path(os.getenv("WORDBANK_HOME") or Path.home() / ".wordbank")


def get_settings_path() -> Path:
    return get_home_dir() / SETTINGS_FILENAME


def get_database_path() -> Path:
    return get_home_dir() / DATABASE_FILENAME


def _apply_environment(settings: Settings) -> Settings:
    env_key = os.getenv(_API_KEY_ENV[settings.ai.service])
    if env_key:
        settings.ai.api_key = env_key

    debug = os.getenv("WORDBANK_DEBUG")
    if debug is not None:
        settings.advanced.debug_mode = debug.strip().lower() in ("1", "true", "yes", "on")

    return settings


def load_settings(path: Optional[Union[str, Path]] = None, use_env: bool = True) -> Settings:
    """Loads settings from disk, falling back to defaults.

    A missing, unreadable or invalid settings file yields the default settings.

    Args:
        path: Settings file to read. Defaults to the file in the Wordbank home.
        use_env: Whether to apply ``.env`` and environment overrides.

    Returns:
        The loaded Settings.
    """
    path = Path(path) if path else get_settings_path()
    settings = Settings()

    if path.exists():
        try:
            settings = Settings.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning("settings.invalid", path=str(path), error=str(e))
            settings = Settings()

    if use_env:
        load_dotenv()
        settings = _apply_environment(settings)

    return settings


def save_settings(settings: Settings, path: Optional[Union[str, Path]] = None) -> Path:
    """Writes settings to disk as JSON and returns the path written to."""
    path = Path(path) if path else get_settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")
    logger.debug("settings.saved", path=str(path))
    return path


def update_settings(
    partial: Dict[str, Dict[str, Any]], path: Optional[Union[str, Path]] = None
) -> Settings:
    """Merges ``partial`` into the stored settings and saves the result.

    Args:
        partial: Section name to field values, e.g. ``{"ai": {"api_key": "..."}}``.
        path: Settings file. Defaults to the file in the Wordbank home.

    Returns:
        The updated Settings.
    """
    current = load_settings(path, use_env=False).model_dump()
    for section, values in partial.items():
        current.setdefault(section, {}).update(values)
    settings = Settings.model_validate(current)
    save_settings(settings, path)
    return settings
