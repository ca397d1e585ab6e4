from __future__ import annotations

from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GAME_NAME = "pbem1"
DEFAULT_WATCH_DIRECTORY = "./data"
DEFAULT_ALLOWED_EXTENSIONS: Tuple[str, ...] = ("se1",)
DEFAULT_FILE_DEBOUNCE_MS = 30000
DEFAULT_REMINDER_INTERVAL_MINUTES = 720
DEFAULT_POLL_INTERVAL_SEC = 5


class UserMapping(BaseModel):
    """One seat in the turn cycle."""

    order: int
    username: str = Field(min_length=1)
    discord_id: str = Field(min_length=1)

    model_config = ConfigDict(extra="forbid", frozen=True)


def _lower_csv_items(values: Tuple[str, ...]) -> Tuple[str, ...]:
    out = []
    for v in values:
        s = str(v or "").strip().lower()
        if s:
            out.append(s)
    return tuple(out)


class BotConfig(BaseModel):
    """Runtime configuration, loaded once and never mutated."""

    players: Tuple[UserMapping, ...] = Field(min_length=1)
    game_name: str = DEFAULT_GAME_NAME
    webhook_url: str = ""
    watch_directory: str = DEFAULT_WATCH_DIRECTORY
    ignore_patterns: Tuple[str, ...] = ()
    allowed_extensions: Tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS
    file_debounce_ms: int = Field(default=DEFAULT_FILE_DEBOUNCE_MS, ge=0)
    reminder_interval_minutes: int = Field(default=DEFAULT_REMINDER_INTERVAL_MINUTES, ge=1)
    poll_interval_sec: int = Field(default=DEFAULT_POLL_INTERVAL_SEC, ge=1)
    log_level: str = "INFO"

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator("game_name")
    @classmethod
    def _strip_game_name(cls, v: str) -> str:
        s = str(v or "").strip()
        return s or DEFAULT_GAME_NAME

    @field_validator("ignore_patterns")
    @classmethod
    def _normalize_ignore(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return _lower_csv_items(v)

    @field_validator("allowed_extensions")
    @classmethod
    def _normalize_extensions(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        return tuple(e.lstrip(".") for e in _lower_csv_items(v) if e.lstrip("."))

    @property
    def debounce_ms(self) -> int:
        return self.file_debounce_ms

    @property
    def reminder_interval_ms(self) -> int:
        return self.reminder_interval_minutes * 60 * 1000
