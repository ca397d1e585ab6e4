"""Configuration loading for turnbot.

Sources, lowest precedence first:
- built-in defaults (see contracts/v1/config.py)
- an optional YAML file (`--config`)
- environment variables, after an optional `.env` file has been loaded

The result is a frozen BotConfig; nothing reads the environment afterwards.
"""
from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml  # type: ignore
from dotenv import load_dotenv
from pydantic import ValidationError

from ..contracts.v1 import BotConfig, UserMapping
from ..contracts.v1.config import (
    DEFAULT_FILE_DEBOUNCE_MS,
    DEFAULT_GAME_NAME,
    DEFAULT_POLL_INTERVAL_SEC,
    DEFAULT_REMINDER_INTERVAL_MINUTES,
    DEFAULT_WATCH_DIRECTORY,
)
from ..util.mask import mask_id
from ..util.time import format_duration_minutes
from .players import ConfigError, parse_user_mappings, validate_players

logger = logging.getLogger("turnbot.settings")

REQUIRED_ENV = ("USER_MAPPINGS", "GAME_NAME")

# env var -> (config key, kind)
_ENV_KEYS: Dict[str, tuple[str, str]] = {
    "GAME_NAME": ("game_name", "str"),
    "DISCORD_WEBHOOK_URL": ("webhook_url", "str"),
    "WATCH_DIRECTORY": ("watch_directory", "str"),
    "IGNORE_PATTERNS": ("ignore_patterns", "csv"),
    "ALLOWED_EXTENSIONS": ("allowed_extensions", "csv"),
    "FILE_DEBOUNCE_MS": ("file_debounce_ms", "int"),
    "REMINDER_INTERVAL_MINUTES": ("reminder_interval_minutes", "int"),
    "POLL_INTERVAL_SEC": ("poll_interval_sec", "int"),
    "LOG_LEVEL": ("log_level", "str"),
}

_INT_DEFAULTS = {
    "file_debounce_ms": DEFAULT_FILE_DEBOUNCE_MS,
    "reminder_interval_minutes": DEFAULT_REMINDER_INTERVAL_MINUTES,
    "poll_interval_sec": DEFAULT_POLL_INTERVAL_SEC,
}


def parse_csv_lower(s: Any) -> List[str]:
    if isinstance(s, (list, tuple)):
        items = [str(x) for x in s]
    else:
        text = str(s or "").strip()
        if not text:
            return []
        items = text.split(",")
    out: List[str] = []
    for p in items:
        v = p.strip().lower()
        if v:
            out.append(v)
    return out


def parse_int_or_default(value: Any, default: int) -> int:
    if value is None:
        return default
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    s = str(value).strip()
    if not s:
        return default
    try:
        return int(s)
    except ValueError:
        return default


def maybe_load_dotenv(env_file: Optional[Path] = None, *, environ: Optional[Mapping[str, str]] = None) -> bool:
    """Load `.env` when required variables are missing. Existing variables win."""
    env = os.environ if environ is None else environ
    if all(str(env.get(k) or "").strip() for k in REQUIRED_ENV):
        logger.info("Using environment variables from system")
        return False
    path = env_file or Path.cwd() / ".env"
    if not path.is_file():
        logger.warning("No .env file found and required environment variables not set")
        return False
    logger.info(f"Loading environment variables from {path}")
    return bool(load_dotenv(path, override=False))


def read_yaml_config(path: Path) -> Dict[str, Any]:
    try:
        doc = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if doc is None:
        return {}
    if not isinstance(doc, dict):
        raise ConfigError(f"config file {path} must contain a mapping")
    return doc


def _players_from_doc(doc: Mapping[str, Any]) -> Optional[tuple[UserMapping, ...]]:
    players = doc.get("players")
    if players is not None:
        if not isinstance(players, list):
            raise ConfigError("'players' must be a list of {order, username, discord_id}")
        try:
            parsed = [UserMapping.model_validate(p) for p in players]
        except ValidationError as e:
            raise ConfigError(f"invalid players entry: {e}") from e
        return validate_players(parsed)
    raw = doc.get("user_mappings")
    if raw is not None:
        return parse_user_mappings(str(raw))
    return None


def build_config(
    *,
    environ: Optional[Mapping[str, str]] = None,
    file_doc: Optional[Mapping[str, Any]] = None,
) -> BotConfig:
    """Merge file values and environment values into a BotConfig.

    Raises:
        ConfigError: players are missing or malformed, or a value is invalid.
    """
    env = os.environ if environ is None else environ
    doc: Dict[str, Any] = dict(file_doc or {})

    values: Dict[str, Any] = {}
    for key in ("game_name", "webhook_url", "watch_directory", "log_level"):
        if doc.get(key) is not None:
            values[key] = str(doc[key])
    for key in ("ignore_patterns", "allowed_extensions"):
        if doc.get(key) is not None:
            values[key] = parse_csv_lower(doc[key])
    for key, default in _INT_DEFAULTS.items():
        if doc.get(key) is not None:
            values[key] = parse_int_or_default(doc[key], default)

    players = _players_from_doc(doc)
    raw_env_players = str(env.get("USER_MAPPINGS") or "").strip()
    if raw_env_players:
        players = parse_user_mappings(raw_env_players)
    if players is None:
        raise ConfigError("USER_MAPPINGS is not set (e.g. '1 User1 ID1,2 User2 ID2')")
    values["players"] = players

    for var, (key, kind) in _ENV_KEYS.items():
        raw = env.get(var)
        if raw is None or not str(raw).strip():
            continue
        if kind == "csv":
            values[key] = parse_csv_lower(raw)
        elif kind == "int":
            values[key] = parse_int_or_default(raw, _INT_DEFAULTS[key])
        else:
            values[key] = str(raw).strip()

    try:
        return BotConfig(**values)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e


def load_config(
    *,
    config_path: Optional[Path] = None,
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BotConfig:
    if environ is None:
        maybe_load_dotenv(env_file)
    file_doc = read_yaml_config(config_path) if config_path is not None else None
    return build_config(environ=environ, file_doc=file_doc)


def log_config_summary(cfg: BotConfig, *, environ: Optional[Mapping[str, str]] = None) -> None:
    env = os.environ if environ is None else environ
    logger.info(f"Loaded {len(cfg.players)} user mappings")
    for p in cfg.players:
        logger.info(
            f"  - Order: {p.order}, User: {p.username}, ID: {mask_id(p.discord_id)}",
            extra={"player": p.username, "recipient": mask_id(p.discord_id)},
        )
    if not str(env.get("GAME_NAME") or "").strip() and cfg.game_name == DEFAULT_GAME_NAME:
        logger.info(f"GAME_NAME is not set, using default: {DEFAULT_GAME_NAME}")
    if not cfg.webhook_url:
        logger.warning("DISCORD_WEBHOOK_URL is not set, webhook notifications will fail")
    if not str(env.get("WATCH_DIRECTORY") or "").strip() and cfg.watch_directory == DEFAULT_WATCH_DIRECTORY:
        logger.warning(f"WATCH_DIRECTORY is not set, using default: {DEFAULT_WATCH_DIRECTORY}")
    if cfg.ignore_patterns:
        logger.info(f"Will ignore files containing patterns: {', '.join(cfg.ignore_patterns)}")
    logger.info(f"File debounce time set to {cfg.file_debounce_ms // 1000} seconds")
    logger.info(f"Reminder interval set to {format_duration_minutes(cfg.reminder_interval_minutes)}")


def config_to_public_dict(cfg: BotConfig) -> Dict[str, Any]:
    """Config as plain data with recipient IDs masked and the webhook hidden."""
    doc = cfg.model_dump(mode="json")
    doc["players"] = [
        {"order": p.order, "username": p.username, "discord_id": mask_id(p.discord_id)} for p in cfg.players
    ]
    doc["webhook_url"] = "set" if cfg.webhook_url else ""
    return doc
