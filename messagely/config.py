"""Configuration management for the messaging service."""
from __future__ import annotations

import logging
import os
import secrets
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

logger = logging.getLogger("messagely.config")

DEFAULT_TOKEN_TTL_SECONDS = 7 * 24 * 60 * 60
DEFAULT_BCRYPT_ROUNDS = 12

_ENV_DB_PATH = "MESSAGELY_DB_PATH"
_ENV_SECRET_KEY = "MESSAGELY_SECRET_KEY"
_ENV_TOKEN_TTL = "MESSAGELY_TOKEN_TTL"
_ENV_BCRYPT_ROUNDS = "MESSAGELY_BCRYPT_ROUNDS"
_ENV_CONFIG = "MESSAGELY_CONFIG"


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the application database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "messagely.sqlite3").resolve(strict=False)


def resolve_config_path(env_value: Optional[str]) -> Optional[Path]:
    """Resolve the path to the optional YAML configuration file."""

    if not env_value:
        return None
    return Path(env_value).expanduser().resolve(strict=False)


def _positive_int(name: str, value: object) -> int:
    try:
        parsed = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{name} must be an integer, got {value!r}") from exc
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {parsed}")
    return parsed


@dataclass(frozen=True)
class Settings:
    """Runtime settings shared by the CLI and the HTTP service."""

    database_path: Path
    token_secret: str
    token_ttl_seconds: int = DEFAULT_TOKEN_TTL_SECONDS
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS

    def __post_init__(self) -> None:
        if not self.token_secret:
            raise ValueError("token_secret must not be empty")
        _positive_int("token_ttl_seconds", self.token_ttl_seconds)
        if not 4 <= self.bcrypt_rounds <= 31:
            raise ValueError(f"bcrypt_rounds must be between 4 and 31, got {self.bcrypt_rounds}")

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data, filling in defaults."""

        raw_db_path = data.get("database_path")
        if raw_db_path:
            candidate = Path(str(raw_db_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        secret = data.get("token_secret")
        if secret:
            token_secret = str(secret)
        else:
            logger.warning(
                "No token secret configured; generated a per-process secret. Issued tokens"
                " will not survive a restart."
            )
            token_secret = secrets.token_urlsafe(32)

        return Settings(
            database_path=database_path,
            token_secret=token_secret,
            token_ttl_seconds=_positive_int(
                "token_ttl_seconds", data.get("token_ttl_seconds", DEFAULT_TOKEN_TTL_SECONDS)
            ),
            bcrypt_rounds=_positive_int("bcrypt_rounds", data.get("bcrypt_rounds", DEFAULT_BCRYPT_ROUNDS)),
        )


def _read_yaml(config_path: Path) -> Dict[str, object]:
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    section = raw.get("messagely", raw)
    if not isinstance(section, dict):
        raise ValueError("The 'messagely' section of the configuration file must be a mapping")
    return dict(section)


def _environment_overrides(environ: Mapping[str, str]) -> Dict[str, object]:
    overrides: Dict[str, object] = {}
    if environ.get(_ENV_DB_PATH):
        overrides["database_path"] = resolve_database_path(environ[_ENV_DB_PATH])
    if environ.get(_ENV_SECRET_KEY):
        overrides["token_secret"] = environ[_ENV_SECRET_KEY]
    if environ.get(_ENV_TOKEN_TTL):
        overrides["token_ttl_seconds"] = environ[_ENV_TOKEN_TTL]
    if environ.get(_ENV_BCRYPT_ROUNDS):
        overrides["bcrypt_rounds"] = environ[_ENV_BCRYPT_ROUNDS]
    return overrides


def load_settings(
    config_path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from an optional YAML file, then apply environment overrides."""

    env = os.environ if environ is None else environ
    path = config_path or resolve_config_path(env.get(_ENV_CONFIG))

    data: Dict[str, object] = {}
    base_path: Path | None = None
    if path is not None:
        data.update(_read_yaml(path))
        base_path = path.parent
        logger.info("Loaded configuration from %s", path)

    data.update(_environment_overrides(env))
    return Settings.from_dict(data, base_path=base_path)


def with_database_path(settings: Settings, database_path: Path) -> Settings:
    """Return a copy of ``settings`` pointing at another database file."""

    return replace(settings, database_path=database_path)


__all__ = [
    "Settings",
    "load_settings",
    "resolve_config_path",
    "resolve_database_path",
    "with_database_path",
]
