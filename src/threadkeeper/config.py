"""ThreadkeeperConfig: where the note store lives and how the server runs.

Priority: environment variables > config.toml > defaults.

    ~/.threadkeeper/
        notes.jsonl       # the append-only store (default location)
        config.toml       # optional

config.toml example:

    log_level = "INFO"

    [store]
    path = "~/notes/threadkeeper.jsonl"

    [server]
    instructions = "~/threadkeeper/AGENTS.md"   # replaces the built-in agent contract

Environment:
    THREADKEEPER_STORE_PATH   store file override (resolved to an absolute path)
    THREADKEEPER_LOG_LEVEL    logging level name
    THREADKEEPER_CONFIG       alternate config.toml location
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

STORE_PATH_ENV = "THREADKEEPER_STORE_PATH"
LOG_LEVEL_ENV = "THREADKEEPER_LOG_LEVEL"
CONFIG_PATH_ENV = "THREADKEEPER_CONFIG"

_APP_DIRNAME = ".threadkeeper"
_STORE_FILENAME = "notes.jsonl"
_CONFIG_FILENAME = "config.toml"
_DEFAULT_LOG_LEVEL = "WARNING"


def app_dir() -> Path:
    return Path.home() / _APP_DIRNAME


def default_store_path() -> Path:
    return app_dir() / _STORE_FILENAME


def _absolute(raw: str) -> Path:
    return Path(raw).expanduser().resolve()


def resolve_store_path(configured: str | None = None) -> Path:
    """Return the store file path: env override, then configured value, then default."""
    override = os.environ.get(STORE_PATH_ENV)
    if override:
        return _absolute(override)
    if configured:
        return _absolute(configured)
    return default_store_path()


@dataclass
class ThreadkeeperConfig:
    """Resolved configuration, computed once at startup."""

    store_path: Path
    log_level: str = _DEFAULT_LOG_LEVEL
    instructions_path: Path | None = None
    config_file: Path | None = None     # the TOML file that was read, if any

    def read_instructions(self) -> str | None:
        """Contents of the configured instructions file, or None if unset/unreadable."""
        if self.instructions_path is None:
            return None
        try:
            return self.instructions_path.read_text(encoding="utf-8")
        except OSError:
            return None


def _find_config_file(config_path: Path | None) -> Path | None:
    if config_path is not None:
        return config_path
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path).expanduser()
    candidate = app_dir() / _CONFIG_FILENAME
    return candidate if candidate.exists() else None


def load_config(config_path: Path | str | None = None) -> ThreadkeeperConfig:
    """Load configuration from environment variables and an optional config.toml."""
    path = _find_config_file(Path(config_path) if config_path else None)

    raw: dict[str, Any] = {}
    if path is not None and path.exists():
        with path.open("rb") as f:
            raw = tomllib.load(f)
    else:
        path = None

    store_section = raw.get("store", {})
    server_section = raw.get("server", {})

    instructions = server_section.get("instructions")

    return ThreadkeeperConfig(
        store_path=resolve_store_path(store_section.get("path")),
        log_level=os.getenv(LOG_LEVEL_ENV, raw.get("log_level", _DEFAULT_LOG_LEVEL)),
        instructions_path=_absolute(instructions) if instructions else None,
        config_file=path,
    )
