from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://chatgpt.com/backend-api/"
DEFAULT_WIDTH = 74
DEFAULT_TIMEOUT_SECONDS = 30.0
CHATGPT_HOSTS = ("https://chatgpt.com", "https://chat.openai.com")


@dataclass(frozen=True)
class Settings:
    codex_home: Path
    base_url: str
    width: int
    timeout: float

    @property
    def auth_path(self) -> Path:
        return self.codex_home / "auth.json"

    @property
    def config_path(self) -> Path:
        return self.codex_home / "config.toml"


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    env = os.environ if environ is None else environ
    home = codex_home(env)
    return Settings(
        codex_home=home,
        base_url=resolve_base_url(home / "config.toml"),
        width=_parse_int(env.get("CODEX_USAGE_WIDTH"), DEFAULT_WIDTH),
        timeout=_parse_float(env.get("CODEX_USAGE_TIMEOUT"), DEFAULT_TIMEOUT_SECONDS),
    )


def codex_home(environ: Mapping[str, str] | None = None) -> Path:
    env = os.environ if environ is None else environ
    override = (env.get("CODEX_HOME") or "").strip()
    if override:
        return Path(override).expanduser()
    return Path("~/.codex").expanduser()


def resolve_base_url(config_path: Path) -> str:
    configured = _read_base_url(config_path)
    if configured is None:
        return DEFAULT_BASE_URL
    return normalize_base_url(configured)


def normalize_base_url(url: str) -> str:
    normalized = url.strip().rstrip("/")
    if not normalized:
        normalized = DEFAULT_BASE_URL
    if normalized.startswith(CHATGPT_HOSTS) and "/backend-api" not in normalized:
        normalized += "/backend-api"
    return normalized


def _read_base_url(path: Path) -> str | None:
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
    except FileNotFoundError:
        return None
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.debug("Ignoring unreadable config at %s: %s", path, exc)
        return None

    value = data.get("chatgpt_base_url")
    if not isinstance(value, str):
        return None
    logger.debug("Using chatgpt_base_url from %s", path)
    return value


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default
