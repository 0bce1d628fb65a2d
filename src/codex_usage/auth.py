from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any


class AuthError(RuntimeError):
    pass


@dataclass(frozen=True)
class Credentials:
    access_token: str
    account_id: str | None = None


def _load_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise AuthError(f"Failed to read auth.json from {path}") from exc
    except OSError as exc:
        raise AuthError(f"Failed to read auth.json from {path}: {exc}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise AuthError(f"Auth file at {path} is not valid JSON") from exc
    if not isinstance(data, dict):
        raise AuthError(f"Auth file at {path} is not a JSON object")
    return data


def load_credentials(path: Path) -> Credentials:
    data = _load_json(path)

    api_key = _string_or_none(data.get("OPENAI_API_KEY"))
    if api_key:
        return Credentials(access_token=api_key)

    tokens = data.get("tokens")
    if not isinstance(tokens, dict):
        raise AuthError("No tokens found in auth.json. Run `codex` to log in.")
    access_token = _string_or_none(tokens.get("access_token"))
    if not access_token:
        raise AuthError("Auth file missing required key: tokens.access_token")

    return Credentials(
        access_token=access_token,
        account_id=_string_or_none(tokens.get("account_id")),
    )


def _string_or_none(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None
