import time
from pathlib import Path

import httpx

from codex_usage import cli
from codex_usage.api import UnauthorizedError
from codex_usage.auth import AuthError, Credentials
from codex_usage.config import Settings
from codex_usage.models import RateLimitDetails, UsageResponse, WindowSnapshot


def test_main_renders_dashboard(monkeypatch, capsys, tmp_path: Path) -> None:
    _patch_settings(monkeypatch, tmp_path)
    monkeypatch.setattr(cli, "load_credentials", lambda path: Credentials("token"))
    monkeypatch.setattr(cli, "fetch_usage", lambda *args, **kwargs: _response())

    assert cli.main([]) == 0

    output = capsys.readouterr().out
    assert "CODEX USAGE MONITOR" in output
    assert "5h Window (5h)" in output
    assert "Pace:" in output


def test_main_reads_credentials_from_codex_home(monkeypatch, tmp_path: Path) -> None:
    _patch_settings(monkeypatch, tmp_path)
    seen: list[Path] = []

    def _load(path: Path) -> Credentials:
        seen.append(path)
        return Credentials("token")

    monkeypatch.setattr(cli, "load_credentials", _load)
    monkeypatch.setattr(cli, "fetch_usage", lambda *args, **kwargs: UsageResponse())

    assert cli.main([]) == 0
    assert seen == [tmp_path / "auth.json"]


def test_main_width_flag_overrides_settings(monkeypatch, tmp_path: Path) -> None:
    _patch_settings(monkeypatch, tmp_path)
    monkeypatch.setattr(cli, "load_credentials", lambda path: Credentials("token"))
    monkeypatch.setattr(cli, "fetch_usage", lambda *args, **kwargs: UsageResponse())
    widths: list[int] = []
    monkeypatch.setattr(
        cli,
        "render_dashboard",
        lambda console, response, now, width: widths.append(width),
    )

    assert cli.main(["--width", "90"]) == 0
    assert cli.main([]) == 0
    assert widths == [90, 74]


def test_main_returns_one_without_credentials(monkeypatch, capsys, tmp_path) -> None:
    _patch_settings(monkeypatch, tmp_path)

    def _raise(path):
        raise AuthError("Failed to read auth.json")

    monkeypatch.setattr(cli, "load_credentials", _raise)

    assert cli.main([]) == 1
    assert "Error: Failed to read auth.json" in capsys.readouterr().err


def test_main_returns_one_when_unauthorized(monkeypatch, capsys, tmp_path) -> None:
    _patch_settings(monkeypatch, tmp_path)
    monkeypatch.setattr(cli, "load_credentials", lambda path: Credentials("token"))

    def _raise(*args, **kwargs):
        raise UnauthorizedError("Unauthorized: Token expired or invalid.")

    monkeypatch.setattr(cli, "fetch_usage", _raise)

    assert cli.main([]) == 1
    captured = capsys.readouterr()
    assert "Unauthorized" in captured.err
    assert captured.out == ""


def test_main_returns_one_on_transport_error(monkeypatch, capsys, tmp_path) -> None:
    _patch_settings(monkeypatch, tmp_path)
    monkeypatch.setattr(cli, "load_credentials", lambda path: Credentials("token"))

    def _raise(*args, **kwargs):
        raise httpx.ConnectError("offline")

    monkeypatch.setattr(cli, "fetch_usage", _raise)

    assert cli.main([]) == 1
    assert "Request failed: offline" in capsys.readouterr().err


def test_main_returns_one_for_undecodable_auth_file(
    monkeypatch, capsys, tmp_path: Path
) -> None:
    _patch_settings(monkeypatch, tmp_path)
    (tmp_path / "auth.json").write_bytes(b'{"OPENAI_API_KEY": "\xff\xfe"}')

    assert cli.main([]) == 1
    assert "not valid JSON" in capsys.readouterr().err


def _patch_settings(monkeypatch, tmp_path: Path) -> None:
    settings = Settings(
        codex_home=tmp_path,
        base_url="https://chatgpt.com/backend-api",
        width=74,
        timeout=1.0,
    )
    monkeypatch.setattr(cli, "load_settings", lambda: settings)


def _response() -> UsageResponse:
    now = int(time.time())
    return UsageResponse(
        rate_limit=RateLimitDetails(
            primary_window=WindowSnapshot(
                used_percent=45, reset_at=now + 7200, limit_window_seconds=18000
            ),
            secondary_window=WindowSnapshot(
                used_percent=80, reset_at=now + 60480, limit_window_seconds=604800
            ),
        )
    )
