import pytest

from dndmesa.desktop.launcher import build_settings, build_view_url, main, parse_args


def test_build_settings_prefers_arguments_over_env(settings) -> None:
    args = parse_args(["--server", "http://mesa.local:3000", "--room", "cripta", "--name", "Borin", "--port", "9100", "--muted"])

    resolved = build_settings(args, settings)

    assert resolved.server_url == "http://mesa.local:3000"
    assert resolved.room_id == "cripta"
    assert resolved.player_name == "Borin"
    assert resolved.role == "player"
    assert resolved.port == 9100
    assert resolved.muted is True
    assert build_view_url(resolved) == "http://127.0.0.1:9100/api/view"


def test_build_settings_requires_server_url(settings) -> None:
    with pytest.raises(RuntimeError):
        build_settings(parse_args([]), settings)


def test_main_returns_error_without_server(monkeypatch) -> None:
    monkeypatch.delenv("DNDMESA_SERVER_URL", raising=False)

    assert main(["--room", "cripta", "--name", "Aria"]) == 1
