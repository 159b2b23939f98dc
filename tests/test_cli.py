"""
Tests for the command-line entry point, run against the mock gate.
"""

import pytest

import settings
from cli.main import build_parser, main


@pytest.fixture
def mock_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "CLIENT_ID", "")
    monkeypatch.setattr(settings, "MOCK_AUTH", True)
    monkeypatch.setattr(settings, "MAX_TOKEN_TTL_SECONDS", 0)
    monkeypatch.setattr(settings, "COOKIE_FILE", str(tmp_path / "cookies.lwp"))
    monkeypatch.setattr(settings, "TOKEN_FILE", str(tmp_path / "store.json"))
    return tmp_path


class TestParser:
    def test_search_joins_terms(self) -> None:
        args = build_parser().parse_args(["search", "walk", "up", "--limit", "5"])
        assert args.query == ["walk", "up"]
        assert args.limit == 5

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    def test_missing_client_id_is_a_config_error(self, monkeypatch, capsys) -> None:
        monkeypatch.setattr(settings, "CLIENT_ID", "")
        monkeypatch.setattr(settings, "MOCK_AUTH", False)

        assert main(["status"]) == 2
        assert "SPOTIFY_CLIENT_ID" in capsys.readouterr().out

    def test_mock_session_lifecycle(self, mock_settings, capsys) -> None:
        assert main(["whoami"]) == 1

        assert main(["login"]) == 0
        assert main(["whoami"]) == 0
        assert "Mock User" in capsys.readouterr().out

        assert main(["status"]) == 0
        assert main(["refresh"]) == 0
        assert main(["logout", "--yes"]) == 0
        assert main(["whoami"]) == 1
