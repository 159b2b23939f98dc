"""
Tests for AuthConfig validation and settings loading.
"""

import dataclasses

import pytest

import settings
from config.loader import ConfigLoader
from spotify_oauth import AuthConfig

from conftest import CLIENT_ID, REDIRECT_URI


def make_config(**overrides) -> AuthConfig:
    return AuthConfig(**{"client_id": CLIENT_ID, "redirect_uri": REDIRECT_URI, **overrides})


class TestValidate:
    def test_valid_config_returns_self(self) -> None:
        config = make_config()
        assert config.validate() is config

    @pytest.mark.parametrize("overrides, field", [
        ({"client_id": "  "}, "client_id"),
        ({"redirect_uri": "not a url"}, "redirect_uri"),
        ({"redirect_uri": "ftp://host/callback"}, "redirect_uri"),
        ({"token_refresh_buffer_minutes": 0}, "token_refresh_buffer_minutes"),
        ({"token_refresh_buffer_minutes": 61}, "token_refresh_buffer_minutes"),
        ({"base_path": "app"}, "base_path"),
        ({"max_token_ttl_seconds": 0}, "max_token_ttl_seconds"),
    ])
    def test_rejects_invalid_values(self, overrides, field) -> None:
        with pytest.raises(ValueError, match=field):
            make_config(**overrides).validate()

    def test_mock_mode_needs_no_client_id(self) -> None:
        make_config(client_id="", mock_auth=True).validate()


class TestDerivedValues:
    def test_cookie_scope_follows_redirect_uri(self) -> None:
        assert make_config().cookie_domain == "127.0.0.1"
        hosted = make_config(redirect_uri="https://walkup.example.com/callback")
        assert hosted.cookie_domain == "walkup.example.com"

    def test_refresh_buffer_in_milliseconds(self) -> None:
        assert make_config(token_refresh_buffer_minutes=5).refresh_buffer_ms == 300_000

    def test_ttl_cap(self) -> None:
        assert make_config().cap_expires_in(3600) == 3600
        assert make_config(max_token_ttl_seconds=60).cap_expires_in(3600) == 60
        assert make_config(max_token_ttl_seconds=7200).cap_expires_in(3600) == 3600

    def test_config_is_immutable(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            make_config().client_id = "other"


class TestFromSettings:
    def test_reads_module_settings(self, monkeypatch) -> None:
        monkeypatch.setattr(settings, "CLIENT_ID", " from-env ")
        monkeypatch.setattr(settings, "MAX_TOKEN_TTL_SECONDS", 0)
        monkeypatch.setattr(settings, "BASE_PATH", "")
        monkeypatch.setattr(settings, "MOCK_AUTH", True)

        config = AuthConfig.from_settings()

        assert config.client_id == "from-env"
        assert config.max_token_ttl_seconds is None
        assert config.base_path == "/"
        assert config.mock_auth is True


class TestConfigLoader:
    def test_env_values_are_typed_by_default(self, monkeypatch, tmp_path) -> None:
        loader = ConfigLoader(env_path=str(tmp_path / "missing.env"))
        monkeypatch.setenv("WALKUP_FLAG", "yes")
        monkeypatch.setenv("WALKUP_COUNT", "12")
        monkeypatch.setenv("WALKUP_BAD_COUNT", "twelve")

        assert loader.get("WALKUP_FLAG", False) is True
        assert loader.get("WALKUP_COUNT", 1) == 12
        assert loader.get("WALKUP_BAD_COUNT", 1) == 1
        assert loader.get("WALKUP_UNSET", "fallback") == "fallback"

    def test_scope_list_accepts_commas_and_spaces(self, monkeypatch, tmp_path) -> None:
        loader = ConfigLoader(env_path=str(tmp_path / "missing.env"))
        monkeypatch.setenv("WALKUP_SCOPES", "streaming, user-read-email  user-read-private")

        assert loader.get_list("WALKUP_SCOPES", []) == ["streaming", "user-read-email", "user-read-private"]
        assert loader.get_list("WALKUP_UNSET", ["streaming"]) == ["streaming"]

    def test_env_file_is_loaded(self, monkeypatch, tmp_path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("WALKUP_FROM_FILE=hello\n")
        monkeypatch.setenv("WALKUP_FROM_FILE", "placeholder")
        monkeypatch.delenv("WALKUP_FROM_FILE")

        loader = ConfigLoader(env_path=str(env_file))

        assert loader.get("WALKUP_FROM_FILE", "") == "hello"
