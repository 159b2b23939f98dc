"""
Tests for the session gate lifecycle.
"""

import asyncio
import dataclasses
import logging

import pytest

from spotify_oauth import (
    AuthConfig,
    AuthState,
    EntitlementRequired,
    MockSessionGate,
    ProfileUnavailable,
    SessionGate,
    TokenSet,
    create_session_gate,
)
from spotify_oauth.credential_store import COOKIE_NAMES

from conftest import PREMIUM_PROFILE, T0, sign_in, token_payload

pytestmark = pytest.mark.asyncio


def restore(gate: SessionGate, store, expires_at: int) -> TokenSet:
    tokens = TokenSet(access_token="access-1", refresh_token="refresh-1", expires_at=expires_at, scope="streaming")
    store.save_tokens(tokens)
    gate.init()
    return tokens


class TestIsAuthenticated:
    async def test_no_tokens(self, gate: SessionGate) -> None:
        assert not gate.is_authenticated()
        assert gate.state is AuthState.UNAUTHENTICATED
        assert await gate.get_access_token() is None

    async def test_expiry_boundary_is_exclusive(self, gate: SessionGate, store, clock) -> None:
        tokens = restore(gate, store, T0 + 5_000)

        clock.now = tokens.expires_at - 1
        assert gate.is_authenticated()

        clock.now = tokens.expires_at
        assert not gate.is_authenticated()

    async def test_init_restores_persisted_tokens(self, gate: SessionGate, store) -> None:
        tokens = restore(gate, store, T0 + 3_600_000)
        assert gate.tokens == tokens
        assert gate.state is AuthState.AUTHENTICATED


class TestLogout:
    async def test_logout_clears_everything(self, gate: SessionGate, store, backends, navigator) -> None:
        await sign_in(gate, navigator)
        gate.login()

        gate.logout()

        assert not gate.is_authenticated()
        assert gate.state is AuthState.UNAUTHENTICATED
        assert gate.entitled is None
        assert store.load_tokens() is None
        assert store.load_pkce_session() is None
        for backend in backends:
            assert all(backend.get(name) is None for name in COOKIE_NAMES.values())

    async def test_double_logout_is_a_no_op(self, gate: SessionGate, navigator) -> None:
        await sign_in(gate, navigator)

        gate.logout()
        gate.logout()

        assert gate.state is AuthState.UNAUTHENTICATED


class TestUserInfo:
    async def test_returns_profile(self, gate: SessionGate, navigator, stub) -> None:
        await sign_in(gate, navigator)

        profile = await gate.get_user_info()

        assert profile.id == "user-1"
        assert profile.subscription_tier == "premium"
        profile_request = [r for r in stub.requests if r.url.path == "/v1/me"][-1]
        assert profile_request.headers["authorization"] == "Bearer access-1"

    async def test_none_when_signed_out(self, gate: SessionGate, stub) -> None:
        assert await gate.get_user_info() is None
        assert stub.requests == []

    async def test_rejected_token_logs_out(self, gate: SessionGate, navigator, stub, store) -> None:
        await sign_in(gate, navigator)
        stub.profile_status = 401

        assert await gate.get_user_info() is None
        assert not gate.is_authenticated()
        assert store.load_tokens() is None

    async def test_other_failures_propagate(self, gate: SessionGate, navigator, stub) -> None:
        await sign_in(gate, navigator)
        stub.profile_status = 500

        with pytest.raises(ProfileUnavailable) as exc_info:
            await gate.get_user_info()

        assert exc_info.value.status_code == 500
        assert gate.is_authenticated()

    async def test_ensure_valid_session(self, gate: SessionGate, navigator, stub) -> None:
        await sign_in(gate, navigator)
        assert await gate.ensure_valid_session()

        stub.profile_status = 503
        assert await gate.ensure_valid_session()

        stub.profile_status = 401
        assert not await gate.ensure_valid_session()
        assert gate.state is AuthState.UNAUTHENTICATED


class TestStatus:
    async def test_status_has_no_secrets(self, gate: SessionGate, navigator) -> None:
        await sign_in(gate, navigator)

        status = gate.status()

        assert status["has_tokens"] is True
        assert status["is_expired"] is False
        assert status["time_until_expiry"] == "1h 0m"
        assert status["has_refresh_token"] is True
        assert status["entitled"] is True
        assert "access-1" not in repr(status)
        assert "refresh-1" not in repr(status)

    async def test_status_when_signed_out(self, gate: SessionGate) -> None:
        status = gate.status()
        assert status["state"] == "unauthenticated"
        assert status["has_tokens"] is False
        assert status["expires_at"] is None


class TestRefreshScheduler:
    async def test_refreshes_before_expiry_and_stops_on_logout(self, gate: SessionGate, store, stub) -> None:
        restore(gate, store, T0 + 60_000)
        stub.token_responses = [(200, token_payload(access_token="access-2"))]

        task = gate.start_refresh_scheduler()
        for _ in range(100):
            if gate.tokens.access_token == "access-2":
                break
            await asyncio.sleep(0.01)

        assert gate.tokens.access_token == "access-2"
        assert stub.token_calls == 1
        assert gate.start_refresh_scheduler() is task

        gate.logout()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert task.cancelled()

    async def test_scheduler_ends_when_refresh_token_rejected(self, gate: SessionGate, store, stub) -> None:
        restore(gate, store, T0 + 60_000)
        stub.token_responses = [(400, {"error": "invalid_grant"})]

        task = gate.start_refresh_scheduler()
        await asyncio.wait_for(task, timeout=1)

        assert gate.state is AuthState.UNAUTHENTICATED

    async def test_runs_for_signed_in_account_without_entitlement(
        self, config, store, http_client, navigator, clock, stub
    ) -> None:
        config = dataclasses.replace(config, proactive_refresh=True)
        gate = SessionGate(config, store=store, client=http_client, navigate=navigator, clock=clock).init()
        stub.profile = {**PREMIUM_PROFILE, "product": "free"}
        stub.token_responses = [
            (200, token_payload(access_token="access-1", expires_in=60)),
            (200, token_payload(access_token="access-2")),
        ]

        try:
            with pytest.raises(EntitlementRequired):
                await sign_in(gate, navigator)

            for _ in range(100):
                if gate.tokens.access_token == "access-2":
                    break
                await asyncio.sleep(0.01)

            assert gate.tokens.access_token == "access-2"
            assert gate.entitled is False
        finally:
            await gate.aclose()


class TestFactory:
    async def test_real_gate_by_default(self, config) -> None:
        gate = create_session_gate(config)
        try:
            assert isinstance(gate, SessionGate)
        finally:
            await gate.aclose()

    async def test_mock_gate_when_enabled(self, tmp_path) -> None:
        config = AuthConfig(
            client_id="",
            redirect_uri="http://127.0.0.1:8000/callback",
            mock_auth=True,
            token_file=str(tmp_path / "store.json"),
        )
        assert isinstance(create_session_gate(config), MockSessionGate)


class TestLogin:
    async def test_navigator_failure_is_logged(self, config, store, http_client, clock, caplog) -> None:
        gate = SessionGate(config, store=store, client=http_client, navigate=lambda url: False, clock=clock)

        with caplog.at_level(logging.WARNING):
            auth_url = gate.login()

        assert auth_url.startswith(config.authorize_endpoint)
        assert "could not open" in caplog.text
        assert store.load_pkce_session() is not None
