"""Unit tests for auth/session.py: TokenAcquirer policy and AuthSession accessor."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock, patch

import pytest

from sharepoint_mcp.auth.cache import Credential, TokenCache
from sharepoint_mcp.auth.session import (
    ERROR_TEMPLATE,
    SUCCESS_TEMPLATE,
    AmbiguousAccountError,
    AuthSession,
    TokenAcquirer,
    auth_session_from_config,
)
from sharepoint_mcp.config import AppConfig
from sharepoint_mcp.graph.client import GraphAuthError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_SCOPES = ["User.Read", "Sites.Read.All"]
_ACCOUNT = {"home_account_id": "acc-1", "username": "alice@contoso.com"}
_OTHER_ACCOUNT = {"home_account_id": "acc-2", "username": "bob@contoso.com"}


def _token(value: str = "fake-token-abc") -> dict[str, object]:
    return {
        "access_token": value,
        "expires_in": 3600,
        "id_token_claims": {"preferred_username": "alice@contoso.com"},
    }


def _make_app(accounts: list[dict[str, str]] | None = None) -> MagicMock:
    """Return a mocked msal.PublicClientApplication."""
    app = MagicMock()
    app.get_accounts.return_value = list(accounts or [])
    app.acquire_token_interactive.return_value = _token("interactive-token")
    app.acquire_token_silent.return_value = _token("silent-token")
    return app


# ---------------------------------------------------------------------------
# TokenAcquirer tests
# ---------------------------------------------------------------------------


class TestTokenAcquirerNoAccount:
    def test_goes_interactive_without_silent_attempt(self) -> None:
        app = _make_app([])
        result = TokenAcquirer(app, _SCOPES).acquire()

        assert result["access_token"] == "interactive-token"
        app.acquire_token_silent.assert_not_called()
        app.acquire_token_interactive.assert_called_once_with(
            _SCOPES,
            success_template=SUCCESS_TEMPLATE,
            error_template=ERROR_TEMPLATE,
        )

    def test_raises_when_interactive_returns_error(self) -> None:
        app = _make_app([])
        app.acquire_token_interactive.return_value = {
            "error": "access_denied",
            "error_description": "User declined",
        }
        with pytest.raises(GraphAuthError, match="access_denied"):
            TokenAcquirer(app, _SCOPES).acquire()


class TestTokenAcquirerOneAccount:
    def test_uses_silent_refresh_first(self) -> None:
        app = _make_app([_ACCOUNT])
        result = TokenAcquirer(app, _SCOPES).acquire()

        assert result["access_token"] == "silent-token"
        app.acquire_token_silent.assert_called_once_with(_SCOPES, account=_ACCOUNT)
        app.acquire_token_interactive.assert_not_called()

    def test_falls_back_to_interactive_when_silent_finds_nothing(self) -> None:
        app = _make_app([_ACCOUNT])
        app.acquire_token_silent.return_value = None
        result = TokenAcquirer(app, _SCOPES).acquire()

        assert result["access_token"] == "interactive-token"
        app.acquire_token_interactive.assert_called_once()

    @pytest.mark.parametrize(
        "error", ["interaction_required", "login_required", "consent_required", "invalid_grant"]
    )
    def test_falls_back_to_interactive_when_interaction_required(self, error: str) -> None:
        app = _make_app([_ACCOUNT])
        app.acquire_token_silent.return_value = {"error": error}
        result = TokenAcquirer(app, _SCOPES).acquire()

        assert result["access_token"] == "interactive-token"

    def test_other_silent_errors_are_not_retried(self) -> None:
        app = _make_app([_ACCOUNT])
        app.acquire_token_silent.return_value = {
            "error": "temporarily_unavailable",
            "error_description": "Try later",
        }
        with pytest.raises(GraphAuthError, match="temporarily_unavailable"):
            TokenAcquirer(app, _SCOPES).acquire()
        app.acquire_token_interactive.assert_not_called()
        assert app.acquire_token_silent.call_count == 1

    def test_exceptions_from_silent_propagate(self) -> None:
        app = _make_app([_ACCOUNT])
        app.acquire_token_silent.side_effect = ConnectionError("network down")
        with pytest.raises(ConnectionError):
            TokenAcquirer(app, _SCOPES).acquire()
        app.acquire_token_interactive.assert_not_called()


class TestTokenAcquirerMultipleAccounts:
    def test_raises_ambiguous_account_without_network_call(self) -> None:
        app = _make_app([_ACCOUNT, _OTHER_ACCOUNT])
        with pytest.raises(AmbiguousAccountError, match="Multiple accounts"):
            TokenAcquirer(app, _SCOPES).acquire()
        app.acquire_token_silent.assert_not_called()
        app.acquire_token_interactive.assert_not_called()

    def test_ambiguous_account_is_an_auth_error(self) -> None:
        assert issubclass(AmbiguousAccountError, GraphAuthError)

    def test_account_count_is_reread_on_every_call(self) -> None:
        app = _make_app([])
        acquirer = TokenAcquirer(app, _SCOPES)
        acquirer.acquire()
        app.get_accounts.return_value = [_ACCOUNT]
        acquirer.acquire()

        assert app.get_accounts.call_count == 2
        app.acquire_token_silent.assert_called_once()


# ---------------------------------------------------------------------------
# AuthSession.get_access_token tests
# ---------------------------------------------------------------------------


class TestGetAccessToken:
    def test_cache_hit_makes_no_msal_call(self) -> None:
        app = _make_app([_ACCOUNT])
        cache = TokenCache()
        cache.store(
            Credential(
                access_token="cached-token",
                expires_on=datetime.now(UTC) + timedelta(hours=1),
            )
        )
        session = AuthSession(app, _SCOPES, cache=cache)

        assert session.get_access_token() == "cached-token"
        app.get_accounts.assert_not_called()
        app.acquire_token_silent.assert_not_called()

    def test_cache_miss_acquires_and_stores(self) -> None:
        app = _make_app([_ACCOUNT])
        session = AuthSession(app, _SCOPES)

        assert session.get_access_token() == "silent-token"
        cached = session.cache.get_cached()
        assert cached is not None
        assert cached.access_token == "silent-token"
        assert cached.account_identity == "alice@contoso.com"

    def test_second_call_served_from_cache(self) -> None:
        app = _make_app([_ACCOUNT])
        session = AuthSession(app, _SCOPES)
        session.get_access_token()
        session.get_access_token()

        app.acquire_token_silent.assert_called_once()

    def test_expired_cache_triggers_new_acquisition(self) -> None:
        app = _make_app([_ACCOUNT])
        cache = TokenCache()
        cache.store(
            Credential(access_token="stale", expires_on=datetime.now(UTC) - timedelta(seconds=1))
        )
        session = AuthSession(app, _SCOPES, cache=cache)

        assert session.get_access_token() == "silent-token"

    def test_auth_errors_propagate_unchanged(self) -> None:
        app = _make_app([_ACCOUNT, _OTHER_ACCOUNT])
        session = AuthSession(app, _SCOPES)
        with pytest.raises(AmbiguousAccountError):
            session.get_access_token()
        assert session.cache.get_cached() is None

    def test_unexpected_exceptions_become_auth_errors(self) -> None:
        app = _make_app([])
        app.acquire_token_interactive.side_effect = RuntimeError("no browser available")
        session = AuthSession(app, _SCOPES)
        with pytest.raises(GraphAuthError, match="Failed to acquire access token: no browser"):
            session.get_access_token()


# ---------------------------------------------------------------------------
# AuthSession.clear / refresh / is_authenticated tests
# ---------------------------------------------------------------------------


class TestClearAndRefresh:
    def test_clear_empties_cache_and_removes_accounts(self) -> None:
        app = _make_app([_ACCOUNT, _OTHER_ACCOUNT])
        session = AuthSession(app, _SCOPES)
        session.cache.store(
            Credential(access_token="t", expires_on=datetime.now(UTC) + timedelta(hours=1))
        )
        session.clear()

        assert session.cache.get_cached() is None
        assert app.remove_account.call_count == 2

    def test_clear_continues_after_removal_failure(self) -> None:
        app = _make_app([_ACCOUNT, _OTHER_ACCOUNT])
        app.remove_account.side_effect = [RuntimeError("locked"), None]
        session = AuthSession(app, _SCOPES)
        session.clear()

        assert app.remove_account.call_count == 2
        app.remove_account.assert_called_with(_OTHER_ACCOUNT)

    def test_refresh_always_acquires_fresh_token(self) -> None:
        app = _make_app([_ACCOUNT])
        session = AuthSession(app, _SCOPES)
        session.get_access_token()

        # After clear() MSAL forgets the account, so the next acquisition is interactive.
        app.remove_account.side_effect = lambda account: app.get_accounts.return_value.clear()
        token = session.refresh()

        assert token == "interactive-token"
        app.acquire_token_interactive.assert_called_once()

    def test_is_authenticated_reflects_account_store(self) -> None:
        app = _make_app([])
        session = AuthSession(app, _SCOPES)
        assert session.is_authenticated() is False
        app.get_accounts.return_value = [_ACCOUNT]
        assert session.is_authenticated() is True


# ---------------------------------------------------------------------------
# auth_session_from_config tests
# ---------------------------------------------------------------------------


class TestAuthSessionFromConfig:
    def test_msal_app_created_with_correct_authority(self) -> None:
        config = AppConfig(client_id="cid", tenant_id="tid-001")
        with patch("sharepoint_mcp.auth.session.msal.PublicClientApplication") as mock_msal:
            auth_session_from_config(config)
        mock_msal.assert_called_once_with(
            client_id="cid",
            authority="https://login.microsoftonline.com/tid-001",
        )
