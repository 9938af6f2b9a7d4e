"""Delegated MSAL authentication: token acquisition policy and access token accessor."""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

import msal

from sharepoint_mcp.auth.cache import FIELD_ACCESS_TOKEN, Credential, TokenCache
from sharepoint_mcp.graph.client import GraphAuthError

if TYPE_CHECKING:
    from sharepoint_mcp.config import AppConfig

logger = logging.getLogger(__name__)

AUTHORITY_BASE_URL = "https://login.microsoftonline.com"

SUCCESS_TEMPLATE = "<h1>Successfully signed in!</h1> <p>You can close this window now.</p>"
ERROR_TEMPLATE = (
    "<h1>Oops! Something went wrong</h1> "
    "<p>Navigate back to the application and check the console for more information.</p>"
)

# MSAL error codes that mean the cached account can only be recovered by
# prompting the user again.
INTERACTION_REQUIRED_ERRORS = frozenset(
    {"interaction_required", "login_required", "consent_required", "invalid_grant"}
)


class AmbiguousAccountError(GraphAuthError):
    """Raised when MSAL knows about more than one account."""


def _raise_for_result(result: dict[str, Any] | None, flow: str) -> dict[str, Any]:
    """Return an MSAL result that carries an access token, or raise GraphAuthError."""
    if result and FIELD_ACCESS_TOKEN in result:
        return result
    result = result or {}
    error = result.get("error", "unknown_error")
    description = result.get("error_description", "No description provided")
    logger.error("[_raise_for_result] MSAL token acquisition failed; flow:%s;error:%s", flow, error)
    raise GraphAuthError(f"Token acquisition failed: {error} ({description})")


class TokenAcquirer:
    """Chooses between silent and interactive MSAL flows.

    The number of accounts in MSAL's local store decides the path and is
    re-read on every call:

    * no account: interactive browser login;
    * one account: silent refresh, falling back to interactive login only
      when MSAL reports that user interaction is required;
    * several accounts: AmbiguousAccountError, since there is no account
      picker.
    """

    def __init__(self, app: msal.PublicClientApplication, scopes: list[str]) -> None:
        self._app = app
        self._scopes = scopes

    def acquire(self) -> dict[str, Any]:
        """Obtain a fresh MSAL token result.

        Returns:
            MSAL result dict containing ``access_token``.

        Raises:
            AmbiguousAccountError: If more than one account is cached.
            GraphAuthError: If the selected flow does not yield a token.
        """
        accounts = self._app.get_accounts()
        if len(accounts) > 1:
            logger.error("[acquire] multiple accounts found; count:%d", len(accounts))
            raise AmbiguousAccountError(
                "Multiple accounts found. Please select an account to use."
            )
        if not accounts:
            return self._acquire_interactive()

        account = accounts[0]
        result = self._app.acquire_token_silent(self._scopes, account=account)
        if result is None or result.get("error") in INTERACTION_REQUIRED_ERRORS:
            logger.info(
                "[acquire] silent refresh needs interaction; username:%s",
                account.get("username", ""),
            )
            return self._acquire_interactive()
        return _raise_for_result(result, "silent")

    def _acquire_interactive(self) -> dict[str, Any]:
        logger.info("[_acquire_interactive] opening browser for interactive login")
        result = self._app.acquire_token_interactive(
            self._scopes,
            success_template=SUCCESS_TEMPLATE,
            error_template=ERROR_TEMPLATE,
        )
        return _raise_for_result(result, "interactive")


class AuthSession:
    """Access token accessor shared by every outbound Graph call.

    Owns the single-slot TokenCache. A cache hit returns without touching
    MSAL; a miss runs the TokenAcquirer and caches its result.
    """

    def __init__(
        self,
        app: msal.PublicClientApplication,
        scopes: list[str],
        cache: TokenCache | None = None,
    ) -> None:
        """Initialise the session.

        Args:
            app: MSAL public client application.
            scopes: Delegated scopes requested on every acquisition.
            cache: Token cache to use; a fresh one is created when omitted.
        """
        self._app = app
        self._acquirer = TokenAcquirer(app, scopes)
        self._cache = cache or TokenCache()
        self._lock = threading.RLock()

    @property
    def cache(self) -> TokenCache:
        return self._cache

    def get_access_token(self) -> str:
        """Return a non-expired bearer token, acquiring one on a cache miss.

        Raises:
            GraphAuthError: If no token could be acquired.
        """
        with self._lock:
            cached = self._cache.get_cached()
            if cached is not None:
                return cached.access_token

            try:
                result = self._acquirer.acquire()
            except GraphAuthError:
                raise
            except Exception as exc:
                logger.error("[get_access_token] token acquisition raised", exc_info=True)
                raise GraphAuthError(f"Failed to acquire access token: {exc}") from exc

            credential = Credential.from_msal_result(result)
            self._cache.store(credential)
            logger.info(
                "[get_access_token] acquired new token; account:%s;expires_on:%s",
                credential.account_identity,
                credential.expires_on.isoformat(),
            )
            return credential.access_token

    def is_authenticated(self) -> bool:
        """Report whether MSAL has any signed-in account.

        This does not guarantee that the cached token is still valid; callers
        that need a usable token must call get_access_token().
        """
        return len(self._app.get_accounts()) > 0

    def clear(self) -> None:
        """Drop the cached credential and forget every MSAL account.

        Account removal is best-effort: a failure to remove one account is
        logged and the remaining accounts are still removed.
        """
        with self._lock:
            self._cache.clear()
            for account in self._app.get_accounts():
                try:
                    self._app.remove_account(account)
                except Exception:
                    logger.warning(
                        "[clear] failed to remove account; username:%s",
                        account.get("username", ""),
                        exc_info=True,
                    )

    def refresh(self) -> str:
        """Force a new acquisition, e.g. after the app's permissions changed."""
        with self._lock:
            self.clear()
            return self.get_access_token()


def auth_session_from_config(config: AppConfig) -> AuthSession:
    """Construct an AuthSession from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        AuthSession backed by an MSAL public client application.
    """
    app = msal.PublicClientApplication(
        client_id=config.client_id,
        authority=f"{AUTHORITY_BASE_URL}/{config.tenant_id}",
    )
    return AuthSession(app=app, scopes=list(config.scopes))
