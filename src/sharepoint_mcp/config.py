"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass, field

DEFAULT_SCOPES = ("User.Read", "Sites.Read.All", "Files.Read.All")


def _parse_scopes(raw: str) -> tuple[str, ...]:
    """Split a comma-separated scope list, dropping blanks."""
    return tuple(scope.strip() for scope in raw.split(",") if scope.strip())


def _parse_flag(raw: str) -> bool:
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Everything else
    has a default that can be overridden via environment variables.
    """

    # Required: no defaults, fail at startup if missing
    client_id: str
    tenant_id: str

    # Defaults provided, overridable via env
    scopes: tuple[str, ...] = field(default=DEFAULT_SCOPES)
    log_level: str = "INFO"
    msal_debug: bool = False


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        SP_CLIENT_ID: Azure AD application (client) ID of the public client app.
        SP_TENANT_ID: Azure AD tenant ID used to build the login authority.

    Optional environment variables (with defaults):
        SP_SCOPES: Comma-separated delegated scopes
            (default: User.Read,Sites.Read.All,Files.Read.All).
        SP_LOG_LEVEL: Root log level for the server process (default: INFO).
        SP_MSAL_DEBUG: Surface MSAL's own log output when truthy (default: off).

    Returns:
        Configured AppConfig instance.
    """
    scopes = _parse_scopes(os.environ.get("SP_SCOPES", ""))
    return AppConfig(
        client_id=os.environ["SP_CLIENT_ID"],
        tenant_id=os.environ["SP_TENANT_ID"],
        scopes=scopes or DEFAULT_SCOPES,
        log_level=os.environ.get("SP_LOG_LEVEL", "INFO").upper(),
        msal_debug=_parse_flag(os.environ.get("SP_MSAL_DEBUG", "")),
    )
