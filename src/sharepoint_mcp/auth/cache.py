"""Single-slot in-memory credential cache."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

logger = logging.getLogger(__name__)

# MSAL result keys
FIELD_ACCESS_TOKEN = "access_token"
FIELD_EXPIRES_IN = "expires_in"
FIELD_ID_TOKEN_CLAIMS = "id_token_claims"


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Credential:
    """An access token together with its expiry and the signed-in account.

    Attributes:
        access_token: Opaque bearer token for Microsoft Graph.
        expires_on: Absolute UTC instant after which the token is unusable.
        account_identity: Username (or object ID) of the account the token
            was issued to. Empty when the identity provider did not say.
    """

    access_token: str
    expires_on: datetime
    account_identity: str = ""

    @classmethod
    def from_msal_result(
        cls, result: dict[str, Any], now: datetime | None = None
    ) -> Credential:
        """Build a Credential from a successful MSAL token response.

        Args:
            result: MSAL result dict containing at least ``access_token``.
            now: Reference instant for ``expires_in``; defaults to the current time.

        Returns:
            Credential expiring ``expires_in`` seconds after ``now``.
        """
        issued_at = now or utcnow()
        claims = result.get(FIELD_ID_TOKEN_CLAIMS) or {}
        identity = claims.get("preferred_username") or claims.get("oid") or ""
        return cls(
            access_token=str(result[FIELD_ACCESS_TOKEN]),
            expires_on=issued_at + timedelta(seconds=int(result.get(FIELD_EXPIRES_IN, 0))),
            account_identity=str(identity),
        )


class TokenCache:
    """Holds at most one Credential and decides whether it is still fresh.

    Freshness is a strict comparison against the clock with no leeway: a
    credential whose expiry equals the current instant is already expired.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow) -> None:
        self._clock = clock
        self._credential: Credential | None = None

    def get_cached(self) -> Credential | None:
        """Return the held credential if it has not expired, else None."""
        credential = self._credential
        if credential is None:
            return None
        if self._clock() < credential.expires_on:
            return credential
        logger.info(
            "[get_cached] cached credential expired; expires_on:%s",
            credential.expires_on.isoformat(),
        )
        return None

    def store(self, credential: Credential) -> None:
        """Replace the held credential."""
        self._credential = credential

    def clear(self) -> None:
        """Drop the held credential so the next lookup misses."""
        self._credential = None
