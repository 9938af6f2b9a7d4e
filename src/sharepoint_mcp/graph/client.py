"""Microsoft Graph API transport with bearer-token authentication."""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable
from typing import Any
from urllib import request as urllib_request
from urllib.error import HTTPError
from urllib.parse import quote

logger = logging.getLogger(__name__)

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0"

# Characters left literal in the path part. Graph addressing (site ids, the
# root:/path: syntax) needs these; "%" and "+" are always encoded.
_PATH_SAFE_CHARS = "/:,;@!*'()~$=&"
# Characters left literal in an OData query option value.
_QUERY_VALUE_SAFE_CHARS = "'(),:"

# Query options are separated at "&$" only, so "&" inside a filter value
# stays part of that value.
_QUERY_OPTION_SEPARATOR = re.compile(r"&(?=\$)")


class GraphAuthError(Exception):
    """Raised when an access token cannot be obtained."""


class GraphApiError(Exception):
    """Raised when the Graph API returns a non-2xx response."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"Graph API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message


class GraphClient:
    """Authenticated HTTP client for Microsoft Graph API."""

    def __init__(self, token_provider: Callable[[], str]) -> None:
        """Initialise the client.

        Args:
            token_provider: Callable returning a valid bearer token. Called
                once per request; expected to serve from its own cache.
        """
        self._token_provider = token_provider

    @staticmethod
    def build_url(path: str) -> str:
        """Join an unencoded Graph-relative path onto the base URL.

        The path part and each query option value are percent-encoded
        separately, so literal ``%``, ``+`` and spaces in folder names or
        filter expressions reach Graph unchanged.
        """
        resource, _, query = path.partition("?")
        url = f"{GRAPH_BASE_URL}{quote(resource, safe=_PATH_SAFE_CHARS)}"
        if not query:
            return url
        options = []
        for option in _QUERY_OPTION_SEPARATOR.split(query):
            key, sep, value = option.partition("=")
            options.append(
                f"{quote(key, safe='$')}{sep}{quote(value, safe=_QUERY_VALUE_SAFE_CHARS)}"
            )
        return f"{url}?{'&'.join(options)}"

    def _send(
        self,
        path: str,
        method: str,
        accept: str,
        data: bytes | None = None,
        content_type: str | None = None,
    ) -> bytes:
        """Perform an authenticated request and return the raw response body.

        Raises:
            GraphAuthError: If the token provider fails.
            GraphApiError: If the API returns a non-2xx status code.
        """
        token = self._token_provider()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": accept,
        }
        if content_type is not None:
            headers["Content-Type"] = content_type
        req = urllib_request.Request(
            self.build_url(path),
            data=data,
            headers=headers,
            method=method,
        )
        try:
            with urllib_request.urlopen(req) as resp:
                return resp.read()  # type: ignore[no-any-return]
        except HTTPError as exc:
            raw = exc.read()
            try:
                detail = json.loads(raw).get("error", {}).get("message", exc.reason)
            except Exception:
                detail = exc.reason
            logger.warning(
                "[_send] Graph request failed; method:%s;path:%s;status:%d",
                method,
                path,
                exc.code,
            )
            raise GraphApiError(exc.code, detail) from exc

    def get(self, path: str) -> dict[str, Any]:
        """Perform an authenticated GET request to the Graph API.

        Args:
            path: URL path relative to GRAPH_BASE_URL (must start with '/').

        Returns:
            Parsed JSON response body as a dict.

        Raises:
            GraphAuthError: If token acquisition fails.
            GraphApiError: If the API returns a non-2xx status code.
        """
        body = self._send(path, "GET", accept="application/json")
        return json.loads(body)  # type: ignore[no-any-return]

    def get_content(self, path: str) -> bytes:
        """Perform an authenticated GET request and return the raw bytes.

        Used for ``/content`` endpoints, which redirect to the file download
        URL; urllib follows the redirect.

        Args:
            path: URL path relative to GRAPH_BASE_URL (must start with '/').

        Returns:
            Raw response body.

        Raises:
            GraphAuthError: If token acquisition fails.
            GraphApiError: If the API returns a non-2xx status code.
        """
        return self._send(path, "GET", accept="*/*")

    def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """Perform an authenticated POST request with a JSON body.

        Args:
            path: URL path relative to GRAPH_BASE_URL (must start with '/').
            body: JSON-serializable request payload.

        Returns:
            Parsed JSON response body as a dict.

        Raises:
            GraphAuthError: If token acquisition fails.
            GraphApiError: If the API returns a non-2xx status code.
        """
        raw = self._send(
            path,
            "POST",
            accept="application/json",
            data=json.dumps(body).encode("utf-8"),
            content_type="application/json",
        )
        return json.loads(raw) if raw else {}  # type: ignore[no-any-return]
