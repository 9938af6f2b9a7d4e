"""SharePoint resource client: Graph endpoints for sites, lists, drives, pages and search."""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any

from sharepoint_mcp.auth.session import AuthSession, auth_session_from_config
from sharepoint_mcp.graph.client import GraphAuthError, GraphClient
from sharepoint_mcp.graph.models import (
    FIELD_HIT_ID,
    FIELD_HITS,
    FIELD_HITS_CONTAINERS,
    FIELD_RESOURCE,
    ODATA_VALUE,
    Drive,
    DriveItem,
    DriveItemContent,
    GetDriveItemContentParams,
    ListDriveItemsQuery,
    ListSitesQuery,
    SearchParams,
    SearchResult,
    Site,
    SiteList,
    SitePage,
)

if TYPE_CHECKING:
    from sharepoint_mcp.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_ENTITY_TYPES = ("listItem", "driveItem")
DEFAULT_SEARCH_SIZE = 25
SITE_SCOPED_INCLUDE_CONTENT = "privateContent,sharedContent"

TEXT_MIME_TYPES = frozenset(
    {
        "application/json",
        "application/xml",
        "application/javascript",
        "application/typescript",
    }
)


def build_query_string(params: list[tuple[str, str | int | None]]) -> str:
    """Render OData query options in the given order, skipping empty values.

    Returns an empty string when no option is set, otherwise a single ``?``
    followed by ``key=value`` pairs joined with ``&``.
    """
    parts = [f"{key}={value}" for key, value in params if value]
    return f"?{'&'.join(parts)}" if parts else ""


def drive_base_path(site_id: str, drive_id: str | None) -> str:
    """Return the drive segment for a site: a named drive or the site's default drive."""
    if drive_id:
        return f"/sites/{site_id}/drives/{drive_id}"
    return f"/sites/{site_id}/drive"


def drive_items_path(query: ListDriveItemsQuery) -> str:
    """Build the children endpoint for a drive folder, including OData options.

    A folder path is addressed relative to the drive root
    (``root:/{path}:/children``); without one the root's children are listed.
    """
    base = drive_base_path(query.siteId, query.driveId)
    endpoint = f"{base}/root:/{query.path}:/children" if query.path else f"{base}/root/children"
    return endpoint + build_query_string(
        [("$filter", query.filter), ("$top", query.top), ("$orderby", query.orderBy)]
    )


def is_text_mime_type(mime_type: str | None) -> bool:
    """Decide whether content with this MIME type can be returned as text."""
    if not mime_type:
        return False
    return mime_type.startswith("text/") or mime_type in TEXT_MIME_TYPES or "xml" in mime_type


def encode_content(raw: bytes, mime_type: str | None) -> DriveItemContent:
    """Turn downloaded bytes into UTF-8 text or base64 depending on the MIME type."""
    if is_text_mime_type(mime_type):
        return DriveItemContent(
            content=raw.decode("utf-8", errors="replace"),
            is_base64=False,
            mime_type=mime_type,
        )
    return DriveItemContent(
        content=base64.b64encode(raw).decode("ascii"),
        is_base64=True,
        mime_type=mime_type,
    )


def build_search_request(params: SearchParams) -> dict[str, Any]:
    """Build the single-request batch body for POST /search/query."""
    request: dict[str, Any] = {
        "entityTypes": list(params.entityTypes or DEFAULT_ENTITY_TYPES),
        "query": {"queryString": params.query},
        "from": 0,
        "size": params.top or DEFAULT_SEARCH_SIZE,
    }
    if params.siteId:
        request["sharePointOneDriveOptions"] = {"includeContent": SITE_SCOPED_INCLUDE_CONTENT}
    return {"requests": [request]}


def parse_search_hits(response: dict[str, Any]) -> list[SearchResult]:
    """Extract hits from ``value[0].hitsContainers[0].hits``.

    Any missing level yields an empty list rather than an error.
    """
    responses = response.get(ODATA_VALUE) or []
    if not responses:
        return []
    containers = responses[0].get(FIELD_HITS_CONTAINERS) or []
    if not containers:
        return []
    hits = containers[0].get(FIELD_HITS) or []

    results: list[SearchResult] = []
    for hit in hits:
        resource = hit.get(FIELD_RESOURCE) or {}
        results.append(
            SearchResult.model_validate(
                {
                    "id": hit.get(FIELD_HIT_ID, ""),
                    "webUrl": resource.get("webUrl"),
                    "name": resource.get("name"),
                    "title": resource.get("title"),
                    "summary": hit.get("summary"),
                    "hitHighlightedSummary": hit.get("hitHighlightedSummary"),
                    "resource": hit.get(FIELD_RESOURCE),
                }
            )
        )
    return results


class SharePointClient:
    """Typed SharePoint operations on top of an authenticated GraphClient.

    Every public method first calls ensure_authenticated(), which signs the
    user in ahead of the request when MSAL has no account yet.
    """

    def __init__(self, graph_client: GraphClient, auth: AuthSession) -> None:
        """Initialise the client.

        Args:
            graph_client: GraphClient whose token provider is ``auth``.
            auth: Auth session, used for the sign-in warm-up and token refresh.
        """
        self._graph = graph_client
        self._auth = auth

    @property
    def auth(self) -> AuthSession:
        return self._auth

    def ensure_authenticated(self) -> None:
        """Sign in ahead of a request when no account is known.

        Failures are logged and swallowed; the request that follows will
        surface the real authentication error.
        """
        if self._auth.is_authenticated():
            return
        try:
            self._auth.get_access_token()
        except GraphAuthError:
            logger.warning("[ensure_authenticated] sign-in warm-up failed", exc_info=True)

    # ------------------------------------------------------------------
    # Sites
    # ------------------------------------------------------------------

    def list_sites(self, query: ListSitesQuery | None = None) -> list[Site]:
        """List sites visible to the signed-in user."""
        self.ensure_authenticated()
        query = query or ListSitesQuery()
        search = f'"{query.search}"' if query.search else None
        endpoint = "/sites" + build_query_string(
            [
                ("$search", search),
                ("$filter", query.filter),
                ("$top", query.top),
                ("$orderby", query.orderBy),
            ]
        )
        response = self._graph.get(endpoint)
        return [Site.model_validate(raw) for raw in response.get(ODATA_VALUE, [])]

    def get_site(self, site_id: str) -> Site:
        """Return one site by id (hostname,siteCollectionId,webId form or a bare id)."""
        self.ensure_authenticated()
        return Site.model_validate(self._graph.get(f"/sites/{site_id}"))

    def get_subsites(self, site_id: str) -> list[Site]:
        self.ensure_authenticated()
        response = self._graph.get(f"/sites/{site_id}/sites")
        return [Site.model_validate(raw) for raw in response.get(ODATA_VALUE, [])]

    def get_root_site(self) -> Site:
        """Return the organization's root site."""
        self.ensure_authenticated()
        return Site.model_validate(self._graph.get("/sites/root"))

    # ------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------

    def list_site_lists(self, site_id: str) -> list[SiteList]:
        self.ensure_authenticated()
        response = self._graph.get(f"/sites/{site_id}/lists")
        return [SiteList.model_validate(raw) for raw in response.get(ODATA_VALUE, [])]

    def get_site_list(self, site_id: str, list_id: str) -> SiteList:
        self.ensure_authenticated()
        return SiteList.model_validate(self._graph.get(f"/sites/{site_id}/lists/{list_id}"))

    # ------------------------------------------------------------------
    # Drives (document libraries)
    # ------------------------------------------------------------------

    def list_site_drives(self, site_id: str) -> list[Drive]:
        self.ensure_authenticated()
        response = self._graph.get(f"/sites/{site_id}/drives")
        return [Drive.model_validate(raw) for raw in response.get(ODATA_VALUE, [])]

    def get_site_default_drive(self, site_id: str) -> Drive:
        """Return the site's default document library."""
        self.ensure_authenticated()
        return Drive.model_validate(self._graph.get(f"/sites/{site_id}/drive"))

    def get_site_drive(self, site_id: str, drive_id: str) -> Drive:
        self.ensure_authenticated()
        return Drive.model_validate(self._graph.get(f"/sites/{site_id}/drives/{drive_id}"))

    # ------------------------------------------------------------------
    # Drive items (files and folders)
    # ------------------------------------------------------------------

    def list_drive_items(self, query: ListDriveItemsQuery) -> list[DriveItem]:
        """List the children of a drive folder (the root when no path is given)."""
        self.ensure_authenticated()
        response = self._graph.get(drive_items_path(query))
        return [DriveItem.model_validate(raw) for raw in response.get(ODATA_VALUE, [])]

    def get_drive_item(self, site_id: str, drive_id: str | None, item_id: str) -> DriveItem:
        """Return item metadata from the named drive, or the default drive if none is given."""
        self.ensure_authenticated()
        endpoint = f"{drive_base_path(site_id, drive_id)}/items/{item_id}"
        return DriveItem.model_validate(self._graph.get(endpoint))

    def get_drive_item_content(self, params: GetDriveItemContentParams) -> DriveItemContent:
        """Download a file, returning text for text-like MIME types and base64 otherwise.

        Makes two requests: the item metadata (for its MIME type), then the
        raw ``/content`` bytes.

        Args:
            params: Site, optional drive, and item identifiers.

        Returns:
            DriveItemContent with the encoded payload and MIME type.
        """
        self.ensure_authenticated()
        item_endpoint = f"{drive_base_path(params.siteId, params.driveId)}/items/{params.itemId}"

        metadata = DriveItem.model_validate(self._graph.get(item_endpoint))
        mime_type = metadata.file.mimeType if metadata.file else None

        raw = self._graph.get_content(f"{item_endpoint}/content")
        logger.info(
            "[get_drive_item_content] downloaded item; item_id:%s;mime_type:%s;bytes:%d",
            params.itemId,
            mime_type,
            len(raw),
        )
        return encode_content(raw, mime_type)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search(self, params: SearchParams) -> list[SearchResult]:
        """Run a Microsoft Search query across SharePoint content."""
        self.ensure_authenticated()
        response = self._graph.post("/search/query", build_search_request(params))
        results = parse_search_hits(response)
        logger.info("[search] search complete; result_count:%d", len(results))
        return results

    # ------------------------------------------------------------------
    # Site pages
    # ------------------------------------------------------------------

    def list_site_pages(self, site_id: str, top: int | None = None) -> list[SitePage]:
        """List a site's pages with their canvas layout expanded."""
        self.ensure_authenticated()
        endpoint = f"/sites/{site_id}/pages" + build_query_string(
            [("$expand", "canvasLayout"), ("$top", top)]
        )
        response = self._graph.get(endpoint)
        return [SitePage.model_validate(raw) for raw in response.get(ODATA_VALUE, [])]

    def get_site_page(self, site_id: str, page_id: str) -> SitePage:
        """Return a site page with its canvas layout expanded."""
        self.ensure_authenticated()
        endpoint = f"/sites/{site_id}/pages/{page_id}/microsoft.graph.sitePage?$expand=canvasLayout"
        return SitePage.model_validate(self._graph.get(endpoint))


def sharepoint_client_from_config(config: AppConfig) -> SharePointClient:
    """Construct a SharePointClient and its auth session from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        SharePointClient whose Graph requests carry tokens from a single AuthSession.
    """
    auth = auth_session_from_config(config)
    graph = GraphClient(token_provider=auth.get_access_token)
    return SharePointClient(graph_client=graph, auth=auth)
