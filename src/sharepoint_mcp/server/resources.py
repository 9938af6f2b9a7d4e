"""Resource routing table for ``sharepoint://`` URIs."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote

from mcp import types

from sharepoint_mcp.graph.models import ListDriveItemsQuery, SearchParams
from sharepoint_mcp.server.dispatch import Envelope, serialize
from sharepoint_mcp.server.formatting import (
    format_drive,
    format_drive_item,
    format_list,
    format_search_result,
    format_site,
)

if TYPE_CHECKING:
    from sharepoint_mcp.graph.sharepoint import SharePointClient

logger = logging.getLogger(__name__)

SCHEME = "sharepoint://"
JSON_MIME_TYPE = "application/json"
ERROR_MIME_TYPE = "text/plain"

ROOT_PATH_ALIAS = "root"
RESOURCE_SEARCH_SIZE = 20

FOLDER_ENTRY_FIELDS = (
    "id",
    "name",
    "webUrl",
    "size",
    "isFolder",
    "isFile",
    "mimeType",
    "childCount",
    "lastModifiedDateTime",
    "lastModifiedBy",
)

ResourceHandler = Callable[["SharePointClient", dict[str, str]], Awaitable[Any]]


class InvalidResourceUriError(ValueError):
    """Raised when a URI does not match any known resource route."""


@dataclass(frozen=True)
class ResourceRoute:
    """One entry of the resource table.

    Attributes:
        uri_template: URI advertised to clients; literal for static resources,
            RFC 6570 style (``{siteId}``) for templates.
        pattern: Fully anchored pattern whose named groups feed the handler.
        name: Short display name.
        description: Human-readable description shown to the client.
        action: Gerund phrase used in error messages.
        handler: Coroutine taking the SharePoint client and the captured groups.
    """

    uri_template: str
    pattern: re.Pattern[str]
    name: str
    description: str
    action: str
    handler: ResourceHandler

    @property
    def is_template(self) -> bool:
        return "{" in self.uri_template


@dataclass(frozen=True)
class ResourceResult:
    uri: str
    envelope: Envelope

    @property
    def mime_type(self) -> str:
        return ERROR_MIME_TYPE if self.envelope.is_error else JSON_MIME_TYPE


class ResourceRouter:
    """Matches URIs against compiled patterns and runs the routed handler."""

    def __init__(self) -> None:
        self._routes: list[ResourceRoute] = []

    def route(
        self,
        uri_template: str,
        pattern: str,
        name: str,
        description: str,
        action: str,
    ) -> Callable[[ResourceHandler], ResourceHandler]:
        def register(handler: ResourceHandler) -> ResourceHandler:
            self._routes.append(
                ResourceRoute(
                    uri_template=uri_template,
                    pattern=re.compile(pattern),
                    name=name,
                    description=description,
                    action=action,
                    handler=handler,
                )
            )
            return handler

        return register

    def match(self, uri: str) -> tuple[ResourceRoute, dict[str, str]]:
        """Find the route for a URI.

        Raises:
            InvalidResourceUriError: If no route pattern matches the whole URI.
        """
        for route in self._routes:
            found = route.pattern.fullmatch(uri)
            if found:
                return route, found.groupdict()
        raise InvalidResourceUriError(f"Invalid resource URI format: {uri}")

    def list_resources(self) -> list[types.Resource]:
        return [
            types.Resource(
                uri=route.uri_template,
                name=route.name,
                description=route.description,
                mimeType=JSON_MIME_TYPE,
            )
            for route in self._routes
            if not route.is_template
        ]

    def list_resource_templates(self) -> list[types.ResourceTemplate]:
        return [
            types.ResourceTemplate(
                uriTemplate=route.uri_template,
                name=route.name,
                description=route.description,
                mimeType=JSON_MIME_TYPE,
            )
            for route in self._routes
            if route.is_template
        ]

    async def read(self, client: SharePointClient, uri: str) -> ResourceResult:
        """Resolve and read a resource; failures come back as error results, never raise."""
        try:
            route, groups = self.match(uri)
        except InvalidResourceUriError as exc:
            logger.warning("[read] unmatched resource uri; uri:%s", uri)
            return ResourceResult(uri=uri, envelope=Envelope.failure("accessing resource", exc))

        try:
            result = await route.handler(client, groups)
        except Exception as exc:
            logger.error("[read] resource failed; uri:%s", uri, exc_info=True)
            return ResourceResult(uri=uri, envelope=Envelope.failure(route.action, exc))

        return ResourceResult(uri=uri, envelope=Envelope(text=serialize(result)))


def decode_folder_path(raw: str) -> str:
    """Map the ``{path}`` segment of a files URI to a drive-relative folder path.

    The literal ``root`` means the drive root (empty path); anything else is
    percent-decoded, so ``Documents%2FQ1`` becomes ``Documents/Q1``.
    """
    if raw == ROOT_PATH_ALIAS:
        return ""
    return unquote(raw)


router = ResourceRouter()


@router.route(
    "sharepoint://sites/all",
    r"sharepoint://sites/all",
    name="All SharePoint sites",
    description=(
        "Complete list of all SharePoint sites you have access to. This provides an overview "
        "of available sites with their IDs, names, descriptions, and URLs. Use the site IDs "
        "from this list with other tools and resources."
    ),
    action="accessing SharePoint sites",
)
async def all_sites(client: SharePointClient, groups: dict[str, str]) -> list[dict[str, Any]]:
    sites = await asyncio.to_thread(client.list_sites)
    return [format_site(site) for site in sites]


@router.route(
    "sharepoint://sites/root",
    r"sharepoint://sites/root",
    name="Root SharePoint site",
    description=(
        "Your organization's main SharePoint site (root site). This is typically the central "
        "hub for company-wide content and resources."
    ),
    action="accessing root SharePoint site",
)
async def root_site(client: SharePointClient, groups: dict[str, str]) -> dict[str, Any]:
    site = await asyncio.to_thread(client.get_root_site)
    return format_site(site, fallback_name="Root Site")


@router.route(
    "sharepoint://sites/{siteId}/structure",
    r"sharepoint://sites/(?P<site_id>[^/]+)/structure",
    name="SharePoint site structure",
    description=(
        "Structure of a specific SharePoint site showing all document libraries and lists. "
        "Replace {siteId} with actual site ID from sharepoint://sites/all. This shows what "
        "content containers are available in the site."
    ),
    action="accessing site structure",
)
async def site_structure(client: SharePointClient, groups: dict[str, str]) -> dict[str, Any]:
    site_id = groups["site_id"]
    lists, drives = await asyncio.gather(
        asyncio.to_thread(client.list_site_lists, site_id),
        asyncio.to_thread(client.list_site_drives, site_id),
    )
    formatted_lists = []
    for site_list in lists:
        entry = format_list(site_list)
        del entry["createdDateTime"]
        formatted_lists.append({**entry, "type": "list"})
    formatted_drives = []
    for drive in drives:
        entry = format_drive(drive)
        del entry["createdDateTime"]
        formatted_drives.append({**entry, "type": "drive"})
    return {"siteId": site_id, "lists": formatted_lists, "drives": formatted_drives}


@router.route(
    "sharepoint://sites/{siteId}/files/{path}",
    r"sharepoint://sites/(?P<site_id>[^/]+)/files/(?P<path>.+)",
    name="SharePoint folder contents",
    description=(
        "Browse files and folders in a SharePoint site. Replace {siteId} with site ID and "
        "{path} with folder path (use 'root' for top level). Example: "
        "sharepoint://sites/mysite.sharepoint.com,abc123/files/Documents/Projects"
    ),
    action="accessing folder contents",
)
async def folder_contents(client: SharePointClient, groups: dict[str, str]) -> dict[str, Any]:
    site_id = groups["site_id"]
    path = decode_folder_path(groups["path"])
    query = ListDriveItemsQuery(siteId=site_id, path=path or None)
    items = await asyncio.to_thread(client.list_drive_items, query)
    entries = []
    for item in items:
        formatted = format_drive_item(item)
        entries.append({key: formatted[key] for key in FOLDER_ENTRY_FIELDS})
    return {"siteId": site_id, "path": path or "/", "items": entries}


@router.route(
    "sharepoint://search/{query}",
    r"sharepoint://search/(?P<query>.+)",
    name="SharePoint search",
    description=(
        "Search results across all SharePoint content. Replace {query} with URL-encoded "
        "search terms. Example: sharepoint://search/budget%202024 or "
        "sharepoint://search/project%20proposal. Returns top 20 matching items."
    ),
    action="performing search",
)
async def search_results(client: SharePointClient, groups: dict[str, str]) -> dict[str, Any]:
    query = unquote(groups["query"])
    params = SearchParams(query=query, top=RESOURCE_SEARCH_SIZE)
    results = await asyncio.to_thread(client.search, params)
    return {
        "query": query,
        "resultCount": len(results),
        "results": [format_search_result(result, highlights=False) for result in results],
    }
