"""SharePoint tool table.

Each handler makes exactly one SharePointClient call on a worker thread and
returns a plain projection; validation, serialization and error envelopes are
handled by ToolRegistry.dispatch.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from sharepoint_mcp.graph.models import (
    GetDriveItemContentParams,
    ListDriveItemsQuery,
    ListSitesQuery,
    SearchParams,
)
from sharepoint_mcp.server.dispatch import NoParams, ToolRegistry
from sharepoint_mcp.server.formatting import (
    format_content,
    format_drive,
    format_drive_item,
    format_list,
    format_search_result,
    format_site,
    format_site_page,
    format_subsite,
)

if TYPE_CHECKING:
    from sharepoint_mcp.graph.sharepoint import SharePointClient

registry = ToolRegistry()

TOKEN_REFRESHED_MESSAGE = (
    "Authentication token successfully refreshed with updated permissions. "
    "You can now access SharePoint with the new scopes."
)


# ---------------------------------------------------------------------------
# Parameter shapes
# ---------------------------------------------------------------------------


class _Params(BaseModel):
    model_config = ConfigDict(frozen=True)


class SiteParams(_Params):
    siteId: str = Field(description="ID of the SharePoint site")


class SiteListParams(_Params):
    siteId: str = Field(description="ID of the SharePoint site")
    listId: str = Field(description="ID of the list to retrieve")


class SiteDriveParams(_Params):
    siteId: str = Field(description="ID of the SharePoint site")
    driveId: str = Field(description="ID of the drive to retrieve")


class DriveItemParams(_Params):
    siteId: str = Field(description="ID of the SharePoint site")
    driveId: str | None = Field(
        default=None,
        description="ID of the drive (optional, uses default drive if not specified)",
    )
    itemId: str = Field(description="ID of the drive item to retrieve")


class SitePagesParams(_Params):
    siteId: str = Field(description="ID of the SharePoint site")
    top: PositiveInt | None = Field(default=None, description="Maximum number of pages to return")


class SitePageParams(_Params):
    siteId: str = Field(description="ID of the SharePoint site")
    pageId: str = Field(description="ID of the site page to retrieve")


# ---------------------------------------------------------------------------
# Authentication
# ---------------------------------------------------------------------------


@registry.tool(
    "refreshAuthToken",
    "Refreshes the authentication token to get updated SharePoint permissions. Use this if "
    "you get permission errors after updating your Azure AD app registration.",
    action="refreshing authentication token",
    params=NoParams,
)
async def refresh_auth_token(client: SharePointClient, params: NoParams) -> str:
    await asyncio.to_thread(client.auth.refresh)
    return TOKEN_REFRESHED_MESSAGE


# ---------------------------------------------------------------------------
# Sites
# ---------------------------------------------------------------------------


@registry.tool(
    "listSharePointSites",
    "Lists all SharePoint sites accessible to the user. Use optional 'search' parameter to "
    "filter by name, or 'top' to limit results. This is your starting point for discovering "
    "what SharePoint content is available.",
    action="listing SharePoint sites",
    params=ListSitesQuery,
)
async def list_sharepoint_sites(
    client: SharePointClient, params: ListSitesQuery
) -> list[dict[str, Any]]:
    sites = await asyncio.to_thread(client.list_sites, params)
    return [format_site(site, modified=True) for site in sites]


@registry.tool(
    "getSharePointSite",
    "Gets details of a specific SharePoint site",
    action="getting SharePoint site",
    params=SiteParams,
)
async def get_sharepoint_site(client: SharePointClient, params: SiteParams) -> dict[str, Any]:
    site = await asyncio.to_thread(client.get_site, params.siteId)
    return site.to_json()


@registry.tool(
    "getSharePointSubsites",
    "Gets subsites of a SharePoint site",
    action="getting SharePoint subsites",
    params=SiteParams,
)
async def get_sharepoint_subsites(
    client: SharePointClient, params: SiteParams
) -> list[dict[str, Any]]:
    subsites = await asyncio.to_thread(client.get_subsites, params.siteId)
    return [format_subsite(site) for site in subsites]


@registry.tool(
    "getRootSharePointSite",
    "Gets the organization's root SharePoint site",
    action="getting root SharePoint site",
)
async def get_root_sharepoint_site(client: SharePointClient, params: NoParams) -> dict[str, Any]:
    site = await asyncio.to_thread(client.get_root_site)
    return site.to_json()


# ---------------------------------------------------------------------------
# Lists
# ---------------------------------------------------------------------------


@registry.tool(
    "listSiteLists",
    "Lists all lists in a SharePoint site",
    action="listing site lists",
    params=SiteParams,
)
async def list_site_lists(client: SharePointClient, params: SiteParams) -> list[dict[str, Any]]:
    lists = await asyncio.to_thread(client.list_site_lists, params.siteId)
    return [format_list(site_list) for site_list in lists]


@registry.tool(
    "getSiteList",
    "Gets details of a specific list in a SharePoint site",
    action="getting site list",
    params=SiteListParams,
)
async def get_site_list(client: SharePointClient, params: SiteListParams) -> dict[str, Any]:
    site_list = await asyncio.to_thread(client.get_site_list, params.siteId, params.listId)
    return site_list.to_json()


# ---------------------------------------------------------------------------
# Drives (document libraries)
# ---------------------------------------------------------------------------


@registry.tool(
    "listSiteDrives",
    "Lists all drives (document libraries) in a SharePoint site",
    action="listing site drives",
    params=SiteParams,
)
async def list_site_drives(client: SharePointClient, params: SiteParams) -> list[dict[str, Any]]:
    drives = await asyncio.to_thread(client.list_site_drives, params.siteId)
    return [format_drive(drive) for drive in drives]


@registry.tool(
    "getSiteDefaultDrive",
    "Gets the default drive (document library) of a SharePoint site",
    action="getting site default drive",
    params=SiteParams,
)
async def get_site_default_drive(client: SharePointClient, params: SiteParams) -> dict[str, Any]:
    drive = await asyncio.to_thread(client.get_site_default_drive, params.siteId)
    return drive.to_json()


@registry.tool(
    "getSiteDrive",
    "Gets a specific drive (document library) of a SharePoint site by its ID",
    action="getting site drive",
    params=SiteDriveParams,
)
async def get_site_drive(client: SharePointClient, params: SiteDriveParams) -> dict[str, Any]:
    drive = await asyncio.to_thread(client.get_site_drive, params.siteId, params.driveId)
    return drive.to_json()


# ---------------------------------------------------------------------------
# Files and folders
# ---------------------------------------------------------------------------


@registry.tool(
    "listDriveItems",
    "Lists files and folders in a SharePoint drive or folder. Requires siteId. Use 'path' "
    "parameter to navigate to specific folders (e.g., 'Documents/Projects'). Returns file "
    "metadata including IDs needed for downloading content.",
    action="listing drive items",
    params=ListDriveItemsQuery,
)
async def list_drive_items(
    client: SharePointClient, params: ListDriveItemsQuery
) -> list[dict[str, Any]]:
    items = await asyncio.to_thread(client.list_drive_items, params)
    return [format_drive_item(item) for item in items]


@registry.tool(
    "getDriveItem",
    "Gets details of a specific file or folder in a SharePoint drive",
    action="getting drive item",
    params=DriveItemParams,
)
async def get_drive_item(client: SharePointClient, params: DriveItemParams) -> dict[str, Any]:
    item = await asyncio.to_thread(
        client.get_drive_item, params.siteId, params.driveId, params.itemId
    )
    return item.to_json()


@registry.tool(
    "getDriveItemContent",
    "Downloads the actual content of a file from SharePoint. Returns text files as UTF-8 "
    "text, binary files as base64. Use this after finding the file with listDriveItems. "
    "Requires siteId and itemId.",
    action="getting drive item content",
    params=GetDriveItemContentParams,
)
async def get_drive_item_content(
    client: SharePointClient, params: GetDriveItemContentParams
) -> str:
    content = await asyncio.to_thread(client.get_drive_item_content, params)
    return format_content(content)


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@registry.tool(
    "searchSharePoint",
    "Searches across all SharePoint content including files, documents, lists, and sites. "
    "Use natural language queries (e.g., 'budget 2024', 'project proposal'). Optional: limit "
    "to specific site with 'siteId', filter by content types with 'entityTypes'.",
    action="searching SharePoint",
    params=SearchParams,
)
async def search_sharepoint(client: SharePointClient, params: SearchParams) -> list[dict[str, Any]]:
    results = await asyncio.to_thread(client.search, params)
    return [format_search_result(result) for result in results]


# ---------------------------------------------------------------------------
# Site pages
# ---------------------------------------------------------------------------


@registry.tool(
    "listSitePages",
    "Lists the modern site pages of a SharePoint site (news posts, articles, home page).",
    action="listing site pages",
    params=SitePagesParams,
)
async def list_site_pages(
    client: SharePointClient, params: SitePagesParams
) -> list[dict[str, Any]]:
    pages = await asyncio.to_thread(client.list_site_pages, params.siteId, params.top)
    return [format_site_page(page) for page in pages]


@registry.tool(
    "getSitePage",
    "Gets a specific site page including its canvas layout (sections, columns and web part "
    "HTML), which holds the page's actual content.",
    action="getting site page",
    params=SitePageParams,
)
async def get_site_page(client: SharePointClient, params: SitePageParams) -> dict[str, Any]:
    page = await asyncio.to_thread(client.get_site_page, params.siteId, params.pageId)
    return page.to_json()
