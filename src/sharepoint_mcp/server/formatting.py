"""Caller-facing projections of SharePoint entities."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sharepoint_mcp.graph.models import (
    Drive,
    DriveItem,
    DriveItemContent,
    IdentitySet,
    SearchResult,
    Site,
    SiteList,
    SitePage,
)

UNKNOWN = "Unknown"


def format_date(value: str | None) -> str:
    """Render a Graph ISO-8601 timestamp as ``YYYY-MM-DD HH:MM:SS UTC``.

    Missing values become ``Unknown``; strings that do not parse are
    returned unchanged.
    """
    if not value:
        return UNKNOWN
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def _display_name(identity: IdentitySet | None) -> str:
    if identity and identity.user and identity.user.displayName:
        return identity.user.displayName
    return UNKNOWN


def format_site(
    site: Site, *, fallback_name: str = "Unnamed Site", modified: bool = False
) -> dict[str, Any]:
    formatted: dict[str, Any] = {
        "id": site.id,
        "name": site.displayName or site.name or fallback_name,
        "description": site.description or "",
        "webUrl": site.webUrl,
        "createdDateTime": format_date(site.createdDateTime),
    }
    if modified:
        formatted["lastModifiedDateTime"] = format_date(site.lastModifiedDateTime)
    formatted["hostname"] = (site.siteCollection.hostname if site.siteCollection else None) or ""
    return formatted


def format_subsite(site: Site) -> dict[str, Any]:
    return {
        "id": site.id,
        "name": site.displayName or site.name or "Unnamed Site",
        "description": site.description or "",
        "webUrl": site.webUrl,
        "createdDateTime": format_date(site.createdDateTime),
    }


def format_list(site_list: SiteList) -> dict[str, Any]:
    info = site_list.list_info
    return {
        "id": site_list.id,
        "name": site_list.displayName or site_list.name or "Unnamed List",
        "description": site_list.description or "",
        "webUrl": site_list.webUrl or "",
        "createdDateTime": format_date(site_list.createdDateTime),
        "template": (info.template if info else None) or UNKNOWN,
        "hidden": bool(info and info.hidden),
    }


def format_drive(drive: Drive) -> dict[str, Any]:
    return {
        "id": drive.id,
        "name": drive.name or "Unnamed Drive",
        "description": drive.description or "",
        "webUrl": drive.webUrl or "",
        "driveType": drive.driveType or UNKNOWN,
        "owner": _display_name(drive.owner),
        "createdDateTime": format_date(drive.createdDateTime),
    }


def format_drive_item(item: DriveItem) -> dict[str, Any]:
    return {
        "id": item.id,
        "name": item.name,
        "webUrl": item.webUrl or "",
        "size": item.size or 0,
        "isFolder": item.folder is not None,
        "isFile": item.file is not None,
        "mimeType": (item.file.mimeType if item.file else None) or None,
        "childCount": (item.folder.childCount if item.folder else None) or None,
        "createdDateTime": format_date(item.createdDateTime),
        "lastModifiedDateTime": format_date(item.lastModifiedDateTime),
        "createdBy": _display_name(item.createdBy),
        "lastModifiedBy": _display_name(item.lastModifiedBy),
    }


def format_search_result(result: SearchResult, *, highlights: bool = True) -> dict[str, Any]:
    formatted: dict[str, Any] = {
        "id": result.id,
        "name": result.name or result.title or "Unnamed",
        "webUrl": result.webUrl or "",
        "summary": result.summary or "",
    }
    if highlights:
        formatted["hitHighlightedSummary"] = result.hitHighlightedSummary or ""
    formatted["resourceType"] = (result.resource.odata_type if result.resource else None) or UNKNOWN
    return formatted


def format_site_page(page: SitePage) -> dict[str, Any]:
    return {
        "id": page.id,
        "name": page.name or "",
        "title": page.title or page.name or "Untitled Page",
        "description": page.description or "",
        "webUrl": page.webUrl or "",
        "pageLayout": page.pageLayout or UNKNOWN,
        "promotionKind": page.promotionKind or UNKNOWN,
        "createdDateTime": format_date(page.createdDateTime),
        "lastModifiedDateTime": format_date(page.lastModifiedDateTime),
        "createdBy": _display_name(page.createdBy),
        "lastModifiedBy": _display_name(page.lastModifiedBy),
        "publishingState": (page.publishingState.level if page.publishingState else None)
        or UNKNOWN,
    }


def format_content(content: DriveItemContent) -> str:
    """Describe downloaded content with a one-line header followed by the payload."""
    if content.is_base64:
        approx_bytes = round(len(content.content) * 0.75)
        return (
            f"Binary file content (base64 encoded, {approx_bytes} bytes, "
            f"MIME: {content.mime_type})\n\n{content.content}"
        )
    return f"Text file content (MIME: {content.mime_type}):\n\n{content.content}"
