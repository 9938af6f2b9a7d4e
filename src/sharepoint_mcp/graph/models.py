"""Data models for SharePoint entities and query parameters from Microsoft Graph."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

# OData response keys
ODATA_VALUE = "value"
ODATA_TYPE = "@odata.type"

# Search response keys
FIELD_HITS_CONTAINERS = "hitsContainers"
FIELD_HITS = "hits"
FIELD_HIT_ID = "hitId"
FIELD_RESOURCE = "resource"

EntityType = Literal["listItem", "driveItem", "site", "list"]


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------


class _Query(BaseModel):
    model_config = ConfigDict(frozen=True)


class ListSitesQuery(_Query):
    search: str | None = Field(default=None, description="Search term to filter sites")
    top: PositiveInt | None = Field(default=None, description="Maximum number of sites to return")
    filter: str | None = Field(default=None, description="OData filter expression")
    orderBy: str | None = Field(default=None, description="Order by expression")


class ListDriveItemsQuery(_Query):
    siteId: str = Field(description="SharePoint site ID")
    driveId: str | None = Field(
        default=None,
        description="Drive ID (optional, uses default drive if not specified)",
    )
    path: str | None = Field(default=None, description="Folder path (optional, defaults to root)")
    top: PositiveInt | None = Field(default=None, description="Maximum number of items to return")
    filter: str | None = Field(default=None, description="OData filter expression")
    orderBy: str | None = Field(default=None, description="Order by expression")


class GetDriveItemContentParams(_Query):
    siteId: str = Field(description="SharePoint site ID")
    driveId: str | None = Field(
        default=None,
        description="Drive ID (optional, uses default drive if not specified)",
    )
    itemId: str = Field(description="Drive item ID")


class SearchParams(_Query):
    query: str = Field(description="Search query")
    siteId: str | None = Field(default=None, description="Limit search to specific site")
    top: PositiveInt | None = Field(
        default=None, description="Maximum number of results to return"
    )
    entityTypes: list[EntityType] | None = Field(
        default=None, description="Types of entities to search"
    )


# ---------------------------------------------------------------------------
# Graph entities
# ---------------------------------------------------------------------------


class _Entity(BaseModel):
    """Base for Graph documents: unknown fields are kept so callers see the full payload."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        """Return the document as received, using Graph's field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class UserIdentity(_Entity):
    displayName: str | None = None
    email: str | None = None


class IdentitySet(_Entity):
    user: UserIdentity | None = None


class SiteCollection(_Entity):
    hostname: str | None = None


class Site(_Entity):
    id: str
    name: str | None = None
    displayName: str | None = None
    description: str | None = None
    webUrl: str
    createdDateTime: str | None = None
    lastModifiedDateTime: str | None = None
    siteCollection: SiteCollection | None = None
    root: dict[str, Any] | None = None


class ListInfo(_Entity):
    template: str | None = None
    hidden: bool | None = None


class SiteList(_Entity):
    id: str
    name: str | None = None
    displayName: str | None = None
    description: str | None = None
    webUrl: str | None = None
    createdDateTime: str | None = None
    lastModifiedDateTime: str | None = None
    list_info: ListInfo | None = Field(default=None, alias="list")


class Drive(_Entity):
    id: str
    name: str | None = None
    description: str | None = None
    webUrl: str | None = None
    createdDateTime: str | None = None
    lastModifiedDateTime: str | None = None
    driveType: str | None = None
    owner: IdentitySet | None = None


class FolderFacet(_Entity):
    childCount: int | None = None


class Hashes(_Entity):
    sha1Hash: str | None = None


class FileFacet(_Entity):
    mimeType: str | None = None
    hashes: Hashes | None = None


class ItemReference(_Entity):
    driveId: str | None = None
    path: str | None = None
    listId: str | None = None
    siteId: str | None = None


class DriveItem(_Entity):
    id: str
    name: str
    webUrl: str | None = None
    createdDateTime: str | None = None
    lastModifiedDateTime: str | None = None
    size: int | None = None
    folder: FolderFacet | None = None
    file: FileFacet | None = None
    parentReference: ItemReference | None = None
    createdBy: IdentitySet | None = None
    lastModifiedBy: IdentitySet | None = None


class SearchResource(_Entity):
    odata_type: str | None = Field(default=None, alias=ODATA_TYPE)
    id: str | None = None
    name: str | None = None
    webUrl: str | None = None


class SearchResult(_Entity):
    id: str
    webUrl: str | None = None
    name: str | None = None
    title: str | None = None
    summary: str | None = None
    hitHighlightedSummary: str | None = None
    resource: SearchResource | None = None


class WebPart(_Entity):
    odata_type: str | None = Field(default=None, alias=ODATA_TYPE)
    id: str | None = None
    innerHtml: str | None = None


class CanvasColumn(_Entity):
    id: str | None = None
    width: float | None = None
    webparts: list[WebPart] | None = None


class HorizontalSection(_Entity):
    layout: str | None = None
    id: str | None = None
    emphasis: str | None = None
    columns: list[CanvasColumn] | None = None


class CanvasLayout(_Entity):
    horizontalSections: list[HorizontalSection] | None = None


class PublishingState(_Entity):
    level: str | None = None
    versionId: str | None = None


class ContentTypeInfo(_Entity):
    id: str | None = None
    name: str | None = None


class SitePage(_Entity):
    id: str
    name: str | None = None
    title: str | None = None
    description: str | None = None
    webUrl: str | None = None
    createdDateTime: str | None = None
    lastModifiedDateTime: str | None = None
    eTag: str | None = None
    # Graph enums (pageLayout, promotionKind) grow over time, so they stay plain strings.
    pageLayout: str | None = None
    promotionKind: str | None = None
    showComments: bool | None = None
    showRecommendedPages: bool | None = None
    thumbnailWebUrl: str | None = None
    createdBy: IdentitySet | None = None
    lastModifiedBy: IdentitySet | None = None
    publishingState: PublishingState | None = None
    contentType: ContentTypeInfo | None = None
    parentReference: ItemReference | None = None
    reactions: dict[str, Any] | None = None
    canvasLayout: CanvasLayout | None = None


@dataclass
class DriveItemContent:
    """Downloaded file content in a form that can travel inside a JSON text message.

    Attributes:
        content: UTF-8 text for text-like MIME types, otherwise base64.
        is_base64: Whether ``content`` is base64-encoded bytes.
        mime_type: MIME type reported by the item's file facet, if any.
    """

    content: str
    is_base64: bool
    mime_type: str | None = None
