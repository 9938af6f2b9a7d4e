"""Integration tests for Microsoft Graph API connectivity.

These tests require a real Azure AD app registration and an interactive
sign-in, and are skipped unless the SP_CLIENT_ID environment variable is set.
"""

import os

import pytest

pytestmark = pytest.mark.skipif(
    not os.getenv("SP_CLIENT_ID"),
    reason="Real Graph credentials not available",
)


def test_root_site_real() -> None:
    """Sign in and fetch the organization's root site."""
    from sharepoint_mcp.config import load_config
    from sharepoint_mcp.graph.sharepoint import sharepoint_client_from_config

    client = sharepoint_client_from_config(load_config())
    site = client.get_root_site()

    assert site.id
    assert site.webUrl.startswith("https://")


def test_list_sites_real() -> None:
    """Site listing returns a list (possibly empty) without raising."""
    from sharepoint_mcp.config import load_config
    from sharepoint_mcp.graph.models import ListSitesQuery
    from sharepoint_mcp.graph.sharepoint import sharepoint_client_from_config

    client = sharepoint_client_from_config(load_config())
    sites = client.list_sites(ListSitesQuery(top=5))

    assert isinstance(sites, list)
