"""Smoke tests: validate the console entry point wires everything together."""

import logging
from unittest.mock import MagicMock, patch

from sharepoint_mcp import __version__
from sharepoint_mcp.__main__ import configure_logging, main
from sharepoint_mcp.config import AppConfig


def test_version() -> None:
    assert __version__ == "0.1.0"


def test_main_builds_client_and_serves() -> None:
    """main() loads config, builds the SharePoint client and runs the stdio server."""
    config = AppConfig(client_id="cid", tenant_id="tid")
    mock_client = MagicMock()

    with (
        patch("sharepoint_mcp.__main__.load_config", return_value=config),
        patch("sharepoint_mcp.__main__.configure_logging") as mock_logging,
        patch(
            "sharepoint_mcp.__main__.sharepoint_client_from_config", return_value=mock_client
        ) as mock_factory,
        patch("sharepoint_mcp.__main__.serve", new=MagicMock()) as mock_serve,
        patch("sharepoint_mcp.__main__.asyncio.run") as mock_run,
    ):
        main()

    mock_logging.assert_called_once_with(config)
    mock_factory.assert_called_once_with(config)
    mock_serve.assert_called_once_with(mock_client)
    mock_run.assert_called_once_with(mock_serve.return_value)


def test_main_exits_quietly_on_interrupt() -> None:
    with (
        patch("sharepoint_mcp.__main__.load_config"),
        patch("sharepoint_mcp.__main__.configure_logging"),
        patch("sharepoint_mcp.__main__.sharepoint_client_from_config"),
        patch("sharepoint_mcp.__main__.serve", new=MagicMock()),
        patch("sharepoint_mcp.__main__.asyncio.run", side_effect=KeyboardInterrupt),
    ):
        main()


def test_msal_logging_quiet_unless_debug() -> None:
    with patch("sharepoint_mcp.__main__.logging.basicConfig"):
        configure_logging(AppConfig(client_id="c", tenant_id="t"))
        assert logging.getLogger("msal").level == logging.ERROR

        configure_logging(AppConfig(client_id="c", tenant_id="t", msal_debug=True))
        assert logging.getLogger("msal").level == logging.DEBUG
