"""Console entry point: ``sharepoint-mcp`` / ``python -m sharepoint_mcp``."""

import asyncio
import logging
import sys

from sharepoint_mcp.config import AppConfig, load_config
from sharepoint_mcp.graph.sharepoint import sharepoint_client_from_config
from sharepoint_mcp.server.app import serve

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(config: AppConfig) -> None:
    """Send all logging to stderr; stdout carries the MCP stdio transport."""
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT, stream=sys.stderr)
    logging.getLogger("msal").setLevel(logging.DEBUG if config.msal_debug else logging.ERROR)


def main() -> None:
    config = load_config()
    configure_logging(config)
    client = sharepoint_client_from_config(config)
    try:
        asyncio.run(serve(client))
    except KeyboardInterrupt:
        logger.info("[main] interrupted")


if __name__ == "__main__":
    main()
