"""SharePoint MCP server backed by Microsoft Graph."""

__version__ = "0.1.0"
