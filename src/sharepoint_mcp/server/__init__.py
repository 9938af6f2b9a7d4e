"""MCP surface: tool dispatcher, resource router, prompts and server wiring."""
