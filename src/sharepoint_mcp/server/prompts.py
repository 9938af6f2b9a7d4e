"""Prompt that walks a client through exploring SharePoint content."""

from __future__ import annotations

from mcp import types

EXPLORATION_PROMPT_NAME = "sharepoint-site-exploration-prompt"
EXPLORATION_PROMPT_DESCRIPTION = "A prompt to help explore SharePoint sites and their content."

EXPLORATION_PROMPT_TEXT = """\
Help me explore the SharePoint content I have access to.

1. Start with the sharepoint://sites/all resource (or the listSharePointSites tool) to see
   which sites exist, and note the IDs of the ones that look relevant.
2. For a site of interest, read sharepoint://sites/{siteId}/structure to see its lists and
   document libraries.
3. Browse folders with sharepoint://sites/{siteId}/files/root or the listDriveItems tool,
   passing 'path' to go deeper.
4. Open files with getDriveItemContent, and use searchSharePoint when you know what you are
   looking for but not where it lives.

Summarize what you find as you go."""


def list_prompts() -> list[types.Prompt]:
    return [
        types.Prompt(
            name=EXPLORATION_PROMPT_NAME,
            description=EXPLORATION_PROMPT_DESCRIPTION,
            arguments=[
                types.PromptArgument(name="param", description="Not used", required=False),
            ],
        )
    ]


def get_prompt(name: str, arguments: dict[str, str] | None) -> types.GetPromptResult:
    """Render a prompt by name.

    Raises:
        ValueError: If the prompt is unknown.
    """
    if name != EXPLORATION_PROMPT_NAME:
        raise ValueError(f"Unknown prompt: {name}")
    return types.GetPromptResult(
        description=EXPLORATION_PROMPT_DESCRIPTION,
        messages=[
            types.PromptMessage(
                role="user",
                content=types.TextContent(type="text", text=EXPLORATION_PROMPT_TEXT),
            )
        ],
    )
