"""Tool registry and the envelope middleware that runs every tool invocation."""

from __future__ import annotations

import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from mcp import types
from pydantic import BaseModel, ConfigDict, ValidationError

if TYPE_CHECKING:
    from sharepoint_mcp.graph.sharepoint import SharePointClient

logger = logging.getLogger(__name__)

Handler = Callable[["SharePointClient", Any], Awaitable[Any]]


class NoParams(BaseModel):
    """Parameter shape for tools that take no arguments."""

    model_config = ConfigDict(frozen=True)


@dataclass(frozen=True)
class Envelope:
    """Uniform result of a tool or resource invocation."""

    text: str
    is_error: bool = False

    @classmethod
    def failure(cls, action: str, exc: BaseException) -> Envelope:
        return cls(text=f"Error {action}: {exc}", is_error=True)


def serialize(result: Any) -> str:
    """Render a handler result as text: strings pass through, the rest becomes indented JSON."""
    if isinstance(result, str):
        return result
    return json.dumps(result, indent=2, ensure_ascii=False, default=str)


@dataclass(frozen=True)
class ToolSpec:
    """One entry of the tool table.

    Attributes:
        name: Tool name exposed to MCP clients.
        description: Human-readable description shown to the client.
        params: Pydantic model describing and validating the arguments.
        action: Gerund phrase used in error messages ("listing site drives").
        handler: Coroutine taking the SharePoint client and validated params.
    """

    name: str
    description: str
    params: type[BaseModel]
    action: str
    handler: Handler

    def to_mcp(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.params.model_json_schema(),
        )


class ToolRegistry:
    """Static name -> ToolSpec table populated with the ``tool`` decorator."""

    def __init__(self) -> None:
        self._tools: dict[str, ToolSpec] = {}

    def tool(
        self,
        name: str,
        description: str,
        action: str,
        params: type[BaseModel] = NoParams,
    ) -> Callable[[Handler], Handler]:
        """Register the decorated coroutine as the handler for ``name``."""

        def register(handler: Handler) -> Handler:
            if name in self._tools:
                raise ValueError(f"Tool already registered: {name}")
            self._tools[name] = ToolSpec(
                name=name,
                description=description,
                params=params,
                action=action,
                handler=handler,
            )
            return handler

        return register

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def get(self, name: str) -> ToolSpec | None:
        return self._tools.get(name)

    def list_tools(self) -> list[types.Tool]:
        return [spec.to_mcp() for spec in self._tools.values()]

    async def dispatch(
        self,
        client: SharePointClient,
        name: str,
        arguments: dict[str, Any] | None,
    ) -> Envelope:
        """Validate arguments, run the handler and wrap the outcome in an Envelope.

        Never raises: unknown tools, invalid arguments and handler failures
        all come back as error envelopes.
        """
        spec = self._tools.get(name)
        if spec is None:
            logger.warning("[dispatch] unknown tool; name:%s", name)
            return Envelope(text=f"Unknown tool: {name}", is_error=True)

        try:
            params = spec.params.model_validate(arguments or {})
        except ValidationError as exc:
            logger.warning("[dispatch] invalid arguments; tool:%s", name)
            return Envelope(text=f"Invalid arguments for {name}: {exc}", is_error=True)

        try:
            result = await spec.handler(client, params)
        except Exception as exc:
            logger.error("[dispatch] tool failed; tool:%s", name, exc_info=True)
            return Envelope.failure(spec.action, exc)

        logger.info("[dispatch] tool succeeded; tool:%s", name)
        return Envelope(text=serialize(result))
