"""External tool invocation for ``mcp`` workflow steps."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Awaitable, Callable, Dict, Protocol, Tuple, Union

from ..errors import ToolError

logger = logging.getLogger(__name__)

ToolFunc = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


def parse_tool(identifier: str) -> Tuple[str, str]:
    """Split ``server:tool`` into its two parts."""
    parts = identifier.split(":")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise ToolError(
            f'Invalid MCP tool format: "{identifier}". Expected "server:tool" (e.g., "crm:search")'
        )
    return parts[0], parts[1]


class ToolInvoker(Protocol):
    async def invoke(self, server: str, tool: str, params: Dict[str, Any]) -> Any:
        """Run ``server:tool`` with ``params``; raise ``ToolError`` on failure."""


class ToolRegistry:
    """Maps ``server:tool`` identifiers to sync or async callables."""

    def __init__(self) -> None:
        self._tools: Dict[str, ToolFunc] = {}

    def register(self, identifier: str, func: ToolFunc) -> None:
        parse_tool(identifier)
        self._tools[identifier] = func

    def tool(self, identifier: str) -> Callable[[ToolFunc], ToolFunc]:
        """Decorator form of :meth:`register`."""

        def decorator(func: ToolFunc) -> ToolFunc:
            self.register(identifier, func)
            return func

        return decorator

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._tools

    async def invoke(self, server: str, tool: str, params: Dict[str, Any]) -> Any:
        identifier = f"{server}:{tool}"
        func = self._tools.get(identifier)
        if func is None:
            raise ToolError(f'Tool "{identifier}" is not registered')
        try:
            result = func(params)
            if inspect.isawaitable(result):
                result = await result
        except ToolError:
            raise
        except Exception as e:
            logger.error(f"Tool {identifier} failed: {e}")
            raise ToolError(f'Tool "{identifier}" failed: {e}') from e
        return result
