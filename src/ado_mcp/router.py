"""Dispatch router: tool name + arguments -> normalized outcome.

The router is transport-agnostic and is the only place where exceptions
raised by the credential provider, the client or the catalog become
Failure values. Transports never see raw exceptions.
"""

import logging
from collections.abc import Mapping
from typing import Any

from .models import (
    DispatchOutcome,
    Failure,
    FailureKind,
    Success,
    ToolDescriptor,
)
from .tools import ToolRegistry

logger = logging.getLogger("ado-mcp.router")


class DispatchRouter:
    """Resolve tool names against the registry and execute them."""

    def __init__(self, registry: ToolRegistry):
        self.registry = registry

    def list_tools(self) -> list[ToolDescriptor]:
        return self.registry.list_tools()

    async def dispatch(
        self, tool_name: str, args: Mapping[str, Any] | None = None
    ) -> DispatchOutcome:
        """Execute one tool.

        Arguments are not validated against the tool's schema: the remote
        API is the enforcement point, and a missing required argument
        surfaces as whatever error that call produces.

        Args:
            tool_name: Registered tool name.
            args: Tool arguments keyed by schema property name.

        Returns:
            Success with the operation's result, or Failure. Never raises.
        """
        entry = self.registry.get(tool_name)
        if entry is None:
            logger.warning(f"Unknown tool requested: {tool_name}")
            return Failure(
                kind=FailureKind.UNKNOWN_TOOL, message=f"Unknown tool: {tool_name}"
            )

        logger.debug(f"Dispatching {tool_name}")
        try:
            value = await entry.handler(*entry.bind(args or {}))
        except Exception as e:
            failure = Failure.from_error(e)
            if failure.kind is FailureKind.INTERNAL_ERROR:
                logger.exception(f"{tool_name} failed unexpectedly")
            else:
                logger.warning(f"{tool_name} failed: {failure.kind}: {failure.message}")
            return failure

        logger.info(f"{tool_name} completed")
        return Success(value=value)
