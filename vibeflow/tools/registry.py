"""Name -> tool mapping resolved at startup."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..config import VibeflowConfig
from ..contracts import ToolContext
from ..errors import ToolNotFoundError
from .base import Tool, ToolOutcome

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Registered tools keyed by name."""

    def __init__(self) -> None:
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> Tool:
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name} is already registered")
        self._tools[tool.name] = tool
        logger.debug(f"Registered tool {tool.name}")
        return tool

    def get(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(f"Tool '{name}' not found", {"tool_name": name})
        return tool

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def tools(self) -> List[Tool]:
        return [self._tools[name] for name in sorted(self._tools)]

    async def invoke(
        self,
        name: str,
        params: Optional[Dict[str, Any]],
        config: VibeflowConfig,
        context: ToolContext,
    ) -> ToolOutcome:
        """Validate ``params`` against the tool's schema, then execute it."""
        tool = self.get(name)
        validated = tool.validate_input(params)
        logger.info(f"Invoking tool {name} for session {context.session_id}")
        return await tool.execute(validated, config, context)
