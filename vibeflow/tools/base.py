"""Tool contract implemented once per tool."""

from __future__ import annotations

import abc
from typing import Any, ClassVar, Dict, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from ..config import VibeflowConfig
from ..contracts import JobHandle, ToolContext, ToolResult
from ..errors import ToolValidationError

ToolOutcome = Union[ToolResult, JobHandle]


class Tool(metaclass=abc.ABCMeta):
    """A named operation callable directly or as a workflow step."""

    name: ClassVar[str]
    description: ClassVar[str] = ""
    input_model: ClassVar[Type[BaseModel]]

    def validate_input(self, params: Optional[Dict[str, Any]]) -> BaseModel:
        """Parse ``params`` into the tool's input model."""
        try:
            return self.input_model.model_validate(params or {})
        except ValidationError as e:
            raise ToolValidationError(
                f"Invalid input for tool {self.name}: {e.error_count()} error(s)",
                {"tool_name": self.name, "errors": e.errors(include_url=False, include_context=False)},
                e,
            ) from e

    @abc.abstractmethod
    async def execute(
        self, params: Any, config: VibeflowConfig, context: ToolContext
    ) -> ToolOutcome:
        """Run the tool with validated ``params``."""
        raise NotImplementedError

    def input_schema(self) -> Dict[str, Any]:
        return self.input_model.model_json_schema(by_alias=True)
