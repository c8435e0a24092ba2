"""Tool contract, registry and built-in tools."""

from __future__ import annotations

from typing import Mapping, Optional

from ..jobs import JobManager
from ..notifier import BaseProgressNotifier
from ..workflows import WorkflowDefinition, WorkflowExecutor
from .base import Tool, ToolOutcome
from .generators import GeneratePRDTool, GenerateRulesTool, GenerateUserStoriesTool
from .jobs import GetJobResultTool
from .registry import ToolRegistry
from .workflow import RunWorkflowTool


def register_builtin_tools(
    registry: ToolRegistry,
    job_manager: JobManager,
    notifier: Optional[BaseProgressNotifier],
    executor: WorkflowExecutor,
    workflows: Mapping[str, WorkflowDefinition],
) -> ToolRegistry:
    """Register every built-in tool on ``registry``."""
    registry.register(GenerateUserStoriesTool(job_manager, notifier))
    registry.register(GeneratePRDTool(job_manager, notifier))
    registry.register(GenerateRulesTool(job_manager, notifier))
    registry.register(GetJobResultTool(job_manager))
    registry.register(RunWorkflowTool(job_manager, notifier, executor, workflows))
    return registry


__all__ = [
    "GeneratePRDTool",
    "GenerateRulesTool",
    "GenerateUserStoriesTool",
    "GetJobResultTool",
    "RunWorkflowTool",
    "Tool",
    "ToolOutcome",
    "ToolRegistry",
    "register_builtin_tools",
]
