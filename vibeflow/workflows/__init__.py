"""Declarative workflows chaining tool invocations."""

from .executor import WorkflowExecutor
from .loader import load_workflows, parse_workflows
from .models import (
    StepTrace,
    WorkflowDefinition,
    WorkflowOutput,
    WorkflowResult,
    WorkflowStep,
)

__all__ = [
    "StepTrace",
    "WorkflowDefinition",
    "WorkflowExecutor",
    "WorkflowOutput",
    "WorkflowResult",
    "WorkflowStep",
    "load_workflows",
    "parse_workflows",
]
