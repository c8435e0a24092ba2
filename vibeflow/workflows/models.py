"""Declarative workflow definitions and run results."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..contracts import JobStatus
from ..errors import TemplateResolutionError
from ..templates import find_step_references


class WorkflowStep(BaseModel):
    """Defines one step in a workflow."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(pattern=r"^[A-Za-z0-9_\-]+$")
    tool_name: str = Field(alias="toolName", min_length=1)
    params: Dict[str, Any] = Field(default_factory=dict)


class WorkflowOutput(BaseModel):
    """Templates rendered against the finished run."""

    model_config = ConfigDict(frozen=True)

    summary: str = ""
    details: List[str] = Field(default_factory=list)


class WorkflowDefinition(BaseModel):
    """Ordered list of tool invocations sharing one execution context."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    description: str = ""
    input_schema: Dict[str, Any] = Field(default_factory=dict, alias="inputSchema")
    steps: List[WorkflowStep] = Field(min_length=1)
    output: WorkflowOutput = Field(default_factory=WorkflowOutput)

    @model_validator(mode="after")
    def _check_step_references(self) -> "WorkflowDefinition":
        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                raise ValueError(f"Duplicate step id '{step.id}' in workflow {self.name}")
            try:
                references = find_step_references(step.params)
            except TemplateResolutionError as e:
                raise ValueError(f"Step '{step.id}': {e.message}") from e
            unknown = sorted(references - seen)
            if unknown:
                raise ValueError(
                    f"Step '{step.id}' references steps that do not run before it: {', '.join(unknown)}"
                )
            seen.add(step.id)
        return self

    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]


class StepTrace(BaseModel):
    """Outcome of one attempted step."""

    step_id: str
    tool_name: str
    status: JobStatus
    job_id: Optional[str] = None
    error: Optional[Dict[str, Any]] = None


class WorkflowResult(BaseModel):
    """Final state of a workflow run."""

    workflow_name: str
    status: JobStatus
    summary: str = ""
    details: List[str] = Field(default_factory=list)
    trace: List[StepTrace] = Field(default_factory=list)
    outputs: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[Dict[str, Any]] = None

    @property
    def succeeded(self) -> bool:
        return self.status == JobStatus.COMPLETED
