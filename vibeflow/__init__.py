"""vibeflow: background AI generation jobs and declarative workflows."""

from .config import VibeflowConfig, load_config
from .contracts import JobHandle, JobStatus, ProgressEvent, ToolContext, ToolResult
from .jobs import JobManager, get_job_manager
from .notifier import get_notifier
from .phases import run_resilient_phase
from .runtime import Runtime, get_runtime
from .templates import resolve_params
from .workflows import WorkflowDefinition, WorkflowExecutor, load_workflows

__version__ = "0.1.0"
__all__ = [
    "JobHandle",
    "JobManager",
    "JobStatus",
    "ProgressEvent",
    "Runtime",
    "ToolContext",
    "ToolResult",
    "VibeflowConfig",
    "WorkflowDefinition",
    "WorkflowExecutor",
    "get_job_manager",
    "get_notifier",
    "get_runtime",
    "load_config",
    "load_workflows",
    "resolve_params",
    "run_resilient_phase",
]
