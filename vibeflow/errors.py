"""Error hierarchy shared by jobs, tools and workflows."""

from __future__ import annotations

from typing import Any, Dict, Optional


class AppError(Exception):
    """Base error carrying a context dict and an optional cause."""

    def __init__(
        self,
        message: str,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_detail(self) -> Dict[str, Any]:
        """Structured form stored on failed jobs."""
        detail: Dict[str, Any] = {
            "type": type(self).__name__,
            "message": self.message,
            "context": self.context,
        }
        if self.cause is not None and "cause" not in self.context:
            detail["cause"] = error_detail(self.cause)
        return detail


class ConfigurationError(AppError):
    """Missing or invalid setup, e.g. an absent credential."""


class ApiError(AppError):
    """An upstream HTTP call failed."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message, context, cause)
        self.status_code = status_code

    def to_detail(self) -> Dict[str, Any]:
        detail = super().to_detail()
        detail["status_code"] = self.status_code
        return detail


class ParsingError(AppError):
    """An upstream response did not have the expected shape."""


class ToolExecutionError(AppError):
    """A tool's body failed while running."""


class ToolNotFoundError(AppError):
    """No tool is registered under the requested name."""


class ToolValidationError(AppError):
    """Tool parameters did not match the tool's input model."""


class TemplateResolutionError(AppError):
    """A placeholder could not be resolved against the execution context."""


class WorkflowStepError(AppError):
    """A workflow step failed; remaining steps are skipped."""

    def __init__(
        self,
        message: str,
        step_id: str,
        tool_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        merged = {"step_id": step_id, "tool_name": tool_name}
        merged.update(context or {})
        super().__init__(message, merged, cause)
        self.step_id = step_id
        self.tool_name = tool_name


def error_detail(exc: BaseException) -> Dict[str, Any]:
    """Return a structured detail dict for any exception."""
    if isinstance(exc, AppError):
        return exc.to_detail()
    return {"type": type(exc).__name__, "message": str(exc), "context": {}}
