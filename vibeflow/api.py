"""HTTP surface: tool invocation, job polling, progress streams and workflows."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field

from .contracts import JobHandle
from .errors import AppError, ConfigurationError, ToolNotFoundError, ToolValidationError
from .runtime import Runtime, get_runtime

logger = logging.getLogger(__name__)


class ToolCallRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    params: Dict[str, Any] = Field(default_factory=dict)
    session_id: str = Field(default="default", alias="sessionId")


class WorkflowRunRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    input: Dict[str, Any] = Field(default_factory=dict)
    session_id: str = Field(default="default", alias="sessionId")


def _status_for(exc: AppError) -> int:
    if isinstance(exc, ToolNotFoundError):
        return 404
    if isinstance(exc, ToolValidationError):
        return 422
    if isinstance(exc, ConfigurationError):
        return 500
    return 400


def _runtime(request: Request) -> Runtime:
    return request.app.state.runtime


def _outcome_response(outcome: Any) -> JSONResponse:
    if isinstance(outcome, JobHandle):
        return JSONResponse(status_code=202, content=outcome.model_dump(by_alias=True))
    return JSONResponse(
        status_code=200, content=outcome.model_dump(mode="json", by_alias=True, exclude_none=True)
    )


def create_app(runtime: Optional[Runtime] = None) -> FastAPI:
    """Build the FastAPI application around ``runtime`` (default: the global one)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.runtime is None:
            app.state.runtime = get_runtime()
        rt: Runtime = app.state.runtime
        await rt.start()
        logger.info("vibeflow API ready")
        yield
        logger.info("Shutting down vibeflow API")
        await rt.stop()

    app = FastAPI(
        title="vibeflow",
        description="Background AI document generation jobs and declarative workflows.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.runtime = runtime

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        status_code = _status_for(exc)
        log_fn = logger.error if status_code >= 500 else logger.warning
        log_fn(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(status_code=status_code, content={"error": exc.to_detail()})

    @app.get("/tools")
    async def list_tools(request: Request) -> List[Dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.input_schema(),
            }
            for tool in _runtime(request).registry.tools()
        ]

    @app.post("/tools/{name}")
    async def call_tool(name: str, body: ToolCallRequest, request: Request) -> JSONResponse:
        outcome = await _runtime(request).invoke_tool(name, body.params, body.session_id)
        return _outcome_response(outcome)

    @app.get("/jobs")
    async def list_jobs(request: Request) -> List[Dict[str, Any]]:
        return [
            {
                "id": job.id,
                "tool_name": job.tool_name,
                "status": job.status.value,
                "updated_at": job.updated_at.isoformat(),
            }
            for job in _runtime(request).job_manager.list_jobs()
        ]

    @app.get("/jobs/{job_id}")
    async def get_job(job_id: str, request: Request) -> Dict[str, Any]:
        job = _runtime(request).job_manager.get_job(job_id)
        if job is None:
            raise HTTPException(status_code=404, detail=f"Job with ID {job_id} not found")
        return job.model_dump(mode="json", by_alias=True, exclude_none=True)

    @app.get("/sessions/{session_id}/events")
    async def session_events(session_id: str, request: Request) -> StreamingResponse:
        subscription = await _runtime(request).notifier.subscribe(session_id)

        async def stream():
            try:
                async for event in subscription:
                    yield f"data: {event.to_json()}\n\n"
            finally:
                await subscription.close()

        return StreamingResponse(
            stream(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache"},
        )

    @app.get("/workflows")
    async def list_workflows(request: Request) -> List[Dict[str, Any]]:
        return [
            {
                "name": definition.name,
                "description": definition.description,
                "inputSchema": definition.input_schema,
                "steps": definition.step_ids(),
            }
            for definition in _runtime(request).workflows.values()
        ]

    @app.post("/workflows/{name}/run")
    async def run_workflow(name: str, body: WorkflowRunRequest, request: Request) -> JSONResponse:
        rt = _runtime(request)
        if name not in rt.workflows:
            raise HTTPException(status_code=404, detail=f"Workflow '{name}' not found")
        outcome = await rt.invoke_tool(
            "run-workflow",
            {"workflowName": name, "workflowInput": body.input},
            body.session_id,
        )
        return _outcome_response(outcome)

    return app
