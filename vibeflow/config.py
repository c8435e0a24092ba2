from __future__ import annotations

import os
from typing import Dict, Literal, Optional

import yaml
from pydantic import BaseModel, Field

from .constants import (
    DEFAULT_GENERATION_MODEL,
    DEFAULT_JOB_TTL_SECONDS,
    DEFAULT_LLM_BASE_URL,
    DEFAULT_LLM_MAX_TOKENS,
    DEFAULT_LLM_TIMEOUT_SECONDS,
    DEFAULT_MODELS_URL,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_RESEARCH_MODEL,
    DEFAULT_STEP_TIMEOUT_SECONDS,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
)


class LLMConfig(BaseModel):
    """Provider and model selection for LLM calls."""

    base_url: str = DEFAULT_LLM_BASE_URL
    api_key: Optional[str] = None
    default_model: str = DEFAULT_GENERATION_MODEL
    research_model: str = DEFAULT_RESEARCH_MODEL
    llm_mapping: Dict[str, str] = Field(
        default_factory=dict,
        description="Logical task name -> model identifier",
    )
    timeout_seconds: float = DEFAULT_LLM_TIMEOUT_SECONDS
    max_tokens: int = DEFAULT_LLM_MAX_TOKENS
    models_url: str = DEFAULT_MODELS_URL
    github_api_key: Optional[str] = None


class JobsConfig(BaseModel):
    """Retention settings for the in-memory job store."""

    ttl_seconds: float = DEFAULT_JOB_TTL_SECONDS
    sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS


class WorkflowsConfig(BaseModel):
    """Where workflow definitions live and how steps are bounded."""

    path: str = "workflows.yaml"
    step_timeout_seconds: float = DEFAULT_STEP_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS


class RedisConfig(BaseModel):
    """Configuration for the Redis progress channel."""

    host: str = "localhost"
    port: int = 6379
    db: int = 0
    password: Optional[str] = None


class NotifierConfig(BaseModel):
    """Progress notifier backend settings."""

    backend: Literal["inmemory", "redis"] = "inmemory"
    redis: RedisConfig = Field(default_factory=RedisConfig)


class VibeflowConfig(BaseModel):
    """Top-level configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig)
    jobs: JobsConfig = Field(default_factory=JobsConfig)
    workflows: WorkflowsConfig = Field(default_factory=WorkflowsConfig)
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)
    output_dir: str = DEFAULT_OUTPUT_DIR
    log_level: str = "INFO"


def load_config(path: Optional[str] = None) -> VibeflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to VIBEFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("VIBEFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = VibeflowConfig(**data)
    else:
        config = VibeflowConfig()

    if api_key := os.getenv("OPENROUTER_API_KEY"):
        config.llm.api_key = api_key
    if base_url := os.getenv("OPENROUTER_BASE_URL"):
        config.llm.base_url = base_url
    if github_api_key := os.getenv("GITHUB_API_KEY"):
        config.llm.github_api_key = github_api_key
    if output_dir := os.getenv("VIBEFLOW_OUTPUT_DIR"):
        config.output_dir = output_dir
    if workflows_path := os.getenv("VIBEFLOW_WORKFLOWS"):
        config.workflows.path = workflows_path
    if log_level := os.getenv("LOG_LEVEL"):
        config.log_level = log_level.upper()
    return config
