"""LLM access used by the generation tools."""

from .client import (
    perform_direct_llm_call,
    perform_research_query,
    select_model_for_task,
    update_available_models,
)

__all__ = [
    "perform_direct_llm_call",
    "perform_research_query",
    "select_model_for_task",
    "update_available_models",
]
