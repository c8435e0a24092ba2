"""Chat-completion calls against an OpenAI-compatible endpoint (OpenRouter by default)
and model discovery through the GitHub Models catalogue."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import LLMConfig
from ..constants import HTTP_REFERER
from ..errors import ApiError, AppError, ConfigurationError, ParsingError

logger = logging.getLogger(__name__)

RESEARCH_SYSTEM_PROMPT = (
    "You are a sophisticated AI research assistant. Provide comprehensive, "
    "well-structured and factual answers with concrete, current information. "
    "Cite notable sources where possible."
)


def select_model_for_task(
    config: LLMConfig, logical_task_name: str, default_model: str
) -> str:
    """Return the model mapped to ``logical_task_name`` or ``default_model``."""
    model = config.llm_mapping.get(logical_task_name)
    if model:
        logger.debug(f"Using mapped model {model} for task {logical_task_name}")
        return model
    if config.llm_mapping.get("default_generation"):
        return config.llm_mapping["default_generation"]
    return default_model


async def _chat_completion(
    messages: List[Dict[str, str]],
    model: str,
    config: LLMConfig,
    logical_task_name: str,
    temperature: float,
    client: Optional[httpx.AsyncClient],
) -> str:
    if not config.api_key:
        raise ConfigurationError(
            "OpenRouter API key (OPENROUTER_API_KEY) is not configured.",
            {"logical_task_name": logical_task_name},
        )

    context: Dict[str, Any] = {"model_used": model, "logical_task_name": logical_task_name}
    payload = {
        "model": model,
        "messages": messages,
        "max_tokens": config.max_tokens,
        "temperature": temperature,
    }
    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.api_key}",
        "HTTP-Referer": HTTP_REFERER,
    }
    url = f"{config.base_url.rstrip('/')}/chat/completions"

    try:
        if client is not None:
            response = await client.post(
                url, json=payload, headers=headers, timeout=config.timeout_seconds
            )
        else:
            async with httpx.AsyncClient(timeout=config.timeout_seconds) as http:
                response = await http.post(url, json=payload, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.error(f"LLM API call failed for {logical_task_name} with status {status}")
        raise ApiError(
            f"LLM API Error: Status {status}. {e}",
            status,
            {**context, "response_data": e.response.text},
            e,
        ) from e
    except httpx.HTTPError as e:
        logger.error(f"LLM API call failed for {logical_task_name}: {e!r}")
        raise ApiError(f"LLM API Error: Status N/A. {e!r}", None, context, e) from e
    except ValueError as e:
        raise ParsingError(
            "LLM response was not valid JSON", {**context, "error": str(e)}, e
        ) from e

    try:
        text = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        text = None
    if not isinstance(text, str) or not text.strip():
        logger.warning(f"Received empty or unexpected response structure from {model}")
        raise ParsingError(
            "Invalid API response structure received from LLM",
            {**context, "response_data": data},
        )

    logger.debug(f"LLM call for {logical_task_name} returned {len(text)} chars")
    return text.strip()


async def perform_direct_llm_call(
    prompt: str,
    system_prompt: str,
    config: LLMConfig,
    logical_task_name: str,
    temperature: float = 0.1,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Run one generation call and return the raw text response.

    Raises:
        ConfigurationError: no API key is configured.
        ApiError: the HTTP call failed.
        ParsingError: the response had no message content.
        AppError: any other failure, wrapped with the task name.
    """
    model = select_model_for_task(config, logical_task_name, config.default_model)
    logger.info(f"Selected model {model} for direct LLM call ({logical_task_name})")
    messages = [
        {"role": "system", "content": system_prompt},
        {"role": "user", "content": prompt},
    ]
    try:
        return await _chat_completion(
            messages, model, config, logical_task_name, temperature, client
        )
    except AppError:
        raise
    except Exception as e:
        raise AppError(
            f"LLM call failed for {logical_task_name}: {e}",
            {"model_used": model, "logical_task_name": logical_task_name},
            e,
        ) from e


async def perform_research_query(
    query: str,
    config: LLMConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> str:
    """Ask the research model one question and return its answer."""
    model = select_model_for_task(config, "research_query", config.research_model)
    messages = [
        {"role": "system", "content": RESEARCH_SYSTEM_PROMPT},
        {"role": "user", "content": query},
    ]
    try:
        return await _chat_completion(messages, model, config, "research_query", 0.1, client)
    except AppError:
        raise
    except Exception as e:
        raise AppError(
            f"Research query failed: {e}",
            {"model_used": model, "query": query},
            e,
        ) from e


async def update_available_models(
    config: LLMConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, str]:
    """Fetch the GitHub Models catalogue and return a ``name -> id`` mapping.

    The result has the shape of ``LLMConfig.llm_mapping``; callers decide
    whether to merge it in.

    Raises:
        ConfigurationError: no GitHub API key is configured.
        ApiError: the HTTP call failed.
        ParsingError: the response had no ``models`` list.
    """
    if not config.github_api_key:
        raise ConfigurationError("GitHub API key (GITHUB_API_KEY) is not configured.")

    headers = {
        "Content-Type": "application/json",
        "Authorization": f"Bearer {config.github_api_key}",
        "HTTP-Referer": HTTP_REFERER,
    }
    logger.debug(f"Refreshing available models from {config.models_url}")
    try:
        if client is not None:
            response = await client.get(
                config.models_url, headers=headers, timeout=config.timeout_seconds
            )
        else:
            async with httpx.AsyncClient(timeout=config.timeout_seconds) as http:
                response = await http.get(config.models_url, headers=headers)
        response.raise_for_status()
        data = response.json()
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        logger.error(f"GitHub Models API call failed with status {status}")
        raise ApiError(
            f"GitHub Models API Error: Status {status}. {e}",
            status,
            {"response_data": e.response.text},
            e,
        ) from e
    except httpx.HTTPError as e:
        logger.error(f"GitHub Models API call failed: {e!r}")
        raise ApiError(f"GitHub Models API Error: Status N/A. {e!r}", None, {}, e) from e
    except ValueError as e:
        raise ParsingError(
            "GitHub Models response was not valid JSON", {"error": str(e)}, e
        ) from e

    models = data.get("models") if isinstance(data, dict) else None
    if not isinstance(models, list):
        logger.warning("Received empty or unexpected response structure from GitHub Models API")
        raise ParsingError(
            "Invalid API response structure received from GitHub Models API",
            {"response_data": data},
        )

    mapping: Dict[str, str] = {}
    for model in models:
        if isinstance(model, dict) and model.get("name") and model.get("id"):
            mapping[str(model["name"])] = str(model["id"])
    logger.debug(f"Refreshed {len(mapping)} available models")
    return mapping
