"""Loading workflow definitions from YAML or JSON files."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Iterable

import yaml
from pydantic import ValidationError

from ..errors import ConfigurationError
from .models import WorkflowDefinition

logger = logging.getLogger(__name__)


def _entries(data: Any, path: str) -> Iterable[Dict[str, Any]]:
    if isinstance(data, dict) and "workflows" in data:
        data = data["workflows"]

    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        entries = []
        for name, body in data.items():
            if not isinstance(body, dict):
                raise ConfigurationError(
                    f"Workflow '{name}' in {path} must be a mapping", {"path": path}
                )
            entries.append({"name": name, **body})
        return entries
    raise ConfigurationError(
        f"Workflow file {path} must contain a mapping or a list of workflows",
        {"path": path},
    )


def parse_workflows(data: Any, source: str = "<memory>") -> Dict[str, WorkflowDefinition]:
    """Validate raw workflow documents and index them by name."""
    workflows: Dict[str, WorkflowDefinition] = {}
    for entry in _entries(data, source):
        name = entry.get("name", "<unnamed>") if isinstance(entry, dict) else "<invalid>"
        try:
            definition = WorkflowDefinition.model_validate(entry)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid workflow '{name}' in {source}: {e}",
                {"path": source, "workflow": name},
                e,
            ) from e
        if definition.name in workflows:
            raise ConfigurationError(
                f"Duplicate workflow name '{definition.name}' in {source}",
                {"path": source, "workflow": definition.name},
            )
        workflows[definition.name] = definition
    return workflows


def load_workflows(path: str) -> Dict[str, WorkflowDefinition]:
    """Read workflow definitions from ``path``.

    A missing file yields no workflows. ``.json`` files are parsed as JSON,
    everything else as YAML.
    """
    if not os.path.exists(path):
        logger.warning(f"Workflow file {path} not found; no workflows loaded")
        return {}

    with open(path, encoding="utf-8") as f:
        try:
            if path.endswith(".json"):
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise ConfigurationError(
                f"Could not parse workflow file {path}: {e}", {"path": path}, e
            ) from e

    workflows = parse_workflows(data or {}, path)
    logger.info(f"Loaded {len(workflows)} workflow(s) from {path}")
    return workflows
