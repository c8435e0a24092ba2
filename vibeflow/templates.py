"""Placeholder substitution for workflow step parameters.

Two placeholder forms are understood::

    {{workflow.input.<path>}}
    {{steps.<stepId>.output.<path>}}

``<path>`` is a dotted list of keys where each key may carry list indices,
e.g. ``content[0].text``. A string that is exactly one placeholder is
replaced by the referenced value itself (keeping its type); placeholders
inside longer text are stringified and spliced in. Anything that cannot be
resolved raises ``TemplateResolutionError``; nothing is ever partially
substituted.
"""

from __future__ import annotations

import json
import re
from typing import Any, List, Set, Tuple, Union

from .contracts import ExecutionContext
from .errors import TemplateResolutionError

PLACEHOLDER_RE = re.compile(r"\{\{([^{}]*)\}\}")
SEGMENT_RE = re.compile(r"([A-Za-z0-9_\-]+)((?:\[\d+\])*)")
INDEX_RE = re.compile(r"\[(\d+)\]")

PathToken = Union[str, int]


def _parse_expression(expression: str) -> Tuple[str, str | None, List[PathToken]]:
    """Split a placeholder body into (root, step id, path tokens)."""
    expr = expression.strip()
    if not expr:
        raise TemplateResolutionError("Empty placeholder", {"placeholder": expression})

    segments: List[Tuple[str, List[int]]] = []
    for part in expr.split("."):
        match = SEGMENT_RE.fullmatch(part)
        if match is None:
            raise TemplateResolutionError(
                f"Malformed placeholder path: {expr}", {"placeholder": expr}
            )
        indices = [int(i) for i in INDEX_RE.findall(match.group(2))]
        segments.append((match.group(1), indices))

    def _tokens(rest: List[Tuple[str, List[int]]]) -> List[PathToken]:
        tokens: List[PathToken] = []
        for name, indices in rest:
            tokens.append(name)
            tokens.extend(indices)
        return tokens

    head = [name for name, _ in segments[:3]]
    head_indexed = any(indices for _, indices in segments[:2])

    if head[:2] == ["workflow", "input"] and not head_indexed:
        return "input", None, _tokens(segments[2:])

    if (
        len(segments) >= 3
        and head[0] == "steps"
        and head[2] == "output"
        and not head_indexed
        and not segments[2][1]
    ):
        return "steps", head[1], _tokens(segments[3:])

    raise TemplateResolutionError(
        f"Unknown placeholder root in {{{{{expr}}}}}; expected workflow.input.* or steps.<id>.output.*",
        {"placeholder": expr},
    )


def _walk(value: Any, tokens: List[PathToken], expression: str) -> Any:
    current = value
    for token in tokens:
        if isinstance(token, int):
            if not isinstance(current, list) or token >= len(current):
                raise TemplateResolutionError(
                    f"Index [{token}] not found while resolving {expression}",
                    {"placeholder": expression},
                )
            current = current[token]
        else:
            if not isinstance(current, dict) or token not in current:
                raise TemplateResolutionError(
                    f"Key '{token}' not found while resolving {expression}",
                    {"placeholder": expression},
                )
            current = current[token]
    return current


def resolve_placeholder(expression: str, context: ExecutionContext) -> Any:
    """Return the value a single placeholder body refers to."""
    root, step_id, tokens = _parse_expression(expression)
    expr = expression.strip()
    if root == "input":
        return _walk(context.workflow_input, tokens, expr)

    if step_id not in context.step_outputs:
        raise TemplateResolutionError(
            f"Step '{step_id}' has not completed or does not exist (referenced by {expr})",
            {"placeholder": expr, "step_id": step_id},
        )
    return _walk(context.step_outputs[step_id], tokens, expr)


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def _check_unterminated(text: str) -> None:
    remainder = PLACEHOLDER_RE.sub("", text)
    if "{{" in remainder:
        raise TemplateResolutionError(
            f"Unterminated placeholder in: {text}", {"template": text}
        )


def _resolve_string(text: str, context: ExecutionContext) -> Any:
    _check_unterminated(text)
    whole = PLACEHOLDER_RE.fullmatch(text)
    if whole is not None:
        return resolve_placeholder(whole.group(1), context)
    return PLACEHOLDER_RE.sub(
        lambda m: _stringify(resolve_placeholder(m.group(1), context)), text
    )


def resolve_params(value: Any, context: ExecutionContext) -> Any:
    """Return a copy of ``value`` with every placeholder substituted."""
    if isinstance(value, str):
        return _resolve_string(value, context)
    if isinstance(value, dict):
        return {key: resolve_params(item, context) for key, item in value.items()}
    if isinstance(value, list):
        return [resolve_params(item, context) for item in value]
    return value


def find_step_references(value: Any) -> Set[str]:
    """Return the step ids referenced anywhere inside ``value``."""
    references: Set[str] = set()
    if isinstance(value, str):
        _check_unterminated(value)
        for match in PLACEHOLDER_RE.finditer(value):
            root, step_id, _ = _parse_expression(match.group(1))
            if root == "steps" and step_id is not None:
                references.add(step_id)
    elif isinstance(value, dict):
        for item in value.values():
            references |= find_step_references(item)
    elif isinstance(value, list):
        for item in value:
            references |= find_step_references(item)
    return references


def render_template(text: str, context: ExecutionContext) -> str:
    """Resolve ``text`` and always return a string."""
    return _stringify(_resolve_string(text, context))
