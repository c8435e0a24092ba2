"""Saving generated documents under the output directory."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Optional

from anyio import Path

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str, max_length: int = 50) -> str:
    slug = _SLUG_RE.sub("-", text.lower()).strip("-")
    return slug[:max_length].rstrip("-") or "untitled"


def output_filename(description: str, suffix: str, now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H-%M-%S")
    return f"{stamp}-{slugify(description)}-{suffix}.md"


async def save_document(
    output_dir: str, subdir: str, description: str, suffix: str, content: str
) -> str:
    """Write ``content`` to ``<output_dir>/<subdir>/<stamp>-<slug>-<suffix>.md``."""
    directory = Path(output_dir) / subdir
    await directory.mkdir(parents=True, exist_ok=True)
    path = directory / output_filename(description, suffix)
    await path.write_text(content, encoding="utf-8")
    return str(path)
