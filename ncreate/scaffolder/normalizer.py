"""Turn an AI-sourced ``ProjectStructure`` into a materialization plan.

AI output is untrusted: the raw reply is validated field by field before a
``ProjectStructure`` exists, and every folder and file path is run through
the same lexical checks as template paths.
"""

from __future__ import annotations

import json
import re

from pydantic import ValidationError

from ncreate.errors import ProviderError
from ncreate.scaffolder.models import ProjectStructure
from ncreate.scaffolder.paths import normalize_relative
from ncreate.scaffolder.plan import CreateDir, CreateFile, MaterializationPlan, PlanEntry


def normalize(structure: ProjectStructure) -> MaterializationPlan:
    """Build a plan: every folder first (given order), then every file.

    Raises ``PathEscapeError`` if any folder or file path is absolute or
    escapes the destination root.
    """
    entries: list[PlanEntry] = [CreateDir(normalize_relative(folder)) for folder in structure.folders]
    entries.extend(
        CreateFile(
            path=normalize_relative(spec.path),
            content=spec.content,
            executable=spec.executable,
        )
        for spec in structure.files
    )
    return MaterializationPlan.of(entries)


_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL)


def parse_structure(raw: str) -> ProjectStructure:
    """Parse an AI reply into a validated ``ProjectStructure``.

    The reply is used as-is when it is valid JSON.  Otherwise a single
    markdown fence wrapping the whole reply is removed, and the first JSON
    object in what remains is decoded.  File contents are never rewritten.

    Raises:
        ProviderError: The reply holds no JSON object or it does not match
            the expected shape.
    """
    text = raw.strip()
    if not text:
        raise ProviderError("empty response")

    payload = text
    try:
        json.loads(payload)
    except json.JSONDecodeError:
        fenced = _FENCE_RE.fullmatch(text)
        if fenced is not None:
            text = fenced.group(1)
            if not text:
                raise ProviderError("empty response") from None
        start = text.find("{")
        if start < 0:
            raise ProviderError("response does not contain a JSON object") from None
        try:
            _, end = json.JSONDecoder().raw_decode(text, start)
        except json.JSONDecodeError as exc:
            raise ProviderError(f"response does not contain a JSON object ({exc})") from exc
        payload = text[start:end]

    try:
        return ProjectStructure.model_validate_json(payload)
    except ValidationError as exc:
        raise ProviderError(f"invalid project structure: {_summarize(exc)}") from exc


def _summarize(exc: ValidationError) -> str:
    """Condense a pydantic error list into one line."""
    parts = []
    for err in exc.errors()[:3]:
        loc = ".".join(str(p) for p in err.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {err.get('msg', 'invalid')}")
    if len(exc.errors()) > 3:
        parts.append(f"... {len(exc.errors()) - 3} more")
    return "; ".join(parts)
