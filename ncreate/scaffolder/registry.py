"""Lookup of JSON template definitions by name.

Templates live as ``<name>.json`` files.  The registry searches an ordered
list of directories -- normally the user's template directory followed by
the templates bundled with the package -- and the first match wins.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from pathlib import Path

from pydantic import ValidationError

from ncreate.config import Config
from ncreate.errors import IoFailureError, MalformedTemplateError, TemplateNotFoundError
from ncreate.scaffolder.models import Template

BUILTIN_TEMPLATE_DIR = Path(__file__).parent / "templates"

_SUFFIX = ".json"


class TemplateRegistry:
    """Read-only view over one or more template directories."""

    def __init__(self, search_dirs: Sequence[str | Path] | None = None) -> None:
        if search_dirs is None:
            search_dirs = [BUILTIN_TEMPLATE_DIR]
        self.search_dirs = [Path(d) for d in search_dirs]

    @classmethod
    def from_config(cls, config: Config) -> "TemplateRegistry":
        """User templates first, then the bundled ones."""
        return cls([config.templates_dir, BUILTIN_TEMPLATE_DIR])

    def list(self) -> Iterator[str]:
        """Yield every available template name, alphabetically.

        The directories are scanned when iteration starts, so each call sees
        the current state of disk.
        """
        names: set[str] = set()
        for directory in self.search_dirs:
            if not directory.is_dir():
                continue
            names.update(p.stem for p in directory.glob(f"*{_SUFFIX}") if p.is_file())
        yield from sorted(names)

    def find(self, name: str) -> Path:
        """Return the definition file for *name*.

        Raises:
            TemplateNotFoundError: No directory holds ``<name>.json``, or
                *name* is not a plain file name.
        """
        if not name or name.startswith(".") or "/" in name or "\\" in name:
            raise TemplateNotFoundError(name, self.search_dirs)
        for directory in self.search_dirs:
            candidate = directory / f"{name}{_SUFFIX}"
            if candidate.is_file():
                return candidate
        raise TemplateNotFoundError(name, self.search_dirs)

    def load(self, name: str) -> Template:
        """Load and validate the template called *name*. No rendering happens.

        Raises:
            TemplateNotFoundError: See :meth:`find`.
            MalformedTemplateError: The file is not valid JSON, misses
                ``name``/``files``, or declares a different name.
        """
        path = self.find(name)
        return load_template_file(path, expected_name=name)


def load_template_file(path: str | Path, expected_name: str | None = None) -> Template:
    """Parse a single template definition file."""
    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise IoFailureError(path, exc) from exc
    except UnicodeDecodeError as exc:
        raise MalformedTemplateError(str(path), "not valid UTF-8") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise MalformedTemplateError(str(path), f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedTemplateError(str(path), "top-level value must be an object")

    try:
        template = Template.model_validate(data)
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in exc.errors()
        )
        raise MalformedTemplateError(str(path), problems) from exc

    if expected_name is not None and template.name != expected_name:
        raise MalformedTemplateError(
            str(path), f"declares name {template.name!r}, expected {expected_name!r}"
        )
    return template
