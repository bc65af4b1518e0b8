"""Jinja2 rendering of template definitions into materialization plans.

Tokens are Jinja2 expressions, so ``{{name}}``, ``{{ name }}`` and
``{{ name | snake_case }}`` all work.  Every path and content string is
parsed and checked for unbound names before anything is rendered; a render
either returns a complete plan or raises.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from jinja2 import Environment, StrictUndefined, TemplateError, TemplateSyntaxError, meta
from jinja2.nodes import Template as TemplateAST

from ncreate.errors import MalformedTemplateError, PathEscapeError, UnresolvedVariableError
from ncreate.scaffolder.models import Template
from ncreate.scaffolder.paths import normalize_relative
from ncreate.scaffolder.plan import CreateFile, MaterializationPlan


# ---------------------------------------------------------------------------
# TemplateRenderer
# ---------------------------------------------------------------------------


class TemplateRenderer:
    """Renders ``Template`` definitions with a variable mapping.

    Rendered output is never re-scanned, so a variable whose value contains
    ``{{...}}`` is written literally.
    """

    def __init__(self) -> None:
        self.env = Environment(
            autoescape=False,
            block_start_string="{{%",
            block_end_string="%}}",
            comment_start_string="{{#",
            comment_end_string="#}}",
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = _slugify_filter
        self.env.filters["pascal_case"] = _pascal_case_filter
        self.env.filters["snake_case"] = _snake_case_filter
        self.env.filters["camel_case"] = _camel_case_filter

    def render(
        self,
        template: Template,
        overrides: Mapping[str, str] | None = None,
    ) -> MaterializationPlan:
        """Render every file of *template* into a ``CreateFile`` plan entry.

        Args:
            template: The template definition.
            overrides: Values supplied at render time; they win over the
                template's own defaults.

        Returns:
            A plan with one entry per template file, in template order.

        Raises:
            UnresolvedVariableError: A token names a variable with no value.
            MalformedTemplateError: A path or content string does not parse.
            PathEscapeError: A rendered path leaves the destination root.
        """
        variables = {**template.variables, **(overrides or {})}

        # Validate everything up front so no partial plan can be produced.
        for index, tf in enumerate(template.files):
            for field_name, source in (("path", tf.path), ("content", tf.content)):
                ast = self._parse(source, f"{template.name!r} files[{index}].{field_name}")
                missing = sorted(meta.find_undeclared_variables(ast) - variables.keys())
                if missing:
                    raise UnresolvedVariableError(missing[0], index, template.name)

        entries: list[CreateFile] = []
        for index, tf in enumerate(template.files):
            label = f"{template.name!r} files[{index}]"
            rendered_path = self._render_string(tf.path, variables, f"{label}.path")
            content = self._render_string(tf.content, variables, f"{label}.content")
            try:
                path = normalize_relative(rendered_path)
            except PathEscapeError as exc:
                raise PathEscapeError(exc.path, f"{exc.reason} (file #{index})") from None
            entries.append(CreateFile(path=path, content=content, executable=tf.executable))

        return MaterializationPlan.of(entries)

    # -- Internal ----------------------------------------------------------

    def _parse(self, source: str, label: str) -> TemplateAST:
        try:
            return self.env.parse(source)
        except TemplateSyntaxError as exc:
            raise MalformedTemplateError(label, f"line {exc.lineno}: {exc.message}") from exc

    def _render_string(self, source: str, variables: Mapping[str, str], label: str) -> str:
        try:
            return self.env.from_string(source).render(**variables)
        except TemplateError as exc:
            raise MalformedTemplateError(label, str(exc)) from exc


# ---------------------------------------------------------------------------
# Jinja2 custom filters
# ---------------------------------------------------------------------------

def _slugify_filter(value: str) -> str:
    """Convert a string to a URL/filename-safe slug."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower().strip())
    return slug.strip("-")


def _pascal_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``SomeThing``."""
    parts = re.split(r"[-_\s]+", value)
    return "".join(word.capitalize() for word in parts if word)


def _snake_case_filter(value: str) -> str:
    """Convert ``SomeThing`` or ``some-thing`` to ``some_thing``."""
    s1 = re.sub(r"(.)([A-Z][a-z]+)", r"\1_\2", value)
    s2 = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", s1)
    return re.sub(r"[-\s_]+", "_", s2).lower()


def _camel_case_filter(value: str) -> str:
    """Convert ``some-thing`` or ``some_thing`` to ``someThing``."""
    pascal = _pascal_case_filter(value)
    if pascal:
        return pascal[0].lower() + pascal[1:]
    return ""
