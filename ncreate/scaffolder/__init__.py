"""ncreate scaffolder -- rendering, normalisation and materialization.

Templates and AI-sourced structures are both turned into a
``MaterializationPlan`` which the ``Materializer`` applies to disk.

Quick usage::

    from ncreate.scaffolder import Materializer, TemplateRegistry, TemplateRenderer

    template = TemplateRegistry().load("python-cli")
    plan = TemplateRenderer().render(template, {"name": "todo"})
    result = await Materializer().apply(plan, "/tmp/todo")
"""

from ncreate.scaffolder.materializer import ConflictPolicy, Materializer, MaterializeResult
from ncreate.scaffolder.models import FileSpec, ProjectStructure, Template, TemplateFile
from ncreate.scaffolder.normalizer import normalize, parse_structure
from ncreate.scaffolder.paths import normalize_relative, resolve
from ncreate.scaffolder.plan import CreateDir, CreateFile, MaterializationPlan
from ncreate.scaffolder.registry import TemplateRegistry
from ncreate.scaffolder.renderer import TemplateRenderer

__all__ = [
    "ConflictPolicy",
    "CreateDir",
    "CreateFile",
    "FileSpec",
    "MaterializationPlan",
    "MaterializeResult",
    "Materializer",
    "ProjectStructure",
    "Template",
    "TemplateFile",
    "TemplateRegistry",
    "TemplateRenderer",
    "normalize",
    "normalize_relative",
    "parse_structure",
    "resolve",
]
