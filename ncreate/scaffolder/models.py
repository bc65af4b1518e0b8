"""Pydantic v2 models for the two content sources.

``Template`` is read from a JSON definition on disk; ``ProjectStructure`` is
built from a single AI response.  AI-sourced models use strict validation so
a wrong type is rejected instead of being coerced into something plausible.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


class TemplateFile(BaseModel):
    """One file of a template; ``path`` and ``content`` may contain tokens."""

    path: str = Field(..., min_length=1, description="Relative path, may contain {{tokens}}")
    content: str = Field(default="", description="File body, may contain {{tokens}}")
    executable: bool = Field(default=False, description="Set the executable bit after writing")


class Template(BaseModel):
    """A named, ordered list of files plus default variable values."""

    name: str = Field(..., min_length=1, description="Unique template identifier")
    description: str = Field(default="", description="Informational only")
    files: list[TemplateFile] = Field(..., description="Creation order is list order")
    variables: dict[str, str] = Field(
        default_factory=dict,
        description="Default value for every variable the files reference",
    )


# ---------------------------------------------------------------------------
# AI-sourced structure
# ---------------------------------------------------------------------------


class FileSpec(BaseModel):
    """A file proposed by the AI collaborator. Content is used verbatim."""

    model_config = ConfigDict(strict=True)

    path: str
    content: str = ""
    executable: bool = False


class ProjectStructure(BaseModel):
    """Folders and files proposed by the AI collaborator for one project."""

    model_config = ConfigDict(strict=True)

    name: str = Field(..., min_length=1)
    folders: list[str] = Field(default_factory=list)
    files: list[FileSpec] = Field(default_factory=list)
