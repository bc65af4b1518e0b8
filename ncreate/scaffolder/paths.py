"""Lexical path validation for plan entries.

Both template paths and AI-sourced paths are untrusted: before anything is
written they are normalised here and confirmed to stay strictly below the
destination root.  Nothing in this module touches the filesystem.
"""

from __future__ import annotations

import os
import re
from pathlib import Path

from ncreate.errors import PathEscapeError

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def normalize_relative(requested: str) -> str:
    """Return *requested* as a normalised relative POSIX path.

    ``.`` segments and duplicate separators are dropped, ``..`` segments are
    collapsed, and backslashes count as separators.  Raises
    ``PathEscapeError`` for empty or absolute paths and for anything that
    climbs above its starting directory or collapses to the root itself.

    Examples::

        normalize_relative("src//./app/../main.py") -> "src/main.py"
        normalize_relative("../../etc/passwd")      -> PathEscapeError
    """
    if not isinstance(requested, str) or not requested.strip():
        raise PathEscapeError(str(requested), "path is empty")
    if "\x00" in requested:
        raise PathEscapeError(requested, "path contains a NUL byte")

    candidate = requested.replace("\\", "/")
    if candidate.startswith("/") or _DRIVE_RE.match(candidate):
        raise PathEscapeError(requested, "absolute paths are not allowed")

    parts: list[str] = []
    for part in candidate.split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if not parts:
                raise PathEscapeError(requested)
            parts.pop()
        else:
            parts.append(part)

    if not parts:
        raise PathEscapeError(requested, "path names the destination root itself")
    return "/".join(parts)


def resolve(root: str | Path, requested: str) -> Path:
    """Resolve *requested* against *root* into an absolute target path.

    The root is made absolute lexically (symlinks are not followed).  The
    returned path is always a strict descendant of the root.
    """
    base = Path(os.path.abspath(root))
    relative = normalize_relative(requested)
    target = base.joinpath(*relative.split("/"))
    if base not in target.parents:
        raise PathEscapeError(requested)
    return target
