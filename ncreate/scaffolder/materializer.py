"""Apply a ``MaterializationPlan`` to disk as a best-effort transaction.

The materializer is the only component that writes to the filesystem.  An
``apply`` call runs in three steps:

1. **Pre-flight** -- resolve every entry against the root and detect
   conflicts.  Nothing has been written if this step raises.
2. **Apply** -- create entries strictly in plan order, recording every path
   this call creates (the root included, when it was missing).
3. **Rollback** -- on an ``OSError`` the recorded paths are removed in
   reverse order and the failure surfaces as ``IoFailureError``.  Entries
   that existed before the call are never touched.

Interrupting the process mid-apply (signals, ``KeyboardInterrupt``) skips
rollback and can leave a partial tree behind.
"""

from __future__ import annotations

import asyncio
import errno
import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from ncreate.errors import ConflictKindError, IoFailureError, TargetExistsError
from ncreate.scaffolder.paths import resolve
from ncreate.scaffolder.plan import CreateDir, CreateFile, MaterializationPlan, PlanEntry


class ConflictPolicy(str, Enum):
    """What to do when a file the plan creates already exists."""

    FAIL = "fail"
    SKIP = "skip"


@dataclass(frozen=True)
class PlannedAction:
    """A plan entry resolved to its absolute target by the pre-flight pass."""

    entry: PlanEntry
    target: Path
    skip: bool = False

    @property
    def kind(self) -> str:
        return "dir" if isinstance(self.entry, CreateDir) else "file"


@dataclass
class MaterializeResult:
    """Outcome of a successful ``apply``."""

    root: Path
    created: list[Path] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Materializer
# ---------------------------------------------------------------------------


class Materializer:
    """Creates the directories and files of a plan under a destination root."""

    def preflight(
        self,
        plan: MaterializationPlan,
        root: str | Path,
        policy: ConflictPolicy = ConflictPolicy.FAIL,
    ) -> list[PlannedAction]:
        """Resolve every entry and check for conflicts without writing.

        Conflicts are checked against both the filesystem and the entries
        earlier in the same plan.

        Raises:
            PathEscapeError: An entry resolves outside *root*.
            TargetExistsError: A file target exists and *policy* is ``FAIL``.
            ConflictKindError: A file sits where a directory is needed, or
                the other way round.
        """
        base = Path(os.path.abspath(root))
        if _exists(base) and not base.is_dir():
            raise ConflictKindError(base, "directory")

        planned: dict[Path, str] = {}
        actions: list[PlannedAction] = []

        for entry in plan:
            target = resolve(base, entry.path)
            for ancestor in _ancestors_below(base, target):
                if planned.get(ancestor) == "file" or (
                    ancestor not in planned and _exists(ancestor) and not ancestor.is_dir()
                ):
                    raise ConflictKindError(ancestor, "directory")

            if isinstance(entry, CreateDir):
                if planned.get(target) == "file" or (
                    target not in planned and _exists(target) and not target.is_dir()
                ):
                    raise ConflictKindError(target, "directory")
                planned[target] = "dir"
                actions.append(PlannedAction(entry, target))
                continue

            if planned.get(target) == "dir" or (target not in planned and target.is_dir()):
                raise ConflictKindError(target, "file")
            if planned.get(target) == "file" or _exists(target):
                if policy is ConflictPolicy.FAIL:
                    raise TargetExistsError(target)
                actions.append(PlannedAction(entry, target, skip=True))
                continue
            planned[target] = "file"
            actions.append(PlannedAction(entry, target))

        return actions

    async def apply(
        self,
        plan: MaterializationPlan,
        root: str | Path,
        policy: ConflictPolicy = ConflictPolicy.FAIL,
    ) -> MaterializeResult:
        """Create every entry of *plan* under *root*.

        Args:
            plan: Entries to create, in order.
            root: Destination root; created (and rolled back) if missing.
            policy: ``FAIL`` aborts on the first existing file target,
                ``SKIP`` leaves existing files alone and carries on.

        Returns:
            A ``MaterializeResult`` listing the created paths in creation
            order and the skipped targets.

        Raises:
            IoFailureError: A filesystem call failed mid-apply.  Everything
                created by this call has been removed before it is raised.
        """
        actions = await asyncio.to_thread(self.preflight, plan, root, policy)
        result = MaterializeResult(root=Path(os.path.abspath(root)))
        created = result.created
        current = result.root

        try:
            await asyncio.to_thread(_make_dirs, result.root, created)
            for action in actions:
                current = action.target
                if action.skip:
                    result.skipped.append(action.target)
                    continue

                entry = action.entry
                if isinstance(entry, CreateDir):
                    await asyncio.to_thread(_make_dirs, action.target, created)
                    continue

                assert isinstance(entry, CreateFile)
                await asyncio.to_thread(_make_dirs, action.target.parent, created)
                try:
                    await asyncio.to_thread(_create_file, action.target, entry.content, created)
                except FileExistsError:
                    # Appeared after pre-flight.
                    if policy is ConflictPolicy.SKIP:
                        result.skipped.append(action.target)
                        continue
                    raise
                if entry.executable:
                    await asyncio.to_thread(_make_executable, action.target)
        except OSError as exc:
            failures = await asyncio.to_thread(_rollback, created)
            raise IoFailureError(current, exc, failures) from exc

        return result


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


def _exists(path: Path) -> bool:
    """``True`` for any entry at *path*, dangling symlinks included."""
    return os.path.lexists(path)


def _ancestors_below(root: Path, target: Path) -> list[Path]:
    """Directories strictly between *root* and *target*, outermost first."""
    ancestors = []
    for parent in target.parents:
        if parent == root:
            break
        ancestors.append(parent)
    return list(reversed(ancestors))


def _make_dirs(target: Path, created: list[Path]) -> None:
    """Create *target* and any missing ancestors, recording each one made."""
    missing: list[Path] = []
    current = target
    while not _exists(current):
        missing.append(current)
        current = current.parent
    if not current.is_dir():
        raise NotADirectoryError(errno.ENOTDIR, os.strerror(errno.ENOTDIR), str(current))

    for directory in reversed(missing):
        try:
            directory.mkdir()
        except FileExistsError:
            if directory.is_dir():
                continue
            raise
        created.append(directory)


def _create_file(path: Path, content: str, created: list[Path]) -> None:
    """Exclusively create *path* and write *content* to it.

    The path is recorded as soon as the file exists so a failed write is
    still rolled back.
    """
    with path.open("x", encoding="utf-8", newline="") as fh:
        created.append(path)
        fh.write(content)


def _make_executable(path: Path) -> None:
    """Set the executable bit on a file."""
    current = path.stat().st_mode
    path.chmod(current | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def _rollback(created: list[Path]) -> list[tuple[Path, OSError]]:
    """Remove *created* in reverse order; return the removals that failed."""
    failures: list[tuple[Path, OSError]] = []
    for path in reversed(created):
        try:
            if path.is_dir() and not path.is_symlink():
                path.rmdir()
            else:
                path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            failures.append((path, exc))
    return failures
