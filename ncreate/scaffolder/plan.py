"""The materialization plan shared by the template and AI code paths.

A plan is an ordered tuple of ``CreateDir`` / ``CreateFile`` entries whose
paths are already normalised relative POSIX paths.  Renderer and normalizer
build plans; only the materializer turns them into filesystem entries.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class CreateDir:
    """Create a directory (and any missing ancestors)."""

    path: str


@dataclass(frozen=True)
class CreateFile:
    """Create a file with *content*, optionally marking it executable."""

    path: str
    content: str = ""
    executable: bool = False


PlanEntry = Union[CreateDir, CreateFile]


@dataclass(frozen=True)
class MaterializationPlan:
    """Immutable, ordered sequence of plan entries."""

    entries: tuple[PlanEntry, ...] = field(default_factory=tuple)

    @classmethod
    def of(cls, entries: Iterable[PlanEntry]) -> "MaterializationPlan":
        return cls(tuple(entries))

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __getitem__(self, index: int) -> PlanEntry:
        return self.entries[index]
