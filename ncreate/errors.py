"""Exception hierarchy for ncreate.

Every error the core can surface derives from :class:`NCreateError`, so the
CLI can print a single human-readable line and exit non-zero without knowing
which component failed.  Each subclass keeps the offending path or name as an
attribute for callers that want more than the message.
"""

from __future__ import annotations

from pathlib import Path


class NCreateError(Exception):
    """Base class for every error reported to the user."""


# ---------------------------------------------------------------------------
# Validation errors (raised before any write)
# ---------------------------------------------------------------------------


class PathEscapeError(NCreateError):
    """A requested path is absolute or resolves outside the destination root."""

    def __init__(self, path: str, reason: str = "resolves outside the destination root") -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Refusing path {path!r}: {reason}")


class UnresolvedVariableError(NCreateError):
    """A template token names a variable with no bound value."""

    def __init__(self, name: str, file_index: int, template: str = "") -> None:
        self.name = name
        self.file_index = file_index
        self.template = template
        where = f"template {template!r} " if template else ""
        super().__init__(
            f"Unresolved variable {name!r} in {where}file #{file_index}"
        )


class MalformedTemplateError(NCreateError):
    """A template definition or one of its strings cannot be parsed."""

    def __init__(self, source: str, detail: str) -> None:
        self.source = source
        self.detail = detail
        super().__init__(f"Malformed template {source}: {detail}")


class TemplateNotFoundError(NCreateError):
    """No template with the requested name exists in any search directory."""

    def __init__(self, name: str, searched: list[Path] | None = None) -> None:
        self.name = name
        self.searched = searched or []
        where = ", ".join(str(p) for p in self.searched) or "no template directories"
        super().__init__(f"Template {name!r} not found (searched: {where})")


class ConfigError(NCreateError):
    """The configuration file or environment holds invalid settings."""


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------


class TargetExistsError(NCreateError):
    """A file the plan would create already exists."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"File already exists: {path}")


class ConflictKindError(NCreateError):
    """An existing filesystem entry has the wrong kind for the plan entry."""

    def __init__(self, path: Path, expected: str) -> None:
        self.path = path
        self.expected = expected
        super().__init__(f"Cannot create {expected} at {path}: a non-{expected} entry is in the way")


# ---------------------------------------------------------------------------
# Runtime failures
# ---------------------------------------------------------------------------


class ProviderError(NCreateError):
    """The AI collaborator failed or returned an unusable response."""

    def __init__(self, message: str, provider: str = "") -> None:
        self.provider = provider
        prefix = f"{provider}: " if provider else ""
        super().__init__(f"AI provider error: {prefix}{message}")


class IoFailureError(NCreateError):
    """A filesystem operation failed while a plan was being applied.

    ``rollback_errors`` lists any failures hit while undoing the partial
    work; the original ``OSError`` is chained as ``__cause__``.
    """

    def __init__(
        self,
        path: Path,
        cause: BaseException,
        rollback_errors: list[tuple[Path, OSError]] | None = None,
    ) -> None:
        self.path = path
        self.cause = cause
        self.rollback_errors = rollback_errors or []
        message = f"Failed to create {path}: {cause}"
        if self.rollback_errors:
            message += f" ({len(self.rollback_errors)} path(s) could not be rolled back)"
        super().__init__(message)
        for failed, exc in self.rollback_errors:
            self.add_note(f"rollback failed for {failed}: {exc}")
