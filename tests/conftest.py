"""Shared pytest fixtures for the ncreate test suite.

Provides reusable fixtures for:
- An isolated environment (no real config or data directories)
- Sample templates and AI project structures
- Template directories on disk
- Mocked Ollama responses
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ncreate.config import Config
from ncreate.scaffolder.models import FileSpec, ProjectStructure, Template


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point every XDG lookup into the test's tmp dir and drop NCREATE_* vars."""
    import os

    for key in list(os.environ):
        if key.startswith("NCREATE_"):
            monkeypatch.delenv(key, raising=False)
    home = tmp_path / "home"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(home / ".local" / "share"))
    return home


@pytest.fixture
def dest(tmp_path: Path) -> Path:
    """Empty destination root."""
    root = tmp_path / "dest"
    root.mkdir()
    return root


def _snapshot(root: Path) -> dict[str, str | None]:
    state: dict[str, str | None] = {}
    for path in sorted(root.rglob("*")):
        rel = path.relative_to(root).as_posix()
        state[rel] = None if path.is_dir() else path.read_text(encoding="utf-8")
    return state


@pytest.fixture
def snapshot():
    """Function mapping every entry below a root to its content (``None`` for dirs)."""
    return _snapshot


# ---------------------------------------------------------------------------
# Sample content
# ---------------------------------------------------------------------------

SCENARIO_TEMPLATE: dict[str, Any] = {
    "name": "t",
    "files": [{"path": "{{n}}.txt", "content": "hi {{n}}", "executable": False}],
    "variables": {"n": "default"},
}


@pytest.fixture
def scenario_template() -> Template:
    """The single-file template used throughout the behaviour scenarios."""
    return Template.model_validate(SCENARIO_TEMPLATE)


@pytest.fixture
def project_template() -> Template:
    """A multi-file template with a nested path and an executable script."""
    return Template.model_validate({
        "name": "service",
        "description": "Small service layout.",
        "files": [
            {"path": "README.md", "content": "# {{name}}\n\nOwner: {{owner}}\n"},
            {"path": "{{name | snake_case}}/__init__.py", "content": ""},
            {"path": "{{name | snake_case}}/main.py", "content": "print('{{name}}')\n"},
            {"path": "bin/run.sh", "content": "#!/bin/sh\nexec python -m {{name | snake_case}}.main\n", "executable": True},
        ],
        "variables": {"name": "my-service", "owner": "nobody"},
    })


@pytest.fixture
def scenario_structure() -> ProjectStructure:
    """An AI-sourced structure with one folder and one file inside it."""
    return ProjectStructure(
        name="demo",
        folders=["src"],
        files=[FileSpec(path="src/main.x", content="body")],
    )


@pytest.fixture
def templates_dir(tmp_path: Path) -> Path:
    """A user template directory holding ``t.json`` and ``service.json``."""
    directory = tmp_path / "templates"
    directory.mkdir()
    (directory / "t.json").write_text(json.dumps(SCENARIO_TEMPLATE), encoding="utf-8")
    (directory / "service.json").write_text(
        json.dumps({
            "name": "service",
            "files": [
                {"path": "README.md", "content": "# {{name}}\n"},
                {"path": "src/{{name}}.py", "content": "NAME = '{{name}}'\n"},
            ],
            "variables": {"name": "svc"},
        }),
        encoding="utf-8",
    )
    return directory


@pytest.fixture
def config_with_templates(templates_dir: Path) -> Config:
    """Config whose storage root holds the ``templates_dir`` fixture."""
    return Config(storage_root=templates_dir.parent)


# ---------------------------------------------------------------------------
# Mock Ollama
# ---------------------------------------------------------------------------

def make_ollama_response(text: str, model: str = "qwen2.5-coder:14b") -> dict[str, Any]:
    """Build a realistic Ollama /api/generate response."""
    return {
        "model": model,
        "created_at": "2026-01-15T10:30:00.000Z",
        "response": text,
        "done": True,
        "total_duration": 1234567890,
    }


@pytest.fixture
def mock_ollama():
    """Factory patching ``httpx.AsyncClient`` to answer with the given text.

    Usage:
        def test_something(mock_ollama):
            with mock_ollama(json.dumps({...})) as client:
                ...
    """

    def factory(text: str):
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.json.return_value = make_ollama_response(text)
        mock_response.raise_for_status = MagicMock()

        mock_client = AsyncMock()
        mock_client.post = AsyncMock(return_value=mock_response)
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=False)
        return patch("httpx.AsyncClient", return_value=mock_client)

    return factory
