"""Tests for template lookup (ncreate.scaffolder.registry)."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from ncreate.errors import MalformedTemplateError, TemplateNotFoundError
from ncreate.scaffolder.registry import BUILTIN_TEMPLATE_DIR, TemplateRegistry, load_template_file
from ncreate.scaffolder.renderer import TemplateRenderer

pytestmark = pytest.mark.unit


def _write(directory: Path, name: str, payload) -> Path:
    path = directory / f"{name}.json"
    text = payload if isinstance(payload, str) else json.dumps(payload)
    path.write_text(text, encoding="utf-8")
    return path


class TestList:
    def test_sorted_names(self, templates_dir):
        assert list(TemplateRegistry([templates_dir]).list()) == ["service", "t"]

    def test_restartable(self, templates_dir):
        registry = TemplateRegistry([templates_dir])
        assert list(registry.list()) == list(registry.list())

    def test_reflects_new_files(self, templates_dir):
        registry = TemplateRegistry([templates_dir])
        _write(templates_dir, "added", {"name": "added", "files": []})
        assert "added" in list(registry.list())

    def test_merges_directories_without_duplicates(self, templates_dir):
        _write(templates_dir, "basic", {"name": "basic", "files": []})
        names = list(TemplateRegistry([templates_dir, BUILTIN_TEMPLATE_DIR]).list())
        assert names == sorted(set(names))
        assert {"basic", "python-cli", "service", "t"} <= set(names)

    def test_ignores_non_json_and_missing_dirs(self, templates_dir, tmp_path):
        (templates_dir / "notes.txt").write_text("", encoding="utf-8")
        names = list(TemplateRegistry([tmp_path / "nowhere", templates_dir]).list())
        assert names == ["service", "t"]

    def test_default_is_builtin(self):
        assert set(TemplateRegistry().list()) >= {"basic", "python-cli"}


class TestLoad:
    def test_load_by_name(self, templates_dir):
        template = TemplateRegistry([templates_dir]).load("t")
        assert template.name == "t"
        assert template.variables == {"n": "default"}
        assert template.files[0].path == "{{n}}.txt"

    def test_load_does_not_render(self, templates_dir):
        template = TemplateRegistry([templates_dir]).load("service")
        assert template.files[1].path == "src/{{name}}.py"

    def test_first_directory_wins(self, templates_dir, tmp_path):
        override = tmp_path / "override"
        override.mkdir()
        _write(override, "t", {"name": "t", "description": "mine", "files": []})
        template = TemplateRegistry([override, templates_dir]).load("t")
        assert template.description == "mine"

    def test_from_config_prefers_user_dir(self, config_with_templates, templates_dir):
        _write(templates_dir, "basic", {"name": "basic", "description": "user copy", "files": []})
        registry = TemplateRegistry.from_config(config_with_templates)
        assert registry.search_dirs == [templates_dir, BUILTIN_TEMPLATE_DIR]
        assert registry.load("basic").description == "user copy"

    def test_optional_fields_default(self, templates_dir):
        _write(templates_dir, "bare", {"name": "bare", "files": [{"path": "a.txt"}]})
        template = TemplateRegistry([templates_dir]).load("bare")
        assert template.description == ""
        assert template.variables == {}
        assert template.files[0].content == ""
        assert template.files[0].executable is False

    @pytest.mark.parametrize("name", ["missing", "", "../t", "sub/t", ".hidden"])
    def test_not_found(self, templates_dir, name):
        with pytest.raises(TemplateNotFoundError) as exc_info:
            TemplateRegistry([templates_dir]).load(name)
        assert exc_info.value.name == name

    def test_invalid_json(self, templates_dir):
        _write(templates_dir, "broken", "{not json")
        with pytest.raises(MalformedTemplateError, match="invalid JSON"):
            TemplateRegistry([templates_dir]).load("broken")

    def test_not_utf8(self, templates_dir):
        (templates_dir / "latin.json").write_bytes(b'{"name": "latin", "files": [], "description": "caf\xe9"}')
        with pytest.raises(MalformedTemplateError, match="not valid UTF-8") as exc_info:
            TemplateRegistry([templates_dir]).load("latin")
        assert "latin.json" in exc_info.value.source

    def test_top_level_array(self, templates_dir):
        _write(templates_dir, "list", "[]")
        with pytest.raises(MalformedTemplateError, match="object"):
            TemplateRegistry([templates_dir]).load("list")

    def test_missing_files(self, templates_dir):
        _write(templates_dir, "nofiles", {"name": "nofiles"})
        with pytest.raises(MalformedTemplateError, match="files"):
            TemplateRegistry([templates_dir]).load("nofiles")

    def test_missing_name(self, templates_dir):
        _write(templates_dir, "noname", {"files": []})
        with pytest.raises(MalformedTemplateError, match="name"):
            TemplateRegistry([templates_dir]).load("noname")

    def test_name_mismatch(self, templates_dir):
        _write(templates_dir, "alias", {"name": "other", "files": []})
        with pytest.raises(MalformedTemplateError, match="expected 'alias'"):
            TemplateRegistry([templates_dir]).load("alias")

    def test_load_file_directly(self, templates_dir):
        template = load_template_file(templates_dir / "service.json")
        assert template.name == "service"


class TestBuiltinTemplates:
    @pytest.mark.parametrize("name", ["basic", "python-cli"])
    def test_builtin_renders_with_defaults(self, name):
        template = TemplateRegistry().load(name)
        plan = TemplateRenderer().render(template)
        assert len(plan) == len(template.files)

    def test_python_cli_layout(self):
        template = TemplateRegistry().load("python-cli")
        plan = TemplateRenderer().render(template, {"name": "Todo App"})
        paths = [entry.path for entry in plan]
        assert "todo_app/cli.py" in paths
        assert plan[paths.index("scripts/run.sh")].executable is True
