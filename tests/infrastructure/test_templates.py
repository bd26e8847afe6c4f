"""Tests for the template registry: lookup, substitution, and inversion."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from obsvault.domain.items import Area, CurrentFocus, Task
from obsvault.domain.markdown import parse_markdown
from obsvault.domain.types import ItemType
from obsvault.infrastructure.templates import (
    TemplateRegistry,
    substitute,
    template_variables,
)

NOW = "2025-08-20T10:00:00.000Z"


def _task(**overrides: Any) -> Task:
    data: dict[str, Any] = {
        "id": "task-test-task-1",
        "title": "Test Task",
        "status": "To Do",
        "area": "Work",
        "tags": ["a", "b"],
        "content": "Do the thing.",
        "created_at": NOW,
        "updated_at": NOW,
    }
    data.update(overrides)
    return Task.model_validate(data)


class TestSubstitute:
    def test_known_keys(self) -> None:
        assert substitute("# {{title}} ({{ status }})", {"title": "T", "status": "S"}) == "# T (S)"

    def test_unknown_keys_stay(self) -> None:
        assert substitute("{{missing}} {{title}}", {"title": "T"}) == "{{missing}} T"

    def test_malformed_placeholder_left_literal(self) -> None:
        out = substitute("# {{title\n\n{{status}}", {"title": "T", "status": "Done"})
        assert out == "# {{title\n\nDone"


class TestTemplateVariables:
    def test_camel_keys_and_lists(self) -> None:
        variables = template_variables(_task(parent_projects=["P1", "P2"]))
        assert variables["parentProjects"] == "P1, P2"
        assert variables["dueDate"] == ""
        assert variables["createdAt"] == NOW

    def test_nested_focus(self) -> None:
        area = Area(
            id="a",
            title="Health",
            status="Active",
            pinned=True,
            current_focus=CurrentFocus(primary="Sleep", ongoing=["walks", "stretching"]),
            created_at=NOW,
            updated_at=NOW,
        )
        variables = template_variables(area)
        assert variables["currentFocus.primary"] == "Sleep"
        assert variables["currentFocus.ongoing"] == "walks, stretching"
        assert variables["currentFocus"] == "Sleep"
        assert variables["pinned"] == "true"

    def test_single_line_slots_fold_line_breaks(self) -> None:
        variables = template_variables(_task(area="Work\n  Home\r\nGarden", content="a\nb"))
        assert variables["area"] == "Work Home Garden"
        assert variables["content"] == "a\nb"


class TestLookup:
    def test_packaged_defaults(self) -> None:
        registry = TemplateRegistry()
        for item_type in ItemType:
            template = registry.get_template(item_type)
            assert template.source == "default"
            assert "{{content}}" in template.content
            assert template.description
            assert "title" in template.variables
        assert registry.cache_size == 4

    def test_meta_comments_removed_from_body(self) -> None:
        template = TemplateRegistry().get_template("Task")
        assert "<!--" not in template.content
        assert template.content.startswith("# {{title}}")

    def test_vault_override_wins(self, tmp_path: Path) -> None:
        overrides = tmp_path / "_templates"
        overrides.mkdir()
        (overrides / "task.md").write_text("# {{title}}\n\n{{content}}\n", encoding="utf-8")
        template = TemplateRegistry(tmp_path).get_template("Task")
        assert template.source == "override"
        assert template.variables == ("title", "content")

    def test_override_frontmatter_dropped(self, tmp_path: Path) -> None:
        overrides = tmp_path / "_templates"
        overrides.mkdir()
        (overrides / "area.md").write_text("---\nType: Area\n---\n# {{title}}\n", encoding="utf-8")
        assert TemplateRegistry(tmp_path).get_template("Area").content == "# {{title}}\n"

    def test_unreadable_override_falls_back(self, tmp_path: Path) -> None:
        overrides = tmp_path / "_templates"
        overrides.mkdir()
        (overrides / "epic.md").write_bytes(b"\xff\xfe\x00bad")
        assert TemplateRegistry(tmp_path).get_template("Epic").source == "default"

    def test_cache_and_clear(self, tmp_path: Path) -> None:
        registry = TemplateRegistry(tmp_path)
        first = registry.get_template("Task")
        assert registry.get_template("Task") is first
        assert set(registry.loaded()) == {ItemType.TASK}

        overrides = tmp_path / "_templates"
        overrides.mkdir()
        (overrides / "task.md").write_text("{{content}}", encoding="utf-8")
        assert registry.get_template("Task") is first
        registry.clear_cache()
        assert registry.cache_size == 0
        assert registry.get_template("Task").source == "override"

    def test_unknown_type(self) -> None:
        with pytest.raises(ValueError):
            TemplateRegistry().get_template("Note")


class TestApplyTemplate:
    def test_full_file(self) -> None:
        markdown = TemplateRegistry().apply_template(_task())
        fm, body = parse_markdown(markdown)
        assert fm["Type"] == "Task"
        assert fm["Area"] == "Work"
        assert body.startswith("# Test Task\n")
        assert "- **Tags**: a, b" in body
        assert "Do the thing." in body

    def test_malformed_override_renders_rest(self, tmp_path: Path) -> None:
        overrides = tmp_path / "_templates"
        overrides.mkdir()
        (overrides / "task.md").write_text("# {{title\n\nStatus: {{status}}\n", encoding="utf-8")
        body = TemplateRegistry(tmp_path).render_body(_task())
        assert body == "# {{title\n\nStatus: To Do\n"


class TestExtractContent:
    @pytest.mark.parametrize(
        "content",
        ["Do the thing.", "", "Line one\n\n## Heading inside\n\n- bullet", "Ends with notes:\n---"],
    )
    def test_inverts_rendered_body(self, content: str) -> None:
        registry = TemplateRegistry()
        task = _task(content=content)
        body = registry.render_body(task)
        assert registry.extract_content("Task", body) == content

    def test_area_with_empty_focus(self) -> None:
        registry = TemplateRegistry()
        area = Area(
            id="a",
            title="Health",
            status="Active",
            content="Keep fit.",
            created_at=NOW,
            updated_at=NOW,
        )
        assert registry.extract_content("Area", registry.render_body(area)) == "Keep fit."

    def test_area_with_multiline_purpose(self) -> None:
        registry = TemplateRegistry()
        area = Area(
            id="a",
            title="Health",
            status="Active",
            purpose="Sleep well.\nMove daily.",
            content="Keep fit.",
            created_at=NOW,
            updated_at=NOW,
        )
        body = registry.render_body(area)
        assert "Sleep well. Move daily." in body
        assert registry.extract_content("Area", body) == "Keep fit."

    def test_hand_written_body_not_matched(self) -> None:
        registry = TemplateRegistry()
        assert registry.extract_content("Task", "# Title\n\nJust some notes.\n") is None

    def test_template_without_content_slot(self, tmp_path: Path) -> None:
        overrides = tmp_path / "_templates"
        overrides.mkdir()
        (overrides / "task.md").write_text("# {{title}}\n", encoding="utf-8")
        assert TemplateRegistry(tmp_path).extract_content("Task", "# T\n") is None
