"""
Unit Tests for Template Store
=============================

Tests for listing, resolving and loading component templates.
"""

import pytest

from src.core.component.store import TemplateStore
from src.core.errors import TemplateNotFound, ValidationFailure
from src.models.schemas import ComponentVariant


class TestListTemplates:
    """Test template listing."""

    def test_lists_only_template_files(self, template_store):
        """Test that files without the template extension are skipped."""
        assert template_store.list_templates() == ["broken.tmpl", "card.tmpl", "hello.tmpl"]

    def test_ignores_other_extensions(self, tmp_path):
        """Test a directory mixing templates and other files."""
        for name in ("b.tmpl", "readme.txt", "a.tmpl"):
            (tmp_path / name).write_text("<template></template>")

        assert TemplateStore(tmp_path).list_templates() == ["a.tmpl", "b.tmpl"]

    def test_subdirectories_are_skipped(self, template_store, templates_dir):
        """Test that directories are never listed, even with a matching name."""
        (templates_dir / "nested.tmpl").mkdir()

        assert "nested.tmpl" not in template_store.list_templates()

    def test_missing_directory(self, tmp_path):
        """Test that a missing directory lists nothing."""
        store = TemplateStore(tmp_path / "absent")

        assert store.list_templates() == []

    def test_custom_extension(self, tmp_path):
        """Test listing with another extension."""
        (tmp_path / "a.vue").write_text("<template></template>")
        (tmp_path / "b.tmpl").write_text("<template></template>")

        assert TemplateStore(tmp_path, ".vue").list_templates() == ["a.vue"]

    def test_ensure_directories(self, tmp_path):
        """Test that the directory is created on demand."""
        store = TemplateStore(tmp_path / "new" / "templates")

        store.ensure_directories()

        assert store.directory.is_dir()


class TestResolve:
    """Test template name resolution."""

    def test_resolves_existing_file(self, template_store, templates_dir):
        """Test a plain file name."""
        assert template_store.resolve("hello.tmpl") == (templates_dir / "hello.tmpl").resolve()

    @pytest.mark.parametrize("filename", ["", "   "])
    def test_empty_name(self, template_store, filename):
        """Test that an empty name is a validation failure."""
        with pytest.raises(ValidationFailure, match="No template filename"):
            template_store.resolve(filename)

    def test_missing_file(self, template_store):
        """Test that an unknown name raises TemplateNotFound."""
        with pytest.raises(TemplateNotFound, match="missing.tmpl"):
            template_store.resolve("missing.tmpl")

    def test_path_traversal_rejected(self, template_store, templates_dir):
        """Test that names escaping the directory are rejected."""
        (templates_dir.parent / "secret.tmpl").write_text("<template></template>")

        with pytest.raises(ValidationFailure, match="escapes"):
            template_store.resolve("../secret.tmpl")

    def test_directory_is_not_a_template(self, template_store, templates_dir):
        """Test that a directory name is reported as not found."""
        (templates_dir / "folder").mkdir()

        with pytest.raises(TemplateNotFound):
            template_store.resolve("folder")


class TestLoad:
    """Test loading and parsing."""

    @pytest.mark.asyncio
    async def test_load_parses_component(self, template_store):
        """Test that loading returns a parsed definition."""
        definition = await template_store.load("hello.tmpl")

        assert definition.filename == "hello.tmpl"
        assert definition.variant == ComponentVariant.SETUP
        assert "Hello {{ name }}" in definition.template

    @pytest.mark.asyncio
    async def test_load_missing(self, template_store):
        """Test that loading an unknown template fails."""
        with pytest.raises(TemplateNotFound):
            await template_store.load("nope.tmpl")
