"""Tests for the transform registry."""

from __future__ import annotations

from pathlib import Path

import pytest

from treepub.config import PublishConfig
from treepub.errors import ConfigError
from treepub.transforms import TRANSFORMS, available_transforms, create_transform
from treepub.transforms.base import BaseTransform, Transform
from treepub.transforms.copy_files import CopyTransform
from treepub.transforms.publish_html import PublishHtmlTransform


@pytest.fixture
def config(tmp_path: Path) -> PublishConfig:
    """Create a configuration with the templates publish_html needs."""
    templates = tmp_path / "templates"
    templates.mkdir()
    for name in ("index_template.html", "section_index_template.html", "feed_template.xml"):
        (templates / name).write_text("{{ pages|length }}")
    return PublishConfig(root_dir=tmp_path, source_dir="src", target_dir="site", template_dir="templates")


class TestRegistry:
    """Tests for selecting transforms by name."""

    def test_builtin_names(self) -> None:
        """Both built-in transforms are registered under their names."""
        assert available_transforms() == ["copy", "publish_html"]
        assert TRANSFORMS["copy"] is CopyTransform
        assert TRANSFORMS["publish_html"] is PublishHtmlTransform

    @pytest.mark.parametrize("name", ["copy", "publish_html"])
    def test_created_transforms_satisfy_protocol(self, config: PublishConfig, name: str) -> None:
        """Every registered transform implements the walker's contract."""
        transform = create_transform(name, config)

        assert isinstance(transform, Transform)
        assert transform.name == name

    def test_unknown_name(self, config: PublishConfig) -> None:
        """An unknown name is a startup error listing the choices."""
        with pytest.raises(ConfigError, match="copy, publish_html"):
            create_transform("markdown2pdf", config)

    def test_publish_html_needs_templates(self, tmp_path: Path) -> None:
        """Construction fails when templates are missing."""
        config = PublishConfig(root_dir=tmp_path, source_dir="src", target_dir="site")

        with pytest.raises(ConfigError, match="Missing template"):
            create_transform("publish_html", config)


class TestBaseTransform:
    """Tests for the default hooks."""

    def test_defaults_are_no_ops(self, tmp_path: Path) -> None:
        """Optional hooks do nothing; the handler must be overridden."""
        transform = BaseTransform(PublishConfig())

        assert transform.map_filename("a.md") == "a.md"
        assert transform.post_process(tmp_path / "a", tmp_path / "b") is None
        assert transform.begin_directory(tmp_path, tmp_path) is None
        assert transform.end_directory(tmp_path, tmp_path) is None
        with pytest.raises(NotImplementedError):
            transform.handler(None, None, tmp_path / "a", tmp_path / "b")


class TestCopyTransform:
    """Tests for the verbatim copy transform."""

    def test_copy_without_handles(self, tmp_path: Path) -> None:
        """Without handles the file is copied by path."""
        source = tmp_path / "a.bin"
        source.write_bytes(bytes(range(256)))
        target = tmp_path / "b.bin"
        transform = CopyTransform(PublishConfig(execute=True))

        transform.handler(None, None, source, target)
        transform.post_process(source, target)

        assert target.read_bytes() == bytes(range(256))
        assert target.stat().st_mtime == source.stat().st_mtime

    def test_dry_run_copies_nothing(self, tmp_path: Path) -> None:
        """In a dry run nothing is written."""
        source = tmp_path / "a.txt"
        source.write_text("a")
        transform = CopyTransform(PublishConfig(execute=False))

        transform.handler(None, None, source, tmp_path / "b.txt")

        assert not (tmp_path / "b.txt").exists()
