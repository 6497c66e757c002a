"""Jinja2 rendering of section indices, recent indices and the feed."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

from jinja2 import Environment, FileSystemLoader, Template, TemplateNotFound, TemplateSyntaxError, select_autoescape

from .errors import ConfigError

if TYPE_CHECKING:
    from .pages import FileSummary

INDEX_TEMPLATE = "index_template.html"
SECTION_INDEX_TEMPLATE = "section_index_template.html"
FEED_TEMPLATE = "feed_template.xml"

REQUIRED_TEMPLATES = (INDEX_TEMPLATE, SECTION_INDEX_TEMPLATE, FEED_TEMPLATE)


class IndexRenderer:
    """Loads the index templates once and renders them to target files."""

    def __init__(self, templates_dir: Path, web_base: Path) -> None:
        """Load every required template.

        Args:
            templates_dir: Directory holding the templates.
            web_base: Target root; page links are made relative to it.

        Raises:
            ConfigError: A template is missing or does not parse.

        """
        self.web_base = web_base
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            keep_trailing_newline=True,
        )
        self.templates: dict[str, Template] = {}
        for name in REQUIRED_TEMPLATES:
            try:
                self.templates[name] = self.env.get_template(name)
            except TemplateNotFound as e:
                raise ConfigError(f"Missing template: {templates_dir / name}") from e
            except TemplateSyntaxError as e:
                raise ConfigError(f"Invalid template {name}: {e}") from e

    def render(
        self,
        template_name: str,
        pages: Sequence[FileSummary],
        *,
        index_title: str | None = None,
        div_id: str | None = None,
    ) -> str:
        return self.templates[template_name].render(
            index_title=index_title,
            div_id=div_id,
            pages=[page.template_context(self.web_base) for page in pages],
        )

    def write(
        self,
        target_path: Path,
        template_name: str,
        pages: Sequence[FileSummary],
        *,
        index_title: str | None = None,
        div_id: str | None = None,
    ) -> None:
        """Render a template and write it to ``target_path``.

        Raises:
            OSError: The file cannot be written.
            jinja2.TemplateError: Rendering failed.

        """
        content = self.render(template_name, pages, index_title=index_title, div_id=div_id)
        target_path.write_text(content, encoding="utf-8")
