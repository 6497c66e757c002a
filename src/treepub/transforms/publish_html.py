"""Publish a tree of markdown posts as an HTML site.

Every ``.md`` file is converted by the external converter using the option
group resolved for its directory. Each directory also gets:

- ``_section_index.html``: all its posts, sorted by title.
- ``_recent_index.html``: its most recent posts; at the root, the most recent
  posts of the whole site.

The root additionally gets ``feed.xml`` over the site-wide recent list.
Templates ``index_template.html``, ``section_index_template.html`` and
``feed_template.xml`` are read from ``template_dir`` under the root.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, TYPE_CHECKING

from jinja2 import TemplateError

from ..converter import PandocConverter
from ..errors import ConfigError
from ..options import DirectoryOptions, OptionsResolver
from ..pages import FileSummary
from ..recent import RecentItems
from ..rendering import FEED_TEMPLATE, INDEX_TEMPLATE, SECTION_INDEX_TEMPLATE, IndexRenderer
from .base import BaseTransform

if TYPE_CHECKING:
    from ..config import PublishConfig

logger = logging.getLogger(__name__)

SECTION_INDEX = "_section_index.html"
RECENT_INDEX = "_recent_index.html"
FEED = "feed.xml"

_MARKDOWN_SUFFIX = re.compile(r"\.md$")


def _string_extras(extra: Mapping[str, str | bool]) -> dict[str, str]:
    """Valued ``-o`` extras double as option-file macros; bare flags do not."""
    return {key: value for key, value in extra.items() if isinstance(value, str)}


@dataclass
class DirectoryContext:
    """Accumulated state for one directory on the traversal stack."""

    source_dir: Path
    target_dir: Path
    options: DirectoryOptions
    converter: str
    recent: RecentItems[FileSummary]
    # Recent items contributed by this directory and its finished descendants
    subtree_recent: RecentItems[FileSummary]
    parent: DirectoryContext | None = None
    pages: list[FileSummary] = field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent is None


class ContextStack:
    """Open directory contexts, innermost last."""

    def __init__(self) -> None:
        self._contexts: list[DirectoryContext] = []

    def __len__(self) -> int:
        return len(self._contexts)

    @property
    def current(self) -> DirectoryContext:
        if not self._contexts:
            raise RuntimeError("No directory is open")
        return self._contexts[-1]

    def push(self, context: DirectoryContext) -> None:
        self._contexts.append(context)

    def pop(self, source_dir: Path) -> DirectoryContext:
        """Close the innermost context, which must belong to ``source_dir``."""
        context = self.current
        if context.source_dir != source_dir:
            raise RuntimeError(f"Closing {source_dir} while {context.source_dir} is open")
        return self._contexts.pop()


@dataclass
class PublishHtmlStats:
    """Counters for one publishing run."""

    pages: int = 0
    conversion_failures: list[Path] = field(default_factory=list)
    indices_written: int = 0
    index_failures: int = 0


class PublishHtmlTransform(BaseTransform):
    """Convert markdown posts and build per-directory indices and a feed."""

    name: str = "publish_html"
    uses_handles: bool = False

    def __init__(self, config: PublishConfig, converter: PandocConverter | None = None) -> None:
        super().__init__(config)
        if config.root_dir is None:
            raise ConfigError("rootdir required")

        self.renderer = IndexRenderer(config.template_root, config.target_root)
        self.resolver = OptionsResolver(
            config.source_root,
            config.target_root,
            config.root_dir,
            filename=config.options_filename,
            extra_macros={**_string_extras(config.extra), **config.macros},
        )
        self.converter = converter or PandocConverter()
        self.contexts = ContextStack()
        self.stats = PublishHtmlStats()
        try:
            self.content_start = re.compile(config.content_start)
        except re.error as e:
            raise ConfigError(f"Invalid content_start {config.content_start!r}: {e}") from e

    def map_filename(self, filename: str) -> str:
        return _MARKDOWN_SUFFIX.sub(".html", filename)

    def handler(
        self,
        source: IO[bytes] | None,
        target: IO[bytes] | None,
        source_path: Path,
        target_path: Path,
    ) -> None:
        context = self.contexts.current
        options = context.options.options_for(source_path)
        summary = FileSummary.from_source(source_path, target_path)

        if self.config.dry_run:
            logger.info("Would convert %s -> %s", source_path, target_path)
        else:
            result = self.converter.convert(context.converter, options, source_path, target_path)
            if not result.success:
                logger.error("Error processing %s: %s", source_path, result.error)
                summary.converted = False
                self.stats.conversion_failures.append(source_path)
            else:
                logger.debug("Converted %s", target_path)

        context.pages.append(summary)
        self.stats.pages += 1
        if summary.size >= self.config.min_recent_size:
            context.recent.push(summary.timestamp, summary)

    def post_process(self, source_path: Path, target_path: Path) -> None:
        """Give the target the source's access and modification times."""
        if self.config.dry_run or not target_path.exists():
            return
        stat = source_path.stat()
        os.utime(target_path, ns=(stat.st_atime_ns, stat.st_mtime_ns))

    def begin_directory(self, source_dir: Path, target_dir: Path) -> None:
        logger.info("Processing %s", source_dir)
        parent = self.contexts.current if self.contexts else None
        options = self.resolver.resolve(source_dir, target_dir)
        converter = options.converter or (parent.converter if parent else self.config.converter)

        self.contexts.push(
            DirectoryContext(
                source_dir=source_dir,
                target_dir=target_dir,
                options=options,
                converter=converter,
                recent=RecentItems(self.config.n_recent),
                subtree_recent=RecentItems(self.config.n_recent),
                parent=parent,
            )
        )

    def end_directory(self, source_dir: Path, target_dir: Path) -> Iterable[Path]:
        context = self.contexts.pop(source_dir)
        generated: list[Path] = []

        if not self.config.dry_run and not target_dir.is_dir():
            logger.debug("No output directory for %s, skipping indices", source_dir)
            self._contribute(context, context.recent.drain())
            return generated

        section = sorted(context.pages, key=lambda page: page.title.lower())
        generated += self._write_index(
            target_dir / SECTION_INDEX, SECTION_INDEX_TEMPLATE, section, "All Posts", "section-index"
        )

        recent = context.recent.drain()
        if not self.config.dry_run:
            for page in recent:
                if page.converted:
                    page.fetch_description(self.content_start, self.config.description_words)

        site_recent = self._contribute(context, recent)
        if context.is_root:
            generated += self._write_index(
                target_dir / RECENT_INDEX, INDEX_TEMPLATE, site_recent, "Recently Posted", "section-index"
            )
            generated += self._write_index(target_dir / FEED, FEED_TEMPLATE, site_recent, None, None)
        else:
            logger.debug("Recent index for %s: %s", target_dir, [str(p.target_path) for p in recent])
            generated += self._write_index(
                target_dir / RECENT_INDEX, INDEX_TEMPLATE, recent, "Recently Posted", "section-index"
            )

        return generated

    def _contribute(self, context: DirectoryContext, recent: list[FileSummary]) -> list[FileSummary]:
        """Hand this subtree's recent items to the parent.

        Returns the drained subtree list when ``context`` is the root.
        """
        context.subtree_recent.extend((page.timestamp, page) for page in recent)
        if context.parent is None:
            return context.subtree_recent.drain()
        context.parent.subtree_recent.extend((page.timestamp, page) for page in context.subtree_recent.drain())
        return []

    def _write_index(
        self,
        target_path: Path,
        template_name: str,
        pages: list[FileSummary],
        index_title: str | None,
        div_id: str | None,
    ) -> list[Path]:
        if self.config.dry_run:
            logger.info("Would write %s (%d entries)", target_path, len(pages))
            return [target_path]

        try:
            self.renderer.write(target_path, template_name, pages, index_title=index_title, div_id=div_id)
        except (OSError, TemplateError) as e:
            logger.error("Can't generate index for %s: %s", target_path, e)
            self.stats.index_failures += 1
            # Keep the last good copy out of stale removal
            return [target_path]

        self.stats.indices_written += 1
        return [target_path]
