"""Summaries of published pages used to build indices and feeds."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from email.utils import format_datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

TITLE_PREFIX = "% "

_TAG = re.compile(r"<[^>]*>")
_WORD = re.compile(r"\w+")


def read_title(path: Path) -> str:
    """Return the text of the first ``% `` line, or the file name."""
    with path.open(encoding="utf-8", errors="replace") as f:
        for line in f:
            if line.startswith(TITLE_PREFIX):
                return line[len(TITLE_PREFIX):].strip()
    return path.name


@dataclass
class FileSummary:
    """One processed file; ``description`` is filled in after conversion."""

    source_path: Path
    target_path: Path
    title: str
    timestamp: datetime
    size: int
    description: str | None = None
    converted: bool = True

    @classmethod
    def from_source(cls, source_path: Path, target_path: Path) -> FileSummary:
        stat = source_path.stat()
        return cls(
            source_path=source_path,
            target_path=target_path,
            title=read_title(source_path),
            timestamp=datetime.fromtimestamp(stat.st_mtime).astimezone(),
            size=stat.st_size,
        )

    @property
    def printable_date(self) -> str:
        return self.timestamp.strftime("%b %d, %Y")

    @property
    def sortable_date(self) -> str:
        return self.timestamp.strftime("%Y/%m/%d")

    @property
    def pub_date(self) -> str:
        """RFC 2822 date for syndication feeds."""
        return format_datetime(self.timestamp)

    def weblink(self, base_dir: Path) -> str:
        """Site-rooted link to the target, e.g. ``/posts/a.html``."""
        return "/" + self.target_path.relative_to(base_dir).as_posix()

    def fetch_description(self, start: re.Pattern[str], max_words: int = 200) -> str | None:
        """Extract plain text following the first line matching ``start``.

        Reads the generated target, collecting lines until more than
        ``max_words`` words have been seen. Tags are stripped.
        """
        collecting = False
        word_count = 0
        lines: list[str] = []

        try:
            with self.target_path.open(encoding="utf-8", errors="replace") as f:
                for line in f:
                    if collecting:
                        text = _TAG.sub(" ", line)
                        lines.append(text)
                        word_count += len(_WORD.findall(text))
                        if word_count > max_words:
                            break
                    elif start.search(line):
                        collecting = True
        except OSError as e:
            logger.warning("Cannot read description from %s: %s", self.target_path, e)
            return None

        self.description = " ".join(" ".join(lines).split())
        return self.description

    def template_context(self, base_dir: Path) -> dict[str, Any]:
        return {
            "title": self.title,
            "link": self.weblink(base_dir),
            "printable_date": self.printable_date,
            "pub_date": self.pub_date,
            "sortable_date": self.sortable_date,
            "description": self.description,
            "size": self.size,
        }
