"""Per-directory converter options with nearest-ancestor inheritance.

A source directory may hold an options file (``.pandoc_options`` by default).
Directories without one inherit the parsed list of their parent. The file
format is line oriented::

    # comment
    pandoc: /opt/pandoc/bin/pandoc
    --standalone
    ::\\.md$::
    --css=$ROOTDIR/style.css

Option text before the first ``::PATTERN::`` line belongs to a catch-all group.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from pathlib import Path

from .errors import ConfigError, OptionsResolutionError

logger = logging.getLogger(__name__)

CATCH_ALL = ".*"

_GROUP_LINE = re.compile(r"^::(.*)::$")
_DIRECTIVE_LINE = re.compile(r"^(pandoc):\s*(.*)$")


@dataclass(frozen=True)
class OptionGroup:
    """Option text applied to files whose full path matches ``pattern``."""

    pattern: re.Pattern[str]
    options: str = ""

    def matches(self, path: Path | str) -> bool:
        return self.pattern.search(str(path)) is not None


@dataclass(frozen=True)
class DirectoryOptions:
    """Ordered option groups plus the directives set by an options file."""

    groups: tuple[OptionGroup, ...] = ()
    directives: Mapping[str, str] = field(default_factory=dict)
    origin: Path | None = None

    def __bool__(self) -> bool:
        return bool(self.groups)

    @property
    def converter(self) -> str | None:
        return self.directives.get("pandoc")

    def options_for(self, path: Path) -> str:
        """Return the option text of the first group matching ``path``.

        Raises:
            OptionsResolutionError: No group matches.

        """
        for group in self.groups:
            if group.matches(path):
                return group.options
        raise OptionsResolutionError(path, self.groups)


def parse_options(text: str, origin: Path | None = None) -> DirectoryOptions:
    """Parse options file content into a :class:`DirectoryOptions`.

    Raises:
        ConfigError: A group header holds an invalid regex.

    """
    groups: list[tuple[re.Pattern[str], list[str]]] = []
    directives: dict[str, str] = {}

    for lineno, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        if directive := _DIRECTIVE_LINE.match(line):
            directives[directive.group(1)] = directive.group(2)
            logger.info("Using %s from %s", directive.group(2), origin or "options")
            continue

        if group := _GROUP_LINE.match(line):
            try:
                pattern = re.compile(group.group(1))
            except re.error as e:
                raise ConfigError(f"{origin or 'options'}:{lineno}: invalid pattern {group.group(1)!r}: {e}") from e
            groups.append((pattern, []))
            continue

        if not groups:
            groups.append((re.compile(CATCH_ALL), []))
        groups[-1][1].append(f" {line}")

    return DirectoryOptions(
        groups=tuple(OptionGroup(pattern, "".join(lines)) for pattern, lines in groups),
        directives=directives,
        origin=origin,
    )


def expand_macros(text: str, macros: Mapping[str, str]) -> str:
    """Substitute every ``$NAME`` token with its value, in mapping order."""
    for name, value in macros.items():
        text = text.replace(f"${name}", value)
    return text


class OptionsResolver:
    """Resolve and cache option lists for source directories.

    The cache stores unexpanded lists so an inherited list expands its macros
    against the inheriting directory, not the one that defined it.
    """

    def __init__(
        self,
        source_root: Path,
        target_root: Path,
        root_dir: Path,
        *,
        filename: str = ".pandoc_options",
        extra_macros: Mapping[str, str] | None = None,
    ) -> None:
        self.source_root = source_root
        self.target_root = target_root
        self.filename = filename
        self._cache: dict[Path, DirectoryOptions] = {}
        self._base_macros: dict[str, str] = {
            "ROOTDIR": str(root_dir),
            "SOURCEROOT": str(source_root),
            "TARGETROOT": str(target_root),
        }
        self._extra_macros = dict(extra_macros or {})

    def macros_for(self, source_dir: Path, target_dir: Path) -> dict[str, str]:
        return {
            **self._base_macros,
            "SOURCEDIR": str(source_dir),
            "TARGETDIR": str(target_dir),
            **self._extra_macros,
        }

    def cached(self, source_dir: Path) -> DirectoryOptions | None:
        """Return the unexpanded list cached for ``source_dir``, if any."""
        return self._cache.get(source_dir)

    def resolve(self, source_dir: Path, target_dir: Path) -> DirectoryOptions:
        """Return the expanded option list that applies to ``source_dir``.

        An empty :class:`DirectoryOptions` means no options file was found
        here or in any already-visited ancestor.

        Raises:
            ConfigError: The options file cannot be read or parsed.

        """
        options_path = source_dir / self.filename
        if options_path.is_file():
            try:
                text = options_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ConfigError(f"Cannot read {options_path}: {e}") from e
            options = parse_options(text, origin=options_path)
            self._cache[source_dir] = options
        elif (inherited := self._cache.get(source_dir.parent)) is not None:
            options = inherited
            self._cache[source_dir] = options
        else:
            logger.debug("No %s for %s or its parent", self.filename, source_dir)
            return DirectoryOptions()

        return self._expand(options, self.macros_for(source_dir, target_dir))

    @staticmethod
    def _expand(options: DirectoryOptions, macros: Mapping[str, str]) -> DirectoryOptions:
        groups = tuple(replace(group, options=expand_macros(group.options, macros)) for group in options.groups)
        return replace(options, groups=groups)

