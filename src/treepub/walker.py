"""Depth-first mirroring of a source tree into a target tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from .reconcile import RemovalResult, StaleOutputs

if TYPE_CHECKING:
    from .config import PublishConfig
    from .transforms.base import Transform


@dataclass
class WalkResult:
    """Summary of one traversal."""

    directories: int = 0
    files: int = 0
    generated: int = 0
    removals: list[RemovalResult] = field(default_factory=list)

    @property
    def removed(self) -> int:
        return sum(1 for r in self.removals if r.action == "deleted")


class TreeWalker:
    """Walk the source tree post-order, driving a transform.

    For each directory: mark removable targets, ``begin_directory``, handle
    the matching files, recurse into subdirectories, then ``end_directory``.
    A directory is therefore finalized only after every descendant has been.
    Entries are visited in name order.
    """

    def __init__(self, config: PublishConfig, transform: Transform, logger: logging.Logger) -> None:
        """Initialize the walker.

        Args:
            config: Run configuration.
            transform: Transform applied to every matching file.
            logger: Logger instance.

        """
        self.config = config
        self.transform = transform
        self.logger = logger
        self.source_root = config.source_root
        self.target_root = config.target_root
        self._file_pattern = config.file_regex
        self.outputs = StaleOutputs(config.remove_regex, logger)
        self._created_dirs: set[Path] = set()

    def run(self) -> WalkResult:
        """Walk the whole tree, then remove stale outputs.

        Returns:
            WalkResult with traversal counts and removal results.

        """
        result = WalkResult()
        self._walk(None, result)
        result.removals = self.outputs.remove_stale(dry_run=self.config.dry_run)
        return result

    def _walk(self, rel_dir: Path | None, result: WalkResult) -> None:
        source_dir = self.source_root / rel_dir if rel_dir else self.source_root
        target_dir = self.target_root / rel_dir if rel_dir else self.target_root
        result.directories += 1

        self.outputs.mark_directory(target_dir)
        self.transform.begin_directory(source_dir, target_dir)

        sub_dirs: list[str] = []
        for entry in sorted(source_dir.iterdir(), key=lambda p: p.name):
            if self.config.recurse and entry.is_dir():
                sub_dirs.append(entry.name)
            elif entry.is_file() and self._file_pattern.search(str(entry)):
                target_path = target_dir / self.transform.map_filename(entry.name)
                self._process_file(entry, target_path)
                result.files += 1

        for sub_dir in sub_dirs:
            self._walk(rel_dir / sub_dir if rel_dir else Path(sub_dir), result)

        for generated in self.transform.end_directory(source_dir, target_dir) or ():
            self.outputs.record(generated)
            result.generated += 1

    def _process_file(self, source_path: Path, target_path: Path) -> None:
        if self.config.dry_run:
            self.logger.debug("Would write %s", target_path)
        else:
            self._ensure_directory(target_path.parent)

        if self.config.open_files and self.transform.uses_handles and not self.config.dry_run:
            with source_path.open("rb") as source, target_path.open("wb") as target:
                self.transform.handler(source, target, source_path, target_path)
        else:
            self.transform.handler(None, None, source_path, target_path)

        self.outputs.record(target_path)
        self.transform.post_process(source_path, target_path)

    def _ensure_directory(self, directory: Path) -> None:
        if directory in self._created_dirs:
            return
        if not directory.is_dir():
            directory.mkdir(parents=True, exist_ok=True)
            self.logger.info("Created directory: %s", directory)
        self._created_dirs.add(directory)
