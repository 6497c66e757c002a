"""Removal of target files that no longer have a source."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path


@dataclass
class RemovalResult:
    """Result of removing one stale target file."""

    path: Path
    success: bool
    action: str  # "deleted", "would-delete", "skipped", "error"
    error: str | None = None


class StaleOutputs:
    """Two-phase bookkeeping of target files: mark existing, record produced.

    Directories are marked on entry, before anything is written to them.
    Anything marked but never recorded as produced during the run is stale.
    """

    def __init__(self, pattern: re.Pattern[str] | None, logger: logging.Logger) -> None:
        self.pattern = pattern
        self.logger = logger
        self.existing: set[Path] = set()
        self.processed: set[Path] = set()

    def mark_directory(self, directory: Path) -> None:
        """Remember every removable file currently in ``directory``."""
        if self.pattern is None or not directory.is_dir():
            return

        for entry in directory.iterdir():
            if self.pattern.search(entry.name) and entry.is_file():
                self.existing.add(entry)

    def record(self, path: Path) -> None:
        self.processed.add(path)

    def stale(self) -> list[Path]:
        return sorted(self.existing - self.processed)

    def remove_stale(self, *, dry_run: bool = False) -> list[RemovalResult]:
        """Delete every marked file that was not produced this run."""
        results: list[RemovalResult] = []

        for path in self.stale():
            if dry_run:
                self.logger.info("Would remove stale output: %s", path)
                results.append(RemovalResult(path=path, success=True, action="would-delete"))
            else:
                results.append(self._remove(path))

        return results

    def _remove(self, path: Path) -> RemovalResult:
        if not path.exists():
            return RemovalResult(
                path=path,
                success=False,
                action="skipped",
                error="File no longer exists",
            )

        try:
            path.unlink()
        except PermissionError as e:
            self.logger.error("Permission denied removing %s: %s", path, e)
            return RemovalResult(
                path=path,
                success=False,
                action="error",
                error=f"Permission denied: {e}",
            )
        except OSError as e:
            self.logger.error("Error removing %s: %s", path, e)
            return RemovalResult(
                path=path,
                success=False,
                action="error",
                error=str(e),
            )

        self.logger.info("Removed stale output: %s", path)
        return RemovalResult(path=path, success=True, action="deleted")
