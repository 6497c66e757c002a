"""Plugin contract between the tree walker and a transform."""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import IO, TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..config import PublishConfig


@runtime_checkable
class Transform(Protocol):
    """Interface the walker drives while mirroring a source tree."""

    name: str
    uses_handles: bool

    def handler(
        self,
        source: IO[bytes] | None,
        target: IO[bytes] | None,
        source_path: Path,
        target_path: Path,
    ) -> None:
        """Transform one source file into its target.

        Args:
            source: Open source handle, or None when files are not opened.
            target: Open target handle, or None when files are not opened.
            source_path: Full path of the source file.
            target_path: Full path of the target file.

        """
        ...

    def map_filename(self, filename: str) -> str:
        """Return the target file name for a source file name."""
        ...

    def post_process(self, source_path: Path, target_path: Path) -> None:
        """Adjust the target after its handler ran and handles were closed."""
        ...

    def begin_directory(self, source_dir: Path, target_dir: Path) -> None:
        """Called on entering a directory, before any of its files."""
        ...

    def end_directory(self, source_dir: Path, target_dir: Path) -> Iterable[Path] | None:
        """Called after the directory's files and all its subdirectories.

        Returns:
            Paths of any files generated in the target tree, so they are not
            mistaken for stale outputs.

        """
        ...


class BaseTransform:
    """No-op defaults for the optional hooks of :class:`Transform`."""

    name: str = "base"
    uses_handles: bool = True

    def __init__(self, config: PublishConfig) -> None:
        self.config = config

    def handler(
        self,
        source: IO[bytes] | None,
        target: IO[bytes] | None,
        source_path: Path,
        target_path: Path,
    ) -> None:
        raise NotImplementedError

    def map_filename(self, filename: str) -> str:
        return filename

    def post_process(self, source_path: Path, target_path: Path) -> None:
        pass

    def begin_directory(self, source_dir: Path, target_dir: Path) -> None:
        pass

    def end_directory(self, source_dir: Path, target_dir: Path) -> Iterable[Path] | None:
        return None
