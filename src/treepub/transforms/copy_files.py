"""Mirror matching files byte for byte."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import IO

from .base import BaseTransform

logger = logging.getLogger(__name__)


class CopyTransform(BaseTransform):
    """Copies each matching source file to the same name in the target tree."""

    name: str = "copy"
    uses_handles: bool = True

    def handler(
        self,
        source: IO[bytes] | None,
        target: IO[bytes] | None,
        source_path: Path,
        target_path: Path,
    ) -> None:
        if source is not None and target is not None:
            shutil.copyfileobj(source, target)
        elif self.config.dry_run:
            logger.info("Would copy %s -> %s", source_path, target_path)
        else:
            shutil.copyfile(source_path, target_path)

    def post_process(self, source_path: Path, target_path: Path) -> None:
        if target_path.exists():
            shutil.copystat(source_path, target_path)
