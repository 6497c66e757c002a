"""Invoke the external markdown converter (pandoc by default)."""

from __future__ import annotations

import logging
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class ConversionResult:
    """Outcome of converting one source file."""

    source: Path
    target: Path
    success: bool
    returncode: int | None = None
    error: str | None = None


class PandocConverter:
    """Run the converter as an argument list, never through a shell."""

    def build_command(self, binary: str, options: str, source: Path, target: Path) -> list[str]:
        """Return ``[binary, *options, "-s", source, "-o", target]``."""
        return [binary, *shlex.split(options), "-s", str(source), "-o", str(target)]

    def convert(self, binary: str, options: str, source: Path, target: Path) -> ConversionResult:
        """Convert ``source`` into ``target``.

        Failures are reported in the result, not raised, so a run can
        continue with the next file.
        """
        try:
            command = self.build_command(binary, options, source, target)
        except ValueError as e:
            return ConversionResult(source, target, success=False, error=f"Bad options {options!r}: {e}")

        logger.debug("Running: %s", shlex.join(command))
        try:
            proc = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            return ConversionResult(source, target, success=False, error=f"Cannot run {binary}: {e}")

        if proc.returncode != 0:
            return ConversionResult(
                source,
                target,
                success=False,
                returncode=proc.returncode,
                error=proc.stderr.strip() or f"exit status {proc.returncode}",
            )

        return ConversionResult(source, target, success=True, returncode=0)
