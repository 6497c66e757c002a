"""Exceptions that abort a publishing run."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .options import OptionGroup


class TreePubError(Exception):
    """Base class for fatal errors reported to the operator."""


class ConfigError(TreePubError):
    """Missing or invalid startup configuration."""


class OptionsResolutionError(TreePubError):
    """No option group in a directory's option list matches a routed file."""

    def __init__(self, path: Path, groups: Sequence[OptionGroup]) -> None:
        self.path = path
        self.groups = list(groups)
        considered = ", ".join(f"::{g.pattern.pattern}::{g.options!r}" for g in self.groups) or "<none>"
        super().__init__(f"No converter options found for {path}: [{considered}]")
