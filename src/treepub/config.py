"""Configuration management for treepub runs."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .errors import ConfigError

_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})

# Extra options that map onto typed fields; everything else lands in ``extra``.
_INT_OPTIONS = ("n_recent", "min_recent_size", "description_words")
_STR_OPTIONS = ("template_dir", "content_start", "converter")


def parse_bool(value: Any, default: bool) -> bool:
    """Interpret YAML or command-line values as a boolean.

    ``None`` yields ``default``; strings are true only for the usual
    affirmative spellings.
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    return str(value).strip().lower() in _TRUE_STRINGS


def parse_int(name: str, value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Invalid integer for {name}: {value!r}") from e


def parse_extra_options(text: str) -> dict[str, str | bool]:
    """Split ``"k=v,flag,k2=v2"`` into a mapping; bare keys become ``True``."""
    parsed: dict[str, str | bool] = {}
    for item in text.split(","):
        item = item.strip()
        if not item:
            continue
        key, sep, value = item.partition("=")
        parsed[key] = value if sep else True
    return parsed


@dataclass
class PublishConfig:
    """Settings for one run of the tree walker and its transform."""

    # Directory layout; source and target are relative to root_dir
    root_dir: Path | None = None
    source_dir: str | None = None
    target_dir: str | None = None

    # Walker behaviour
    transform: str = "publish_html"
    file_pattern: str = r"\.md$"
    remove_pattern: str | None = None
    recurse: bool = False
    execute: bool = False
    open_files: bool = True
    verbose: bool = False

    # Publishing
    n_recent: int = 10
    template_dir: str = ""
    min_recent_size: int = 0
    content_start: str = '<div id="content">'
    description_words: int = 200
    options_filename: str = ".pandoc_options"
    converter: str = "pandoc"
    macros: dict[str, str] = field(default_factory=dict)
    extra: dict[str, str | bool] = field(default_factory=dict)

    # Logging
    log_file: Path | None = None
    log_level: str = "INFO"

    @property
    def dry_run(self) -> bool:
        return not self.execute

    @property
    def source_root(self) -> Path:
        return self._join("source_dir", self.source_dir)

    @property
    def target_root(self) -> Path:
        return self._join("target_dir", self.target_dir)

    @property
    def template_root(self) -> Path:
        return self._join("template_dir", self.template_dir)

    def _join(self, name: str, relative: str | None) -> Path:
        if self.root_dir is None:
            raise ConfigError("rootdir required")
        if relative is None:
            raise ConfigError(f"{name.replace('_', '')} required")
        return self.root_dir / relative

    @property
    def file_regex(self) -> re.Pattern[str]:
        return _compile("file_pattern", self.file_pattern)

    @property
    def remove_regex(self) -> re.Pattern[str] | None:
        if not self.remove_pattern:
            return None
        return _compile("remove_pattern", self.remove_pattern)

    def validate(self) -> None:
        """Check everything a run needs before any file is touched.

        Raises:
            ConfigError: A required setting is missing or invalid, or a
                root directory does not exist.

        """
        if self.log_level not in logging.getLevelNamesMapping():
            raise ConfigError(f"Invalid log_level: {self.log_level}")
        if self.n_recent < 0:
            raise ConfigError(f"n_recent must be non-negative, got {self.n_recent}")
        _compile("file_pattern", self.file_pattern)
        if self.remove_pattern:
            _compile("remove_pattern", self.remove_pattern)

        roots = (self.target_root, self.source_root)
        for root in roots:
            if not root.exists():
                raise ConfigError(f"no such directory: {root}")

    def apply_extra_options(self, options: dict[str, str | bool]) -> None:
        """Merge ``-o key=value`` pairs, coercing keys that name typed fields."""
        for key, value in options.items():
            if key in _INT_OPTIONS:
                setattr(self, key, parse_int(key, value))
            elif key in _STR_OPTIONS:
                setattr(self, key, "" if value is True else str(value))
            else:
                self.extra[key] = value

    @classmethod
    def load(cls, config_path: Path | None = None) -> PublishConfig:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to config file. Defaults are returned if None
                or if the file does not exist.

        Returns:
            Loaded configuration.

        """
        if config_path is None or not config_path.exists():
            return cls()

        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"Config file must contain a mapping: {config_path}")

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> PublishConfig:
        """Create config from dictionary."""
        config = cls()

        if data.get("root_dir"):
            config.root_dir = Path(os.path.expanduser(data["root_dir"]))
        for key in ("source_dir", "target_dir", "transform", "file_pattern", "remove_pattern"):
            if key in data:
                setattr(config, key, data[key])

        for key in ("recurse", "execute", "open_files", "verbose"):
            if key in data:
                setattr(config, key, parse_bool(data[key], getattr(config, key)))

        # Publishing
        if "publish" in data:
            publish = data["publish"] or {}
            for key in _INT_OPTIONS:
                if key in publish:
                    setattr(config, key, parse_int(key, publish[key]))
            for key in (*_STR_OPTIONS, "options_filename"):
                if key in publish:
                    setattr(config, key, str(publish[key]))

        if "macros" in data:
            config.macros = {str(k): str(v) for k, v in (data["macros"] or {}).items()}
        if "extra" in data:
            config.extra = dict(data["extra"] or {})

        # Logging
        if "logging" in data:
            logging_cfg = data["logging"] or {}
            if logging_cfg.get("file"):
                config.log_file = Path(os.path.expanduser(logging_cfg["file"]))
            if "level" in logging_cfg:
                config.log_level = str(logging_cfg["level"]).upper()

        return config

    def to_dict(self) -> dict[str, Any]:
        return {
            "root_dir": str(self.root_dir) if self.root_dir else None,
            "source_dir": self.source_dir,
            "target_dir": self.target_dir,
            "transform": self.transform,
            "file_pattern": self.file_pattern,
            "remove_pattern": self.remove_pattern,
            "recurse": self.recurse,
            "execute": self.execute,
            "open_files": self.open_files,
            "verbose": self.verbose,
            "publish": {
                "n_recent": self.n_recent,
                "template_dir": self.template_dir,
                "min_recent_size": self.min_recent_size,
                "content_start": self.content_start,
                "description_words": self.description_words,
                "options_filename": self.options_filename,
                "converter": self.converter,
            },
            "macros": dict(self.macros),
            "extra": dict(self.extra),
            "logging": {
                "file": str(self.log_file) if self.log_file else None,
                "level": self.log_level,
            },
        }

    def save(self, config_path: Path) -> None:
        """Save configuration to a YAML file."""
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with config_path.open("w", encoding="utf-8") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


def _compile(name: str, pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"Invalid {name} {pattern!r}: {e}") from e
