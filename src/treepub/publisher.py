"""Run orchestration for treepub."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler

from .transforms import create_transform
from .walker import TreeWalker

if TYPE_CHECKING:
    from .config import PublishConfig
    from .transforms.base import Transform

LOGGER_NAME = "treepub"


@dataclass
class PublishStats:
    """Statistics for one run."""

    start_time: datetime
    directories: int = 0
    files_processed: int = 0
    conversion_failures: int = 0
    indices_written: int = 0
    index_failures: int = 0
    stale_removed: int = 0
    removal_errors: int = 0


def setup_logging(config: PublishConfig) -> logging.Logger:
    """Set up the ``treepub`` logger.

    Returns:
        Configured logger instance.

    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if config.verbose else getattr(logging, config.log_level))

    # Clear existing handlers to avoid duplicates across runs in one process
    if logger.handlers:
        logger.handlers.clear()

    console_handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
    )
    console_handler.setLevel(logging.DEBUG if config.verbose else logging.INFO)
    logger.addHandler(console_handler)

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter("%(asctime)s | %(levelname)s | %(message)s"))
        logger.addHandler(file_handler)

    return logger


class Publisher:
    """Validates a configuration and runs one walk of the source tree."""

    def __init__(self, config: PublishConfig, transform: Transform | None = None) -> None:
        """Initialize the publisher.

        Args:
            config: Run configuration.
            transform: Transform to drive; built from ``config.transform``
                when omitted.

        Raises:
            ConfigError: The configuration cannot support a run.

        """
        self.config = config
        config.validate()
        self.logger = setup_logging(config)

        self.logger.info("full target root = %s", config.target_root)
        self.logger.info("full source root = %s", config.source_root)
        self.logger.info("Executing" if config.execute else "Dry run only!")

        self.transform = transform or create_transform(config.transform, config)
        self.walker = TreeWalker(config, self.transform, self.logger)
        self.stats = PublishStats(start_time=datetime.now())

    def run(self) -> PublishStats:
        """Walk the tree once.

        Returns:
            Statistics for the run.

        """
        result = self.walker.run()

        self.stats.directories = result.directories
        self.stats.files_processed = result.files
        self.stats.stale_removed = result.removed
        self.stats.removal_errors = sum(1 for r in result.removals if r.action == "error")

        transform_stats = getattr(self.transform, "stats", None)
        if transform_stats is not None:
            self.stats.conversion_failures = len(transform_stats.conversion_failures)
            self.stats.indices_written = transform_stats.indices_written
            self.stats.index_failures = transform_stats.index_failures

        self.logger.info(
            "Done. directories=%d, files=%d, failed=%d, indices=%d, removed=%d",
            self.stats.directories,
            self.stats.files_processed,
            self.stats.conversion_failures,
            self.stats.indices_written,
            self.stats.stale_removed,
        )
        return self.stats
