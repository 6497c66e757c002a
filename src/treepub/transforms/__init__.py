"""Registry of the transforms a run can select by name."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..errors import ConfigError
from .base import BaseTransform, Transform
from .copy_files import CopyTransform
from .publish_html import PublishHtmlTransform

if TYPE_CHECKING:
    from ..config import PublishConfig

logger = logging.getLogger(__name__)

TRANSFORMS: dict[str, type[BaseTransform]] = {
    PublishHtmlTransform.name: PublishHtmlTransform,
    CopyTransform.name: CopyTransform,
}

__all__ = ["TRANSFORMS", "BaseTransform", "Transform", "available_transforms", "create_transform"]


def available_transforms() -> list[str]:
    return sorted(TRANSFORMS)


def create_transform(name: str, config: PublishConfig) -> Transform:
    """Instantiate the transform registered under ``name``.

    Raises:
        ConfigError: No transform has that name, or it rejects the config.

    """
    try:
        transform_cls = TRANSFORMS[name]
    except KeyError:
        raise ConfigError(
            f"Unknown transform {name!r}; choose one of: {', '.join(available_transforms())}"
        ) from None

    transform = transform_cls(config)
    logger.debug("Loaded transform: %s", transform.name)
    return transform
