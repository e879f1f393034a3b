"""Pathway factory and process-wide logging setup."""

from __future__ import annotations

import logging

from dotenv import load_dotenv

from visionpath.config import Settings, settings
from visionpath.engine.config import PathwayConfig
from visionpath.engine.pipeline import VisualPathway

load_dotenv()

logger = logging.getLogger(__name__)


def configure_logging(config: Settings | None = None) -> None:
    config = config or settings
    logging.basicConfig(
        level=getattr(logging, config.visionpath_log_level.upper(), logging.DEBUG),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def create_pathway(
    width: int | None = None,
    height: int | None = None,
    config: PathwayConfig | None = None,
) -> VisualPathway:
    """Build a pathway, defaulting the frame size from Settings."""
    width = settings.frame_width if width is None else width
    height = settings.frame_height if height is None else height
    pathway = VisualPathway(width, height, config)
    logger.info(
        "Pathway %dx%d ready (%s)",
        width,
        height,
        ", ".join(f"{k}={v}" for k, v in pathway.neuron_counts().items()),
    )
    return pathway
