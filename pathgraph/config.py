"""
Layout configuration: spacing, circle sizing and force-simulation constants.

Configs are plain JSON files so a tuned setting can be saved once and
re-applied from the CLI (``--config`` / ``--save-config``).
"""

import json
import logging
import os

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class LayoutConfig(BaseModel):
    """Tuning constants shared by the three layout algorithms."""

    # Hierarchical
    node_spacing: float = Field(150.0, gt=0)
    level_spacing: float = Field(200.0, gt=0)

    # Circular
    min_radius: float = Field(100.0, gt=0)
    radius_per_sqrt_node: float = Field(60.0, gt=0)

    # Force-directed
    force_iterations: int = Field(100, ge=1, le=1000)
    repulsion: float = Field(2000.0, ge=0)
    spring_strength: float = Field(0.1, ge=0)
    rest_length: float = Field(150.0, gt=0)
    initial_step: float = Field(30.0, gt=0)
    initial_spread: float = Field(400.0, gt=0)
    bounding_box: float = Field(1000.0, gt=0)


DEFAULT_CONFIG = LayoutConfig()


def load_config(path: str) -> LayoutConfig:
    """Read a JSON config file; keys that are absent keep their defaults."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    config = LayoutConfig(**data)
    logger.info("Layout config loaded ← %s", path)
    return config


def save_config(config: LayoutConfig, path: str) -> None:
    """Write *config* as indented JSON."""
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(config.model_dump(), fh, indent=2)
    logger.info("Layout config saved → %s", path)
