"""
===============================================================================
GNC PROJECT - Validity Map Configuration
===============================================================================
YAML-driven settings for long-running validity maps: logging verbosity and
the expunge limits that keep a map bounded while a propagation or an orbit
determination run keeps appending spans.

The bundled file lives at ``config/validity_map.yaml`` in the project root:

    logging:
      level: INFO
    expunge:
      max_spans: 500
      max_range: 604800.0      # one week
      policy: FARTHEST
===============================================================================
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

import yaml

from core.constants import DEFAULT_MAX_RANGE, DEFAULT_MAX_SPANS
from core.validity_map import ExpungePolicy, ValidityMap, validate_expunge_limits


logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / 'config' / 'validity_map.yaml'
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def load_config(config_path: Optional[Union[str, Path]] = None) -> dict:
    """
    Load validity map configuration from a YAML file.

    Args:
        config_path: Path to YAML config. Defaults to config/validity_map.yaml

    Returns:
        Dictionary of configuration sections (empty file gives an empty dict)
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    logger.info("Loading configuration from: %s", config_path)
    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)
    if config is None:
        return {}
    if not isinstance(config, dict):
        raise ValueError(f"{config_path}: top level must be a mapping, got {type(config).__name__}")
    return config


def configure_logging(config: dict) -> None:
    """Set up root logging from the ``logging`` section of the config."""
    level_name = str((config.get('logging') or {}).get('level', 'INFO')).upper()
    level = logging.getLevelName(level_name)
    if not isinstance(level, int):
        raise ValueError(f"unknown logging level {level_name!r}")
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass
class ExpungeSettings:
    """Expunge limits for a :class:`~core.validity_map.ValidityMap`.

    Attributes
    ----------
    max_spans : int
        Maximum number of spans retained (``None`` means unlimited).
    max_range : float
        Maximum seconds between the end of the first span and the start of
        the last one (``None`` means unlimited).
    policy : ExpungePolicy
        Which extreme span is dropped first.  Names are accepted.
    """
    max_spans: Optional[int] = DEFAULT_MAX_SPANS
    max_range: Optional[float] = DEFAULT_MAX_RANGE
    policy: Union[ExpungePolicy, str] = ExpungePolicy.EARLIEST

    def __post_init__(self) -> None:
        if self.max_spans is None:
            self.max_spans = DEFAULT_MAX_SPANS
        if self.max_range is None:
            self.max_range = DEFAULT_MAX_RANGE
        self.max_spans, self.max_range, self.policy = validate_expunge_limits(
            self.max_spans, self.max_range, self.policy
        )

    @classmethod
    def from_config(cls, config: dict) -> "ExpungeSettings":
        """Build settings from the ``expunge`` section (missing keys use defaults)."""
        section = config.get('expunge') or {}
        return cls(
            max_spans=section.get('max_spans'),
            max_range=section.get('max_range'),
            policy=section.get('policy', ExpungePolicy.EARLIEST.name),
        )

    @property
    def is_bounded(self) -> bool:
        return self.max_spans != DEFAULT_MAX_SPANS or self.max_range != DEFAULT_MAX_RANGE

    def apply(self, validity_map: ValidityMap) -> ValidityMap:
        """Configure ``validity_map`` with these limits and return it."""
        validity_map.configure_expunge(self.max_spans, self.max_range, self.policy)
        if self.is_bounded:
            logger.debug(
                "Validity map bounded to %d spans / %.1f s (%s)",
                self.max_spans, self.max_range, self.policy.name,
            )
        return validity_map
