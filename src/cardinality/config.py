from dataclasses import dataclass, field

import yaml
from loguru import logger

from cardinality.errors import InvalidConfiguration

MIN_PRECISION = 4
MAX_PRECISION = 16
DEFAULT_PRECISION = 14

# Published alpha_m for the small register banks
_SMALL_ALPHA = {16: 0.673, 32: 0.697, 64: 0.709}


def alpha_for(bucket_count: int) -> float:
    """Bias-correction constant alpha_m for ``bucket_count`` registers"""
    if bucket_count in _SMALL_ALPHA:
        return _SMALL_ALPHA[bucket_count]
    return 0.7213 / (1 + 1.079 / bucket_count)


@dataclass(frozen=True)
class EstimatorConfig:
    """Resolved HyperLogLog configuration.

    Only ``precision`` is chosen by the caller; ``bucket_count`` and ``alpha``
    are derived from it once, here, so the estimator never recomputes them.

    Attributes:
        precision (int): Digest bits used to select a register (4-16).
        bucket_count (int): Number of registers, ``2 ** precision``.
        alpha (float): Bias-correction constant for ``bucket_count``.

    Example:
        >>> cfg = EstimatorConfig.from_precision(4)
        >>> cfg.bucket_count, cfg.alpha
        (16, 0.673)
    """
    precision: int
    bucket_count: int = field(init=False)
    alpha: float = field(init=False)

    def __post_init__(self):
        p = self.precision
        if isinstance(p, bool) or not isinstance(p, int):
            logger.warning("Rejected precision of type {}", type(p).__name__)
            raise InvalidConfiguration(
                f"precision must be an integer, got {type(p).__name__}"
            )
        if not MIN_PRECISION <= p <= MAX_PRECISION:
            logger.warning("Rejected precision {}", p)
            raise InvalidConfiguration(
                f"precision must be in [{MIN_PRECISION}, {MAX_PRECISION}], got {p}"
            )
        m = 1 << p
        object.__setattr__(self, 'bucket_count', m)
        object.__setattr__(self, 'alpha', alpha_for(m))

    @classmethod
    def from_precision(cls, precision: int = DEFAULT_PRECISION) -> "EstimatorConfig":
        return cls(precision)


def load_config(path) -> EstimatorConfig:
    """Load the ``hyperloglog`` section of a YAML config file.

    Expected layout::

        hyperloglog:
          precision: 12

    A file without the section yields the default precision.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    if not isinstance(raw, dict):
        raise InvalidConfiguration(f"{path}: top level must be a mapping")

    section = raw.get("hyperloglog")
    if section is None:
        section = {}
    if not isinstance(section, dict):
        raise InvalidConfiguration(f"{path}: 'hyperloglog' must be a mapping")

    config = EstimatorConfig.from_precision(section.get("precision", DEFAULT_PRECISION))
    logger.debug("Loaded {} from {}", config, path)
    return config
