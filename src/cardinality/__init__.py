from loguru import logger

from cardinality.config import EstimatorConfig, load_config
from cardinality.digest import digest64
from cardinality.errors import CardinalityError, DigestFailure, InvalidConfiguration
from cardinality.hyper_log_log import HyperLogLog

logger.disable("cardinality")

__all__ = [
    "CardinalityError",
    "DigestFailure",
    "EstimatorConfig",
    "HyperLogLog",
    "InvalidConfiguration",
    "digest64",
    "load_config",
]
