import math
from typing import Callable, Iterable, Union

import numpy as np
import pyarrow as pa
import pyarrow.compute as pc
from loguru import logger

from cardinality.config import DEFAULT_PRECISION, EstimatorConfig
from cardinality.digest import DIGEST_BITS, DIGEST_MAX, digest64
from cardinality.errors import DigestFailure


class HyperLogLog:
    """Distinct-count estimator over a bank of 2**precision registers.

    This class implements the HyperLogLog algorithm, a probabilistic data
    structure that estimates the number of distinct keys in a stream using a
    fixed amount of memory regardless of how many keys it has seen. It is the
    usual stand-in for ``COUNT(DISTINCT x)`` inside query planners.

    Every key is reduced to a 64-bit digest. The top ``precision`` bits pick
    a register; the remaining ``64 - precision`` bits give ``rho``, one plus
    the number of leading zeros. Each register keeps the largest ``rho`` it
    has seen, and the harmonic mean over the registers turns those maxima
    into an estimate with a relative standard error of about
    ``1.04 / sqrt(bucket_count)``.

    Registers live in a numpy ``uint8`` buffer and are published as a
    PyArrow array, which is also what the estimate is computed from.

    No small-range (linear counting) or large-range correction is applied,
    so tiny cardinalities are overestimated when ``bucket_count`` is small.

    Attributes:
        precision (int): Digest bits used to select a register (4-16).
        bucket_count (int): Number of registers, ``2 ** precision``.
        alpha (float): Bias-correction constant for ``bucket_count``.
        cached_cardinality (int): The most recently computed estimate.

    Example:
        >>> hll = HyperLogLog(precision=12)
        >>> hll.add("element1")
        >>> hll.add(42)
        >>> hll.add("element1")  # Adding duplicates doesn't affect the count
        >>> estimated_count = hll.cardinality()

    """
    def __init__(self, precision: int = DEFAULT_PRECISION,
                 digest: Callable[[object], int] = digest64):
        self._config = EstimatorConfig.from_precision(precision)
        self._digest = digest
        self._reg = np.zeros(self._config.bucket_count, dtype=np.uint8)
        self.cached_cardinality = 0
        logger.debug(
            "HyperLogLog created: precision={}, buckets={}, alpha={:.6f}",
            self.precision, self.bucket_count, self.alpha
        )

    @classmethod
    def from_config(cls, config: EstimatorConfig,
                    digest: Callable[[object], int] = digest64) -> "HyperLogLog":
        """Build an estimator from a resolved configuration"""
        return cls(config.precision, digest=digest)

    @property
    def precision(self) -> int:
        return self._config.precision

    @property
    def bucket_count(self) -> int:
        return self._config.bucket_count

    @property
    def alpha(self) -> float:
        return self._config.alpha

    @property
    def registers(self) -> pa.UInt8Array:
        """Snapshot of the register bank"""
        return pa.array(self._reg.copy(), type=pa.uint8())

    @staticmethod
    def bucket_index(digest: int, precision: int) -> int:
        """Register selected by the top ``precision`` bits of ``digest``"""
        return digest >> (DIGEST_BITS - precision)

    @staticmethod
    def rho(digest: int, precision: int) -> int:
        """1 + leading zeros of the low ``64 - precision`` bits of ``digest``.

        An all-zero suffix has no set bit to find, so it maps to the largest
        possible value, ``64 - precision + 1``.
        """
        width = DIGEST_BITS - precision
        w = digest & ((1 << width) - 1)
        if w == 0:
            return width + 1
        return width - w.bit_length() + 1

    def _locate(self, key) -> tuple:
        h = self._digest(key)
        if isinstance(h, bool) or not isinstance(h, int) or not 0 <= h <= DIGEST_MAX:
            raise DigestFailure(key, f"digest {h!r} is not a 64-bit unsigned integer")
        return self.bucket_index(h, self.precision), self.rho(h, self.precision)

    def add(self, key):
        """Add key to cardinality estimate"""
        idx, rho = self._locate(key)
        if rho > self._reg[idx]:
            self._reg[idx] = rho

    def add_many(self, keys: Iterable):
        """Add every key of an iterable.

        All keys are digested before any register is touched: if one of them
        raises ``DigestFailure`` the register bank is left as it was.
        """
        located = [self._locate(key) for key in keys]
        if not located:
            return
        idx, rho = zip(*located)
        np.maximum.at(
            self._reg,
            np.fromiter(idx, dtype=np.intp, count=len(idx)),
            np.fromiter(rho, dtype=np.uint8, count=len(rho))
        )
        logger.debug("Added batch of {} keys", len(located))

    def add_column(self, column: Union[pa.Array, pa.ChunkedArray]):
        """Add the non-null values of an Arrow column.

        Nulls are skipped, as ``COUNT(DISTINCT x)`` ignores them. The batch is
        all-or-nothing in the same way as ``add_many``. Integer keys are
        hashed in the int64 domain, so a ``uint64`` column holding a value
        of ``2**63`` or more raises ``DigestFailure`` as a whole.
        """
        self.add_many(pc.drop_null(column).to_pylist())

    def compute_cardinality(self) -> int:
        """Recompute the estimate from the registers and cache it"""
        reg = self.registers
        if pc.max(reg).as_py() == 0:
            # Nothing inserted: every register is still at its initial 0
            self.cached_cardinality = 0
            return 0

        # Z = sum(2^-M[j]); untouched registers contribute 1 each
        z = pc.sum(pc.power(2.0, pc.negate(reg.cast(pa.float64())))).as_py()
        m = self.bucket_count
        self.cached_cardinality = math.floor(self.alpha * m * m / z)
        logger.debug("Estimated cardinality {} (Z={})", self.cached_cardinality, z)
        return self.cached_cardinality

    def cardinality(self) -> int:
        """Get cardinality estimate"""
        return self.compute_cardinality()

    def __len__(self) -> int:
        return self.cardinality()

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(precision={self.precision}, "
                f"cached_cardinality={self.cached_cardinality})")
