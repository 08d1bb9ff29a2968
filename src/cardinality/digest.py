import hashlib
from functools import singledispatch

import numpy as np

from cardinality.errors import DigestFailure

DIGEST_BITS = 64
DIGEST_MAX = (1 << DIGEST_BITS) - 1

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1


def _blake2b64(data: bytes, person: bytes) -> int:
    return int.from_bytes(
        hashlib.blake2b(data, digest_size=8, person=person).digest(),
        'big'
    )


@singledispatch
def digest64(key) -> int:
    """Map a key to a uniformly distributed 64-bit unsigned integer.

    Supported key types are ``int`` and numpy integer scalars (the int64
    range), ``str`` and ``bytes``.
    Each type hashes under its own personalization tag, so ``1`` and ``"1"``
    are different keys.

    Example:
        >>> digest64("a") == digest64("a")
        True
        >>> 0 <= digest64(42) < 2**64
        True

    Raises:
        DigestFailure: The key type is not supported.
    """
    raise DigestFailure(key, "unsupported key type")


@digest64.register
def _(key: bool) -> int:
    raise DigestFailure(key, "booleans are not integer keys")


@digest64.register
def _(key: int) -> int:
    if not _INT64_MIN <= key <= _INT64_MAX:
        raise DigestFailure(key, "integer outside the int64 range")
    return _blake2b64(key.to_bytes(8, 'little', signed=True), b'int64')


@digest64.register
def _(key: np.integer) -> int:
    # numpy scalars hash like the equal Python int
    return digest64(int(key))


@digest64.register
def _(key: str) -> int:
    try:
        data = key.encode('utf-8')
    except UnicodeEncodeError as exc:
        raise DigestFailure(key, str(exc)) from exc
    return _blake2b64(data, b'utf8')


@digest64.register
def _(key: bytes) -> int:
    return _blake2b64(key, b'bytes')
