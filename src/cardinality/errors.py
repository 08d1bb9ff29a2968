class CardinalityError(Exception):
    """Base class for estimator errors"""


class InvalidConfiguration(CardinalityError, ValueError):
    """Estimator configuration is outside the supported range.

    Raised when the estimator is constructed or a configuration file is
    loaded, never later: an estimator that exists is always usable.
    """


class DigestFailure(CardinalityError, TypeError):
    """The digest producer could not hash a key.

    Attributes:
        key: The key that was rejected.
    """
    def __init__(self, key, reason: str):
        super().__init__(f"cannot digest {type(key).__name__} key {key!r}: {reason}")
        self.key = key
