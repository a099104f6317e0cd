from enum import IntEnum


class ExitStatus(IntEnum):
    OK = 0
    FAILURE = 1
    CONFIG_LOOKUP = 2
    VDEV_STATS = 3
    STATS_EX = 6
    NO_PASS = 8


class ZpoolInfluxError(Exception):
    exit_status = ExitStatus.FAILURE


class InitializationError(ZpoolInfluxError):
    """
    The pool source could not be set up. Fatal for the process.
    """


class PoolListError(ZpoolInfluxError):
    """
    The source could not tell which pools exist. Fails the whole pass.
    """


class PoolRefreshError(ZpoolInfluxError):
    exit_status = ExitStatus.FAILURE

    def __init__(self, pool: str, reason: str = "stats unavailable"):
        super().__init__(f"cannot refresh stats for pool {pool}: {reason}")
        self.pool = pool
        self.reason = reason


class SchemaLookupError(ZpoolInfluxError):
    """
    A required key of the pool config tree is missing or malformed.
    Aborts the pool being sampled, never the batch.
    """
    exit_status = ExitStatus.CONFIG_LOOKUP

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


class KeyNotFoundError(SchemaLookupError):
    def __init__(self, key: str):
        super().__init__(key, f"can't get {key}")


class WrongTypeError(SchemaLookupError):
    def __init__(self, key: str, expected: str, value=None):
        super().__init__(key, f"{key} is not a {expected}: {type(value).__name__}")
        self.expected = expected


class HistogramShapeError(SchemaLookupError):
    def __init__(self, key: str, length: int, expected: int):
        super().__init__(key, f"{key} has {length} buckets, expected {expected}")
