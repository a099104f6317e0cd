import os
from dataclasses import dataclass
from typing import Optional

ENV_SOURCE_FILE = "ZPOOL_INFLUXDB_SOURCE_FILE"
ENV_SOURCE_COMMAND = "ZPOOL_INFLUXDB_SOURCE_COMMAND"
ENV_LOG_LEVEL = "ZPOOL_INFLUXDB_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    """
    Everything a sampling pass needs to know, fixed for the life of the
    process.

    unsigned_int picks full uint64 output ("u" suffix). The default is the
    signed, 63-bit masked output that every influxdb version accepts.
    """
    pool_name: Optional[str] = None
    execd: bool = False
    no_histograms: bool = False
    sum_histogram_buckets: bool = False
    unsigned_int: bool = False
    source_file: Optional[str] = None
    source_command: Optional[str] = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_args(cls, args, environ=None) -> "Settings":
        env = os.environ if environ is None else environ
        source_file = args.source_file
        source_command = args.source_command
        # command line wins over the environment, file wins over command
        if not source_file and not source_command:
            source_file = env.get(ENV_SOURCE_FILE) or None
            if not source_file:
                source_command = env.get(ENV_SOURCE_COMMAND) or None
        return cls(
            pool_name=args.poolname,
            execd=args.execd,
            no_histograms=args.no_histograms,
            sum_histogram_buckets=args.sum_histogram_buckets,
            unsigned_int=args.unsigned_int,
            source_file=source_file,
            source_command=source_command,
            log_level=(args.log_level or env.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper(),
        )
