import logging
import sys

LOG_FORMAT = "zpool_influxdb: %(levelname)s: %(message)s"


def setup_logging(level: str = "WARNING", stream=None) -> None:
    """
    Send diagnostics to stderr. stdout is reserved for line protocol, so
    nothing else may ever write there.
    """
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        handlers=[handler],
        force=True,
    )
