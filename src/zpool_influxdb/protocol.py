"""
InfluxDB line protocol encoding.

    measurement,tag=value,... field=value,... timestamp

Integer fields are written either as unsigned ("123u"), which telegraf and
influxdb 2.x accept, or as signed ("123i"). Signed output masks every value
with INT64_MAX first, so counters above 2**63 - 1 lose their top bit. That is
the price of staying readable by influxdb 1.x without uint64 support.
"""
from typing import Sequence, Tuple, Union

INT64_MAX = (1 << 63) - 1
UINT64_MOD = 1 << 64

POOL_MEASUREMENT = "zpool_stats"
SCAN_MEASUREMENT = "zpool_scan_stats"
VDEV_MEASUREMENT = "zpool_vdev_stats"
POOL_LATENCY_MEASUREMENT = "zpool_latency"
POOL_IO_SIZE_MEASUREMENT = "zpool_io_size"
POOL_QUEUE_MEASUREMENT = "zpool_vdev_queue"

FieldValue = Union[int, float]
Tags = Sequence[Tuple[str, str]]
Fields = Sequence[Tuple[str, FieldValue]]

_ESCAPES = str.maketrans({
    " ": "\\ ",
    ",": "\\,",
    "=": "\\=",
    "\\": "\\\\",
})


def escape(text: str) -> str:
    """
    Escape a tag value: space, comma, equals and backslash get a backslash.
    Pool names and device paths may contain any of them.
    """
    return text.translate(_ESCAPES)


def format_int(value: int, unsigned: bool = False) -> str:
    if unsigned:
        # differences like space - alloc can go negative, wrap them like uint64
        return f"{value % UINT64_MOD}u"
    return f"{value & INT64_MAX}i"


def format_field(value: FieldValue, unsigned: bool = False) -> str:
    if isinstance(value, float):
        return f"{value:.2f}"
    return format_int(value, unsigned)


def _check_unique(kind: str, pairs) -> None:
    keys = [k for k, _ in pairs]
    if len(set(keys)) != len(keys):
        raise ValueError(f"duplicate {kind} key in {keys}")


def encode_line(measurement: str, tags: Tags, fields: Fields, timestamp: int,
                unsigned: bool = False) -> str:
    """
    Render one record. Tags and fields keep the order they are given in,
    which is what keeps the per-measurement schema stable.
    """
    if not fields:
        raise ValueError(f"{measurement} needs at least one field")
    _check_unique("tag", tags)
    _check_unique("field", fields)

    head = measurement
    if tags:
        head += "," + ",".join(f"{key}={escape(value)}" for key, value in tags)
    body = ",".join(f"{key}={format_field(value, unsigned)}" for key, value in fields)
    return f"{head} {body} {timestamp}\n"
