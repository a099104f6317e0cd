"""
Latency and request size histograms.

Each histogram class is a uint64 array in vdev_stats_ex; bucket i counts
operations up to 2**i (nanoseconds for latency, bytes for size). All classes
of one family have the same number of buckets and are emitted side by side,
one row per bucket, one field per class.

The low buckets are mostly empty and not worth a row each, so everything
below a minimum index is folded into the first emitted bucket.
"""
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Tuple

from .errors import HistogramShapeError

MIN_LAT_INDEX = 10  # 1024ns
MIN_SIZE_INDEX = 9  # 512 bytes

INF_BOUND = "+Inf"


@dataclass(frozen=True)
class HistogramClass:
    key: str
    field: str


LATENCY_HISTOGRAMS = (
    HistogramClass("vdev_tot_r_lat_histo", "total_read"),
    HistogramClass("vdev_tot_w_lat_histo", "total_write"),
    HistogramClass("vdev_disk_r_lat_histo", "disk_read"),
    HistogramClass("vdev_disk_w_lat_histo", "disk_write"),
    HistogramClass("vdev_sync_r_lat_histo", "sync_read"),
    HistogramClass("vdev_sync_w_lat_histo", "sync_write"),
    HistogramClass("vdev_async_r_lat_histo", "async_read"),
    HistogramClass("vdev_async_w_lat_histo", "async_write"),
    HistogramClass("vdev_scrub_histo", "scrub"),
    HistogramClass("vdev_trim_histo", "trim"),
)

SIZE_HISTOGRAMS = (
    HistogramClass("vdev_sync_ind_r_histo", "sync_read_ind"),
    HistogramClass("vdev_sync_ind_w_histo", "sync_write_ind"),
    HistogramClass("vdev_async_ind_r_histo", "async_read_ind"),
    HistogramClass("vdev_async_ind_w_histo", "async_write_ind"),
    HistogramClass("vdev_ind_scrub_histo", "scrub_read_ind"),
    HistogramClass("vdev_sync_agg_r_histo", "sync_read_agg"),
    HistogramClass("vdev_sync_agg_w_histo", "sync_write_agg"),
    HistogramClass("vdev_async_agg_r_histo", "async_read_agg"),
    HistogramClass("vdev_async_agg_w_histo", "async_write_agg"),
    HistogramClass("vdev_agg_scrub_histo", "scrub_read_agg"),
    HistogramClass("vdev_ind_trim_histo", "trim_write_ind"),
    HistogramClass("vdev_agg_trim_histo", "trim_write_agg"),
)


def latency_bound(index: int) -> str:
    return "%0.6f" % ((1 << index) * 1e-9)


def size_bound(index: int) -> str:
    return str(1 << index)


def check_shapes(classes: Sequence[HistogramClass], arrays: Sequence[Sequence[int]]) -> None:
    """
    Raise HistogramShapeError unless every array has the length of the first.
    """
    if not arrays:
        return
    expected = len(arrays[0])
    for hc, array in zip(classes, arrays):
        if len(array) != expected:
            raise HistogramShapeError(hc.key, len(array), expected)


def accumulate(arrays: Sequence[Sequence[int]], min_index: int,
               cumulative: bool = False) -> Iterator[Tuple[int, List[int]]]:
    """
    Yield (bucket index, one value per class) for every bucket at or above
    min_index.

    Independent mode: a row holds the bucket's own count, except the first
    row which also carries everything folded in from below min_index.
    Cumulative mode: a row holds the running total, so the last row is the
    total count of the class.

    All arrays must have the same length; see check_shapes.
    """
    if not arrays:
        return
    sums = [0] * len(arrays)
    for bucket in range(len(arrays[0])):
        if bucket < min_index:
            for i, array in enumerate(arrays):
                sums[i] += array[bucket]
            continue
        for i, array in enumerate(arrays):
            if bucket <= min_index or cumulative:
                sums[i] += array[bucket]
            else:
                sums[i] = array[bucket]
        yield bucket, list(sums)
