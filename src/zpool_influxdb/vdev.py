"""
Per-vdev histograms and queue gauges, walked recursively from the root vdev.

In many cases the pool-wide "root" view obscures what the top-level vdevs
are doing: a log, special or cache device can behave very differently from
the data vdevs, and a single slow disk hides inside a mirror. So the
histograms are emitted for every vdev in the tree. Queue depths are gauges
that change too fast to be worth much below the root, so they are not.
"""
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence, Tuple

from . import nvtree
from .histogram import (
    INF_BOUND, LATENCY_HISTOGRAMS, MIN_LAT_INDEX, MIN_SIZE_INDEX, SIZE_HISTOGRAMS,
    HistogramClass, accumulate, check_shapes, latency_bound, size_bound,
)
from .models import Vdev
from .protocol import (
    POOL_IO_SIZE_MEASUREMENT, POOL_LATENCY_MEASUREMENT, POOL_QUEUE_MEASUREMENT,
    VDEV_MEASUREMENT, encode_line,
)
from .settings import Settings


@dataclass(frozen=True)
class QueueClass:
    key: str
    field: str


QUEUE_CLASSES = (
    QueueClass("vdev_sync_r_active_queue", "sync_r_active"),
    QueueClass("vdev_sync_w_active_queue", "sync_w_active"),
    QueueClass("vdev_async_r_active_queue", "async_r_active"),
    QueueClass("vdev_async_w_active_queue", "async_w_active"),
    QueueClass("vdev_async_scrub_active_queue", "async_scrub_active"),
    QueueClass("vdev_sync_r_pend_queue", "sync_r_pend"),
    QueueClass("vdev_sync_w_pend_queue", "sync_w_pend"),
    QueueClass("vdev_async_r_pend_queue", "async_r_pend"),
    QueueClass("vdev_async_w_pend_queue", "async_w_pend"),
    QueueClass("vdev_async_scrub_pend_queue", "async_scrub_pend"),
)


@dataclass(frozen=True)
class PassContext:
    pool_name: str
    timestamp: int
    settings: Settings


Visitor = Callable[[Vdev, Optional[str], PassContext], Iterable[str]]


def vdev_name(vdev: Vdev, parent_name: Optional[str] = None) -> str:
    """
    Hierarchical name matching the top-level vdev names `zpool status`
    prints: "root", "root/mirror-0", "root/mirror-0/disk-1".
    """
    if parent_name is None:
        return vdev.type
    return f"{parent_name}/{vdev.type}-{vdev.id}"


def vdev_tags(vdev: Vdev, parent_name: Optional[str] = None) -> List[Tuple[str, str]]:
    # leaf vdevs have a path, it's more useful than the devid which Linux
    # doesn't always give us
    tags = []
    if vdev.path is not None:
        tags.append(("path", vdev.path))
    tags.append(("vdev", vdev_name(vdev, parent_name)))
    return tags


def walk(visitor: Visitor, vdev: Vdev, ctx: PassContext,
         parent_name: Optional[str] = None, descend: bool = True) -> Iterator[str]:
    """
    Yield the visitor's lines for vdev and, when descending, for all of its
    children in config order. An exception from the visitor stops the walk;
    whatever was yielded before stays yielded.
    """
    yield from visitor(vdev, parent_name, ctx)
    if not descend:
        return
    name = vdev_name(vdev, parent_name)
    for child in vdev.children:
        yield from walk(visitor, child, ctx, name, descend)


def _histogram_lines(measurement: str, classes: Sequence[HistogramClass], min_index: int,
                     bound: Callable[[int], str], vdev: Vdev, parent_name: Optional[str],
                     ctx: PassContext) -> List[str]:
    nv_ex = vdev.stats_ex
    arrays = [nvtree.lookup_uint64_array(nv_ex, hc.key) for hc in classes]
    check_shapes(classes, arrays)
    if not arrays:
        return []

    end = len(arrays[0]) - 1
    desc = vdev_tags(vdev, parent_name)
    lines = []
    for bucket, values in accumulate(arrays, min_index, ctx.settings.sum_histogram_buckets):
        le = INF_BOUND if bucket == end else bound(bucket)
        tags = [("le", le), ("name", ctx.pool_name)] + desc
        fields = [(hc.field, value) for hc, value in zip(classes, values)]
        lines.append(encode_line(measurement, tags, fields, ctx.timestamp,
                                 ctx.settings.unsigned_int))
    return lines


def latency_lines(vdev: Vdev, parent_name: Optional[str], ctx: PassContext) -> List[str]:
    return _histogram_lines(POOL_LATENCY_MEASUREMENT, LATENCY_HISTOGRAMS, MIN_LAT_INDEX,
                            latency_bound, vdev, parent_name, ctx)


def size_lines(vdev: Vdev, parent_name: Optional[str], ctx: PassContext) -> List[str]:
    return _histogram_lines(POOL_IO_SIZE_MEASUREMENT, SIZE_HISTOGRAMS, MIN_SIZE_INDEX,
                            size_bound, vdev, parent_name, ctx)


def _queue_fields(vdev: Vdev, suffix: str = "") -> List[Tuple[str, int]]:
    nv_ex = vdev.stats_ex
    return [(qc.field + suffix, nvtree.lookup_uint64(nv_ex, qc.key)) for qc in QUEUE_CLASSES]


def queue_lines(vdev: Vdev, parent_name: Optional[str], ctx: PassContext) -> List[str]:
    tags = [("name", ctx.pool_name)] + vdev_tags(vdev, parent_name)
    return [encode_line(POOL_QUEUE_MEASUREMENT, tags, _queue_fields(vdev), ctx.timestamp,
                        ctx.settings.unsigned_int)]


def top_level_line(root: Vdev, ctx: PassContext) -> str:
    """
    zpool_vdev_stats: the root vdev's queue depths, always emitted.
    """
    tags = [("name", ctx.pool_name), ("vdev", "root")]
    return encode_line(VDEV_MEASUREMENT, tags, _queue_fields(root, "_queue"), ctx.timestamp,
                       ctx.settings.unsigned_int)
