"""
Sample every pool (or the one asked for) and write its metrics.

A pool that fails is skipped and the batch goes on. The status of a pass is
the status of the last pool sampled, so an early failure is hidden by a
later success. The exit status only ever describes one pool.
"""
import logging
import time
from enum import Enum
from typing import Callable, Iterable, Optional, TextIO

from . import nvtree
from .errors import ExitStatus, PoolListError, PoolRefreshError, SchemaLookupError
from .histogram import LATENCY_HISTOGRAMS, SIZE_HISTOGRAMS
from .models import Pool
from .protocol import POOL_MEASUREMENT, encode_line
from .scan import compute_progress, read_scan_stats, scan_line
from .settings import Settings
from .source import PoolSource
from .vdev import QUEUE_CLASSES, PassContext, latency_lines, queue_lines, size_lines, top_level_line, walk

LOG = logging.getLogger(__name__)

NS_PER_SEC = 1_000_000_000

_STATS_KEYS = frozenset(
    [nvtree.VDEV_STATS]
    + [hc.key for hc in LATENCY_HISTOGRAMS + SIZE_HISTOGRAMS]
    + [qc.key for qc in QUEUE_CLASSES]
)


class SamplerState(Enum):
    INIT = "init"
    REFRESHING = "refreshing"
    READING = "reading"
    EMITTING = "emitting"
    CLOSED = "closed"


def lookup_status(error: SchemaLookupError) -> ExitStatus:
    if error.key == nvtree.VDEV_STATS_EX:
        return ExitStatus.STATS_EX
    if error.key in _STATS_KEYS:
        return ExitStatus.VDEV_STATS
    return ExitStatus.CONFIG_LOOKUP


def summary_line(pool: Pool, timestamp: int, unsigned: bool = False) -> str:
    vs = pool.stats
    tags = [("name", pool.name), ("state", pool.state)]
    fields = [
        ("alloc", vs.alloc),
        ("free", vs.free),
        ("size", vs.space),
        ("read_bytes", vs.read_bytes),
        ("read_errors", vs.read_errors),
        ("read_ops", vs.read_ops),
        ("write_bytes", vs.write_bytes),
        ("write_errors", vs.write_errors),
        ("write_ops", vs.write_ops),
        ("checksum_errors", vs.checksum_errors),
        ("fragmentation", vs.fragmentation),
    ]
    return encode_line(POOL_MEASUREMENT, tags, fields, timestamp, unsigned)


class PoolSampler:

    def __init__(self, source: PoolSource, settings: Settings, out: TextIO,
                 clock: Callable[[], int] = time.time_ns):
        self.source = source
        self.settings = settings
        self.out = out
        self.clock = clock
        self.state = SamplerState.INIT

    def _set_state(self, state: SamplerState) -> None:
        self.state = state
        LOG.debug("sampler %s", state.value)

    def _write(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.out.write(line)

    def sample_pool(self, name: str) -> ExitStatus:
        """
        Refresh one pool and write all of its lines, stopping at the first
        error. Lines written before the error stay written.
        """
        self._set_state(SamplerState.REFRESHING)
        try:
            self.source.refresh(name)
        except PoolRefreshError as e:
            LOG.error("%s", e)
            return e.exit_status

        timestamp = self.clock()

        self._set_state(SamplerState.READING)
        try:
            pool = Pool.from_config(name, self.source.config(name))
        except SchemaLookupError as e:
            LOG.error("pool %s: %s", name, e)
            return lookup_status(e)

        self._set_state(SamplerState.EMITTING)
        try:
            self._emit(pool, timestamp)
        except SchemaLookupError as e:
            LOG.error("pool %s: %s", name, e)
            return lookup_status(e)
        return ExitStatus.OK

    def _emit(self, pool: Pool, timestamp: int) -> None:
        unsigned = self.settings.unsigned_int
        ctx = PassContext(pool_name=pool.name, timestamp=timestamp, settings=self.settings)

        self._write([summary_line(pool, timestamp, unsigned)])

        ps = read_scan_stats(pool.root.config)
        if ps is None:
            LOG.debug("pool %s has no scan stats", pool.name)
        else:
            progress = compute_progress(ps, timestamp // NS_PER_SEC)
            if progress is not None:
                self._write([scan_line(progress, pool.name, timestamp, unsigned)])

        self._write([top_level_line(pool.root, ctx)])

        if self.settings.no_histograms:
            return
        self._write(walk(latency_lines, pool.root, ctx))
        self._write(walk(size_lines, pool.root, ctx))
        self._write(walk(queue_lines, pool.root, ctx, descend=False))

    def run_pass(self) -> ExitStatus:
        status = ExitStatus.OK
        try:
            names = self.source.pool_names()
        except PoolListError as e:
            LOG.error("%s", e)
            self.out.flush()
            return e.exit_status
        wanted = self.settings.pool_name
        if wanted is not None and wanted not in names:
            LOG.warning("no such pool: %s", wanted)
        for name in names:
            if wanted is not None and name != wanted:
                continue
            status = self.sample_pool(name)
        self.out.flush()
        return status

    def run(self, triggers: Optional[Iterable[str]] = None) -> ExitStatus:
        """
        One pass, or with triggers (the lines of stdin in execd mode) one
        pass per trigger until they run out.
        """
        if triggers is None:
            return self.run_pass()
        status = ExitStatus.NO_PASS
        for _ in triggers:
            status = self.run_pass()
        return status

    def close(self) -> None:
        self.source.close()
        self._set_state(SamplerState.CLOSED)
