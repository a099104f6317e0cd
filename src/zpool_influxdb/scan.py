"""
Scrub/resilver progress, the way `zpool status` reports it, but as numbers
suitable for long-term tracking.
"""
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from . import nvtree
from .models import ScanFunction, ScanState, ScanStats
from .protocol import SCAN_MEASUREMENT, encode_line

LOG = logging.getLogger(__name__)

_UINT64_MOD = 1 << 64


@dataclass(frozen=True)
class ScanProgress:
    function: ScanFunction
    state: ScanState
    stats: ScanStats
    examined: int
    pass_examined: int
    pause_ts: int
    paused_time: int
    pct_done: float
    rate: int
    remaining_time: int


def read_scan_stats(nvroot: Mapping) -> Optional[ScanStats]:
    """
    None when the pool has never been scanned.
    """
    ps = nvtree.lookup_uint64_array(nvroot, nvtree.SCAN_STATS, None)
    if ps is None:
        return None
    return ScanStats.from_array(ps)


def compute_progress(ps: ScanStats, now: int) -> Optional[ScanProgress]:
    """
    Progress of the current (or last) scan pass. `now` is in seconds.

    Returns None when the state or function code is one we don't know,
    which newer kernels may report.
    """
    try:
        state = ScanState(ps.state)
        function = ScanFunction(ps.func)
    except ValueError:
        LOG.debug("ignoring scan stats with state=%d func=%d", ps.state, ps.func)
        return None

    # overall progress
    examined = ps.examined or 1
    pct_done = 0.0
    if ps.to_examine > 0:
        pct_done = 100.0 * examined / ps.to_examine

    paused_ts = ps.pass_scrub_pause
    paused_time = ps.pass_scrub_spent_paused
    pass_exam = ps.pass_exam or 1

    # this pass
    if state == ScanState.SCANNING:
        elapsed = max(now - ps.pass_start - paused_time, 1)
        rate = max(pass_exam // elapsed, 1)
        remaining_time = (ps.to_examine - examined // rate) % _UINT64_MOD
    else:
        elapsed = max(ps.end_time - ps.pass_start - paused_time, 1)
        rate = pass_exam // elapsed
        remaining_time = 0
    rate = rate or 1

    return ScanProgress(
        function=function,
        state=state,
        stats=ps,
        examined=examined,
        pass_examined=pass_exam,
        pause_ts=paused_ts,
        paused_time=paused_time,
        pct_done=pct_done,
        rate=rate,
        remaining_time=remaining_time,
    )


def scan_line(progress: ScanProgress, pool_name: str, timestamp: int,
              unsigned: bool = False) -> str:
    ps = progress.stats
    tags = [
        ("function", progress.function.label),
        ("name", pool_name),
        ("state", progress.state.label),
    ]
    fields = [
        ("end_ts", ps.end_time),
        ("errors", ps.errors),
        ("examined", progress.examined),
        ("pass_examined", progress.pass_examined),
        ("pause_ts", progress.pause_ts),
        ("paused_t", progress.paused_time),
        ("pct_done", progress.pct_done),
        ("processed", ps.processed),
        ("rate", progress.rate),
        ("remaining_t", progress.remaining_time),
        ("start_ts", ps.start_time),
        ("to_examine", ps.to_examine),
        ("to_process", ps.to_process),
    ]
    return encode_line(SCAN_MEASUREMENT, tags, fields, timestamp, unsigned)
