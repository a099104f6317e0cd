from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Mapping, Optional, Sequence

from . import nvtree
from .errors import WrongTypeError


class VdevState(IntEnum):
    UNKNOWN = 0
    CLOSED = 1
    OFFLINE = 2
    REMOVED = 3
    CANT_OPEN = 4
    FAULTED = 5
    DEGRADED = 6
    HEALTHY = 7


# vdev_aux_t values that change how CANT_OPEN is reported
VDEV_AUX_CORRUPT_DATA = 2
VDEV_AUX_BAD_LOG = 13
VDEV_AUX_SPLIT_POOL = 15


def pool_state_name(state: int, aux: int) -> str:
    """
    Same labels `zpool status` prints for a vdev state/aux pair.
    """
    if state in (VdevState.CLOSED, VdevState.OFFLINE):
        return "OFFLINE"
    if state == VdevState.REMOVED:
        return "REMOVED"
    if state == VdevState.CANT_OPEN:
        if aux in (VDEV_AUX_CORRUPT_DATA, VDEV_AUX_BAD_LOG):
            return "FAULTED"
        if aux == VDEV_AUX_SPLIT_POOL:
            return "SPLIT"
        return "UNAVAIL"
    if state == VdevState.FAULTED:
        return "FAULTED"
    if state == VdevState.DEGRADED:
        return "DEGRADED"
    if state == VdevState.HEALTHY:
        return "ONLINE"
    return "UNKNOWN"


class ScanState(Enum):
    NONE = 0
    SCANNING = 1
    FINISHED = 2
    CANCELED = 3

    @property
    def label(self) -> str:
        return self.name.lower()


class ScanFunction(Enum):
    NONE_REQUESTED = 0
    SCRUB = 1
    RESILVER = 2
    REBUILD = 3

    @property
    def label(self) -> str:
        return self.name.lower()


# vdev_stat_t offsets, in uint64 words
ZIO_TYPE_READ = 1
ZIO_TYPE_WRITE = 2
_VS_STATE = 1
_VS_AUX = 2
_VS_ALLOC = 3
_VS_SPACE = 4
_VS_OPS = 8
_VS_BYTES = 14
_VS_READ_ERRORS = 20
_VS_WRITE_ERRORS = 21
_VS_CHECKSUM_ERRORS = 22
_VS_FRAGMENTATION = 27


@dataclass(frozen=True)
class VdevStats:
    state: int
    aux: int
    alloc: int
    space: int
    read_ops: int
    write_ops: int
    read_bytes: int
    write_bytes: int
    read_errors: int
    write_errors: int
    checksum_errors: int
    fragmentation: int

    @property
    def free(self) -> int:
        return self.space - self.alloc

    @property
    def state_name(self) -> str:
        return pool_state_name(self.state, self.aux)

    @classmethod
    def from_array(cls, vs: Sequence[int]) -> "VdevStats":
        if len(vs) <= _VS_FRAGMENTATION:
            raise WrongTypeError(nvtree.VDEV_STATS, "vdev_stat_t", vs)
        return cls(
            state=vs[_VS_STATE],
            aux=vs[_VS_AUX],
            alloc=vs[_VS_ALLOC],
            space=vs[_VS_SPACE],
            read_ops=vs[_VS_OPS + ZIO_TYPE_READ],
            write_ops=vs[_VS_OPS + ZIO_TYPE_WRITE],
            read_bytes=vs[_VS_BYTES + ZIO_TYPE_READ],
            write_bytes=vs[_VS_BYTES + ZIO_TYPE_WRITE],
            read_errors=vs[_VS_READ_ERRORS],
            write_errors=vs[_VS_WRITE_ERRORS],
            checksum_errors=vs[_VS_CHECKSUM_ERRORS],
            fragmentation=vs[_VS_FRAGMENTATION],
        )


# pool_scan_stat_t field order
_SCAN_FIELDS = (
    "func", "state", "start_time", "end_time", "to_examine", "examined",
    "to_process", "processed", "errors", "pass_exam", "pass_start",
    "pass_scrub_pause", "pass_scrub_spent_paused",
)


@dataclass(frozen=True)
class ScanStats:
    func: int
    state: int
    start_time: int = 0
    end_time: int = 0
    to_examine: int = 0
    examined: int = 0
    to_process: int = 0
    processed: int = 0
    errors: int = 0
    pass_exam: int = 0
    pass_start: int = 0
    pass_scrub_pause: int = 0
    pass_scrub_spent_paused: int = 0

    @classmethod
    def from_array(cls, ps: Sequence[int]) -> "ScanStats":
        # older kernels don't have the pause fields, they read as 0
        if len(ps) < 2:
            raise WrongTypeError(nvtree.SCAN_STATS, "pool_scan_stat_t", ps)
        return cls(**dict(zip(_SCAN_FIELDS, ps)))


@dataclass
class Vdev:
    type: str
    id: int
    path: Optional[str] = None
    config: Mapping = field(default_factory=dict, repr=False)

    @classmethod
    def from_config(cls, nv: Mapping) -> "Vdev":
        return cls(
            type=nvtree.lookup_string(nv, nvtree.TYPE, "unknown"),
            id=nvtree.lookup_uint64(nv, nvtree.ID, nvtree.UINT64_MAX),
            path=nvtree.lookup_string(nv, nvtree.PATH, None),
            config=nv,
        )

    @property
    def children(self) -> List["Vdev"]:
        return [Vdev.from_config(c) for c in nvtree.lookup_tree_array(self.config, nvtree.CHILDREN, [])]

    @property
    def stats_ex(self) -> Mapping:
        return nvtree.lookup_tree(self.config, nvtree.VDEV_STATS_EX)


@dataclass
class Pool:
    name: str
    root: Vdev
    stats: VdevStats

    @property
    def state(self) -> str:
        return self.stats.state_name

    @classmethod
    def from_config(cls, name: str, config: Mapping) -> "Pool":
        nvroot = nvtree.lookup_tree(config, nvtree.VDEV_TREE)
        stats = VdevStats.from_array(nvtree.lookup_uint64_array(nvroot, nvtree.VDEV_STATS))
        return cls(name=name, root=Vdev.from_config(nvroot), stats=stats)
