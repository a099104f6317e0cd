import argparse
import logging
import sys

from .errors import InitializationError
from .log import setup_logging
from .sampler import PoolSampler
from .settings import Settings
from .source import open_source

LOG = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="zpool_influxdb",
        description="Print ZFS pool statistics in influxdb line protocol",
    )
    parser.add_argument("-e", "--execd", action="store_true",
                        help="telegraf execd mode: print a sample for every line read from stdin")
    parser.add_argument("-n", "--no-histograms", action="store_true",
                        help="don't print latency, size and per-vdev queue histograms")
    parser.add_argument("-s", "--sum-histogram-buckets", action="store_true",
                        help="print cumulative histogram buckets")
    parser.add_argument("-u", "--unsigned-int", action="store_true",
                        help="print integers as uint64 instead of masking them to int64")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--source-file", help="JSON file of pool configs, re-read every pass")
    source.add_argument("--source-command", help="command printing pool configs as JSON")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR (default WARNING)")
    parser.add_argument("poolname", nargs="?", help="only sample this pool")
    return parser


def main(argv=None, stdin=None, stdout=None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_args(args)
    setup_logging(settings.log_level)

    try:
        source = open_source(settings)
    except InitializationError as e:
        LOG.error("%s", e)
        return int(e.exit_status)

    sampler = PoolSampler(source, settings, stdout if stdout is not None else sys.stdout)
    try:
        if settings.execd:
            status = sampler.run(stdin if stdin is not None else sys.stdin)
        else:
            status = sampler.run()
    finally:
        sampler.close()
    return int(status)


if __name__ == "__main__":
    sys.exit(main())
