import unittest

from zpool_influxdb.errors import HistogramShapeError, KeyNotFoundError
from zpool_influxdb.models import Vdev
from zpool_influxdb.settings import Settings
from zpool_influxdb.vdev import (
    PassContext, latency_lines, queue_lines, size_lines, top_level_line, vdev_name, vdev_tags, walk,
)

from nvfixtures import LAT_BUCKETS, SIZE_BUCKETS, mirror_pool, stats_ex, vdev


def tag(line, key):
    head = line.split(" ")[0]
    for part in head.split(",")[1:]:
        k, v = part.split("=", 1)
        if k == key:
            return v
    return None


def fields(line):
    return dict(part.split("=") for part in line.split(" ")[1].split(","))


class TestNames(unittest.TestCase):

    def test_root_has_no_parent(self):
        self.assertEqual(vdev_name(Vdev.from_config(vdev("root"))), "root")

    def test_child(self):
        child = Vdev.from_config(vdev("mirror", 2))
        self.assertEqual(vdev_name(child, "root"), "root/mirror-2")

    def test_missing_type_and_id(self):
        child = Vdev.from_config({})
        self.assertEqual(vdev_name(child, "root"), "root/unknown-18446744073709551615")

    def test_path_tag_only_for_leaves(self):
        leaf = Vdev.from_config(vdev("disk", 1, path="/dev/sdb1"))
        self.assertEqual(vdev_tags(leaf, "root"), [("path", "/dev/sdb1"), ("vdev", "root/disk-1")])
        self.assertEqual(vdev_tags(Vdev.from_config(vdev("mirror", 0)), "root"),
                         [("vdev", "root/mirror-0")])


class TestWalk(unittest.TestCase):

    def setUp(self):
        self.root = Vdev.from_config(mirror_pool()["vdev_tree"])
        self.ctx = PassContext(pool_name="tank", timestamp=99, settings=Settings())

    def test_visits_every_node_once(self):
        seen = []

        def visitor(v, parent, ctx):
            seen.append(vdev_name(v, parent))
            return [f"{vdev_name(v, parent)}\n"]

        lines = list(walk(visitor, self.root, self.ctx))
        self.assertEqual(seen, [
            "root", "root/mirror-0", "root/mirror-0/disk-0", "root/mirror-0/disk-1", "root/disk-1",
        ])
        self.assertEqual(len(lines), 5)

    def test_no_descend(self):
        lines = list(walk(queue_lines, self.root, self.ctx, descend=False))
        self.assertEqual(len(lines), 1)
        self.assertTrue(lines[0].startswith("zpool_vdev_queue,name=tank,vdev=root "))
        self.assertEqual(list(fields(lines[0])), [
            "sync_r_active", "sync_w_active", "async_r_active", "async_w_active", "async_scrub_active",
            "sync_r_pend", "sync_w_pend", "async_r_pend", "async_w_pend", "async_scrub_pend",
        ])

    def test_failure_keeps_earlier_lines(self):
        del self.root.config["children"][1]["vdev_stats_ex"]
        written = []
        with self.assertRaises(KeyNotFoundError) as cm:
            for line in walk(queue_lines, self.root, self.ctx):
                written.append(line)
        self.assertEqual(cm.exception.key, "vdev_stats_ex")
        self.assertEqual(len(written), 4)


class TestHistogramLines(unittest.TestCase):

    def ctx(self, **kwargs):
        return PassContext(pool_name="tank", timestamp=7, settings=Settings(**kwargs))

    def test_latency_rows(self):
        lat = [0] * LAT_BUCKETS
        lat[9], lat[10], lat[11] = 5, 3, 2
        v = Vdev.from_config(vdev("disk", 0, path="/dev/sda1", ex=stats_ex(latency={"total_read": lat})))
        lines = latency_lines(v, "root", self.ctx())
        self.assertEqual(len(lines), LAT_BUCKETS - 10)
        self.assertEqual(lines[0].split(" ")[0],
                         "zpool_latency,le=0.000001,name=tank,path=/dev/sda1,vdev=root/disk-0")
        self.assertEqual(fields(lines[0])["total_read"], "8i")
        self.assertEqual(fields(lines[1])["total_read"], "2i")
        self.assertEqual(tag(lines[-1], "le"), "+Inf")
        self.assertEqual(list(fields(lines[0])), [
            "total_read", "total_write", "disk_read", "disk_write", "sync_read", "sync_write",
            "async_read", "async_write", "scrub", "trim",
        ])

    def test_latency_cumulative(self):
        lat = [0] * LAT_BUCKETS
        lat[9], lat[10], lat[11] = 5, 3, 2
        v = Vdev.from_config(vdev("root", ex=stats_ex(latency={"disk_write": lat})))
        lines = latency_lines(v, None, self.ctx(sum_histogram_buckets=True, unsigned_int=True))
        self.assertEqual(fields(lines[0])["disk_write"], "8u")
        self.assertEqual(fields(lines[1])["disk_write"], "10u")
        self.assertEqual(fields(lines[-1])["disk_write"], "10u")

    def test_size_rows(self):
        v = Vdev.from_config(vdev("root"))
        lines = size_lines(v, None, self.ctx())
        self.assertEqual(len(lines), SIZE_BUCKETS - 9)
        self.assertEqual(lines[0].split(" ")[0], "zpool_io_size,le=512,name=tank,vdev=root")
        self.assertEqual(tag(lines[-1], "le"), "+Inf")
        self.assertEqual(list(fields(lines[0])), [
            "sync_read_ind", "sync_write_ind", "async_read_ind", "async_write_ind", "scrub_read_ind",
            "sync_read_agg", "sync_write_agg", "async_read_agg", "async_write_agg", "scrub_read_agg",
            "trim_write_ind", "trim_write_agg",
        ])

    def test_unequal_arrays(self):
        ex = stats_ex(size={"sync_read_ind": [0] * (SIZE_BUCKETS + 1)})
        v = Vdev.from_config(vdev("root", ex=ex))
        with self.assertRaises(HistogramShapeError):
            size_lines(v, None, self.ctx())

    def test_missing_histogram(self):
        ex = stats_ex()
        del ex["vdev_trim_histo"]
        v = Vdev.from_config(vdev("root", ex=ex))
        with self.assertRaises(KeyNotFoundError):
            latency_lines(v, None, self.ctx())


class TestQueueLines(unittest.TestCase):

    def test_top_level(self):
        v = Vdev.from_config(vdev("root", ex=stats_ex(queues={"sync_r_active": 4, "async_w_pend": 2})))
        ctx = PassContext(pool_name="tank", timestamp=7, settings=Settings())
        line = top_level_line(v, ctx)
        self.assertTrue(line.startswith("zpool_vdev_stats,name=tank,vdev=root sync_r_active_queue=4i,"))
        self.assertEqual(fields(line)["async_w_pend_queue"], "2i")
        self.assertEqual(list(fields(line)), [
            "sync_r_active_queue", "sync_w_active_queue", "async_r_active_queue",
            "async_w_active_queue", "async_scrub_active_queue", "sync_r_pend_queue",
            "sync_w_pend_queue", "async_r_pend_queue", "async_w_pend_queue",
            "async_scrub_pend_queue",
        ])


if __name__ == '__main__':
    unittest.main()
