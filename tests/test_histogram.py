import unittest

from zpool_influxdb.errors import HistogramShapeError
from zpool_influxdb.histogram import (
    LATENCY_HISTOGRAMS, MIN_LAT_INDEX, accumulate, check_shapes, latency_bound, size_bound,
)


class TestAccumulate(unittest.TestCase):

    def setUp(self):
        # scenario: idx9=5, idx10=3, idx11=2
        self.array = [0] * 9 + [5, 3, 2]

    def test_cumulative(self):
        rows = list(accumulate([self.array], MIN_LAT_INDEX, cumulative=True))
        self.assertEqual(rows, [(10, [8]), (11, [10])])

    def test_independent(self):
        rows = list(accumulate([self.array], MIN_LAT_INDEX))
        self.assertEqual(rows, [(10, [8]), (11, [2])])

    def test_cumulative_last_is_total(self):
        arrays = [list(range(20)), [3] * 20]
        for min_index in (0, 5, 10, 19):
            rows = list(accumulate(arrays, min_index, cumulative=True))
            self.assertEqual(rows[-1][1], [sum(arrays[0]), sum(arrays[1])])

    def test_independent_first_row_folds_low_buckets(self):
        array = [1, 2, 4, 8, 16, 32]
        rows = list(accumulate([array], 3))
        self.assertEqual(rows, [(3, [15]), (4, [16]), (5, [32])])

    def test_one_value_per_class(self):
        rows = list(accumulate([[1] * 12, [2] * 12, [3] * 12], 10))
        self.assertEqual(rows[0], (10, [11, 22, 33]))
        self.assertEqual(rows[1], (11, [1, 2, 3]))

    def test_too_short_emits_nothing(self):
        self.assertEqual(list(accumulate([[1] * 5], 10)), [])
        self.assertEqual(list(accumulate([], 10)), [])


class TestShapes(unittest.TestCase):

    def test_equal_lengths(self):
        check_shapes(LATENCY_HISTOGRAMS[:2], [[0] * 4, [0] * 4])

    def test_unequal_lengths(self):
        with self.assertRaises(HistogramShapeError) as cm:
            check_shapes(LATENCY_HISTOGRAMS[:2], [[0] * 4, [0] * 5])
        self.assertEqual(cm.exception.key, LATENCY_HISTOGRAMS[1].key)


class TestBounds(unittest.TestCase):

    def test_latency_in_seconds(self):
        self.assertEqual(latency_bound(10), "0.000001")
        self.assertEqual(latency_bound(20), "0.001049")
        self.assertEqual(latency_bound(30), "1.073742")

    def test_size_in_bytes(self):
        self.assertEqual(size_bound(9), "512")
        self.assertEqual(size_bound(17), "131072")


if __name__ == '__main__':
    unittest.main()
