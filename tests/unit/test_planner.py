"""
Unit test file.
"""

import unittest

from s3desk.s3.planner import ByteRange, Chunked, SingleShot, plan, split_ranges
from s3desk.types import SizeSuffix

MiB = 1024 * 1024


def _assert_partition(test: unittest.TestCase, ranges, file_size: int, part_size: int):
    offset = 0
    for i, r in enumerate(ranges):
        test.assertEqual(r.offset, offset)
        test.assertLessEqual(r.length, part_size)
        if i < len(ranges) - 1:
            test.assertEqual(r.length, part_size)
        offset = r.end
    test.assertEqual(offset, file_size)


class PlannerTests(unittest.TestCase):
    """Transfer planning."""

    def test_twelve_mib_in_five_mib_parts(self) -> None:
        strategy = plan(12 * MiB, 5 * MiB)
        assert isinstance(strategy, Chunked)
        self.assertEqual(
            list(strategy.ranges),
            [
                ByteRange(0, 5 * MiB),
                ByteRange(5 * MiB, 5 * MiB),
                ByteRange(10 * MiB, 2 * MiB),
            ],
        )
        self.assertEqual(strategy.num_parts(), 3)
        part_numbers = [n for n, _ in strategy.parts()]
        self.assertEqual(part_numbers, [1, 2, 3])

    def test_small_files_are_single_shot(self) -> None:
        for part_size in (1, 5 * MiB, 100 * MiB):
            strategy = plan(3 * MiB, part_size)
            self.assertEqual(strategy, SingleShot(file_size=3 * MiB))
        self.assertIsInstance(plan(0), SingleShot)
        self.assertIsInstance(plan(5 * MiB - 1), SingleShot)

    def test_exactly_min_part_size_is_one_part(self) -> None:
        strategy = plan(5 * MiB)
        assert isinstance(strategy, Chunked)
        self.assertEqual(strategy.ranges, (ByteRange(0, 5 * MiB),))

    def test_default_part_size(self) -> None:
        strategy = plan(11 * MiB)
        assert isinstance(strategy, Chunked)
        self.assertEqual(strategy.part_size, 5 * MiB)
        self.assertEqual(strategy.num_parts(), 3)

    def test_size_suffix_part_size(self) -> None:
        strategy = plan(12 * MiB, "6MB")
        assert isinstance(strategy, Chunked)
        self.assertEqual(strategy.part_size, 6 * MiB)
        self.assertEqual(strategy.num_parts(), 2)
        strategy = plan(12 * MiB, SizeSuffix("8M"))
        assert isinstance(strategy, Chunked)
        self.assertEqual(strategy.ranges[-1], ByteRange(8 * MiB, 4 * MiB))

    def test_chunked_ranges_partition_file(self) -> None:
        for file_size in (5 * MiB, 5 * MiB + 1, 10 * MiB, 12 * MiB + 7, 64 * MiB):
            for part_size in (1 * MiB, 3 * MiB + 1, 5 * MiB, 6 * MiB + 3, 16 * MiB):
                strategy = plan(file_size, part_size)
                assert isinstance(strategy, Chunked)
                _assert_partition(self, strategy.ranges, file_size, part_size)

    def test_split_ranges_partition_small_sizes(self) -> None:
        for file_size in (0, 1, 2, 10, 999, 1000):
            for part_size in (1, 3, 7, 1000, 5000):
                ranges = split_ranges(file_size, part_size)
                _assert_partition(self, ranges, file_size, part_size)

    def test_plan_is_deterministic(self) -> None:
        self.assertEqual(plan(37 * MiB + 5, 7 * MiB), plan(37 * MiB + 5, 7 * MiB))

    def test_invalid_inputs(self) -> None:
        with self.assertRaises(ValueError):
            plan(12 * MiB, 0)
        with self.assertRaises(ValueError):
            plan(-1)
        with self.assertRaises(ValueError):
            plan(12 * MiB, -1)

    def test_small_part_sizes_are_accepted(self) -> None:
        strategy = plan(12 * MiB, 1 * MiB)
        assert isinstance(strategy, Chunked)
        self.assertEqual(strategy.num_parts(), 12)
        self.assertEqual(strategy.ranges[-1], ByteRange(11 * MiB, MiB))

    def test_part_count_is_not_capped_by_planning(self) -> None:
        strategy = plan(10 * MiB, 1024)
        assert isinstance(strategy, Chunked)
        self.assertEqual(strategy.num_parts(), 10240)


if __name__ == "__main__":
    unittest.main()
