from __future__ import annotations

import random
import unittest
from datetime import datetime, timedelta

from routegantt.lanes import LANE_EPSILON, pack_lanes
from routegantt.model import Task

BASE = datetime(2025, 1, 10, 6, 0).astimezone()


def task(name: str, start_min: float, end_min: float, resource: str = "A") -> Task:
    return Task(
        id=name,
        resource=resource,
        start=BASE + timedelta(minutes=start_min),
        end=BASE + timedelta(minutes=end_min),
    )


def lanes_of(packing) -> dict[str, int]:
    return {item.task.id: item.lane for item in packing.placed}


class TestLanePackerContract(unittest.TestCase):
    def test_sequential_tasks_share_one_lane(self) -> None:
        packing = pack_lanes([task("a", 0, 60), task("b", 60, 120), task("c", 130, 200)])
        self.assertEqual(packing.lane_count, 1)
        self.assertEqual(set(lanes_of(packing).values()), {0})

    def test_overlap_opens_lane_and_first_free_lane_is_reused(self) -> None:
        packing = pack_lanes([task("a", 0, 60), task("b", 30, 120), task("c", 60, 90), task("d", 100, 130)])
        self.assertEqual(lanes_of(packing), {"a": 0, "b": 1, "c": 0, "d": 0})
        self.assertEqual(packing.lane_count, 2)

    def test_epsilon_tolerance(self) -> None:
        within = pack_lanes([task("a", 0, 60.5), task("b", 60, 90)])
        self.assertEqual(within.lane_count, 1)
        exactly = pack_lanes([task("a", 0, 61), task("b", 60, 90)])
        self.assertEqual(exactly.lane_count, 1)
        beyond = pack_lanes([task("a", 0, 62), task("b", 60, 90)])
        self.assertEqual(beyond.lane_count, 2)

    def test_empty_input_reserves_one_lane(self) -> None:
        packing = pack_lanes([])
        self.assertEqual(packing.lane_count, 1)
        self.assertEqual(packing.placed, ())
        self.assertEqual(packing.lanes(), [[]])

    def test_equal_starts_keep_input_order(self) -> None:
        packing = pack_lanes([task("first", 0, 60), task("second", 0, 60), task("third", 0, 30)])
        self.assertEqual(lanes_of(packing), {"first": 0, "second": 1, "third": 2})
        self.assertEqual([item.task.id for item in packing.placed], ["first", "second", "third"])

    def test_input_is_sorted_by_start(self) -> None:
        packing = pack_lanes([task("late", 120, 180), task("early", 0, 60)])
        self.assertEqual([item.task.id for item in packing.placed], ["early", "late"])

    def test_no_lane_holds_overlapping_tasks(self) -> None:
        rng = random.Random(1234)
        tasks = []
        for index in range(300):
            start = rng.randint(0, 5000)
            tasks.append(task(str(index), start, start + rng.randint(1, 400)))
        packing = pack_lanes(tasks)
        for lane in packing.lanes():
            for i, left in enumerate(lane):
                for right in lane[i + 1:]:
                    self.assertFalse(left.overlaps(right, LANE_EPSILON), (left, right))
        self.assertEqual(packing, pack_lanes(tasks))


if __name__ == "__main__":
    unittest.main()
