from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from .constants import LANE_EPSILON_MS
from .model import Task

LANE_EPSILON = timedelta(milliseconds=LANE_EPSILON_MS)


@dataclass(frozen=True)
class PlacedTask:
    task: Task
    lane: int


@dataclass(frozen=True)
class LanePacking:
    placed: tuple[PlacedTask, ...]
    lane_count: int

    def lanes(self) -> list[list[Task]]:
        grouped: list[list[Task]] = [[] for _ in range(self.lane_count)]
        for item in self.placed:
            grouped[item.lane].append(item.task)
        return grouped


def pack_lanes(tasks: list[Task], epsilon: timedelta = LANE_EPSILON) -> LanePacking:
    """Assign each task of one resource to the first lane that is free.

    A lane is free when its last task ended no later than ``epsilon`` after
    the candidate starts. Tasks are visited in start order; the sort is
    stable, so equal starts keep their incoming order.
    """
    lane_ends = []
    placed = []
    for task in sorted(tasks, key=lambda item: item.start):
        lane = -1
        for index, lane_end in enumerate(lane_ends):
            if lane_end <= task.start + epsilon:
                lane = index
                break
        if lane == -1:
            lane = len(lane_ends)
            lane_ends.append(task.end)
        else:
            lane_ends[lane] = task.end
        placed.append(PlacedTask(task=task, lane=lane))
    return LanePacking(placed=tuple(placed), lane_count=max(len(lane_ends), 1))
