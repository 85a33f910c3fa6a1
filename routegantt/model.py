from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from PyQt6.QtCore import QObject, pyqtSignal

from .constants import (
    DEFAULT_SCALE,
    FIELD_END,
    FIELD_ID,
    FIELD_QTY,
    FIELD_RESOURCE,
    FIELD_START,
    FIELDS,
    MAX_SCALE,
    MIN_SCALE,
    REQUIRED_FIELDS,
)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_scale(value: float) -> int:
    return max(MIN_SCALE, min(MAX_SCALE, round_half_up(value)))


@dataclass(frozen=True)
class Task:
    id: str
    resource: str
    start: datetime
    end: datetime
    qty: float | None = None

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def duration_minutes(self) -> int:
        return round_half_up(self.duration.total_seconds() / 60.0)

    def overlaps(self, other: "Task", tolerance: timedelta = timedelta(0)) -> bool:
        return self.start + tolerance < other.end and other.start + tolerance < self.end


@dataclass(frozen=True)
class FieldMapping:
    id: str | None = None
    start: str | None = None
    end: str | None = None
    resource: str | None = None
    qty: str | None = None

    def column(self, field_name: str) -> str | None:
        if field_name not in FIELDS:
            raise ValueError(f"Unknown field: {field_name}")
        return getattr(self, field_name)

    def with_column(self, field_name: str, column: str | None) -> "FieldMapping":
        if field_name not in FIELDS:
            raise ValueError(f"Unknown field: {field_name}")
        return replace(self, **{field_name: column})

    def is_complete(self) -> bool:
        return all(self.column(name) for name in REQUIRED_FIELDS)

    def to_dict(self) -> dict:
        return {
            FIELD_ID: self.id,
            FIELD_START: self.start,
            FIELD_END: self.end,
            FIELD_RESOURCE: self.resource,
            FIELD_QTY: self.qty,
        }


@dataclass(frozen=True)
class TimeWindow:
    """Optional visibility bounds, independent of the zoom scale.

    A task is visible unless it ends at or before ``time_from`` or starts at
    or after ``time_to``. Unset bounds impose no constraint.
    """

    time_from: datetime | None = None
    time_to: datetime | None = None

    def __post_init__(self) -> None:
        # naive bounds are local time, like naive cells in the Normalizer
        for name in ("time_from", "time_to"):
            value = getattr(self, name)
            if value is not None and value.tzinfo is None:
                object.__setattr__(self, name, value.astimezone())

    @property
    def is_set(self) -> bool:
        return self.time_from is not None or self.time_to is not None

    def admits(self, task: Task) -> bool:
        if self.time_from is not None and task.end <= self.time_from:
            return False
        if self.time_to is not None and task.start >= self.time_to:
            return False
        return True

    @staticmethod
    def preset(days: int, now: datetime | None = None) -> "TimeWindow":
        now = now or datetime.now().astimezone()
        midnight = datetime(now.year, now.month, now.day)
        start = midnight.astimezone()
        end = (midnight + timedelta(days=days)).astimezone()
        return TimeWindow(start, end)


@dataclass(frozen=True)
class ViewState:
    scale: int = DEFAULT_SCALE
    window: TimeWindow = field(default_factory=TimeWindow)
    query: str = ""
    selected_resources: frozenset[str] = frozenset()
    scroll_x: float = 0.0

    def with_scale(self, scale: float) -> "ViewState":
        return replace(self, scale=clamp_scale(scale))

    def with_scroll(self, scroll_x: float) -> "ViewState":
        return replace(self, scroll_x=max(0.0, float(scroll_x)))

    def with_query(self, query: str) -> "ViewState":
        return replace(self, query=query or "")

    def with_window(self, window: TimeWindow | None) -> "ViewState":
        return replace(self, window=window or TimeWindow())

    def with_selection(self, resources) -> "ViewState":
        return replace(self, selected_resources=frozenset(resources or ()))

    def toggle_resource(self, resource: str) -> "ViewState":
        selected = set(self.selected_resources)
        if resource in selected:
            selected.remove(resource)
        else:
            selected.add(resource)
        return self.with_selection(selected)


class TimelineModel(QObject):
    model_reset = pyqtSignal()
    rows_changed = pyqtSignal()
    mapping_changed = pyqtSignal()
    view_changed = pyqtSignal()

    def __init__(self, scale: int = DEFAULT_SCALE) -> None:
        super().__init__()
        self.rows: list[dict] = []
        self.headers: list[str] = []
        self.mapping = FieldMapping()
        self.state = ViewState(scale=clamp_scale(scale))

    def set_rows(self, rows: list[dict], headers: list[str], mapping: FieldMapping) -> None:
        self.rows = list(rows)
        self.headers = list(headers)
        self.mapping = mapping
        self.rows_changed.emit()
        self.mapping_changed.emit()

    def set_mapping(self, mapping: FieldMapping) -> None:
        if mapping == self.mapping:
            return
        self.mapping = mapping
        self.mapping_changed.emit()

    def set_state(self, state: ViewState) -> None:
        if state == self.state:
            return
        self.state = state
        self.view_changed.emit()

    def reset(self) -> None:
        self.rows = []
        self.headers = []
        self.mapping = FieldMapping()
        self.state = ViewState(scale=self.state.scale)
        self.model_reset.emit()
