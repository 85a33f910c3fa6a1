from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from PyQt6.QtCore import QRectF

from .constants import (
    DISPLAY_DATE_FORMAT,
    EXPORT_NAME_FORMAT,
    LABEL_WIDTH,
    SNAPSHOT_EXTRA_HEIGHT,
)
from .model import Task
from .view import TimelineView


def format_instant(instant: datetime | None, fmt: str = DISPLAY_DATE_FORMAT) -> str:
    if instant is None:
        return "—"
    return instant.astimezone().strftime(fmt)


def format_quantity(qty: float | None) -> str:
    if qty is None:
        return ""
    if float(qty).is_integer():
        return str(int(qty))
    return f"{qty:g}"


@dataclass(frozen=True)
class ExportRecord:
    id: str
    resource: str
    start: str
    end: str
    qty: str
    duration_minutes: int

    def as_row(self) -> list:
        return [self.id, self.resource, self.start, self.end, self.qty, self.duration_minutes]


def export_records(tasks, fmt: str = DISPLAY_DATE_FORMAT) -> list[ExportRecord]:
    return [
        ExportRecord(
            id=task.id,
            resource=task.resource,
            start=format_instant(task.start, fmt),
            end=format_instant(task.end, fmt),
            qty=format_quantity(task.qty),
            duration_minutes=task.duration_minutes(),
        )
        for task in tasks
    ]


def task_caption(task: Task, fmt: str = DISPLAY_DATE_FORMAT) -> str:
    qty = f" (Qty: {format_quantity(task.qty)})" if task.qty is not None else ""
    return (
        f"{task.id}{qty} — {format_instant(task.start, fmt)} → "
        f"{format_instant(task.end, fmt)} | {task.resource}"
    )


def snapshot_rect(view: TimelineView) -> QRectF:
    return QRectF(
        0.0,
        0.0,
        float(LABEL_WIDTH + view.total_width),
        float(view.content_height + SNAPSHOT_EXTRA_HEIGHT),
    )


def default_export_name(now: datetime | None = None, suffix: str = ".csv") -> str:
    now = now or datetime.now()
    return now.strftime(EXPORT_NAME_FORMAT) + suffix
