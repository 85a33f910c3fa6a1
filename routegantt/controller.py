from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable

from PyQt6.QtCore import QRectF

from .config import ChartConfig, default_config
from .constants import DEMO_QUERY, ZOOM_IN_FACTOR, ZOOM_OUT_FACTOR
from .export import ExportRecord, export_records, snapshot_rect
from .layout import ZoomStep
from .model import FieldMapping, Task, TimelineModel, TimeWindow
from .normalize import CANONICAL_LABELS, build_tasks, detect_mapping, resource_universe
from .persistence import TimelineLoadError, demo_rows, read_rows, write_export
from .view import TimelineView, compose_view, filter_resources

logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class TimelineController:
    """Owns the session model and the derived pipeline.

    Tasks are rebuilt when rows or mapping change; the view is rebuilt when
    tasks or the view state change. Both are recomputed in full.
    """

    def __init__(
        self,
        model: TimelineModel | None = None,
        config: ChartConfig | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.config = config or default_config()
        self.model = model or TimelineModel(scale=self.config.default_scale)
        self.clock = clock
        self._tasks: list[Task] | None = None
        self._view: TimelineView | None = None

        self.model.rows_changed.connect(self._invalidate_tasks)
        self.model.mapping_changed.connect(self._invalidate_tasks)
        self.model.model_reset.connect(self._invalidate_tasks)
        self.model.view_changed.connect(self._invalidate_view)

    def _invalidate_tasks(self) -> None:
        self._tasks = None
        self._view = None

    def _invalidate_view(self) -> None:
        self._view = None

    @property
    def tasks(self) -> list[Task]:
        if self._tasks is None:
            self._tasks = build_tasks(self.model.rows, self.model.mapping)
            logger.debug("Built %d tasks from %d rows", len(self._tasks), len(self.model.rows))
        return self._tasks

    @property
    def state(self):
        return self.model.state

    def view(self) -> TimelineView:
        if self._view is None:
            self._view = compose_view(self.tasks, self.model.state, now=self.clock())
        return self._view

    def resources(self, text: str = "") -> list[str]:
        return filter_resources(resource_universe(self.tasks), text)

    def load_csv(self, path: str | Path) -> int:
        try:
            rows, headers = read_rows(path)
        except TimelineLoadError as exc:
            logger.warning("Load failed, keeping previous data: %s", exc)
            raise
        self.load_rows(rows, headers)
        return len(self.tasks)

    def load_rows(
        self, rows: list[dict], headers: list[str], mapping: FieldMapping | None = None
    ) -> None:
        if mapping is None:
            mapping = detect_mapping(headers)
        self.model.set_rows(rows, headers, mapping)
        if not mapping.is_complete():
            logger.info("Mandatory columns not found in %s", headers)

    def load_demo(self) -> None:
        rows, headers = demo_rows()
        self.load_rows(rows, headers, FieldMapping(**CANONICAL_LABELS))
        self.set_query(DEMO_QUERY)

    def set_mapping_column(self, field_name: str, column: str | None) -> None:
        self.model.set_mapping(self.model.mapping.with_column(field_name, column))

    def set_query(self, query: str) -> None:
        self.model.set_state(self.model.state.with_query(query))

    def toggle_resource(self, resource: str) -> None:
        self.model.set_state(self.model.state.toggle_resource(resource))

    def set_selection(self, resources) -> None:
        self.model.set_state(self.model.state.with_selection(resources))

    def clear_selection(self) -> None:
        self.set_selection(())

    def set_window(self, time_from: datetime | None, time_to: datetime | None) -> None:
        self.model.set_state(self.model.state.with_window(TimeWindow(time_from, time_to)))

    def set_window_preset(self, days: int) -> None:
        self.model.set_state(self.model.state.with_window(TimeWindow.preset(days, self.clock())))

    def clear_window(self) -> None:
        self.model.set_state(self.model.state.with_window(None))

    def clear(self) -> None:
        self.model.reset()

    def reset_filters(self) -> None:
        state = self.model.state.with_query("").with_selection(()).with_window(None)
        self.model.set_state(state)

    def set_scale(self, scale: float) -> None:
        self.model.set_state(self.model.state.with_scale(scale))

    def set_scroll(self, scroll_x: float) -> None:
        self.model.set_state(self.model.state.with_scroll(scroll_x))

    def zoom_in(self) -> None:
        self.set_scale(self.model.state.scale * ZOOM_IN_FACTOR)

    def zoom_out(self) -> None:
        self.set_scale(self.model.state.scale * ZOOM_OUT_FACTOR)

    def zoom_at(self, cursor_x: float, factor: float) -> ZoomStep:
        """Apply one zoom step anchored at ``cursor_x`` in the viewport.

        Scale and scroll are read from the current state for every call, so
        repeated events compose on top of each other.
        """
        state = self.model.state
        step = self.view().scale.zoom_at(cursor_x, state.scroll_x, factor)
        if step.changed:
            self.model.set_state(state.with_scale(step.scale).with_scroll(step.scroll_x))
        return step

    def export_records(self) -> list[ExportRecord]:
        return export_records(self.view().tasks, self.config.date_format)

    def export_csv(self, path: str | Path) -> Path:
        rows = [record.as_row() for record in self.export_records()]
        written = write_export(
            path, rows, delimiter=self.config.export_delimiter, bom=self.config.export_bom
        )
        logger.info("Exported %d tasks to %s", len(rows), written)
        return written

    def snapshot_rect(self) -> QRectF:
        return snapshot_rect(self.view())
