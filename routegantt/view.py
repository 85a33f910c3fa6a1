from __future__ import annotations

from bisect import bisect_right
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
import math

from PyQt6.QtGui import QColor

from .constants import (
    AXIS_DAY_FORMAT,
    AXIS_LABEL_FORMAT,
    BAR_BASE_HEIGHT,
    BAR_LARGE_HEIGHT,
    BAR_LARGE_WIDTH,
    BAR_MEDIUM_HEIGHT,
    BAR_MEDIUM_WIDTH,
    BAR_MIN_WIDTH,
    CONNECTOR_ELBOW,
    DOMAIN_MARGIN_HOURS,
    EMPTY_DOMAIN_HOURS,
    EMPTY_ROW_HEIGHT,
    HEADER_LABEL_EVERY,
    LANE_GAP,
    MIN_TIMELINE_WIDTH,
    MS_PER_HOUR,
    RESOURCE_LIGHTNESS,
    RESOURCE_SATURATION,
    ROW_PADDING_Y,
)
from .lanes import pack_lanes
from .layout import TimeScale
from .model import Task, TimeWindow, ViewState
from .normalize import resource_universe

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Domain:
    start: datetime
    end: datetime

    def contains(self, instant: datetime) -> bool:
        return self.start <= instant <= self.end


@dataclass(frozen=True)
class LanedTask:
    task: Task
    lane: int
    left: float
    top: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.left + self.width

    @property
    def center_y(self) -> float:
        return self.top + (self.height / 2.0)


@dataclass(frozen=True)
class RowLayout:
    resource: str
    y: float
    height: float
    lane_count: int
    lane_tops: tuple[float, ...]
    lane_heights: tuple[float, ...]
    color: str
    tasks: tuple[LanedTask, ...]


@dataclass(frozen=True)
class RouteStep:
    task: Task
    geometry: LanedTask


@dataclass(frozen=True)
class Connector:
    points: tuple[tuple[float, float], ...]

    def path(self) -> str:
        head, *tail = self.points
        parts = [f"M {head[0]:g} {head[1]:g}"]
        parts.extend(f"L {x:g} {y:g}" for x, y in tail)
        return " ".join(parts)


@dataclass(frozen=True)
class AxisTicks:
    minor: tuple[datetime, ...]
    major: tuple[datetime, ...]

    def header_ticks(self) -> tuple[datetime, ...]:
        return self.minor[::HEADER_LABEL_EVERY]

    @staticmethod
    def label(instant: datetime) -> str:
        return instant.strftime(AXIS_LABEL_FORMAT)

    @staticmethod
    def day_label(instant: datetime) -> str:
        return instant.strftime(AXIS_DAY_FORMAT)


@dataclass(frozen=True)
class TimelineView:
    tasks: tuple[Task, ...]
    route: tuple[Task, ...]
    resources: tuple[str, ...]
    rows: tuple[RowLayout, ...]
    domain: Domain
    scale: TimeScale
    ticks: AxisTicks
    route_steps: tuple[RouteStep, ...]
    connectors: tuple[Connector, ...]
    total_width: int
    content_height: float
    now_x: float | None

    @property
    def route_active(self) -> bool:
        return bool(self.route)

    def row_for(self, resource: str) -> RowLayout | None:
        for row in self.rows:
            if row.resource == resource:
                return row
        return None

    def row_at_y(self, y: float) -> RowLayout | None:
        if y < 0 or not self.rows:
            return None
        ends = [row.y + row.height for row in self.rows]
        index = bisect_right(ends, y)
        if index >= len(self.rows):
            return None
        return self.rows[index]


def resource_color(resource: str) -> str:
    hue = 0
    for char in resource:
        hue = (hue * 31 + ord(char)) % 360
    return QColor.fromHslF(hue / 360.0, RESOURCE_SATURATION, RESOURCE_LIGHTNESS).name()


def filter_resources(universe: list[str], text: str) -> list[str]:
    needle = (text or "").strip().lower()
    if not needle:
        return list(universe)
    return [resource for resource in universe if needle in resource.lower()]


def find_route(tasks: list[Task], query: str) -> list[Task]:
    """Tasks making up the route for ``query``, oldest first.

    Exact case-insensitive identifier matches win; only when there are none
    does a substring match form the route.
    """
    needle = (query or "").strip().lower()
    if not needle:
        return []
    exact = [task for task in tasks if task.id.lower() == needle]
    if exact:
        return sorted(exact, key=lambda task: task.start)
    partial = [task for task in tasks if needle in task.id.lower()]
    return sorted(partial, key=lambda task: task.start)


def filter_tasks(tasks: list[Task], state: ViewState, route: list[Task]) -> list[Task]:
    base = route if route else tasks
    if state.selected_resources:
        base = [task for task in base if task.resource in state.selected_resources]
    needle = state.query.strip().lower()
    if not route and needle:
        base = [task for task in base if needle in task.id.lower()]
    return [task for task in base if state.window.admits(task)]


def compute_domain(
    source: list[Task], window: TimeWindow, now: datetime
) -> Domain:
    if not source:
        start = window.time_from or now - timedelta(hours=EMPTY_DOMAIN_HOURS)
        end = window.time_to or now + timedelta(hours=EMPTY_DOMAIN_HOURS)
        return Domain(start, end)
    start = min(task.start for task in source)
    end = max(task.end for task in source)
    if window.time_from is not None:
        start = min(start, window.time_from)
    if window.time_to is not None:
        end = max(end, window.time_to)
    margin = timedelta(hours=DOMAIN_MARGIN_HOURS)
    return Domain(start - margin, end + margin)


def axis_ticks(domain: Domain) -> AxisTicks:
    hour = timedelta(hours=1)
    start_ms = domain.start.timestamp() * 1000.0
    first_ms = math.ceil(start_ms / MS_PER_HOUR) * MS_PER_HOUR
    tick = datetime.fromtimestamp(first_ms / 1000.0, tz=timezone.utc)
    minor = []
    while tick <= domain.end:
        minor.append(tick.astimezone())
        tick += hour
    local = domain.start.astimezone()
    day = datetime(local.year, local.month, local.day)
    if day.astimezone() < domain.start:
        day += timedelta(days=1)
    major = []
    while day.astimezone() <= domain.end:
        major.append(day.astimezone())
        day += timedelta(days=1)
    return AxisTicks(minor=tuple(minor), major=tuple(major))


def bar_height(width: float) -> int:
    if width >= BAR_LARGE_WIDTH:
        return BAR_LARGE_HEIGHT
    if width >= BAR_MEDIUM_WIDTH:
        return BAR_MEDIUM_HEIGHT
    return BAR_BASE_HEIGHT


def bar_width(task: Task, scale: TimeScale) -> float:
    return max(BAR_MIN_WIDTH, scale.width_for(task.start, task.end))


def _layout_row(resource: str, tasks: list[Task], y: float, scale: TimeScale) -> RowLayout:
    if not tasks:
        return RowLayout(
            resource=resource,
            y=y,
            height=EMPTY_ROW_HEIGHT,
            lane_count=1,
            lane_tops=(float(ROW_PADDING_Y),),
            lane_heights=(float(BAR_BASE_HEIGHT),),
            color=resource_color(resource),
            tasks=(),
        )
    packing = pack_lanes(tasks)
    lane_heights = [float(BAR_BASE_HEIGHT)] * packing.lane_count
    for item in packing.placed:
        height = bar_height(bar_width(item.task, scale))
        lane_heights[item.lane] = max(lane_heights[item.lane], height)
    lane_tops = []
    offset = float(ROW_PADDING_Y)
    for height in lane_heights:
        lane_tops.append(offset)
        offset += height + LANE_GAP
    total_height = offset - LANE_GAP + ROW_PADDING_Y
    laned = tuple(
        LanedTask(
            task=item.task,
            lane=item.lane,
            left=scale.x_for_time(item.task.start),
            top=y + lane_tops[item.lane],
            width=bar_width(item.task, scale),
            height=lane_heights[item.lane],
        )
        for item in packing.placed
    )
    return RowLayout(
        resource=resource,
        y=y,
        height=total_height,
        lane_count=packing.lane_count,
        lane_tops=tuple(lane_tops),
        lane_heights=tuple(lane_heights),
        color=resource_color(resource),
        tasks=laned,
    )


def resources_to_render(
    universe: list[str], route: list[Task], selected: frozenset[str]
) -> list[str]:
    if route:
        ordered = []
        for task in route:
            if task.resource not in ordered:
                ordered.append(task.resource)
        return ordered
    if selected:
        return [resource for resource in universe if resource in selected]
    return list(universe)


def route_connectors(steps: list[RouteStep]) -> list[Connector]:
    connectors = []
    for previous, current in zip(steps, steps[1:]):
        x1 = previous.geometry.right
        y1 = previous.geometry.center_y
        x2 = current.geometry.left
        y2 = current.geometry.center_y
        mid_x = min(x1 + CONNECTOR_ELBOW, (x1 + x2) / 2.0)
        connectors.append(Connector(points=((x1, y1), (mid_x, y1), (mid_x, y2), (x2, y2))))
    return connectors


def compose_view(
    tasks: list[Task], state: ViewState, now: datetime | None = None
) -> TimelineView:
    """Derive everything the renderer paints from the canonical tasks.

    ``tasks`` must be in canonical order. The result depends only on the
    arguments; nothing is cached here.
    """
    now = (now or datetime.now()).astimezone()
    route = find_route(tasks, state.query)
    visible = filter_tasks(tasks, state, route)
    domain = compute_domain(route if route else visible, state.window, now)
    scale = TimeScale(domain.start, state.scale)

    groups: dict[str, list[Task]] = defaultdict(list)
    for task in visible:
        groups[task.resource].append(task)

    resources = resources_to_render(resource_universe(tasks), route, state.selected_resources)
    rows = []
    y = 0.0
    for resource in resources:
        row = _layout_row(resource, groups.get(resource, []), y, scale)
        rows.append(row)
        y += row.height

    by_task = {id(item.task): item for row in rows for item in row.tasks}
    steps = [
        RouteStep(task=task, geometry=by_task[id(task)])
        for task in route
        if id(task) in by_task
    ]
    steps.sort(key=lambda step: step.task.start)
    connectors = route_connectors(steps) if len(steps) >= 2 else []
    if route:
        logger.debug("Route %r: %d steps, %d visible", state.query.strip(), len(route), len(steps))

    total_width = max(MIN_TIMELINE_WIDTH, scale.span_width(domain.end))
    return TimelineView(
        tasks=tuple(visible),
        route=tuple(route),
        resources=tuple(resources),
        rows=tuple(rows),
        domain=domain,
        scale=scale,
        ticks=axis_ticks(domain),
        route_steps=tuple(steps),
        connectors=tuple(connectors),
        total_width=total_width,
        content_height=y,
        now_x=scale.x_for_time(now) if domain.contains(now) else None,
    )
