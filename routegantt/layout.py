from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from .constants import DEFAULT_SCALE, MS_PER_HOUR, ZOOM_IN_FACTOR, ZOOM_OUT_FACTOR
from .model import clamp_scale, round_half_up


@dataclass(frozen=True)
class ZoomStep:
    scale: int
    scroll_x: float
    anchor: datetime
    changed: bool


def wheel_factor(delta: float) -> float:
    return ZOOM_IN_FACTOR if delta > 0 else ZOOM_OUT_FACTOR


class TimeScale:
    """Maps instants to horizontal content pixels at ``scale`` px per hour.

    ``origin`` is the left edge of the timeline (the padded domain minimum).
    """

    def __init__(self, origin: datetime, scale: int = DEFAULT_SCALE) -> None:
        self.origin = origin
        self.scale = clamp_scale(scale)

    @property
    def px_per_ms(self) -> float:
        return self.scale / MS_PER_HOUR

    def x_for_time(self, instant: datetime) -> float:
        delta_ms = (instant - self.origin) / timedelta(milliseconds=1)
        return delta_ms * self.px_per_ms

    def time_from_x(self, x: float) -> datetime:
        return self.origin + timedelta(milliseconds=x / self.px_per_ms)

    def width_for(self, start: datetime, end: datetime) -> float:
        return self.x_for_time(end) - self.x_for_time(start)

    def span_width(self, end: datetime) -> int:
        return round_half_up(self.x_for_time(end))

    def rescaled(self, scale: int) -> "TimeScale":
        return TimeScale(self.origin, scale)

    def zoom_at(self, cursor_x: float, scroll_x: float, factor: float) -> ZoomStep:
        """Rescale by ``factor`` keeping the instant under the cursor in place.

        ``cursor_x`` is relative to the viewport; ``scroll_x`` is the current
        horizontal scroll offset of the content.
        """
        anchor = self.time_from_x(cursor_x + scroll_x)
        new_scale = clamp_scale(self.scale * factor)
        if new_scale == self.scale:
            return ZoomStep(scale=self.scale, scroll_x=scroll_x, anchor=anchor, changed=False)
        anchor_x = self.rescaled(new_scale).x_for_time(anchor)
        new_scroll = max(0.0, anchor_x - cursor_x)
        return ZoomStep(scale=new_scale, scroll_x=new_scroll, anchor=anchor, changed=True)
