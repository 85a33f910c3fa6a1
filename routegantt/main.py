from __future__ import annotations

import argparse
import logging
import sys

from .config import load_config
from .export import default_export_name, format_instant
from .controller import TimelineController
from .logging_config import setup_logging
from .normalize import to_datetime
from .persistence import TimelineLoadError

logger = logging.getLogger(__name__)


def _parse_bound(value: str | None, option: str):
    if not value:
        return None
    instant = to_datetime(value)
    if instant is None:
        raise SystemExit(f"Invalid {option} value: {value!r}")
    return instant


def _print_view(controller: TimelineController, out) -> None:
    view = controller.view()
    fmt = controller.config.date_format
    print(
        f"Domain {format_instant(view.domain.start, fmt)} → {format_instant(view.domain.end, fmt)}"
        f" at {view.scale.scale} px/h, {len(view.tasks)} of {len(controller.tasks)} tasks",
        file=out,
    )
    header = view.ticks.header_ticks()
    if header:
        labels = ", ".join(view.ticks.label(tick) for tick in header)
        print(f"Axis: {labels}", file=out)
    if view.ticks.major:
        days = ", ".join(view.ticks.day_label(tick) for tick in view.ticks.major)
        print(f"Days: {days}", file=out)
    for row in view.rows:
        lanes = f"{row.lane_count} lane{'s' if row.lane_count != 1 else ''}"
        print(f"  {row.resource}: {len(row.tasks)} tasks, {lanes}", file=out)
    if view.route_active:
        print(f"Route ({len(view.route_steps)} steps, {len(view.connectors)} connectors):", file=out)
        for index, step in enumerate(view.route_steps, start=1):
            task = step.task
            print(
                f"  {index}. {task.id} @ {task.resource} "
                f"{format_instant(task.start, fmt)} → {format_instant(task.end, fmt)}",
                file=out,
            )


def run(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(
        description="Lay out a resource timeline from a CSV of tasks and print or export it."
    )
    ap.add_argument("csv", nargs="?", default=None, help="CSV file with a header row")
    ap.add_argument("--demo", action="store_true", help="Use the built-in demo dataset")
    ap.add_argument("--query", default=None, help="Identifier search; an exact match selects its route")
    ap.add_argument(
        "--resource",
        action="append",
        default=[],
        help="Only show this resource (repeatable)",
    )
    ap.add_argument("--from", dest="time_from", default=None, help="Hide tasks ending at or before this time")
    ap.add_argument("--to", dest="time_to", default=None, help="Hide tasks starting at or after this time")
    ap.add_argument("--scale", type=float, default=None, help="Pixels per hour (clamped to 30-300)")
    ap.add_argument(
        "--export",
        nargs="?",
        const="",
        default=None,
        help="Write the visible tasks as CSV (default name: plan_<timestamp>.csv)",
    )
    ap.add_argument("--config", default=None, help="JSON config file (default: ./routegantt.json)")
    ap.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = ap.parse_args(argv)

    config = load_config(args.config)
    level = logging.DEBUG if args.verbose else getattr(logging, config.log_level, logging.INFO)
    setup_logging(level=level)

    if not args.csv and not args.demo:
        ap.error("a CSV file or --demo is required")

    controller = TimelineController(config=config)
    if args.demo:
        controller.load_demo()
    else:
        try:
            controller.load_csv(args.csv)
        except TimelineLoadError as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1

    if not controller.tasks:
        print("No tasks found. Expected columns: Order No., Resource, Start Time, End Time (Qty. optional).")
        return 0

    if args.query is not None:
        controller.set_query(args.query)
    if args.resource:
        controller.set_selection(args.resource)
    if args.time_from or args.time_to:
        controller.set_window(
            _parse_bound(args.time_from, "--from"), _parse_bound(args.time_to, "--to")
        )
    if args.scale is not None:
        controller.set_scale(args.scale)

    _print_view(controller, sys.stdout)

    if args.export is not None:
        target = args.export or default_export_name()
        try:
            written = controller.export_csv(target)
        except OSError as exc:
            print(f"error: could not export to {target}: {exc}", file=sys.stderr)
            return 1
        print(written)
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
