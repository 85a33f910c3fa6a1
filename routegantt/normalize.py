from __future__ import annotations

import logging
import math
import re
from datetime import date, datetime, timezone

from .constants import (
    EPOCH_SECONDS_LIMIT,
    FIELD_END,
    FIELD_ID,
    FIELD_QTY,
    FIELD_RESOURCE,
    FIELD_START,
    FIELDS,
)
from .model import FieldMapping, Task

logger = logging.getLogger(__name__)

CANONICAL_LABELS = {
    FIELD_ID: "Order No.",
    FIELD_START: "Start Time",
    FIELD_END: "End Time",
    FIELD_RESOURCE: "Resource",
    FIELD_QTY: "Qty.",
}

# Priority order matters: for each field the first pattern that matches any
# header wins, so the specific labels come before the generic ones.
FIELD_PATTERNS: tuple[tuple[str, re.Pattern], ...] = tuple(
    (name, re.compile(pattern, re.IGNORECASE))
    for name, pattern in (
        (FIELD_ID, r"^order\s*no\.?$"),
        (FIELD_ID, r"^id$"),
        (FIELD_ID, r"^order(_)?id$"),
        (FIELD_ID, r"^zlecenie$"),
        (FIELD_ID, r"^nr(zlecenia)?$"),
        (FIELD_START, r"^start\s*time$"),
        (FIELD_START, r"^start(\s|_)?(time)?$"),
        (FIELD_START, r"^pocz(a|ą)tek$"),
        (FIELD_START, r"^data(\s|_)?startu$"),
        (FIELD_START, r"^from$"),
        (FIELD_END, r"^end\s*time$"),
        (FIELD_END, r"^end(\s|_)?(time)?$"),
        (FIELD_END, r"^koniec$"),
        (FIELD_END, r"^data(\s|_)?ko(n|ń)ca$"),
        (FIELD_END, r"^to$"),
        (FIELD_RESOURCE, r"^resource$"),
        (FIELD_RESOURCE, r"^maszyn(a|y)$"),
        (FIELD_RESOURCE, r"^machine$"),
        (FIELD_RESOURCE, r"^gniazdo$"),
        (FIELD_RESOURCE, r"^stanowisko$"),
        (FIELD_QTY, r"^qty\.?$"),
        (FIELD_QTY, r"^ilo(s|ś)(c|ć)$"),
        (FIELD_QTY, r"^quantity$"),
    )
)

DATE_FORMATS = (
    "%d.%m.%Y %H:%M",
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M",
    "%Y/%m/%d",
    "%d/%m/%Y %H:%M",
    "%d/%m/%Y",
)

_NUMERIC_RE = re.compile(r"^[+-]?\d+(\.\d+)?$")
_NATURAL_RE = re.compile(r"(\d+)")


def detect_column(headers: list[str], field_name: str) -> str | None:
    for name, pattern in FIELD_PATTERNS:
        if name != field_name:
            continue
        for header in headers:
            if pattern.search(str(header).strip()):
                return header
    return None


def detect_mapping(headers: list[str]) -> FieldMapping:
    """Map each semantic field to the header that supplies it.

    An exact case-insensitive match on the canonical label is taken first;
    otherwise the pattern table is scanned in priority order.
    """
    exact = {str(header).strip().lower(): header for header in headers}
    columns = {}
    for name in FIELDS:
        label = CANONICAL_LABELS[name].lower()
        columns[name] = exact.get(label) or detect_column(headers, name)
    mapping = FieldMapping(**columns)
    logger.debug("Detected column mapping: %s", mapping.to_dict())
    return mapping


def _from_epoch(value: float) -> datetime | None:
    if math.isnan(value) or math.isinf(value):
        return None
    seconds = value if value < EPOCH_SECONDS_LIMIT else value / 1000.0
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc).astimezone()
    except (OverflowError, OSError, ValueError):
        return None


def _local(value: datetime) -> datetime:
    return value.astimezone()


def to_datetime(value) -> datetime | None:
    """Parse a cell value into an aware local instant, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return _local(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).astimezone()
    if isinstance(value, (int, float)):
        return _from_epoch(float(value))
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    if _NUMERIC_RE.match(text):
        return _from_epoch(float(text))
    try:
        return _local(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in DATE_FORMATS:
        try:
            return _local(datetime.strptime(text, fmt))
        except ValueError:
            continue
    return None


def to_quantity(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def natural_key(text: str) -> tuple:
    parts = []
    for chunk in _NATURAL_RE.split(text.casefold()):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((0, int(chunk), ""))
        else:
            parts.append((1, 0, chunk))
    return tuple(parts), text


def task_sort_key(task: Task) -> tuple:
    return natural_key(task.resource), task.start, natural_key(task.id)


def _cell_text(row: dict, column: str) -> str:
    value = row.get(column)
    if value is None:
        return ""
    return str(value).strip()


def build_tasks(rows: list[dict], mapping: FieldMapping) -> list[Task]:
    """Turn raw rows into the canonical task list.

    Invalid rows are skipped without error. The result is ordered by
    resource, then start, then identifier, with numeric-aware collation.
    """
    if not rows or not mapping.is_complete():
        return []
    tasks = []
    for row in rows:
        if not row:
            continue
        task_id = _cell_text(row, mapping.id)
        resource = _cell_text(row, mapping.resource)
        start = to_datetime(row.get(mapping.start))
        end = to_datetime(row.get(mapping.end))
        if not task_id or not resource or start is None or end is None:
            continue
        if end <= start:
            continue
        qty = to_quantity(row.get(mapping.qty)) if mapping.qty else None
        tasks.append(Task(id=task_id, resource=resource, start=start, end=end, qty=qty))
    dropped = len(rows) - len(tasks)
    if dropped:
        logger.debug("Skipped %d of %d rows", dropped, len(rows))
    tasks.sort(key=task_sort_key)
    return tasks


def resource_universe(tasks: list[Task]) -> list[str]:
    return sorted({task.resource for task in tasks}, key=natural_key)
