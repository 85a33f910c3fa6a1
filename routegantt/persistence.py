from __future__ import annotations

import csv
import io
from pathlib import Path

from .constants import DEMO_CSV, EXPORT_HEADER

DELIMITERS = (",", ";", "\t")


class TimelineLoadError(Exception):
    """The input file could not be read as a header-row table."""


def _guess_delimiter(header_line: str) -> str:
    best = max(DELIMITERS, key=header_line.count)
    return best if header_line.count(best) else ","


def parse_rows(text: str) -> tuple[list[dict], list[str]]:
    lines = text.lstrip("\ufeff").splitlines()
    first = next((index for index, line in enumerate(lines) if line.strip()), None)
    if first is None:
        raise TimelineLoadError("The file is empty.")
    reader = csv.DictReader(
        io.StringIO("\n".join(lines[first:])), delimiter=_guess_delimiter(lines[first])
    )
    try:
        headers = [name for name in (reader.fieldnames or []) if name is not None]
        rows = []
        for row in reader:
            row.pop(None, None)
            if not any(str(value or "").strip() for value in row.values()):
                continue
            rows.append(row)
    except csv.Error as exc:
        raise TimelineLoadError(f"Malformed CSV: {exc}") from exc
    if not any(header.strip() for header in headers):
        raise TimelineLoadError("The file has no header row.")
    return rows, headers


def read_rows(path: str | Path) -> tuple[list[dict], list[str]]:
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise TimelineLoadError(f"Could not read {path}: {exc}") from exc
    return parse_rows(text)


def demo_rows() -> tuple[list[dict], list[str]]:
    return parse_rows(DEMO_CSV)


def write_export(
    path: str | Path, rows: list[list], delimiter: str = ",", bom: bool = True
) -> Path:
    path = Path(path)
    if path.suffix.lower() != ".csv":
        path = path.with_suffix(".csv")
    path.parent.mkdir(parents=True, exist_ok=True)
    encoding = "utf-8-sig" if bom else "utf-8"
    with path.open("w", encoding=encoding, newline="") as handle:
        writer = csv.writer(handle, delimiter=delimiter)
        writer.writerow(EXPORT_HEADER)
        writer.writerows(rows)
    return path
