from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from .constants import DEFAULT_SCALE, DISPLAY_DATE_FORMAT
from .model import clamp_scale

logger = logging.getLogger(__name__)

CONFIG_NAME = "routegantt.json"

DEFAULT_CONFIG = {
    "default_scale": DEFAULT_SCALE,
    "export": {
        "delimiter": ",",
        "bom": True,
        "date_format": DISPLAY_DATE_FORMAT,
    },
    "log_level": "INFO",
}


@dataclass
class ChartConfig:
    default_scale: int
    export_delimiter: str
    export_bom: bool
    date_format: str
    log_level: str
    path: Path | None = None


def default_config(path: Path | None = None) -> ChartConfig:
    export = DEFAULT_CONFIG["export"]
    return ChartConfig(
        default_scale=DEFAULT_CONFIG["default_scale"],
        export_delimiter=export["delimiter"],
        export_bom=export["bom"],
        date_format=export["date_format"],
        log_level=DEFAULT_CONFIG["log_level"],
        path=path,
    )


def load_config(path: str | Path | None = None) -> ChartConfig:
    config_path = Path(path) if path is not None else Path.cwd() / CONFIG_NAME
    if not config_path.exists():
        return default_config(config_path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("%s is malformed, using defaults: %s", config_path, exc)
        return default_config(config_path)
    if not isinstance(raw, dict):
        logger.warning("%s must hold a JSON object, using defaults", config_path)
        return default_config(config_path)
    config = default_config(config_path)

    scale = raw.get("default_scale", config.default_scale)
    try:
        config.default_scale = clamp_scale(float(scale))
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid default_scale: %r", scale)

    export = raw.get("export") if isinstance(raw.get("export"), dict) else {}
    delimiter = export.get("delimiter", config.export_delimiter)
    if isinstance(delimiter, str) and len(delimiter) == 1:
        config.export_delimiter = delimiter
    else:
        logger.warning("Ignoring invalid export delimiter: %r", delimiter)
    config.export_bom = bool(export.get("bom", config.export_bom))
    date_format = export.get("date_format", config.date_format)
    if isinstance(date_format, str) and date_format.strip():
        config.date_format = date_format

    level = str(raw.get("log_level", config.log_level) or "").strip().upper()
    if level in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        config.log_level = level
    else:
        logger.warning("Ignoring invalid log_level: %r", raw.get("log_level"))
    return config
