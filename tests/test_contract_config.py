from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from routegantt.config import load_config


class TestConfigContract(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.path = Path(self.tmp.name) / "routegantt.json"

    def test_missing_file_gives_defaults(self) -> None:
        config = load_config(self.path)
        self.assertEqual(config.default_scale, 110)
        self.assertEqual(config.export_delimiter, ",")
        self.assertTrue(config.export_bom)
        self.assertEqual(config.date_format, "%d.%m.%Y %H:%M")
        self.assertEqual(config.log_level, "INFO")
        self.assertEqual(config.path, self.path)

    def test_overrides_are_applied_and_clamped(self) -> None:
        self.path.write_text(
            json.dumps(
                {
                    "default_scale": 1000,
                    "export": {"delimiter": ";", "bom": False, "date_format": "%Y-%m-%d %H:%M"},
                    "log_level": "debug",
                }
            ),
            encoding="utf-8",
        )
        config = load_config(self.path)
        self.assertEqual(config.default_scale, 300)
        self.assertEqual(config.export_delimiter, ";")
        self.assertFalse(config.export_bom)
        self.assertEqual(config.date_format, "%Y-%m-%d %H:%M")
        self.assertEqual(config.log_level, "DEBUG")

    def test_invalid_values_fall_back(self) -> None:
        self.path.write_text(
            json.dumps({"default_scale": "wide", "export": {"delimiter": ";;"}, "log_level": "loud"}),
            encoding="utf-8",
        )
        with self.assertLogs("routegantt.config", level="WARNING"):
            config = load_config(self.path)
        self.assertEqual(config.default_scale, 110)
        self.assertEqual(config.export_delimiter, ",")
        self.assertEqual(config.log_level, "INFO")

    def test_malformed_json_gives_defaults(self) -> None:
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertLogs("routegantt.config", level="WARNING"):
            config = load_config(self.path)
        self.assertEqual(config.default_scale, 110)
        self.path.write_text("[1, 2]", encoding="utf-8")
        with self.assertLogs("routegantt.config", level="WARNING"):
            self.assertEqual(load_config(self.path).default_scale, 110)


if __name__ == "__main__":
    unittest.main()
