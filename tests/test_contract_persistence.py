from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from routegantt.persistence import TimelineLoadError, demo_rows, parse_rows, read_rows, write_export


class TestTabularInputContract(unittest.TestCase):
    def test_delimiter_is_taken_from_header(self) -> None:
        rows, headers = parse_rows("Order No.;Resource\n1;A\n")
        self.assertEqual(headers, ["Order No.", "Resource"])
        self.assertEqual(rows, [{"Order No.": "1", "Resource": "A"}])
        rows, headers = parse_rows("id\tmachine\n007\tM1\n")
        self.assertEqual(rows[0]["id"], "007")

    def test_blank_lines_and_bom_are_ignored(self) -> None:
        rows, headers = parse_rows("\ufeff\nid,resource\n\n1,A\n,\n2,B\n")
        self.assertEqual(headers, ["id", "resource"])
        self.assertEqual([row["id"] for row in rows], ["1", "2"])

    def test_extra_cells_are_dropped(self) -> None:
        rows, _ = parse_rows("id,resource\n1,A,overflow\n")
        self.assertEqual(rows, [{"id": "1", "resource": "A"}])

    def test_empty_input_is_a_file_level_error(self) -> None:
        with self.assertRaises(TimelineLoadError):
            parse_rows("")
        with self.assertRaises(TimelineLoadError):
            parse_rows("\n  \n")

    def test_unreadable_files(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(TimelineLoadError):
                read_rows(Path(tmp) / "nope.csv")
            binary = Path(tmp) / "binary.csv"
            binary.write_bytes(b"\xff\xfe\x00\x81\x9f")
            with self.assertRaises(TimelineLoadError):
                read_rows(binary)

    def test_demo_rows(self) -> None:
        rows, headers = demo_rows()
        self.assertIn("Order No.", headers)
        self.assertEqual(len(rows), 3)
        self.assertEqual({row["Order No."] for row in rows}, {"3260996"})


class TestTabularOutputContract(unittest.TestCase):
    def test_write_export_without_bom(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = write_export(Path(tmp) / "x.CSV", [["1", "A", "s", "e", "", 5]], delimiter=";", bom=False)
            self.assertEqual(path.name, "x.CSV")
            text = path.read_text(encoding="utf-8")
            self.assertFalse(text.startswith("\ufeff"))
            self.assertEqual(text.splitlines()[1], "1;A;s;e;;5")


if __name__ == "__main__":
    unittest.main()
