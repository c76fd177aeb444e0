"""
Tests for the string table and its exporters
"""

import csv
import json

from inkloc.string_table import StringTable, export_csv, export_json


class TestStringTable:
    def test_insertion_order(self):
        table = StringTable()
        table.set("b_1", "B")
        table.set("a_1", "A")
        assert list(table) == ["b_1", "a_1"]

    def test_overwrite_keeps_position(self):
        table = StringTable()
        table.set("x", "first")
        table.set("y", "other")
        table.set("x", "second")
        assert list(table.items()) == [("x", "second"), ("y", "other")]
        assert len(table) == 2

    def test_lookup(self):
        table = StringTable()
        table.set("x", "X")
        assert "x" in table
        assert table.get("x") == "X"
        assert table.get("missing") is None


class TestExport:
    def _table(self):
        table = StringTable()
        table.set("main_intro_AB12", "Hello world")
        table.set("main_XXXX", "Bonjour, ça va?")
        return table

    def test_json(self, temp_dir):
        path = export_json(self._table(), temp_dir / "out" / "strings.json")
        data = json.loads(path.read_text(encoding="utf-8"))
        assert list(data.items()) == [
            ("main_intro_AB12", "Hello world"),
            ("main_XXXX", "Bonjour, ça va?"),
        ]

    def test_csv(self, temp_dir):
        path = export_csv(self._table(), temp_dir / "strings.csv")
        with open(path, encoding="utf-8", newline="") as f:
            rows = list(csv.reader(f))
        assert rows == [
            ["ID", "Text"],
            ["main_intro_AB12", "Hello world"],
            ["main_XXXX", "Bonjour, ça va?"],
        ]
