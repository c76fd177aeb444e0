"""
Ordered localization string table and its JSON / CSV exporters.

The table is filled by the allocator during a run and read afterwards; the
exporters are only called from the command line front-end.

Author: inkloc contributors | 2026-10-18
"""

import csv
import json
from collections import OrderedDict
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple

import logging

logger = logging.getLogger(__name__)


class StringTable:
    """Insertion-ordered ID -> text mapping. Re-setting an ID overwrites it in place."""

    def __init__(self):
        self._strings: "OrderedDict[str, str]" = OrderedDict()

    def set(self, loc_id: str, text: str) -> None:
        if loc_id in self._strings and self._strings[loc_id] != text:
            logger.debug(f"String table entry {loc_id} overwritten")
        self._strings[loc_id] = text

    def get(self, loc_id: str) -> Optional[str]:
        return self._strings.get(loc_id)

    def __contains__(self, loc_id: object) -> bool:
        return loc_id in self._strings

    def __len__(self) -> int:
        return len(self._strings)

    def __iter__(self) -> Iterator[str]:
        return iter(self._strings)

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._strings.items())

    def to_dict(self) -> Dict[str, str]:
        return dict(self._strings)


def export_json(table: StringTable, path: Path) -> Path:
    """Write the table as a JSON object, keys in table order."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(table.to_dict(), f, indent=2, ensure_ascii=False)
        f.write("\n")
    logger.info(f"Wrote {len(table)} strings to {path}")
    return path


def export_csv(table: StringTable, path: Path) -> Path:
    """Write the table as a two-column CSV (ID, Text)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(["ID", "Text"])
        for loc_id, text in table.items():
            writer.writerow([loc_id, text])
    logger.info(f"Wrote {len(table)} strings to {path}")
    return path
