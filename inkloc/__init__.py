"""
inkloc - stable localization IDs for ink narrative scripts

Tags every localizable line of an ink story with ``#loc:<ID>`` and keeps
those IDs stable across runs, collecting an ID -> text string table.

Pipeline:
    parser:        ink source -> story tree (knots, stitches, lines, tags)
    classifier:    eligible text runs, one per physical line
    allocator:     keep existing IDs or draw <file>_<knot>_<stitch>_XXXX
    patch_engine:  group edits per file and write tags into the source
    localiser:     runs the phases in order and reports a RunResult

Author: inkloc contributors | 2026-10-18
"""

__version__ = "0.1.0"

from inkloc.config import LocaliserConfig, load_config
from inkloc.localiser import Localiser
from inkloc.models import ErrorKind, RunResult
from inkloc.string_table import StringTable, export_csv, export_json

__all__ = [
    "Localiser",
    "LocaliserConfig",
    "load_config",
    "ErrorKind",
    "RunResult",
    "StringTable",
    "export_csv",
    "export_json",
]
