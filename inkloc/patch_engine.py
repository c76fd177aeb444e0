"""
Line-level patch engine for localization tags.

Planning groups pending edits by source file in discovery order. Applying
rewrites each file's lines in memory and writes the result either over the
source or next to it (``<path><suffix>``).

Edits are applied against the original column numbers. This is only sound
because classification guarantees at most one edit per physical line.

Author: inkloc contributors | 2026-10-18
"""

from collections import OrderedDict
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from inkloc.models import (
    EditMode,
    FilePatchResult,
    LOC_MARKER,
    LOC_TAG_RE,
    PendingEdit,
    split_lines,
)

import logging

logger = logging.getLogger(__name__)


class PatchApplyError(Exception):
    """Raised when an edit cannot be applied to its target line."""
    pass


def plan_patches(edits: Iterable[PendingEdit]) -> "OrderedDict[str, List[PendingEdit]]":
    """Group edits by file name, keeping first-seen file order and edit order."""
    plan: "OrderedDict[str, List[PendingEdit]]" = OrderedDict()
    for edit in edits:
        plan.setdefault(edit.file_name, []).append(edit)
    return OrderedDict((name, work) for name, work in plan.items() if work)


def resolve_mode(edit: PendingEdit, line: str) -> EditMode:
    """A line that already holds a ``#loc:`` marker gets its marker replaced."""
    mode = EditMode.REPLACE if LOC_MARKER in line else EditMode.INSERT
    if mode != edit.mode:
        logger.debug(f"{edit.file_name}:{edit.line}: planned {edit.mode.value}, line calls for {mode.value}")
    return mode


def replace_tag(line: str, tag: str) -> str:
    """Replace the first ``#loc:<id>`` marker on the line with ``tag``."""
    m = LOC_TAG_RE.search(line)
    if not m:
        raise PatchApplyError(f"No {LOC_MARKER}<id> marker to replace in: {line!r}")
    return line[:m.start()] + tag + line[m.end():]


def insert_tag(line: str, column: int, tag: str) -> str:
    """
    Insert ``tag`` at ``column``.

    A space is put before the tag unless the previous character is already
    whitespace, and after it when the next character starts another tag.
    """
    if column < 1 or column > len(line):
        raise PatchApplyError(f"Column {column} out of range for line of length {len(line)}")
    if not line[column - 1].isspace():
        tag = " " + tag
    if column < len(line) and line[column] == "#":
        tag = tag + " "
    return line[:column] + tag + line[column:]


def apply_edit_to_lines(lines: List[str], edit: PendingEdit) -> None:
    """Apply one edit in place."""
    index = edit.line - 1
    if index < 0 or index >= len(lines):
        raise PatchApplyError(f"Line {edit.line} out of bounds (file has {len(lines)} lines)")

    old_line = lines[index]
    if resolve_mode(edit, old_line) == EditMode.REPLACE:
        lines[index] = replace_tag(old_line, edit.tag)
    else:
        lines[index] = insert_tag(old_line, edit.column, edit.tag)


def output_path_for(path: Path, debug_output_suffix: bool, suffix: str) -> Path:
    if debug_output_suffix:
        return path.with_name(path.name + suffix)
    return path


def apply_file_edits(
    path: Path,
    edits: List[PendingEdit],
    debug_output_suffix: bool = True,
    suffix: str = ".txt",
) -> FilePatchResult:
    """
    Apply all edits of one file and write the result.

    Never raises for IO or patch errors: failures come back as a
    FilePatchResult with ``ok=False``.
    """
    path = Path(path)
    result = FilePatchResult(file_name=str(path), ok=False)

    try:
        lines = split_lines(path.read_text(encoding="utf-8-sig"))

        for edit in edits:
            apply_edit_to_lines(lines, edit)

        out_path = output_path_for(path, debug_output_suffix, suffix)
        out_path.write_text("\n".join(lines), encoding="utf-8")
    except (OSError, UnicodeError, PatchApplyError) as e:
        result.error = f"Error replacing tags in {path}: {e}"
        logger.error(result.error)
        return result

    result.ok = True
    result.output_path = str(out_path)
    result.edits_applied = len(edits)
    return result


def apply_plan(
    plan: Dict[str, List[PendingEdit]],
    resolve: Optional[Callable[[str], Path]] = None,
    debug_output_suffix: bool = True,
    suffix: str = ".txt",
) -> List[FilePatchResult]:
    """
    Patch files one after the other, stopping at the first failure.

    Files written before a failure stay written. The returned list ends with
    the failing result when there is one.
    """
    results: List[FilePatchResult] = []
    for file_name, work in plan.items():
        path = resolve(file_name) if resolve else Path(file_name)
        logger.info(f"Updating IDs in file: {file_name}")
        res = apply_file_edits(path, work, debug_output_suffix, suffix)
        results.append(res)
        if not res.ok:
            break
    return results
