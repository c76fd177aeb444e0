"""
Location ID allocation.

IDs have the form ``<fileID>_<knot>_<stitch>_<SUFFIX>``: the file stem, the
name of every enclosing knot/stitch followed by an underscore, and a random
suffix over [A-Z0-9]. An ID already present in a ``#loc:`` tag after the run
is kept unless a full retag is requested.

Author: inkloc contributors | 2026-10-18
"""

import random
import string
from dataclasses import dataclass
from typing import Optional

from inkloc.models import (
    EditMode,
    EligibleTextRun,
    PendingEdit,
    TAG_LOC,
)
from inkloc.string_table import StringTable
from inkloc.tag_regions import tags_after

import logging

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_uppercase + string.digits
DEFAULT_SUFFIX_LENGTH = 4


def make_scope_prefix(run: EligibleTextRun) -> str:
    """Concatenate enclosing knot/stitch names, each followed by '_'."""
    return "".join(f"{scope.name}_" for scope in run.node.named_scopes)


def find_loc_tag_id(run: EligibleTextRun) -> Optional[str]:
    """Return the ID of the first ``loc:`` tag following the run, if any."""
    for tag in tags_after(run.node):
        tag = tag.strip()
        if tag.startswith(TAG_LOC):
            return tag[len(TAG_LOC):]
    return None


@dataclass
class AllocationResult:
    loc_id: str
    edit: Optional[PendingEdit] = None
    reused: bool = False


class LocationIDAllocator:
    """
    Decides the final ID of each eligible run and records it.

    Args:
        strings: Table receiving ``loc_id -> text``
        retag_all: Replace existing IDs instead of keeping them
        rng: Random source for suffixes (seed it for reproducible runs)
        suffix_length: Number of random characters
        unique_ids: Redraw suffixes that collide with IDs already in the table
        max_attempts: Redraw limit when ``unique_ids`` is on
    """

    def __init__(
        self,
        strings: StringTable,
        retag_all: bool = False,
        rng: Optional[random.Random] = None,
        suffix_length: int = DEFAULT_SUFFIX_LENGTH,
        unique_ids: bool = False,
        max_attempts: int = 32,
    ):
        self.strings = strings
        self.retag_all = retag_all
        self.rng = rng or random.Random()
        self.suffix_length = suffix_length
        self.unique_ids = unique_ids
        self.max_attempts = max(1, max_attempts)

    def generate_suffix(self) -> str:
        return "".join(self.rng.choice(ID_ALPHABET) for _ in range(self.suffix_length))

    def new_id(self, run: EligibleTextRun) -> str:
        base = f"{run.file_id}_{make_scope_prefix(run)}"
        loc_id = base + self.generate_suffix()
        if not self.unique_ids:
            return loc_id

        attempts = 1
        while loc_id in self.strings and attempts < self.max_attempts:
            loc_id = base + self.generate_suffix()
            attempts += 1
        if loc_id in self.strings:
            logger.warning(f"Could not find a free ID for {base}* after {attempts} attempts; reusing {loc_id}")
        return loc_id

    def allocate(self, run: EligibleTextRun) -> AllocationResult:
        existing = find_loc_tag_id(run)

        if existing is not None and not self.retag_all:
            self.strings.set(existing, run.text)
            return AllocationResult(loc_id=existing, reused=True)

        loc_id = self.new_id(run)
        edit = PendingEdit(
            file_id=run.file_id,
            file_name=run.file_name,
            line=run.end_line,
            loc_id=loc_id,
            mode=EditMode.REPLACE if existing is not None else EditMode.INSERT,
            column=run.end_column,
        )
        self.strings.set(loc_id, run.text)
        return AllocationResult(loc_id=loc_id, edit=edit)
