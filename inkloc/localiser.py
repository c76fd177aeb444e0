"""
Localiser run: parse, classify, allocate IDs, then patch sources.

Phases run strictly in order. Parse and classification failures stop the
run before any file is written; a patch failure stops it mid-way and leaves
already written files in place.

Author: inkloc contributors | 2026-10-18
"""

import random
from pathlib import Path
from typing import List, Optional, Set, Union

from inkloc.allocator import LocationIDAllocator
from inkloc.classifier import ClassificationConflictError, classify
from inkloc.config import LocaliserConfig, get_localiser_config
from inkloc.file_handler import DefaultFileHandler
from inkloc.models import (
    ErrorKind,
    ErrorType,
    PendingEdit,
    RunResult,
    Story,
)
from inkloc.parser import InkParser
from inkloc.patch_engine import apply_plan, plan_patches
from inkloc.string_table import StringTable

import logging

logger = logging.getLogger(__name__)


class Localiser:
    """
    Keeps ``#loc:`` IDs in a set of ink files in sync.

    Usage:
        loc = Localiser(LocaliserConfig(retag_all=False))
        loc.add_file("story/main.ink")
        result = loc.run()
        if result.ok:
            table = loc.strings

    Args:
        config: Run settings (global config when None)
        file_handler: Resolves and loads sources
        rng: Random source for ID suffixes; seeded from config.seed when None
    """

    def __init__(
        self,
        config: Optional[LocaliserConfig] = None,
        file_handler: Optional[DefaultFileHandler] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or get_localiser_config()
        self.file_handler = file_handler or DefaultFileHandler()
        self.strings = StringTable()
        self.visited: Set[str] = set()
        self._ink_files: List[str] = []
        self._parse_error: Optional[str] = None

        if rng is None:
            rng = random.Random(self.config.seed)
        self.allocator = LocationIDAllocator(
            self.strings,
            retag_all=self.config.retag_all,
            rng=rng,
            suffix_length=self.config.id_suffix_length,
            unique_ids=self.config.unique_ids,
            max_attempts=self.config.max_id_attempts,
        )

    def add_file(self, ink_file: Union[str, Path]) -> None:
        name = str(self.file_handler.resolve_filename(ink_file))
        if name not in self._ink_files:
            self._ink_files.append(name)

    @property
    def files(self) -> List[str]:
        return list(self._ink_files)

    def _on_parse_error(self, message: str, error_type: ErrorType) -> None:
        if error_type == ErrorType.ERROR and self._parse_error is None:
            self._parse_error = message

    def parse_text(self, content: str, ink_file: str) -> Optional[Story]:
        """Parse one root file's text; None if the parser reported errors."""
        self._parse_error = None
        parser = InkParser(content, ink_file, self._on_parse_error, self.file_handler)
        story = parser.parse()
        if self._parse_error is not None:
            return None
        return story

    def run(self, dry_run: bool = False) -> RunResult:
        """
        Process every added file, then write the pending tags.

        Args:
            dry_run: Stop after allocation; nothing is written

        Returns:
            RunResult; ``ok`` is False on the first failure, with its kind
            and message
        """
        result = RunResult(ok=False)
        edits: List[PendingEdit] = []

        for ink_file in self._ink_files:
            content = self.file_handler.load_file_contents(ink_file)
            if content is None:
                result.error_kind = ErrorKind.FILE_IO_FAILURE
                result.message = f"Cannot read ink file: {ink_file}"
                return result

            story = self.parse_text(content, ink_file)
            if story is None:
                result.error_kind = ErrorKind.PARSE_FAILURE
                result.message = f"Error parsing ink file {ink_file}: {self._parse_error}"
                logger.error(result.message)
                return result

            try:
                classified = classify(story, self.visited)
            except ClassificationConflictError as e:
                result.error_kind = ErrorKind.CLASSIFICATION_CONFLICT
                result.message = str(e)
                logger.error(result.message)
                return result
            self.visited.update(classified.new_file_ids)

            for run in classified.runs:
                allocation = self.allocator.allocate(run)
                if allocation.edit is not None:
                    edits.append(allocation.edit)
                if allocation.reused:
                    result.ids_reused += 1
            result.runs_found += len(classified.runs)

        result.edits = edits
        if dry_run:
            result.ok = True
            return result

        plan = plan_patches(edits)
        patched = apply_plan(
            plan,
            resolve=self.file_handler.resolve_filename,
            debug_output_suffix=self.config.debug_output_suffix,
            suffix=self.config.output_suffix,
        )
        for res in patched:
            if not res.ok:
                result.error_kind = ErrorKind.FILE_IO_FAILURE
                result.message = res.error
                return result
            result.files_written.append(res.output_path)

        result.ok = True
        return result
