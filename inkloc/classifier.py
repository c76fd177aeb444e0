"""
Story classifier: finds the text runs that can carry a localization tag.

Walks the story in document order and applies the eligibility rules to each
text node, stopping at the first rule that rejects it. Files already handled
by an earlier story of the same run (shared includes) are skipped.

Author: inkloc contributors | 2026-10-18
"""

from dataclasses import dataclass, field
from typing import AbstractSet, Dict, List, Set, Tuple

from inkloc.models import (
    CODE_CONTEXTS_WITHOUT_TAGS,
    DocumentNode,
    EligibleTextRun,
    NodeKind,
    Story,
)
from inkloc.tag_regions import is_inside_tag

import logging

logger = logging.getLogger(__name__)


class ClassificationConflictError(Exception):
    """Two localizable text runs share one physical line."""

    def __init__(self, file_name: str, line: int):
        self.file_name = file_name
        self.line = line
        super().__init__(
            f"Error in line {line} of {file_name} - two chunks of text when "
            f"localiser can only work with one per line."
        )


@dataclass
class ClassificationResult:
    runs: List[EligibleTextRun] = field(default_factory=list)
    new_file_ids: Set[str] = field(default_factory=set)
    skipped: Dict[str, int] = field(default_factory=dict)

    def skip(self, reason: str) -> None:
        self.skipped[reason] = self.skipped.get(reason, 0) + 1


def is_in_code_context(node: DocumentNode) -> bool:
    """Immediate parent is an assignment or a string expression."""
    parent = node.parent
    return (
        parent is not None
        and parent.kind == NodeKind.CODE
        and parent.code_kind in CODE_CONTEXTS_WITHOUT_TAGS
    )


def classify(story: Story, visited: AbstractSet[str]) -> ClassificationResult:
    """
    Collect eligible text runs from ``story``.

    Args:
        story: Parsed story
        visited: File IDs fully classified by earlier stories (not modified)

    Returns:
        ClassificationResult; the caller merges ``new_file_ids`` into its
        visited set once the whole story has been classified.

    Raises:
        ClassificationConflictError: Two runs on the same (file, line)
    """
    result = ClassificationResult()
    seen_lines: Set[Tuple[str, int]] = set()

    for text in story.find_all(NodeKind.TEXT):
        # Just layout
        if text.text.strip() == "":
            result.skip("whitespace")
            continue

        if is_inside_tag(text):
            result.skip("tag")
            continue

        if is_in_code_context(text):
            result.skip("code")
            continue

        key = (text.position.file_name, text.position.start_line)
        if key in seen_lines:
            raise ClassificationConflictError(*key)
        seen_lines.add(key)

        file_id = text.position.file_id
        if file_id in visited:
            result.skip("visited")
            continue
        result.new_file_ids.add(file_id)

        parent = text.parent.describe() if text.parent is not None else "-"
        logger.debug(f"{text.position}: {text.text.strip()!r} ({parent})")
        result.runs.append(EligibleTextRun.from_node(text))

    return result
