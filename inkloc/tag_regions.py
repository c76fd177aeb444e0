"""
Tag region detection over a node's siblings.

Tags are not containers in the story tree: a tag is a start marker, its text,
and an end marker, laid flat among the other children of the same parent.
Depth is tracked with a signed counter while scanning siblings left to right.
Unbalanced markers are not validated; a negative depth counts as "outside".

Author: inkloc contributors | 2026-10-18
"""

from typing import List

from inkloc.models import DocumentNode, NodeKind

import logging

logger = logging.getLogger(__name__)


def _siblings(node: DocumentNode) -> List[DocumentNode]:
    if node.parent is None:
        return [node]
    return node.parent.children


def _step(depth: int, marker: DocumentNode) -> int:
    depth = depth + 1 if marker.is_start else depth - 1
    if depth < 0:
        logger.debug(f"Unbalanced tag end at {marker.position} (depth {depth})")
    return depth


def is_inside_tag(node: DocumentNode) -> bool:
    """True if an open tag span encloses ``node`` among its siblings."""
    depth = 0
    for sibling in _siblings(node):
        if sibling is node:
            break
        if sibling.kind == NodeKind.TAG:
            depth = _step(depth, sibling)
    return depth > 0


def tags_after(node: DocumentNode) -> List[str]:
    """
    Collect tag texts that follow ``node`` among its siblings.

    Returns the text of every TEXT sibling after the node that sits inside an
    open tag span, in order.
    """
    tags: List[str] = []
    after = False
    depth = 0

    for sibling in _siblings(node):
        if sibling is node:
            after = True
            continue
        if not after:
            continue
        if sibling.kind == NodeKind.TAG:
            depth = _step(depth, sibling)
            continue
        if depth > 0 and sibling.kind == NodeKind.TEXT:
            tags.append(sibling.text)

    return tags
