"""
Source file access for the parser and the localiser.

Ink file names met in INCLUDE lines are resolved against a root directory.

Author: inkloc contributors | 2026-10-18
"""

from pathlib import Path
from typing import List, Optional, Union

import logging

logger = logging.getLogger(__name__)


class DefaultFileHandler:
    """
    Resolves and loads ink sources.

    Args:
        root_dir: Directory that relative names (including INCLUDE targets)
            are resolved against; defaults to the current directory
    """

    def __init__(self, root_dir: Optional[Union[str, Path]] = None):
        self.root_dir = Path(root_dir).resolve() if root_dir is not None else Path.cwd()

    def resolve_filename(self, name: Union[str, Path]) -> Path:
        path = Path(name)
        if path.is_absolute():
            return path
        return self.root_dir / path

    def load_file_contents(self, name: Union[str, Path]) -> Optional[str]:
        """Return the UTF-8 text of a file, or None if it cannot be read."""
        path = self.resolve_filename(name)
        try:
            return path.read_text(encoding="utf-8-sig")
        except (OSError, UnicodeError) as e:
            logger.error(f"Cannot read ink file {path}: {e}")
            return None


def discover_ink_files(
    folder: Union[str, Path],
    pattern: str = "*.ink",
    recursive: bool = True,
) -> List[Path]:
    """List ink sources under ``folder`` in a stable (sorted) order."""
    folder = Path(folder)
    if not folder.is_dir():
        logger.warning(f"Not a directory: {folder}")
        return []
    found = folder.rglob(pattern) if recursive else folder.glob(pattern)
    return sorted(p for p in found if p.is_file())
