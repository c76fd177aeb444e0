"""
Core data models for the ink localiser.

The parsed story is a closed tagged union of node kinds sharing a source
position record and a parent back-reference. Everything the engine hands
between stages (eligible runs, pending edits, run results) is a dataclass.

Author: inkloc contributors | 2026-10-18
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
import re


# Tag text prefix that marks a localization ID, and the inline marker form.
TAG_LOC = "loc:"
LOC_MARKER = "#" + TAG_LOC
LOC_ID_CHARS = "A-Za-z0-9_"
LOC_TAG_RE = re.compile(re.escape(LOC_MARKER) + f"[{LOC_ID_CHARS}]+")

_LINE_SPLIT_RE = re.compile(r"\r\n|\r|\n")


def split_lines(text: str) -> List[str]:
    """
    Split source text into physical lines.

    Breaks on CRLF, CR and LF only. A trailing line terminator does not
    produce an extra empty line. Parser and patch applier must agree on this.
    """
    if not text:
        return []
    lines = _LINE_SPLIT_RE.split(text)
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def file_id_for(file_name: str) -> str:
    """File identifier used in localization IDs: the name without extension."""
    return Path(file_name).stem


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class NodeKind(str, Enum):
    """Closed set of story node variants."""
    TEXT = "text"
    TAG = "tag"
    SCOPE = "scope"     # knot / stitch
    CODE = "code"       # assignment, string expression, logic
    OTHER = "other"     # story root, line containers, diverts, glue


class ScopeKind(str, Enum):
    KNOT = "knot"
    STITCH = "stitch"


class CodeKind(str, Enum):
    ASSIGNMENT = "assignment"
    STRING_EXPRESSION = "string_expression"
    EXPRESSION = "expression"
    LOGIC = "logic"


# Code contexts where a text run has no safe place to carry a tag.
CODE_CONTEXTS_WITHOUT_TAGS = frozenset({CodeKind.ASSIGNMENT, CodeKind.STRING_EXPRESSION})


class EditMode(str, Enum):
    REPLACE = "replace"
    INSERT = "insert"


class ErrorKind(str, Enum):
    """Run-level failure kinds."""
    PARSE_FAILURE = "parse_failure"
    CLASSIFICATION_CONFLICT = "classification_conflict"
    FILE_IO_FAILURE = "file_io_failure"


class ErrorType(str, Enum):
    """Severity of a message reported by the parser."""
    AUTHOR = "author"
    WARNING = "warning"
    ERROR = "error"


# ---------------------------------------------------------------------------
# Story tree
# ---------------------------------------------------------------------------

@dataclass
class SourcePosition:
    """Where a node sits in its source file."""
    file_name: str
    start_line: int        # 1-based
    end_line: int          # 1-based
    end_column: int = 0    # 0-based offset just past the node on end_line

    @property
    def file_id(self) -> str:
        return file_id_for(self.file_name)

    def __str__(self) -> str:
        if self.end_line != self.start_line:
            return f"{self.file_name}:{self.start_line}-{self.end_line}"
        return f"{self.file_name}:{self.start_line}"


@dataclass(eq=False)
class DocumentNode:
    """
    One node of a parsed ink story.

    Identity semantics: two nodes are equal only if they are the same object,
    so sibling scans can locate a node by position in its parent's children.
    """
    kind: NodeKind
    position: SourcePosition
    text: str = ""                       # TEXT
    name: str = ""                       # SCOPE
    is_start: bool = False               # TAG
    scope_kind: Optional[ScopeKind] = None
    code_kind: Optional[CodeKind] = None
    children: List["DocumentNode"] = field(default_factory=list)
    parent: Optional["DocumentNode"] = field(default=None, repr=False)

    def add(self, child: "DocumentNode") -> "DocumentNode":
        """Append a child and set its parent link."""
        child.parent = self
        self.children.append(child)
        return child

    @property
    def ancestry(self) -> List["DocumentNode"]:
        """Enclosing nodes, outermost first."""
        chain = []
        node = self.parent
        while node is not None:
            chain.append(node)
            node = node.parent
        chain.reverse()
        return chain

    @property
    def named_scopes(self) -> List["DocumentNode"]:
        return [n for n in self.ancestry if n.kind == NodeKind.SCOPE]

    def walk(self) -> Iterator["DocumentNode"]:
        """Pre-order traversal (document order), self included."""
        yield self
        for child in self.children:
            yield from child.walk()

    def find_all(self, kind: NodeKind) -> Iterator["DocumentNode"]:
        for node in self.walk():
            if node.kind == kind:
                yield node

    def find_scope(self, name: str) -> Optional["DocumentNode"]:
        for child in self.children:
            if child.kind == NodeKind.SCOPE and child.name == name:
                return child
        return None

    def describe(self) -> str:
        """Short label for logs, e.g. 'code:assignment' or 'scope:intro'."""
        if self.kind == NodeKind.CODE and self.code_kind is not None:
            return f"code:{self.code_kind.value}"
        if self.kind == NodeKind.SCOPE:
            return f"scope:{self.name}"
        if self.kind == NodeKind.OTHER and self.name:
            return f"other:{self.name}"
        return self.kind.value


@dataclass
class Story:
    """Result of parsing one root ink file (includes merged in)."""
    root: DocumentNode
    file_name: str
    included_files: List[str] = field(default_factory=list)

    def find_all(self, kind: NodeKind) -> Iterator[DocumentNode]:
        return self.root.find_all(kind)


# ---------------------------------------------------------------------------
# Engine records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EligibleTextRun:
    """A text node that passed classification."""
    node: DocumentNode
    file_id: str
    file_name: str
    end_line: int
    end_column: int

    @property
    def text(self) -> str:
        return self.node.text

    @classmethod
    def from_node(cls, node: DocumentNode) -> "EligibleTextRun":
        pos = node.position
        return cls(
            node=node,
            file_id=pos.file_id,
            file_name=pos.file_name,
            end_line=pos.end_line,
            end_column=pos.end_column,
        )


@dataclass(frozen=True)
class PendingEdit:
    """A localization tag waiting to be written into a source line."""
    file_id: str
    file_name: str
    line: int              # 1-based target line
    loc_id: str
    mode: EditMode
    column: int = 0        # insertion offset, INSERT only

    @property
    def tag(self) -> str:
        return f"{LOC_MARKER}{self.loc_id}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_id": self.file_id,
            "file_name": self.file_name,
            "line": self.line,
            "loc_id": self.loc_id,
            "mode": self.mode.value,
            "column": self.column,
        }


@dataclass
class ParseMessage:
    message: str
    error_type: ErrorType
    file_name: str = ""
    line: int = 0

    def __str__(self) -> str:
        where = f"{self.file_name}:{self.line}: " if self.file_name else ""
        return f"{where}{self.message}"


@dataclass
class FilePatchResult:
    """Outcome of patching one file."""
    file_name: str
    ok: bool
    output_path: str = ""
    edits_applied: int = 0
    error: str = ""


@dataclass
class RunResult:
    """Outcome of a whole localiser run."""
    ok: bool
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    files_written: List[str] = field(default_factory=list)
    edits: List[PendingEdit] = field(default_factory=list)
    runs_found: int = 0
    ids_reused: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "error_kind": self.error_kind.value if self.error_kind else None,
            "message": self.message,
            "files_written": list(self.files_written),
            "edits": [e.to_dict() for e in self.edits],
            "runs_found": self.runs_found,
            "ids_reused": self.ids_reused,
        }
