"""
Line-oriented parser for the subset of ink the localiser needs.

Builds the story tree (knots, stitches, content lines, tags, code) with
source positions good enough to patch tags back into the text. Comments are
blanked rather than removed so that columns match the file on disk.

Supported:
    === knot ===  /  === function name(args) ===   knots
    = stitch                                        stitches
    INCLUDE path/to/file.ink                        includes (merged at story level)
    // line comments, /* block comments */, TODO: lines
    VAR / CONST / LIST declarations, EXTERNAL functions, ~ logic and assignments
    * + choices with [bracketed] text, - gathers, (labels)
    #tags, -> diverts, <- threads, <> glue, {expressions}, \\ escapes
    multi-line { cond: ... } conditionals, switches and {stopping: ...} sequences

Errors are reported through the ``on_error(message, error_type)`` callback
and also kept in ``InkParser.messages``.

Author: inkloc contributors | 2026-10-18
"""

import re
from pathlib import Path
from typing import Callable, List, Optional, Set, Tuple

from inkloc.file_handler import DefaultFileHandler
from inkloc.models import (
    CodeKind,
    DocumentNode,
    ErrorType,
    NodeKind,
    ParseMessage,
    ScopeKind,
    SourcePosition,
    Story,
    split_lines,
)

import logging

logger = logging.getLogger(__name__)

ErrorCallback = Callable[[str, ErrorType], None]

_KNOT_RE = re.compile(r"^\s*={2,}\s*(?:(function)\s+)?(\w+)?\s*(\([^)]*\))?\s*=*\s*$")
_STITCH_RE = re.compile(r"^\s*=(?!=)\s*(\w+)?\s*(\([^)]*\))?\s*$")
_INCLUDE_RE = re.compile(r"^\s*INCLUDE\s+(\S.*?)\s*$")
_DECL_RE = re.compile(r"^\s*(VAR|CONST)\s+(\w+)\s*=\s*(.*)$")
_LIST_RE = re.compile(r"^\s*LIST\s+")
_EXTERNAL_RE = re.compile(r"^\s*EXTERNAL\s+")
_BRANCH_RE = re.compile(r"^\s*-(?!>)\s*")
_SEQUENCE_RE = re.compile(r"^\s*(?:stopping|cycle|once|shuffle(?:\s+(?:once|stopping))?)\s*$")
_LOGIC_RE = re.compile(r"^\s*~\s*(.*)$")
_ASSIGN_RE = re.compile(r"^(?:temp\s+)?[\w.]+\s*(?:=(?!=)|\+=|-=)")
_LABEL_RE = re.compile(r"\s*\(\w+\)")
_DIVERT_RE = re.compile(r"(?:->|<-)+\s*[\w.]*(?:\([^)]*\))?")
_ESCAPE_RE = re.compile(r"\\(.)")


def _unescape(text: str) -> str:
    return _ESCAPE_RE.sub(r"\1", text)


def blank_comments(lines: List[str]) -> Tuple[List[str], Optional[int]]:
    """
    Replace comment characters with spaces, keeping every column in place.

    Returns:
        (cleaned lines, 1-based line of an unterminated block comment or None)
    """
    cleaned: List[str] = []
    in_block = False
    block_start: Optional[int] = None

    for ln, line in enumerate(lines, 1):
        out = []
        i = 0
        n = len(line)
        while i < n:
            if in_block:
                if line.startswith("*/", i):
                    in_block = False
                    out.append("  ")
                    i += 2
                else:
                    out.append(" ")
                    i += 1
                continue
            ch = line[i]
            if ch == "\\" and i + 1 < n:
                out.append(line[i:i + 2])
                i += 2
            elif line.startswith("//", i):
                out.append(" " * (n - i))
                break
            elif line.startswith("/*", i):
                in_block = True
                block_start = ln
                out.append("  ")
                i += 2
            else:
                out.append(ch)
                i += 1
        cleaned.append("".join(out))

    return cleaned, (block_start if in_block else None)


class InkParser:
    """
    Parse one ink source (and its includes) into a Story.

    Args:
        text: Source text
        file_name: Name recorded in node positions
        on_error: Callback receiving (message, ErrorType)
        file_handler: Resolves and loads INCLUDE targets
    """

    def __init__(
        self,
        text: str,
        file_name: str,
        on_error: Optional[ErrorCallback] = None,
        file_handler: Optional[DefaultFileHandler] = None,
        _open_files: Optional[Set[str]] = None,
    ):
        self.text = text
        self.file_name = file_name
        self.on_error = on_error
        self.file_handler = file_handler or DefaultFileHandler()
        self.messages: List[ParseMessage] = []
        self._open_files = set(_open_files or ()) | {self._key(file_name)}
        self._included: List[str] = []

        self.root = DocumentNode(
            kind=NodeKind.OTHER,
            name="story",
            position=SourcePosition(file_name, 1, 1),
        )
        self._knot: Optional[DocumentNode] = None
        self._stitch: Optional[DocumentNode] = None
        # Open multi-line blocks as (opening line, is_sequence)
        self._blocks: List[Tuple[int, bool]] = []

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def has_errors(self) -> bool:
        return any(m.error_type == ErrorType.ERROR for m in self.messages)

    def parse(self) -> Story:
        lines, open_comment = blank_comments(split_lines(self.text))
        if open_comment is not None:
            self._error("Unterminated block comment", open_comment)

        for ln, line in enumerate(lines, 1):
            self._parse_line(line, ln)
        self._close_open_blocks()

        root_position = self.root.position
        root_position.end_line = max(1, len(lines))
        return Story(root=self.root, file_name=self.file_name, included_files=list(self._included))

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _report(self, message: str, ln: int, error_type: ErrorType) -> None:
        msg = ParseMessage(message=message, error_type=error_type, file_name=self.file_name, line=ln)
        self.messages.append(msg)
        if error_type == ErrorType.ERROR:
            logger.error(f"Ink parse error: {msg}")
        else:
            logger.warning(f"Ink parse {error_type.value}: {msg}")
        if self.on_error is not None:
            self.on_error(str(msg), error_type)

    def _error(self, message: str, ln: int) -> None:
        self._report(message, ln, ErrorType.ERROR)

    def _warning(self, message: str, ln: int) -> None:
        self._report(message, ln, ErrorType.WARNING)

    # ------------------------------------------------------------------
    # Structure
    # ------------------------------------------------------------------

    def _pos(self, ln: int, end_column: int = 0) -> SourcePosition:
        return SourcePosition(self.file_name, ln, ln, end_column)

    @property
    def _container(self) -> DocumentNode:
        return self._stitch or self._knot or self.root

    def _key(self, name: str) -> str:
        return str(Path(name).resolve()) if name else name

    def _parse_line(self, line: str, ln: int) -> None:
        stripped = line.strip()
        if not stripped or stripped.startswith("TODO:"):
            return

        m = _INCLUDE_RE.match(line)
        if m:
            self._include(m.group(1), ln)
            return

        m = _KNOT_RE.match(line)
        if m:
            self._close_open_blocks()
            self._open_knot(m.group(2), ln, len(line))
            return

        m = _STITCH_RE.match(line)
        if m:
            self._close_open_blocks()
            self._open_stitch(m.group(1), ln, len(line))
            return

        m = _DECL_RE.match(line)
        if m:
            node = self._container.add(DocumentNode(
                kind=NodeKind.CODE, code_kind=CodeKind.ASSIGNMENT,
                name=m.group(2), position=self._pos(ln, len(line)),
            ))
            self._parse_string_literals(node, line, m.start(3), len(line), ln)
            return

        if _LIST_RE.match(line) or _EXTERNAL_RE.match(line):
            self._container.add(DocumentNode(
                kind=NodeKind.CODE, code_kind=CodeKind.LOGIC, position=self._pos(ln, len(line)),
            ))
            return

        m = _LOGIC_RE.match(line)
        if m:
            body = m.group(1)
            kind = CodeKind.ASSIGNMENT if _ASSIGN_RE.match(body) else CodeKind.LOGIC
            node = self._container.add(DocumentNode(
                kind=NodeKind.CODE, code_kind=kind, position=self._pos(ln, len(line)),
            ))
            self._parse_string_literals(node, line, m.start(1), len(line), ln)
            return

        if self._blocks:
            m = _BRANCH_RE.match(line)
            if m:
                self._parse_branch_line(line, ln, m.end())
                return

        self._parse_content_line(line, ln)

    def _open_knot(self, name: Optional[str], ln: int, width: int) -> None:
        if not name:
            self._error("Knot header has no name", ln)
            return
        if self.root.find_scope(name) is not None:
            self._error(f"Duplicate knot name '{name}'", ln)
        self._knot = self.root.add(DocumentNode(
            kind=NodeKind.SCOPE, scope_kind=ScopeKind.KNOT, name=name, position=self._pos(ln, width),
        ))
        self._stitch = None

    def _open_stitch(self, name: Optional[str], ln: int, width: int) -> None:
        if not name:
            self._error("Stitch header has no name", ln)
            return
        owner = self._knot
        if owner is None:
            self._warning(f"Stitch '{name}' outside any knot", ln)
            owner = self.root
        if owner.find_scope(name) is not None:
            self._error(f"Duplicate stitch name '{name}'", ln)
        self._stitch = owner.add(DocumentNode(
            kind=NodeKind.SCOPE, scope_kind=ScopeKind.STITCH, name=name, position=self._pos(ln, width),
        ))

    def _include(self, target: str, ln: int) -> None:
        path = self.file_handler.resolve_filename(target)
        key = self._key(str(path))
        if key in self._open_files:
            self._error(f"Recursive INCLUDE detected: '{target}'", ln)
            return

        content = self.file_handler.load_file_contents(target)
        if content is None:
            self._error(f"Failed to load included file '{target}'", ln)
            return

        sub = InkParser(content, str(path), self.on_error, self.file_handler, self._open_files)
        story = sub.parse()
        self.messages.extend(sub.messages)
        self._included.append(str(path))
        self._included.extend(story.included_files)

        for child in list(story.root.children):
            if child.kind == NodeKind.SCOPE and self.root.find_scope(child.name) is not None:
                self._error(f"Duplicate knot name '{child.name}' from '{target}'", ln)
            self.root.add(child)

    # ------------------------------------------------------------------
    # Code
    # ------------------------------------------------------------------

    def _parse_string_literals(self, owner: DocumentNode, line: str, start: int, end: int, ln: int) -> bool:
        """
        Add a STRING_EXPRESSION child (holding a TEXT) for each "literal".

        Returns False when a literal is left open.
        """
        i = start
        while i < end:
            ch = line[i]
            if ch == "\\":
                i += 2
                continue
            if ch != '"':
                i += 1
                continue
            j = i + 1
            while j < end and line[j] != '"':
                j += 2 if line[j] == "\\" else 1
            if j >= end:
                self._error("Unterminated string literal", ln)
                return False
            expr = owner.add(DocumentNode(
                kind=NodeKind.CODE, code_kind=CodeKind.STRING_EXPRESSION, position=self._pos(ln, j + 1),
            ))
            expr.add(DocumentNode(
                kind=NodeKind.TEXT, text=_unescape(line[i + 1:j]), position=self._pos(ln, j),
            ))
            i = j + 1
        return True

    def _find_closing_brace(self, line: str, start: int) -> int:
        """Index of the '}' matching the '{' at ``start``, or -1."""
        depth = 0
        i = start
        in_string = False
        while i < len(line):
            ch = line[i]
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = not in_string
            elif not in_string and ch == "{":
                depth += 1
            elif not in_string and ch == "}":
                depth -= 1
                if depth == 0:
                    return i
            i += 1
        return -1

    def _find_condition_end(self, line: str, start: int) -> int:
        """Index of the top-level ':' ending a block or branch condition, or -1."""
        depth = 0
        in_string = False
        i = start
        while i < len(line):
            ch = line[i]
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = not in_string
            elif in_string:
                pass
            elif ch in "({":
                depth += 1
            elif ch in ")}":
                depth -= 1
                if depth < 0:
                    return -1
            elif ch == ":" and depth == 0:
                return i
            i += 1
        return -1

    # ------------------------------------------------------------------
    # Multi-line blocks
    # ------------------------------------------------------------------

    def _open_block(self, container: DocumentNode, line: str, brace: int, ln: int) -> int:
        """
        Record a '{' left open at end of line and add its header as code.

        Returns:
            Column where content resumes (after the header ':', or end of line)
        """
        colon = self._find_condition_end(line, brace + 1)
        end = colon + 1 if colon >= 0 else len(line)
        header = line[brace + 1:colon] if colon >= 0 else ""
        node = container.add(DocumentNode(
            kind=NodeKind.CODE, code_kind=CodeKind.LOGIC, position=self._pos(ln, end),
        ))
        self._parse_string_literals(node, line, brace + 1, end, ln)
        self._blocks.append((ln, bool(_SEQUENCE_RE.match(header))))
        return end

    def _close_open_blocks(self) -> None:
        for ln, _ in self._blocks:
            self._error("Unterminated '{' block", ln)
        self._blocks = []

    def _parse_branch_line(self, line: str, ln: int, start: int) -> None:
        """A '- ...' branch of the innermost open block."""
        _, is_sequence = self._blocks[-1]
        condition = None
        if not is_sequence:
            colon = self._find_condition_end(line, start)
            if colon >= 0:
                condition = (start, colon + 1)
                start = colon + 1
        self._parse_content_line(line, ln, start=start, kind="branch", condition=condition)

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def _skip_bullets(self, line: str) -> Tuple[int, str]:
        """Skip choice bullets / gather dashes and an optional label."""
        i = 0
        n = len(line)
        kind = "line"
        while i < n:
            ch = line[i]
            if ch in "*+":
                kind = "choice"
            elif ch == "-" and not line.startswith("->", i):
                if kind == "line":
                    kind = "gather"
            elif not ch.isspace():
                break
            i += 1
        if kind != "line":
            m = _LABEL_RE.match(line, i)
            if m:
                i = m.end()
        return i, kind

    def _parse_content_line(
        self,
        line: str,
        ln: int,
        start: Optional[int] = None,
        kind: str = "line",
        condition: Optional[Tuple[int, int]] = None,
    ) -> None:
        if start is None:
            start, kind = self._skip_bullets(line)
        container = self._container.add(DocumentNode(
            kind=NodeKind.OTHER, name=kind, position=self._pos(ln, len(line)),
        ))
        if condition is not None:
            cond_start, cond_end = condition
            cond = container.add(DocumentNode(
                kind=NodeKind.CODE, code_kind=CodeKind.EXPRESSION, position=self._pos(ln, cond_end),
            ))
            self._parse_string_literals(cond, line, cond_start, cond_end, ln)
        is_choice = kind == "choice"

        in_tag = False
        text_start = start
        i = start
        n = len(line)

        def flush(upto: int) -> None:
            raw = line[text_start:upto]
            if not raw:
                return
            if in_tag:
                body = raw.strip()
                if body:
                    container.add(DocumentNode(
                        kind=NodeKind.TEXT, text=_unescape(body),
                        position=self._pos(ln, text_start + len(raw.rstrip())),
                    ))
                return
            content = raw.rstrip()
            if not content.strip():
                container.add(DocumentNode(kind=NodeKind.TEXT, text=raw, position=self._pos(ln, upto)))
                return
            container.add(DocumentNode(
                kind=NodeKind.TEXT, text=_unescape(content.strip()),
                position=self._pos(ln, text_start + len(content)),
            ))

        def tag_marker(is_start: bool, col: int) -> None:
            container.add(DocumentNode(kind=NodeKind.TAG, is_start=is_start, position=self._pos(ln, col)))

        while i < n:
            ch = line[i]

            if ch == "\\":
                i += 2
                continue

            if ch == "#":
                flush(i)
                if in_tag:
                    tag_marker(False, i)
                tag_marker(True, i + 1)
                in_tag = True
                i += 1
                text_start = i
                continue

            if line.startswith("->", i) or line.startswith("<-", i):
                flush(i)
                if in_tag:
                    tag_marker(False, i)
                    in_tag = False
                m = _DIVERT_RE.match(line, i)
                end = m.end() if m else i + 2
                container.add(DocumentNode(kind=NodeKind.OTHER, name="divert", position=self._pos(ln, end)))
                i = end
                text_start = i
                continue

            if line.startswith("<>", i):
                flush(i)
                container.add(DocumentNode(kind=NodeKind.OTHER, name="glue", position=self._pos(ln, i + 2)))
                i += 2
                text_start = i
                continue

            if ch == "{":
                flush(i)
                close = self._find_closing_brace(line, i)
                if close < 0:
                    i = self._open_block(container, line, i, ln)
                    text_start = i
                    continue
                has_strings = '"' in line[i + 1:close]
                expr = container.add(DocumentNode(
                    kind=NodeKind.CODE,
                    code_kind=CodeKind.STRING_EXPRESSION if has_strings else CodeKind.EXPRESSION,
                    position=self._pos(ln, close + 1),
                ))
                if has_strings:
                    self._parse_string_literals(expr, line, i + 1, close, ln)
                i = close + 1
                text_start = i
                continue

            if ch == "}" and self._blocks:
                flush(i)
                if in_tag:
                    tag_marker(False, i)
                    in_tag = False
                self._blocks.pop()
                i += 1
                text_start = i
                continue

            if is_choice and ch in "[]":
                flush(i)
                i += 1
                text_start = i
                continue

            i += 1

        flush(n)
        if in_tag:
            tag_marker(False, n)
        container.add(DocumentNode(kind=NodeKind.TEXT, text="\n", position=self._pos(ln, n)))
