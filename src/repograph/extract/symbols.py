"""Pattern-based symbol extraction.

Declarations are found with per-language regular expressions. End lines are
heuristic: brace depth for C-like languages, indentation for Python. Nested
declarations, multi-line signatures and unusual syntax can be missed or
misplaced; the output is an index, not an AST.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from repograph.config.constants import (
    BRACE_SCAN_WINDOW,
    FALLBACK_SPAN,
    SIGNATURE_MAX_CHARS,
    TYPE_SCAN_WINDOW,
)
from repograph.extract.models import SymbolIR, SymbolKind, stable_symbol_id


class BlockStyle(Enum):
    BRACE = "brace"
    INDENT = "indent"


@dataclass(frozen=True, slots=True)
class SymbolPattern:
    regex: re.Pattern[str]
    kind: SymbolKind
    block: BlockStyle = BlockStyle.BRACE


def _p(pattern: str, kind: SymbolKind, block: BlockStyle = BlockStyle.BRACE) -> SymbolPattern:
    return SymbolPattern(re.compile(pattern, re.MULTILINE), kind, block)


# Method patterns on C-like languages also match call sites followed by a
# block (``if (x) {``); those names are dropped here.
CONTROL_KEYWORDS = frozenset(
    {"if", "else", "for", "while", "switch", "catch", "return", "new", "do", "try", "synchronized"}
)

_JS_PATTERNS = (
    _p(r"^(?:export\s+)?(?:default\s+)?(?:async\s+)?function\s*\*?\s+(\w+)\s*\(", SymbolKind.FUNCTION),
    _p(r"^(?:export\s+)?const\s+(\w+)\s*=\s*(?:async\s+)?\([^)]*\)\s*(?::\s*[^=]+)?=>", SymbolKind.FUNCTION),
    _p(r"^(?:export\s+)?(?:default\s+)?(?:abstract\s+)?class\s+(\w+)", SymbolKind.CLASS),
    _p(r"^(?:export\s+)?(?:declare\s+)?interface\s+(\w+)", SymbolKind.INTERFACE),
    _p(r"^(?:export\s+)?(?:declare\s+)?type\s+(\w+)(?:<[^>]*>)?\s*=", SymbolKind.TYPE),
    _p(r"^(?:export\s+)?(?:declare\s+)?(?:const\s+)?enum\s+(\w+)", SymbolKind.ENUM),
)

_PYTHON_PATTERNS = (
    _p(r"^(?:async\s+)?def\s+(\w+)\s*\(", SymbolKind.FUNCTION, BlockStyle.INDENT),
    _p(r"^class\s+(\w+)", SymbolKind.CLASS, BlockStyle.INDENT),
    _p(r"^[ \t]+(?:async\s+)?def\s+(\w+)\s*\(", SymbolKind.METHOD, BlockStyle.INDENT),
)

_JVM_MODIFIERS = r"(?:(?:public|private|protected|internal|static|abstract|final|open|sealed|data)\s+)*"
_JVM_PATTERNS = (
    _p(rf"^[ \t]*{_JVM_MODIFIERS}class\s+(\w+)", SymbolKind.CLASS),
    _p(rf"^[ \t]*{_JVM_MODIFIERS}interface\s+(\w+)", SymbolKind.INTERFACE),
    _p(rf"^[ \t]*{_JVM_MODIFIERS}enum\s+(?:class\s+)?(\w+)", SymbolKind.ENUM),
    _p(
        rf"^[ \t]*{_JVM_MODIFIERS}(?:synchronized\s+)?[\w<>\[\],.?]+\s+(\w+)\s*\([^)]*\)\s*"
        r"(?:throws\s+\w+(?:\s*,\s*\w+)*)?\s*\{",
        SymbolKind.METHOD,
    ),
    _p(r"^[ \t]*(?:(?:private|public|internal|override|suspend|inline)\s+)*fun\s+(?:<[^>]*>\s*)?(\w+)\s*\(", SymbolKind.FUNCTION),
)

_GO_PATTERNS = (
    _p(r"^func\s+(\w+)\s*[(\[]", SymbolKind.FUNCTION),
    _p(r"^func\s+\([^)]+\)\s+(\w+)\s*\(", SymbolKind.METHOD),
    _p(r"^type\s+(\w+)\s+struct\b", SymbolKind.CLASS),
    _p(r"^type\s+(\w+)\s+interface\b", SymbolKind.INTERFACE),
)

_RUST_VIS = r"(?:pub(?:\([^)]*\))?\s+)?"
_RUST_PATTERNS = (
    _p(rf"^[ \t]*{_RUST_VIS}(?:const\s+)?(?:async\s+)?(?:unsafe\s+)?fn\s+(\w+)", SymbolKind.FUNCTION),
    _p(rf"^[ \t]*{_RUST_VIS}struct\s+(\w+)", SymbolKind.CLASS),
    _p(rf"^[ \t]*{_RUST_VIS}enum\s+(\w+)", SymbolKind.ENUM),
    _p(rf"^[ \t]*{_RUST_VIS}trait\s+(\w+)", SymbolKind.INTERFACE),
)

_CS_MODIFIERS = r"(?:(?:public|private|protected|internal|static|abstract|sealed|partial|readonly)\s+)*"
_CSHARP_PATTERNS = (
    _p(rf"^[ \t]*{_CS_MODIFIERS}(?:class|record|struct)\s+(\w+)", SymbolKind.CLASS),
    _p(rf"^[ \t]*{_CS_MODIFIERS}interface\s+(\w+)", SymbolKind.INTERFACE),
    _p(rf"^[ \t]*{_CS_MODIFIERS}enum\s+(\w+)", SymbolKind.ENUM),
)

LANGUAGE_PATTERNS: dict[str, tuple[SymbolPattern, ...]] = {
    "typescript": _JS_PATTERNS,
    "javascript": _JS_PATTERNS,
    "python": _PYTHON_PATTERNS,
    "java": _JVM_PATTERNS,
    "kotlin": _JVM_PATTERNS,
    "go": _GO_PATTERNS,
    "rust": _RUST_PATTERNS,
    "csharp": _CSHARP_PATTERNS,
}


def find_brace_end(lines: list[str], start_line: int, kind: SymbolKind) -> int:
    """1-based end line of a brace-delimited declaration starting at ``start_line``.

    Interfaces and type aliases may end on their own line (``type X = Y;``).
    Everything else ends where depth returns to zero after the first ``{``.
    Scans are bounded; the fallback is ``start_line + FALLBACK_SPAN``.
    """
    start = start_line - 1
    if kind in (SymbolKind.TYPE, SymbolKind.INTERFACE):
        depth = 0
        opened = False
        for i in range(start, min(len(lines), start_line + TYPE_SCAN_WINDOW)):
            line = lines[i]
            opens = line.count("{")
            depth += opens - line.count("}")
            opened = opened or opens > 0
            if depth <= 0 and (opened or i > start or line.rstrip().endswith(";")):
                return i + 1

    depth = 0
    opened = False
    for i in range(start, min(len(lines), start_line + BRACE_SCAN_WINDOW)):
        for char in lines[i]:
            if char == "{":
                depth += 1
                opened = True
            elif char == "}":
                depth -= 1
        if opened and depth == 0:
            return i + 1

    return min(start_line + FALLBACK_SPAN, len(lines))


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def find_indent_end(lines: list[str], start_line: int) -> int:
    """1-based last non-blank line of the block opened at ``start_line``.

    The block ends before the first later non-blank line indented at or
    below the declaration.
    """
    base = _indent(lines[start_line - 1])
    end = start_line
    for i in range(start_line, len(lines)):
        line = lines[i]
        if not line.strip():
            continue
        if _indent(line) <= base:
            break
        end = i + 1
    return end


def _signature(line: str) -> str:
    sig = line.strip()
    return sig if len(sig) <= SIGNATURE_MAX_CHARS else sig[: SIGNATURE_MAX_CHARS - 3] + "..."


def extract_symbols(
    repo_id: str,
    file_path: str,
    content: str,
    language: str,
    namespace: str,
) -> list[SymbolIR]:
    """Declarations in ``content``, ordered by start line.

    Languages without a pattern table yield no symbols.
    """
    patterns = LANGUAGE_PATTERNS.get(language)
    if not patterns:
        return []

    lines = content.split("\n")
    found: dict[str, SymbolIR] = {}
    for pattern in patterns:
        for match in pattern.regex.finditer(content):
            name = match.group(1)
            if name in CONTROL_KEYWORDS:
                continue
            start_line = content.count("\n", 0, match.start(1)) + 1
            if pattern.block is BlockStyle.INDENT:
                end_line = find_indent_end(lines, start_line)
            else:
                end_line = find_brace_end(lines, start_line, pattern.kind)
            sid = stable_symbol_id(repo_id, file_path, pattern.kind.value, name, start_line)
            found.setdefault(
                sid,
                SymbolIR(
                    stable_id=sid,
                    file_path=file_path,
                    namespace=namespace,
                    kind=pattern.kind,
                    name=name,
                    start_line=start_line,
                    end_line=max(end_line, start_line),
                    signature=_signature(lines[start_line - 1]),
                ),
            )
    return sorted(found.values(), key=lambda s: (s.start_line, s.kind.value, s.name))
