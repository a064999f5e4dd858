"""
Dangerous pattern scanner: find dynamic code execution in script text.

Comments are stripped before scanning so that commented-out
``eval(...)`` calls do not produce findings.  Stripping is purely
textual: it does not understand string literals, so a ``//`` or
``/* */`` sequence inside a string is removed as well.
"""

from __future__ import annotations

import re
from typing import NamedTuple

import pydantic

from privacy_analyzer.models import report

# Snippets longer than this are cut and suffixed with "...".
MAX_SNIPPET_LENGTH = 80

_BLOCK_COMMENT_RE = re.compile(r"/\*[\s\S]*?\*/")
# A line comment ends at any JS line terminator.
_LINE_COMMENT_RE = re.compile(r"//[^\n\r\u2028\u2029]*")


class DangerousPattern(pydantic.BaseModel):
    """A named regex for one eval-family construct."""

    model_config = pydantic.ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    description: str
    regex: re.Pattern[str]


DANGEROUS_PATTERNS: list[DangerousPattern] = [
    DangerousPattern(
        name="eval",
        description="Direct eval() call",
        regex=re.compile(r"\beval\s*\(", re.ASCII),
    ),
    DangerousPattern(
        name="Function constructor",
        description="Function constructor with string",
        regex=re.compile(r"\bnew\s+Function\s*\(", re.ASCII),
    ),
    DangerousPattern(
        # Not preceded by an identifier character or "." so that
        # someFunction( and obj.Function( are ignored.
        name="Function constructor (no new)",
        description="Function constructor without new keyword",
        regex=re.compile(r"(?<![.\w])Function\s*\(", re.ASCII),
    ),
    DangerousPattern(
        name="setTimeout with string",
        description="setTimeout with string argument",
        regex=re.compile(r"\bsetTimeout\s*\(\s*['\"`]", re.ASCII),
    ),
    DangerousPattern(
        name="setInterval with string",
        description="setInterval with string argument",
        regex=re.compile(r"\bsetInterval\s*\(\s*['\"`]", re.ASCII),
    ),
    DangerousPattern(
        name="Obfuscated eval (bracket notation)",
        description="Obfuscated eval using bracket notation",
        regex=re.compile(r"\bwindow\s*\[\s*['\"`]eval['\"`]\s*\]", re.ASCII),
    ),
    DangerousPattern(
        name="Obfuscated eval (this)",
        description="Obfuscated eval using this",
        regex=re.compile(r"\bthis\s*\[\s*['\"`]eval['\"`]\s*\]", re.ASCII),
    ),
]


class LineContext(NamedTuple):
    """Position of a match within the stripped source."""

    line: int
    column: int
    snippet: str


def remove_comments(code: str | None) -> str:
    """Remove ``/* ... */`` and ``// ...`` comments from *code*."""
    cleaned = _BLOCK_COMMENT_RE.sub("", str(code or ""))
    return _LINE_COMMENT_RE.sub("", cleaned)


def _make_snippet(line: str) -> str:
    snippet = line.strip()
    if len(snippet) > MAX_SNIPPET_LENGTH:
        snippet = snippet[:MAX_SNIPPET_LENGTH] + "..."
    return snippet


def line_context(lines: list[str], position: int) -> LineContext:
    """Map a character offset to a 1-based line and 0-based column.

    Each line occupies its length plus one character for the
    newline.  Offsets past the end fall back to the first line.
    """
    current = 0
    for i, line in enumerate(lines):
        length = len(line) + 1
        if current + length > position:
            return LineContext(line=i + 1, column=position - current, snippet=_make_snippet(line))
        current += length
    return LineContext(line=1, column=0, snippet=lines[0][:MAX_SNIPPET_LENGTH] if lines else "")


def scan(code: str | None) -> list[report.DangerousPatternMatch]:
    """Scan *code* for eval-family constructs.

    Every non-overlapping occurrence of every catalogue pattern is
    reported.  Different patterns may report the same position.

    Args:
        code: Script source; ``None`` or empty yields no matches.

    Returns:
        Matches grouped by pattern in catalogue order, each group in
        source order.
    """
    if not code:
        return []

    stripped = remove_comments(code)
    lines = stripped.split("\n")
    matches: list[report.DangerousPatternMatch] = []

    for pattern in DANGEROUS_PATTERNS:
        for match in pattern.regex.finditer(stripped):
            context = line_context(lines, match.start())
            matches.append(
                report.DangerousPatternMatch(
                    pattern=pattern.name,
                    description=pattern.description,
                    line=context.line,
                    column=context.column,
                    snippet=context.snippet,
                )
            )

    return matches
