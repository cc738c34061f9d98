"""Line-oriented text helpers shared by the review parser and the sanitizer.

Everything here works on plain strings and never raises on odd input. The
fence helpers treat any line whose stripped form starts with three backticks
as a fence line; a fence line opens a block when none is open and closes it
otherwise, regardless of any tag it carries.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterator

FENCE = "```"

_UNICODE_SPACES_RE = re.compile(r"[\u00A0\u1680\u2000-\u200A\u202F\u205F\u3000]")
_ZERO_WIDTH_RE = re.compile(r"[\u200B-\u200D\uFEFF]")
_TRAILING_WHITESPACE_RE = re.compile(r"[ \t]+$", re.MULTILINE)
_EXCESSIVE_NEWLINES_RE = re.compile(r"\n{4,}")
_FENCE_TAG_RE = re.compile(r"^\s*```\s*([\w+#.-]*)")


def normalize_content(content: str) -> str:
    """Return ``content`` with whitespace quirks of model output ironed out.

    Exotic Unicode spaces become plain spaces and zero-width characters are
    dropped before line endings are unified, so that trailing-whitespace
    stripping and blank-line collapsing see the final characters. Applying
    the function twice gives the same result as applying it once.
    """
    if not content:
        return ""
    text = _UNICODE_SPACES_RE.sub(" ", content)
    text = _ZERO_WIDTH_RE.sub("", text)
    text = text.replace("\r\n", "\n").replace("\r", "\n")
    text = _TRAILING_WHITESPACE_RE.sub("", text)
    text = collapse_blank_lines(text)
    return text.strip()


def collapse_blank_lines(text: str) -> str:
    """Collapse runs of three or more blank lines down to two."""
    return _EXCESSIVE_NEWLINES_RE.sub("\n\n\n", text)


def is_fence_line(line: str) -> bool:
    return line.lstrip().startswith(FENCE)


def fence_tag(line: str) -> str:
    """Return the language tag of a fence line ("" when untagged)."""
    match = _FENCE_TAG_RE.match(line)
    return match.group(1) if match else ""


def count_fence_lines(text: str) -> int:
    return sum(1 for line in text.split("\n") if is_fence_line(line))


@dataclass
class FencedLine:
    """One line of a document together with its fence context.

    ``role`` is ``"open"`` or ``"close"`` for fence lines, ``"code"`` for
    lines inside a block and ``"prose"`` for everything else. ``tag`` is the
    tag of the enclosing block (or of the block a fence line opens/closes).
    """

    index: int
    text: str
    role: str
    tag: str = ""

    @property
    def in_code(self) -> bool:
        return self.role != "prose"


def iter_fenced_lines(text: str) -> Iterator[FencedLine]:
    """Yield every line of ``text`` annotated with its fence role."""
    open_tag: str | None = None
    for index, line in enumerate(text.split("\n")):
        if is_fence_line(line):
            if open_tag is None:
                open_tag = fence_tag(line)
                yield FencedLine(index, line, "open", open_tag)
            else:
                yield FencedLine(index, line, "close", open_tag)
                open_tag = None
        elif open_tag is not None:
            yield FencedLine(index, line, "code", open_tag)
        else:
            yield FencedLine(index, line, "prose")


@dataclass
class CodeBlock:
    """A fenced block located by :func:`iter_code_blocks`."""

    tag: str
    body: str
    start_line: int
    end_line: int | None  # None when the block is never closed


def iter_code_blocks(text: str) -> Iterator[CodeBlock]:
    """Yield the fenced blocks of ``text`` in document order."""
    current: list[str] = []
    start: int | None = None
    tag = ""
    for fenced in iter_fenced_lines(text):
        if fenced.role == "open":
            current, start, tag = [], fenced.index, fenced.tag
        elif fenced.role == "code":
            current.append(fenced.text)
        elif fenced.role == "close" and start is not None:
            yield CodeBlock(tag=tag, body="\n".join(current), start_line=start, end_line=fenced.index)
            current, start, tag = [], None, ""
    if start is not None:
        yield CodeBlock(tag=tag, body="\n".join(current), start_line=start, end_line=None)


def preview(text: str, limit: int = 200) -> str:
    """Return a single-line excerpt of ``text`` at most ``limit`` chars long (plus an ellipsis)."""
    excerpt = text[:limit] + ("..." if len(text) > limit else "")
    return " ".join(excerpt.split())
