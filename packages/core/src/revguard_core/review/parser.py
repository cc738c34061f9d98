"""Recover structured comments from a free-form code-review narrative.

The parser makes one forward pass over the review's lines. All mutable scan
state lives in a ``_ScanState`` object and each iteration is a call to
``_step``, which returns the index of the next line to look at. Returning
the current index re-processes a line, which is how a heading or bullet that
ends an issue description gets a second chance to start something new.

Fenced code (```...```) is never mined for comments.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from revguard_core.utils.logs import log_event

logger = logging.getLogger(__name__)

# Extensions we are confident denote source files. Anything else that still
# looks like ``name.ext:line`` is accepted through the generic pattern but
# logged as a low-confidence match.
KNOWN_EXTENSIONS = (
    "ts", "js", "tsx", "jsx", "py", "java", "cpp", "c", "h", "rs", "go", "php", "rb", "swift", "kt",
    "scala", "sh", "yaml", "yml", "json", "md", "txt", "xml", "css", "scss", "less", "vue", "svelte",
    "dart", "r", "sql", "lua", "perl", "haskell", "clj", "cljs", "ml", "fs", "vb", "cs", "asm", "s",
    "S", "pas", "pp", "inc", "bat", "cmd", "ps1", "psm1", "psd1", "dockerfile", "makefile", "cmake",
    "gradle", "sbt", "toml", "ini", "cfg", "conf", "properties", "lock",
)  # fmt: skip

_LINE_NUMBER = r"[1-9][0-9]*"
_KNOWN_LOCATION_RE = re.compile(
    r"^[*\-\s]*`?([^`\s]+\.(?:" + "|".join(map(re.escape, KNOWN_EXTENSIONS)) + r"):" + _LINE_NUMBER + r")`?"
)
_GENERIC_LOCATION_RE = re.compile(r"^[*\-\s]*`?([^`\s]+\.[A-Za-z0-9_.-]+:" + _LINE_NUMBER + r")`?")
_QUOTED_LOCATION_RE = re.compile(r"`([^`\s]+\.[A-Za-z0-9_.-]+:" + _LINE_NUMBER + r")`")

_BULLET_RE = re.compile(r"^[*\-]\s+(.+)$")
_NUMBERED_RE = re.compile(r"^[0-9]+\.\s+(.+)$")
_SECTION_START_RE = re.compile(r"^(?:#{1,6}\s|[*\-]\s|[0-9]+\.\s)")
_DECORATION_RE = re.compile(r"^[#*\-=_\s]*$")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")
# Bare words of two or more letters, optionally followed by punctuation: "Consider", "bar,"
_PROSE_WORD_RE = re.compile(r"(?<!\S)[A-Za-z]{2,}[,.;:!?]?(?!\S)")

_DIAGRAM_WORDS = ("mermaid", "diagram", "flowchart")
_ACTION_CUES = ("should", "consider", "recommend", "fix", "improve", "issue")
_CODE_LINE_ENDINGS = tuple(";{}()[],")

MIN_OVERALL_COMMENT_CHARS = 10
MIN_ISSUE_START_CHARS = 10
MIN_ISSUE_CONTINUATION_CHARS = 5
CONTEXT_LOOKAHEAD = 9
MIN_PROSE_WORDS = 4
FALLBACK_SENTENCE_LIMIT = 5
FALLBACK_MIN_SENTENCE_CHARS = 30


@dataclass
class ParsedComment:
    """A review remark tied to a ``path:line`` location."""

    location: str | None = None
    code_context: list[str] | None = None
    issue_to_address: str = ""


@dataclass
class ParsedReview:
    overall_comments: list[str] = field(default_factory=list)
    individual_comments: list[ParsedComment] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.overall_comments and not self.individual_comments


@dataclass
class _ScanState:
    in_code_block: bool = False
    location: str | None = None
    code_context: list[str] | None = None
    issue: str = ""
    collecting: bool = False
    issue_lines: list[str] = field(default_factory=list)
    overall: list[str] = field(default_factory=list)
    individual: list[ParsedComment] = field(default_factory=list)

    def finish_issue(self) -> None:
        if self.collecting and self.issue_lines:
            self.issue = " ".join(self.issue_lines).strip()
        self.collecting = False
        self.issue_lines = []

    def flush_comment(self) -> None:
        if self.issue:
            self.individual.append(
                ParsedComment(location=self.location, code_context=self.code_context, issue_to_address=self.issue)
            )
        self.location = None
        self.code_context = None
        self.issue = ""


def is_diagram_related(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in _DIAGRAM_WORDS)


def match_location(line: str) -> str | None:
    """Return the ``path:line`` token a (stripped) line starts a comment with, if any."""
    match = _KNOWN_LOCATION_RE.match(line)
    if match:
        return match.group(1)
    match = _GENERIC_LOCATION_RE.match(line) or _QUOTED_LOCATION_RE.search(line)
    if not match or "://" in match.group(1):
        return None
    log_event(logger, "Low-confidence location match", logging.DEBUG, token_length=len(match.group(1)))
    return match.group(1)


def _reads_as_prose(line: str) -> bool:
    return len(_PROSE_WORD_RE.findall(line)) >= MIN_PROSE_WORDS


def _looks_like_code(raw: str) -> bool:
    stripped = raw.strip()
    if not stripped or stripped.startswith("```") or match_location(stripped):
        return False
    if raw.startswith(("+", "-", "  ", "\t")):
        return True
    return stripped.endswith(_CODE_LINE_ENDINGS) and not _reads_as_prose(stripped)


def _starts_issue(line: str) -> bool:
    return (
        len(line) > MIN_ISSUE_START_CHARS
        and not _DECORATION_RE.match(line)
        and "```" not in line
        and not line.startswith(("+", "-", "`"))
    )


def _capture_context(state: _ScanState, lines: list[str], i: int) -> int:
    context = [lines[i].strip()]
    j = i + 1
    while j < len(lines) and j <= i + CONTEXT_LOOKAHEAD:
        raw = lines[j]
        if _looks_like_code(raw):
            context.append(raw.rstrip())
        elif raw.strip():
            break
        j += 1
    state.code_context = context
    return j


def _step(state: _ScanState, lines: list[str], i: int) -> int:
    line = lines[i].strip()

    if line.startswith("```"):
        state.in_code_block = not state.in_code_block
        return i + 1
    if state.in_code_block:
        return i + 1

    location = match_location(line)
    if location:
        state.finish_issue()
        state.flush_comment()
        state.location = location
        return i + 1

    if state.location is None:
        bullet = _BULLET_RE.match(line) or _NUMBERED_RE.match(line)
        if bullet:
            comment = bullet.group(1).strip()
            if len(comment) > MIN_OVERALL_COMMENT_CHARS and not is_diagram_related(comment):
                state.overall.append(comment)
        return i + 1

    if state.collecting:
        if not line:
            state.finish_issue()
            return i + 1
        if _SECTION_START_RE.match(line):
            state.finish_issue()
            return i
        if len(line) > MIN_ISSUE_CONTINUATION_CHARS:
            state.issue_lines.append(line)
        return i + 1

    if state.code_context is None and not state.issue and ("+" in line or "-" in line):
        return _capture_context(state, lines, i)

    if not state.issue and _starts_issue(line):
        state.collecting = True
        state.issue_lines = [line]
    return i + 1


def _fallback_sentences(text: str) -> list[str]:
    """Pull actionable-sounding sentences out of a review with no structure at all."""
    pieces = (piece.strip() for piece in _SENTENCE_SPLIT_RE.split(text))
    candidates = [piece for piece in pieces if len(piece) > FALLBACK_MIN_SENTENCE_CHARS]
    sentences = []
    for candidate in candidates[:FALLBACK_SENTENCE_LIMIT]:
        lowered = candidate.lower()
        if is_diagram_related(candidate) or not any(cue in lowered for cue in _ACTION_CUES):
            continue
        sentences.append(" ".join(candidate.split()))
    return sentences


def parse_review(text: str) -> ParsedReview:
    """Parse a review narrative into overall and individual comments.

    Never raises: anything that is not a non-empty string yields an empty
    review.
    """
    if not isinstance(text, str):
        logger.warning("Invalid review content provided to parse_review (%s)", type(text).__name__)
        return ParsedReview()
    if not text:
        return ParsedReview()

    lines = text.split("\n")
    state = _ScanState()
    i = 0
    while i < len(lines):
        i = _step(state, lines, i)
    state.finish_issue()
    state.flush_comment()

    review = ParsedReview(overall_comments=state.overall, individual_comments=state.individual)
    if review.is_empty:
        review.overall_comments = _fallback_sentences(text)
        if review.overall_comments:
            log_event(
                logger, "Review had no structure; used sentence fallback", count=len(review.overall_comments)
            )

    log_event(
        logger,
        "Parsed review content",
        overall_comments=len(review.overall_comments),
        individual_comments=len(review.individual_comments),
    )
    return review
