"""Data types shared by the patch safety pipeline.

All of these live for a single sanitizer pass and are never persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum


class Severity(IntEnum):
    """Safety tiers, ordered so that ``max()`` gives the aggregate."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class SafetyFinding:
    description: str
    severity: Severity

    def __str__(self) -> str:
        return f"{self.severity.name}: {self.description}"


@dataclass
class SearchReplace:
    search: str
    replace: str


@dataclass
class EditBlock:
    """A validated instruction to rewrite parts of one file.

    Only blocks that passed validation are represented this way: the path is
    non-empty and free of traversal, there is at least one operation, and no
    operation has an empty search text.
    """

    file_path: str
    operations: list[SearchReplace] = field(default_factory=list)


@dataclass
class BlockValidation:
    """Outcome of validating one ```search-replace fence.

    ``start``/``end`` are character offsets of the whole fence (including the
    backticks) in the text the block was found in. ``normalized`` is the
    block body with canonical marker and ``FILE:`` lines.
    """

    start: int
    end: int
    content: str
    normalized: str = ""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    block: EditBlock | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass
class SanitizeReport:
    """Everything a caller may want to know about one sanitizer pass.

    ``severity`` must be checked explicitly by callers that rely on safety:
    when ``fell_back`` is set the text is the untouched input.
    """

    text: str
    valid_blocks: int = 0
    invalid_blocks: int = 0
    findings: list[SafetyFinding] = field(default_factory=list)
    severity: Severity = Severity.LOW
    quality_issues: list[str] = field(default_factory=list)
    quality_score: int = 100
    fell_back: bool = False

    @property
    def is_safe(self) -> bool:
        return not self.findings
