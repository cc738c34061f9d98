"""Locate, validate and canonicalize ```search-replace edit blocks.

Each block body is read line by line with a three-state machine::

    outside --"<<<<<<< SEARCH"--> search --"======="--> replace
       ^                                                  |
       +-----------------">>>>>>> REPLACE"---------------+

``FILE:`` declarations and blank lines only mean something while outside an
operation; inside one every line is payload and is reproduced untouched.
Marker lines are recognised with a tolerant spelling (seven or more marker
characters, any spacing, any case) and re-emitted in their canonical form.

Invalid blocks are quarantined: the whole fence is replaced with an HTML
comment naming the errors. Rewrites are collected first and applied in one
pass so that block offsets computed against the input stay valid.
"""

from __future__ import annotations

import logging
import os
import re

from revguard_core.config import get_limit
from revguard_core.patches.models import BlockValidation, EditBlock, SearchReplace
from revguard_core.utils.logs import log_event
from revguard_core.utils.text import preview

logger = logging.getLogger(__name__)

SEARCH_MARKER = "<<<<<<< SEARCH"
SEPARATOR_MARKER = "======="
REPLACE_MARKER = ">>>>>>> REPLACE"
BLOCK_FENCE = "```search-replace"
INVALID_BLOCK_HEADER = "INVALID SEARCH-REPLACE BLOCK REMOVED"

SEARCH_REPLACE_BLOCK_RE = re.compile(r"```search-replace\n(.*?)```", re.DOTALL)
_SEARCH_MARKER_RE = re.compile(r"^\s*<{7,}\s*SEARCH\s*$", re.IGNORECASE)
_SEPARATOR_MARKER_RE = re.compile(r"^\s*={7,}\s*$")
_REPLACE_MARKER_RE = re.compile(r"^\s*>{7,}\s*REPLACE\s*$", re.IGNORECASE)
_FILE_DECLARATION_RE = re.compile(r"^\s*FILE:[ \t]*(.*?)\s*$", re.IGNORECASE)
_DRIVE_PATH_RE = re.compile(r"^[A-Za-z]:[\\/]")
_DASH_RUN_RE = re.compile(r"-{2,}")


class TextPatcher:
    """Apply many in-place replacements to a string without rescanning it.

    Edits are expressed against offsets in the *original* string. They are
    stored as they arrive and applied in a single left-to-right pass that
    accumulates the length drift, so callers never adjust offsets
    themselves.
    """

    def __init__(self, content: str):
        self._content = content
        self._edits: list[tuple[int, int, str]] = []

    def replace_at(self, index: int, length: int, replacement: str) -> None:
        self._edits.append((index, length, replacement))

    @property
    def offset(self) -> int:
        """Net change in length once every recorded edit is applied."""
        return sum(len(replacement) - length for _, length, replacement in self._edits)

    def apply(self) -> str:
        pieces: list[str] = []
        cursor = 0
        for index, length, replacement in sorted(self._edits, key=lambda edit: edit[0]):
            if index < cursor:
                raise ValueError(f"Overlapping edit at offset {index}")
            pieces.append(self._content[cursor:index])
            pieces.append(replacement)
            cursor = index + length
        pieces.append(self._content[cursor:])
        return "".join(pieces)


def _scan_block(content: str) -> tuple[str | None, list[SearchReplace], int, str]:
    """Return (file_path, operations, open_operation_index, canonical_content).

    ``open_operation_index`` is the 1-based number of an operation left open
    at the end of the block, or 0 when every operation was closed.
    """
    out: list[str] = []
    file_path: str | None = None
    operations: list[SearchReplace] = []
    state = "outside"
    search_lines: list[str] = []
    replace_lines: list[str] = []

    for line in content.split("\n"):
        if state == "outside":
            if _SEARCH_MARKER_RE.match(line):
                state, search_lines = "search", []
                out.append(SEARCH_MARKER)
                continue
            declaration = _FILE_DECLARATION_RE.match(line)
            if declaration and file_path is None:
                file_path = declaration.group(1)
                out.append(f"FILE: {file_path}")
                continue
            if not line.strip() and out and not out[-1].strip():
                continue
            out.append(line)
        elif state == "search":
            if _SEPARATOR_MARKER_RE.match(line):
                state, replace_lines = "replace", []
                out.append(SEPARATOR_MARKER)
                continue
            search_lines.append(line)
            out.append(line)
        else:
            if _REPLACE_MARKER_RE.match(line):
                operations.append(SearchReplace(search="\n".join(search_lines), replace="\n".join(replace_lines)))
                state = "outside"
                out.append(REPLACE_MARKER)
                continue
            replace_lines.append(line)
            out.append(line)

    open_index = len(operations) + 1 if state != "outside" else 0
    return file_path, operations, open_index, "\n".join(out)


def _is_absolute(file_path: str) -> bool:
    return file_path.startswith(("/", "\\")) or bool(_DRIVE_PATH_RE.match(file_path))


def validate_block(
    content: str,
    repo_root: str | None,
    start: int = 0,
    end: int = 0,
    config: dict | None = None,
) -> BlockValidation:
    """Validate the body of one search-replace fence.

    The existence check against ``repo_root`` only ever produces a warning:
    a missing file may be one the edit is about to create, and the file
    system can change again before the edit is applied anyway.
    """
    validation = BlockValidation(start=start, end=end, content=content)
    file_path, operations, open_index, canonical = _scan_block(content)
    validation.normalized = canonical

    if file_path is None:
        validation.errors.append("Missing FILE declaration")
        return validation
    if not file_path:
        validation.errors.append("Empty file path")
        return validation

    path_is_safe = True
    if ".." in file_path:
        validation.errors.append("File path contains directory traversal")
        path_is_safe = False
    if _is_absolute(file_path):
        validation.errors.append("File path is absolute")
        path_is_safe = False
    if path_is_safe and repo_root is not None and not os.path.exists(os.path.join(repo_root, file_path)):
        validation.warnings.append(f"File does not exist: {file_path}")

    if open_index:
        validation.errors.append(f"Unterminated SEARCH/REPLACE operation {open_index}")
    if not operations:
        validation.errors.append("No valid SEARCH/REPLACE operations found")

    max_search = get_limit(config, "max_search_chars")
    max_replace = get_limit(config, "max_replace_chars")
    for number, operation in enumerate(operations, 1):
        if not operation.search.strip():
            validation.errors.append(f"Empty search text in operation {number}")
        if len(operation.search) > max_search:
            validation.warnings.append(
                f"Search text is very long in operation {number} ({len(operation.search)} chars)"
            )
        if len(operation.replace) > max_replace:
            validation.warnings.append(
                f"Replace text is very long in operation {number} ({len(operation.replace)} chars)"
            )

    if validation.is_valid:
        validation.block = EditBlock(file_path=file_path, operations=operations)
    return validation


def extract_edit_blocks(text: str, repo_root: str | None = None, config: dict | None = None) -> list[BlockValidation]:
    """Validate every search-replace fence in ``text`` without rewriting anything."""
    return [
        validate_block(match.group(1), repo_root, match.start(), match.end(), config)
        for match in SEARCH_REPLACE_BLOCK_RE.finditer(text)
    ]


def invalid_block_marker(errors: list[str], content: str, preview_chars: int = 200) -> str:
    """Build the HTML comment that stands in for a quarantined block."""
    excerpt = _DASH_RUN_RE.sub(lambda m: " ".join(m.group(0)), preview(content, preview_chars).replace("`", "'"))
    return (
        f"<!-- {INVALID_BLOCK_HEADER}\n"
        f"Errors: {'; '.join(errors)}\n"
        f"{f'Preview: {excerpt}'.rstrip()}\n"
        "Original content preserved but not executable.\n"
        "-->"
    )


def optimize_search_replace_blocks(
    text: str, repo_root: str | None, config: dict | None = None
) -> tuple[str, list[BlockValidation]]:
    """Quarantine invalid blocks and canonicalize valid ones, in place."""
    patcher = TextPatcher(text)
    validations = extract_edit_blocks(text, repo_root, config)
    preview_chars = get_limit(config, "preview_chars")

    for index, validation in enumerate(validations):
        log_event(
            logger,
            "Search-replace block validation",
            block_index=index,
            is_valid=validation.is_valid,
            errors=len(validation.errors),
            warnings=len(validation.warnings),
        )
        length = validation.end - validation.start
        if not validation.is_valid:
            log_event(
                logger,
                "Invalid search-replace block quarantined",
                logging.WARNING,
                block_index=index,
                content_length=len(validation.content),
            )
            patcher.replace_at(
                validation.start, length, invalid_block_marker(validation.errors, validation.content, preview_chars)
            )
            continue

        if validation.normalized != validation.content:
            patcher.replace_at(validation.start, length, f"{BLOCK_FENCE}\n{validation.normalized}```")
            log_event(
                logger,
                "Search-replace block canonicalized",
                block_index=index,
                original_length=len(validation.content),
                optimized_length=len(validation.normalized),
            )
        if validation.warnings:
            log_event(
                logger,
                "Search-replace block warnings",
                logging.WARNING,
                block_index=index,
                warnings=len(validation.warnings),
            )

    return patcher.apply(), validations
