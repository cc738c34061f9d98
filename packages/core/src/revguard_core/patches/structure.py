"""Markdown structure passes run after blocks are validated.

Only prose lines are ever reformatted. Lines inside a fenced block, and
search-replace payload in particular, are carried through byte for byte.
"""

from __future__ import annotations

import logging
import os
import re

from revguard_core.patches.safety import SCRIPT_LANGUAGES
from revguard_core.utils.logs import log_event
from revguard_core.utils.text import FENCE, collapse_blank_lines, count_fence_lines, iter_fenced_lines

logger = logging.getLogger(__name__)

AST_END_MARKER = "<!-- /AST-READY -->"

_HEADING_SPACING_RE = re.compile(r"^(#+)([^\s#])")
_LIST_SPACING_RE = re.compile(r"^(\s*[-*+])([^\s\-*+])")
_MALFORMED_LINE_RE = re.compile(r"^(?:={7,}|<{7,}|>{7,}|-{20,}|\+{20,}|#{10,})$")


def ast_ready_marker(tag: str) -> str:
    return f"<!-- AST-READY: {tag} -->"


def _fix_list_item(line: str) -> str:
    match = _LIST_SPACING_RE.match(line)
    if not match:
        return line
    # "*word*" is emphasis, not a list item.
    if match.group(1).strip() == "*" and "*" in line[match.end(1) :]:
        return line
    return f"{match.group(1)} {line[match.end(1):]}"


def optimize_content_structure(content: str) -> str:
    """Space out headings and list markers in prose and tag untagged code fences."""
    out = []
    for fenced in iter_fenced_lines(content):
        line = fenced.text
        if fenced.role == "prose":
            line = _HEADING_SPACING_RE.sub(r"\1 \2", line)
            line = _fix_list_item(line)
        elif fenced.role == "open" and line.strip() == FENCE:
            line = line.replace(FENCE, f"{FENCE}text", 1)
        out.append(line)
    return "\n".join(out)


def validate_code_block_structure(content: str) -> str:
    """Append a closing fence when the fence lines do not pair up."""
    fences = count_fence_lines(content)
    if fences % 2 == 0:
        return content
    logger.warning("Unbalanced code block markers detected (%d fence lines)", fences)
    if content.endswith(FENCE):
        return content
    return f"{content}\n{FENCE}"


def prepare_for_ast_optimizations(content: str) -> str:
    """Bracket JavaScript and TypeScript blocks with ``AST-READY`` comments.

    A block whose opening fence is already preceded by its marker is left
    alone.
    """
    out: list[str] = []
    wrapping = False
    for fenced in iter_fenced_lines(content):
        if fenced.role == "open" and fenced.tag.lower() in SCRIPT_LANGUAGES:
            marker = ast_ready_marker(fenced.tag)
            if not out or out[-1] != marker:
                out.append(marker)
                wrapping = True
        out.append(fenced.text)
        if fenced.role == "close" and wrapping:
            out.append(AST_END_MARKER)
            wrapping = False
    return "\n".join(out)


def apply_context_aware_optimizations(content: str, repo_root) -> str:
    # Hook for repository-aware rewrites; currently identity.
    log_event(
        logger,
        "Context-aware optimization pass",
        logging.DEBUG,
        repo=os.path.basename(os.fspath(repo_root)) if repo_root else "",
        content_length=len(content),
    )
    return content


def remove_malformed_patterns(content: str) -> str:
    """Drop stray marker and rule lines outside search-replace blocks."""
    kept = [
        fenced.text
        for fenced in iter_fenced_lines(content)
        if (fenced.role == "code" and fenced.tag == "search-replace")
        or not _MALFORMED_LINE_RE.match(fenced.text.strip())
    ]
    return collapse_blank_lines("\n".join(kept)).strip()


def apply_advanced_optimizations(content: str, repo_root) -> str:
    content = prepare_for_ast_optimizations(content)
    content = apply_context_aware_optimizations(content, repo_root)
    return remove_malformed_patterns(content)


def validate_final_output(optimized: str, original: str) -> tuple[int, list[str]]:
    """Score the sanitized text against its input; returns ``(score, issues)``.

    Purely informational, the text itself is never changed here.
    """
    issues = []
    score = 100

    if original and (len(original) - len(optimized)) / len(original) > 0.5:
        issues.append("Excessive content reduction (>50%)")
        score -= 20
    if len(optimized) < 10 and len(original) > 100:
        issues.append("Output too short compared to input")
        score -= 30
    if count_fence_lines(optimized) % 2:
        issues.append("Unbalanced code block markers")
        score -= 15
    if "search-replace" in original and "search-replace" not in optimized:
        issues.append("Search-replace blocks were removed")
        score -= 25

    return max(0, score), issues
