"""Safety screening of model output.

Two independent checks live here:

* the advisory scan of ordinary fenced code blocks, which only logs, and
* the tiered classification of the whole transcript, which decides between
  wholesale replacement (critical) and targeted redaction (anything lower).

Rules are data: a table of ``SafetyRule(pattern, description, severity)``.
Adding a rule means adding a row, and the tests iterate over the table.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from revguard_core.patches.blocks import INVALID_BLOCK_HEADER
from revguard_core.patches.models import SafetyFinding, Severity
from revguard_core.utils.logs import log_event
from revguard_core.utils.text import iter_code_blocks

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SafetyRule:
    pattern: re.Pattern
    description: str
    severity: Severity


SAFETY_RULES: tuple[SafetyRule, ...] = (
    # critical
    SafetyRule(re.compile(r"rm\s+-rf\s+/"), "Root filesystem deletion", Severity.CRITICAL),
    SafetyRule(re.compile(r"sudo\s+rm\s+-rf"), "Privileged file deletion", Severity.CRITICAL),
    SafetyRule(
        re.compile(r"/etc/(?:passwd|shadow|gshadow)|(?<![\w-])(?:passwd|shadow)(?![\w-])", re.IGNORECASE),
        "Password file access",
        Severity.CRITICAL,
    ),
    # high
    SafetyRule(re.compile(r"/dev/null"), "System device access", Severity.HIGH),
    SafetyRule(re.compile(r"eval\s*\(", re.IGNORECASE), "Code evaluation", Severity.HIGH),
    SafetyRule(re.compile(r"exec\s*\(", re.IGNORECASE), "Command execution", Severity.HIGH),
    SafetyRule(re.compile(r"system\s*\(", re.IGNORECASE), "System command", Severity.HIGH),
    SafetyRule(re.compile(r"shell_exec", re.IGNORECASE), "Shell execution", Severity.HIGH),
    # medium
    SafetyRule(re.compile(r"process\.exit", re.IGNORECASE), "Process termination", Severity.MEDIUM),
    SafetyRule(re.compile(r"document\.cookie", re.IGNORECASE), "Cookie access", Severity.MEDIUM),
    SafetyRule(re.compile(r"localStorage", re.IGNORECASE), "Local storage access", Severity.MEDIUM),
)

# Reported by the advisory code-block scan only; never changes the text.
CODE_BLOCK_PATTERNS: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"eval\s*\(", re.IGNORECASE), "eval() usage detected"),
    (re.compile(r"exec\s*\(", re.IGNORECASE), "exec() usage detected"),
    (re.compile(r"system\s*\(", re.IGNORECASE), "system() usage detected"),
    (re.compile(r"rm\s+-rf", re.IGNORECASE), "Dangerous file deletion command"),
    (re.compile(r"sudo\s+", re.IGNORECASE), "Privilege escalation command"),
)

SCRIPT_LANGUAGES = frozenset({"javascript", "typescript", "js", "ts", "jsx", "tsx"})

FILTERED_MARKER_PREFIX = "<!-- DANGEROUS COMMAND FILTERED: "

# Existing filtered markers and quarantined-block comments are matched (and
# kept) before any dangerous span inside them can be. Wrapping a span inside a
# quarantine comment would close that comment early.
_REDACTION_RE = re.compile(
    r"(<!-- DANGEROUS COMMAND FILTERED: [^\n]*? -->"
    r"|<!-- " + re.escape(INVALID_BLOCK_HEADER) + r"\n(?s:.*?)\n-->)"
    r"|(sudo\s+rm[^\n]*|rm\s+-rf[^\n]*|eval\s*\([^)\n]*\)|exec\s*\([^)\n]*\))",
    re.IGNORECASE,
)

SAFETY_NOTICE_TEMPLATE = """# Security Validation Failed

The AI response contained critical security issues and has been filtered for safety:

{issues}

Please review the original request and consider:
1. Using more specific and secure prompts
2. Avoiding system-level operations
3. Focusing on application-level code changes

For assistance, please contact the development team."""


def classify(content: str) -> list[SafetyFinding]:
    """Return one finding per rule that matches anywhere in ``content``."""
    return [SafetyFinding(rule.description, rule.severity) for rule in SAFETY_RULES if rule.pattern.search(content)]


def aggregate_severity(findings: list[SafetyFinding]) -> Severity:
    return max((finding.severity for finding in findings), default=Severity.LOW)


def safety_failure_notice(findings: list[SafetyFinding]) -> str:
    """The fixed text that replaces a transcript with critical findings."""
    return SAFETY_NOTICE_TEMPLATE.format(issues="\n".join(f"- {finding}" for finding in findings))


def apply_safety_filters(content: str) -> str:
    """Wrap dangerous command spans in inert HTML comments instead of deleting them."""

    def _wrap(match: re.Match) -> str:
        if match.group(1):
            return match.group(1)
        return f"{FILTERED_MARKER_PREFIX}{match.group(2)} -->"

    return _REDACTION_RE.sub(_wrap, content)


def validate_javascript_code(content: str) -> list[str]:
    issues = []
    if content.count("{") != content.count("}"):
        issues.append("Unbalanced curly braces")

    # Heuristic only: a quote opens a string until the same unescaped quote
    # closes it. Template literals may legitimately span lines.
    string_char = ""
    for line in content.split("\n"):
        previous = ""
        for char in line:
            if not string_char and char in "\"'`":
                string_char = char
            elif string_char and char == string_char and previous != "\\":
                string_char = ""
            previous = char
    if string_char:
        issues.append("Possibly unclosed string literal")
    return issues


def validate_code_content(content: str, language: str) -> list[str]:
    issues = [description for pattern, description in CODE_BLOCK_PATTERNS if pattern.search(content)]

    language = language.lower()
    if language in SCRIPT_LANGUAGES:
        issues.extend(validate_javascript_code(content))
    elif language == "json":
        try:
            json.loads(content)
        except json.JSONDecodeError:
            issues.append("Invalid JSON syntax")
    return issues


def scan_code_blocks(content: str) -> dict[int, list[str]]:
    """Check every non search-replace fenced block; returns issues keyed by opening line.

    Advisory only: nothing in ``content`` is changed.
    """
    report: dict[int, list[str]] = {}
    for block in iter_code_blocks(content):
        language = block.tag or "text"
        if language == "search-replace":
            continue
        issues = validate_code_content(block.body, language)
        if issues:
            report[block.start_line] = issues
            log_event(
                logger,
                "Code block validation issues",
                logging.WARNING,
                language=language,
                issues="; ".join(issues),
                content_length=len(block.body),
            )
    return report
