"""Turn a raw model transcript into text that is safe to show and to apply.

The pass runs in fixed phases:

1. normalize whitespace;
2. validate search-replace blocks, quarantining invalid ones and
   canonicalizing valid ones;
3. scan ordinary code blocks (advisory, logs only);
4. classify safety on the normalized input. Critical content replaces the
   whole transcript with a notice, anything lower is redacted in place;
5. normalize markdown structure and re-balance code fences;
6. mark script blocks for later AST work and drop malformed stray lines;
7. score the result (informational).

Running the pass on its own output changes nothing.
"""

from __future__ import annotations

import logging

from revguard_core.patches.blocks import optimize_search_replace_blocks
from revguard_core.patches.models import SanitizeReport, Severity
from revguard_core.patches.safety import (
    aggregate_severity,
    apply_safety_filters,
    classify,
    safety_failure_notice,
    scan_code_blocks,
)
from revguard_core.patches.structure import (
    apply_advanced_optimizations,
    optimize_content_structure,
    validate_code_block_structure,
    validate_final_output,
)
from revguard_core.utils.logs import log_event
from revguard_core.utils.text import normalize_content

logger = logging.getLogger(__name__)


def sanitize_response(raw: str, repo_root=None, config: dict | None = None) -> SanitizeReport:
    """Run the full pass over ``raw`` and report what happened.

    If block validation or the code scan raises, the untouched input is
    returned with ``fell_back`` set. The safety classification is still
    computed in that case, so callers must check ``severity`` themselves.
    """
    if not isinstance(raw, str):
        if raw is not None:
            logger.warning("Invalid response provided to sanitize_response (%s)", type(raw).__name__)
        return SanitizeReport(text="")
    if not raw:
        return SanitizeReport(text="")

    log_event(logger, "Starting response optimization", original_length=len(raw))
    normalized = normalize_content(raw)
    findings = classify(normalized)
    severity = aggregate_severity(findings)

    try:
        text, validations = optimize_search_replace_blocks(normalized, repo_root, config)
        scan_code_blocks(text)
    except Exception:
        logger.exception("Code block validation failed; returning the response unmodified")
        return SanitizeReport(text=raw, findings=findings, severity=severity, fell_back=True)

    valid = sum(1 for validation in validations if validation.is_valid)
    invalid = len(validations) - valid

    if findings:
        log_event(
            logger,
            "Safety validation found issues",
            logging.ERROR if severity >= Severity.HIGH else logging.WARNING,
            severity=severity.label,
            issues=len(findings),
        )
    if severity == Severity.CRITICAL:
        logger.error("Critical security issues detected; replacing the response with a safety notice")
        return SanitizeReport(
            text=safety_failure_notice(findings),
            valid_blocks=0,
            invalid_blocks=invalid,
            findings=findings,
            severity=severity,
        )
    if findings:
        text = apply_safety_filters(text)

    text = optimize_content_structure(text)
    text = validate_code_block_structure(text)
    text = apply_advanced_optimizations(text, repo_root)

    score, issues = validate_final_output(text, raw)
    log_event(
        logger,
        "Response optimization completed",
        original_length=len(raw),
        optimized_length=len(text),
        quality_score=score,
        issues=len(issues),
    )
    if issues:
        logger.warning("Final validation detected issues: %s", "; ".join(issues))

    return SanitizeReport(
        text=text,
        valid_blocks=valid,
        invalid_blocks=invalid,
        findings=findings,
        severity=severity,
        quality_issues=issues,
        quality_score=score,
    )


def sanitize(raw: str, repo_root=None, config: dict | None = None) -> str:
    """Return the sanitized text only. See :func:`sanitize_response`."""
    return sanitize_response(raw, repo_root, config).text
