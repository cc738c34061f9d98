"""Render a parsed review as a copy-pasteable prompt for another AI agent.

The section markers are consumed verbatim by downstream tooling, so the
layout below is fixed byte for byte. An empty string means "nothing worth
prompting about" and callers check for it before appending the block
anywhere.
"""

from __future__ import annotations

import logging

from revguard_core.review.parser import ParsedReview, parse_review
from revguard_core.utils.logs import log_event

logger = logging.getLogger(__name__)

PROMPT_PREAMBLE = "Please address the comments from this code review:"


def render_agent_prompt(review: ParsedReview) -> str:
    if review.is_empty:
        return ""

    parts = [f"<details>\n<summary>Prompt for AI Agents</summary>\n\n~~~markdown\n{PROMPT_PREAMBLE}\n"]

    if review.overall_comments:
        parts.append("## Overall Comments\n")
        parts.extend(f"- {comment}\n" for comment in review.overall_comments)
        parts.append("\n")

    if review.individual_comments:
        parts.append("## Individual Comments\n\n")
        for index, comment in enumerate(review.individual_comments, 1):
            parts.append(f"### Comment {index}\n")
            if comment.location:
                parts.append(f" `{comment.location}` \n")
            if comment.code_context:
                context = "\n".join(comment.code_context)
                parts.append(f"```\n{context}\n```\n\n")
            parts.append(f"<issue_to_address>\n{comment.issue_to_address}\n</issue_to_address>\n\n")

    parts.append("~~~\n</details>")
    prompt = "".join(parts)

    log_event(
        logger,
        "Generated agent prompt",
        prompt_length=len(prompt),
        has_overall_comments=bool(review.overall_comments),
        has_individual_comments=bool(review.individual_comments),
    )
    return prompt


def generate_agent_prompt(review_content: str) -> str:
    """Parse ``review_content`` and render it; ``""`` when nothing actionable was found."""
    if not isinstance(review_content, str):
        logger.warning("Invalid review content provided to generate_agent_prompt")
        return ""
    if not review_content:
        return ""
    review = parse_review(review_content)
    if review.is_empty:
        logger.info("No actionable comments found in review content")
        return ""
    return render_agent_prompt(review)
