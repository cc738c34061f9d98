"""Parse bot mentions out of issue and pull-request comments.

``parse_command`` extracts what was asked of the bot; ``get_task_type``
routes it to the task that should handle it. Routing is keyword based: exact
keyword matches are trusted, prefix matches are accepted but logged as
low-confidence so misroutes can be traced.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from revguard_core.config import DEFAULT_CONFIG
from revguard_core.utils.logs import log_event

logger = logging.getLogger(__name__)

MAX_COMMENT_CHARS = 10000

PLAN_TASK = "plan-task"
PLAN_APPROVAL_TASK = "plan-approval-task"
FULL_CODE_REVIEW = "full-code-review"
CODEX_TASK = "codex-task"
GENERAL_RESPONSE_TASK = "general-response-task"

DIRECT_APPROVALS = ("approve", "yes", "y", "ok", "okay", "lgtm")
APPROVAL_PHRASES = ("y", "yes", "ok", "okay", "approve", "i approve", "lgtm", "ship it", "looks good", "go ahead")
PLAN_KEYWORDS = ("plan", "planning", "analyze")
REVIEW_KEYWORDS = ("review", "r")
REFINEMENT_KEYWORDS = ("refine", "revise", "modify", "update", "change", "edit")
CANCELLATION_KEYWORDS = ("cancel", "reject", "no", "n", "abort", "stop")
EXECUTION_CONFIRMATIONS = ("go", "proceed", "continue", "start", "begin", "lfg", "let's go", "do it")

_HTML_TAG_RE = re.compile(r"<[^>]*>")
_MARKDOWN_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")
_MARKDOWN_FORMATTING_RE = re.compile(r"[*_`~]")
_JAVASCRIPT_URL_RE = re.compile(r"javascript:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)
_SELF_MENTION_RE = re.compile(r"self@\s*(.+?)(?=@\w+|\Z)", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_PLAN_QUERY_RE = re.compile(r"^(?:plan|planning|analyze)\s+(.+)$", re.IGNORECASE)
_REFINE_QUERY_RE = re.compile(r"^(?:refine|revise|modify|update|change|edit)\s+(.+)$", re.IGNORECASE)
_APPROVAL_VARIATION_RE = re.compile(r"^(?:ship\s+it|looks\s+good|go\s+ahead)", re.IGNORECASE)


@dataclass
class ParsedCommand:
    command: str = ""
    full_text: str = ""
    is_mention: bool = False
    user_query: str = ""
    is_dev_command: bool = False


def sanitize_comment(text: str) -> str:
    """Strip markup and script-injection fragments from a comment."""
    if not isinstance(text, str):
        return ""
    text = _HTML_TAG_RE.sub("", text)
    text = _MARKDOWN_LINK_RE.sub(r"\1", text)
    text = _MARKDOWN_FORMATTING_RE.sub("", text)
    text = _JAVASCRIPT_URL_RE.sub("", text)
    text = _EVENT_HANDLER_RE.sub("", text)
    return text.strip()


def parse_command(comment: str, mention: str = DEFAULT_CONFIG["mention"]) -> ParsedCommand:
    if not comment or not isinstance(comment, str):
        return ParsedCommand()

    text = sanitize_comment(comment)
    if len(text) > MAX_COMMENT_CHARS:
        logger.warning("Comment too long (%d chars), truncating for processing", len(text))
        text = text[:MAX_COMMENT_CHARS]

    handle = re.escape(mention.lstrip("@"))
    mention_re = re.compile(rf"@{handle}\b\s*(.*?)(?=@\w+|\Z)", re.IGNORECASE | re.DOTALL)
    match = mention_re.search(text) or _SELF_MENTION_RE.search(text)
    if match is None and not re.search(r"self@", text, re.IGNORECASE):
        return ParsedCommand(full_text=text)

    after = _WHITESPACE_RE.sub(" ", match.group(1) if match else "").strip()
    if not after:
        return ParsedCommand(is_mention=True)

    query = _PLAN_QUERY_RE.match(after) or _REFINE_QUERY_RE.match(after)
    return ParsedCommand(
        command=after.lower(),
        full_text=after,
        is_mention=True,
        user_query=query.group(1).strip() if query else "",
        is_dev_command=after.lower().startswith("dev "),
    )


def _low_confidence(kind: str, command: str) -> None:
    log_event(logger, "Low-confidence command match", logging.DEBUG, kind=kind, command_length=len(command))


def is_approval_command(command: str) -> bool:
    if command in APPROVAL_PHRASES:
        return True
    if any(command.startswith(f"{phrase} ") for phrase in APPROVAL_PHRASES) or _APPROVAL_VARIATION_RE.match(command):
        _low_confidence("approval", command)
        return True
    return False


def is_refinement_command(command: str) -> bool:
    return command in REFINEMENT_KEYWORDS


def is_cancellation_command(command: str) -> bool:
    return command in CANCELLATION_KEYWORDS


def is_execution_confirmation_command(command: str) -> bool:
    return command in EXECUTION_CONFIRMATIONS


def get_task_type(parsed: ParsedCommand | None) -> str | None:
    """Route a parsed command to a task name; ``None`` when the bot was not mentioned."""
    if parsed is None or not parsed.is_mention:
        return None
    if not parsed.command:
        return GENERAL_RESPONSE_TASK

    command = parsed.command.lower().strip()
    if command in DIRECT_APPROVALS:
        task = PLAN_APPROVAL_TASK
    elif command in PLAN_KEYWORDS or command.startswith(tuple(f"{keyword} " for keyword in PLAN_KEYWORDS)):
        task = PLAN_TASK
    elif command in REVIEW_KEYWORDS:
        task = FULL_CODE_REVIEW
    elif is_approval_command(command):
        task = PLAN_APPROVAL_TASK
    elif parsed.is_dev_command:
        task = CODEX_TASK
    else:
        task = GENERAL_RESPONSE_TASK

    log_event(logger, "Routed command", logging.DEBUG, task=task, command_length=len(command))
    return task
