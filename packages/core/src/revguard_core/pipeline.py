"""Generation orchestration: prompt in, sanitized transcript and applied edits out."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from revguard_core.config import get_limit
from revguard_core.patches.models import SanitizeReport, Severity
from revguard_core.patches.sanitizer import sanitize_response
from revguard_core.providers.anthropic import AnthropicGenerator
from revguard_core.providers.openai import OpenAIGenerator
from revguard_core.utils.context import build_repository_context
from revguard_core.utils.logs import log_event

logger = logging.getLogger(__name__)


class TranscriptGenerator(Protocol):
    def generate(self, prompt: str, repository_context: str) -> str | None: ...


@dataclass
class ApplyOutcome:
    """What an applier did with one edit block."""

    file_path: str
    applied: int = 0  # operations applied
    error: str | None = None


class EditApplier(Protocol):
    def __call__(self, text: str, repo_root) -> list[ApplyOutcome]: ...


@dataclass
class GenerationResult:
    success: bool
    is_error_fallback: bool = False
    error_message: str | None = None
    changes_applied: int = 0
    responses: list[SanitizeReport] = field(default_factory=list)
    apply_errors: list[str] = field(default_factory=list)


def get_generator(config: dict):
    model = config["model"]
    if model == "anthropic":
        return AnthropicGenerator(api_key=config["anthropic_api_key"], model=config.get("model_name"))
    if model == "openai":
        return OpenAIGenerator(api_key=config["openai_api_key"], model=config.get("model_name"))
    raise ValueError(f"Unknown model provider: {model!r}. Choose 'anthropic' or 'openai'.")


def _apply(applier: EditApplier, report: SanitizeReport, repo_root, result: GenerationResult) -> None:
    if report.fell_back:
        logger.error("Sanitizer fell back to the raw response; refusing to apply its edits")
        result.apply_errors.append("Response could not be sanitized; edits not applied")
        return
    if report.severity == Severity.CRITICAL or not report.valid_blocks:
        return
    try:
        outcomes = applier(report.text, repo_root)
    except Exception as e:
        logger.exception("Edit applier failed")
        result.apply_errors.append(str(e))
        return
    for outcome in outcomes:
        result.changes_applied += outcome.applied
        if outcome.error:
            logger.warning("Could not apply edits to %s: %s", outcome.file_path, outcome.error)
            result.apply_errors.append(f"{outcome.file_path}: {outcome.error}")


def run_generation(
    prompt: str,
    repo_root,
    generator: TranscriptGenerator,
    applier: EditApplier | None = None,
    config: dict | None = None,
) -> GenerationResult:
    """Generate edits for ``prompt``, sanitize every response and optionally apply them.

    The generator may return a single transcript or a list of them. Only
    sanitized text ever reaches ``applier``; responses the sanitizer could
    not process, or whose content was critical, are never applied.
    """
    context = build_repository_context(repo_root, get_limit(config, "repo_map_limit"))
    log_event(logger, "Starting generation", prompt_length=len(prompt), context_length=len(context))

    try:
        transcript = generator.generate(prompt, context)
    except Exception as e:
        logger.exception("Transcript generation failed")
        return GenerationResult(success=False, is_error_fallback=True, error_message=str(e))
    if not transcript:
        logger.error("Transcript generator returned no response")
        return GenerationResult(
            success=False, is_error_fallback=True, error_message="The generator returned no response."
        )

    raw_responses = [transcript] if isinstance(transcript, str) else list(transcript)
    result = GenerationResult(success=True)
    for raw in raw_responses:
        report = sanitize_response(raw, repo_root, config)
        result.responses.append(report)
        if applier is not None:
            _apply(applier, report, repo_root, result)

    log_event(
        logger,
        "Generation completed",
        responses=len(result.responses),
        changes_applied=result.changes_applied,
        apply_errors=len(result.apply_errors),
    )
    return result
