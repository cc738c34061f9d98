from __future__ import annotations

import logging

try:
    from openai import OpenAI as _OpenAI
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]

from revguard_core.providers.base import BaseGenerator
from revguard_core.utils.logs import log_event

logger = logging.getLogger(__name__)


class OpenAIGenerator(BaseGenerator):
    MODEL = "gpt-4o"
    TEMPERATURE = 0.1

    def __init__(self, api_key: str, model: str | None = None):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. Install it with: pip install 'revguard[openai]'"
            )
        self.client = _OpenAI(api_key=api_key)
        self.model = model or self.MODEL

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        choice = response.choices[0]
        if choice.finish_reason == "length":
            logger.warning("OpenAI response was truncated at max_tokens")
        if response.usage is not None:
            log_event(
                logger,
                "OpenAI usage",
                logging.DEBUG,
                prompt_tokens=response.usage.prompt_tokens,
                completion_tokens=response.usage.completion_tokens,
            )
        return choice.message.content or ""
