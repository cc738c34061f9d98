from __future__ import annotations

import logging

from revguard_core.providers.base import BaseGenerator
from revguard_core.utils.logs import log_event

logger = logging.getLogger(__name__)


class AnthropicGenerator(BaseGenerator):
    MODEL = "claude-sonnet-4-20250514"
    # Kept low: the search-replace grammar must come back exactly as requested.
    TEMPERATURE = 0.2

    def __init__(self, api_key: str, model: str | None = None):
        try:
            from anthropic import Anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'revguard[anthropic]'"
            )
        self.client = Anthropic(api_key=api_key)
        self.model = model or self.MODEL

    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.TEMPERATURE,
            max_tokens=self.MAX_TOKENS,
        )
        if response.stop_reason == "max_tokens":
            logger.warning("Anthropic response hit max_tokens; trailing edit blocks may be cut off")
        usage = getattr(response, "usage", None)
        if usage is not None:
            log_event(
                logger,
                "Anthropic usage",
                logging.DEBUG,
                input_tokens=usage.input_tokens,
                output_tokens=usage.output_tokens,
            )
        return "".join(block.text for block in response.content if isinstance(block, TextBlock)).strip()
