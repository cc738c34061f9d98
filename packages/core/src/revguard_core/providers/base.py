"""Base generator for code-editing transcripts.

``generate`` builds the system and user prompts and hands them to
``_call_with_retry``. Providers only supply ``__init__`` (SDK client setup)
and ``_call_api`` (one raw request returning text).

The transcript returned by ``generate`` is untrusted. Callers run it through
``revguard_core.patches.sanitizer`` before anything reads it.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from revguard_core.utils.context import build_context_section

logger = logging.getLogger(__name__)


class BaseGenerator(ABC):
    MAX_RETRIES: int = 3
    MAX_TOKENS: int = 8192

    def generate(self, prompt: str, repository_context: str) -> str | None:
        """Return the model's transcript for ``prompt``, or None after exhausting retries."""
        return self._call_with_retry(
            self._build_system_prompt(), self._build_user_prompt(prompt, repository_context)
        )

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str:
        """Make one API call and return the raw text; raise on failure."""

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str | None:
        name = type(self).__name__
        last_error: Exception | None = None
        for attempt in range(1, self.MAX_RETRIES + 1):
            try:
                return self._call_api(system_prompt, user_prompt)
            except Exception as e:
                last_error = e
            if attempt < self.MAX_RETRIES:
                delay = 2 ** (attempt - 1)
                logger.warning(
                    "%s request failed (attempt %d/%d): %s. Retrying in %ds",
                    name, attempt, self.MAX_RETRIES, last_error, delay,
                )  # fmt: skip
                time.sleep(delay)
        logger.error("%s gave up after %d attempts: %s", name, self.MAX_RETRIES, last_error)
        return None

    def _build_system_prompt(self) -> str:
        return """You are a careful senior software engineer making changes to an existing repository.

Express every file change as a search-replace block:

```search-replace
FILE: <path relative to the repository root>
<<<<<<< SEARCH
<exact lines currently in the file>
=======
<lines to put in their place>
>>>>>>> REPLACE
```

Rules:
- One block per file; a block may hold several SEARCH/REPLACE operations.
- SEARCH text must match the current file exactly and must not be empty.
- Never use absolute paths or '..' in FILE paths.
- Never include shell commands that delete files or escalate privileges.
- Keep explanations short and put them outside the blocks."""

    def _build_user_prompt(self, prompt: str, repository_context: str) -> str:
        context_section = build_context_section(repository_context)
        return f"""{context_section}
## Task
{prompt}"""
