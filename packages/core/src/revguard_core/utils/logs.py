"""Structured log events on top of the standard logging module.

Phase boundaries report counts and lengths only. Untrusted model output must
never be passed as an attribute value; callers pass ``len(text)`` instead.
"""

from __future__ import annotations

import logging


def log_event(logger: logging.Logger, message: str, level: int = logging.INFO, **attrs) -> None:
    """Emit ``message`` with ``attrs`` rendered as ``key=value`` pairs.

    The raw mapping is also attached to the record as ``record.attributes`` so
    handlers that ship structured logs can pick it up unchanged.
    """
    if not logger.isEnabledFor(level):
        return
    rendered = " ".join(f"{key}={value}" for key, value in attrs.items())
    logger.log(level, "%s %s" if rendered else "%s%s", message, rendered, extra={"attributes": attrs})
