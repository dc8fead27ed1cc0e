"""Minimal helpers for opt-in debug timing."""

from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from typing import Callable, Iterator

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def debug_enabled() -> bool:
    """Return True when ``VIBSCOPE_DEBUG`` asks for timing output."""
    return os.getenv("VIBSCOPE_DEBUG", "").lower() in _TRUTHY


@contextmanager
def time_block(label: str, *, emitter: Callable[[str], None] | None = None) -> Iterator[None]:
    """
    Context manager that reports elapsed time when debugging is enabled.

    Messages go to ``emitter`` when given, otherwise to this module's logger
    at DEBUG level.
    """
    if not debug_enabled():
        yield
        return

    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        message = f"[DEBUG] {label} took {elapsed_ms:.3f} ms"
        if emitter is not None:
            emitter(message)
        else:
            logger.debug(message)
