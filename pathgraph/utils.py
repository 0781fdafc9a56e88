"""
Utility helpers for the Learning-Path Graph Engine.

Provides:
- Structured logging configuration with timestamps.
- Wall-clock timing of labelled steps.
- Deterministic seed derivation from path ids.
"""

import contextlib
import hashlib
import logging
import time
from typing import Generator

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def setup_logging(
    level: int = logging.INFO,
    fmt: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    datefmt: str = "%Y-%m-%dT%H:%M:%S%z",
) -> None:
    """Configure the root logger with timestamped structured output."""
    logging.basicConfig(level=level, format=fmt, datefmt=datefmt, force=True)


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


@contextlib.contextmanager
def timed(label: str) -> Generator[None, None, None]:
    """Context manager that logs elapsed wall-clock time for *label*."""
    t0 = time.monotonic()
    try:
        yield
    finally:
        elapsed = time.monotonic() - t0
        logger.debug("%s finished in %.4fs.", label, elapsed)


# ---------------------------------------------------------------------------
# Determinism
# ---------------------------------------------------------------------------


def seed_from_path_id(path_id: str) -> int:
    """Derive a stable 64-bit seed from *path_id*.

    ``hash()`` is salted per process, so SHA-256 is used instead.
    """
    digest = hashlib.sha256(path_id.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")
