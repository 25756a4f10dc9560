"""
Configuration constants and environment parsing for xrfstream.

All XRFSTREAM_* environment variables are parsed here and exported as
module-level constants. Components import from this module rather than
reading os.environ directly.
"""
from __future__ import annotations

import os


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    """Parse an integer from environment, returning default on missing/invalid."""
    val = os.getenv(name)
    if not val:
        return default
    try:
        return max(minimum, int(float(val)))
    except ValueError:
        return default


def _bool_env(name: str, default: bool) -> bool:
    """Parse a boolean flag from environment."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Publish channel
# ---------------------------------------------------------------------------
PUB_ENDPOINT: str = os.getenv("XRFSTREAM_PUB_ENDPOINT", "tcp://*:43434")
"""Bind address of the counts publisher."""

PUB_BLOCKING: bool = _bool_env("XRFSTREAM_PUB_BLOCKING", False)
"""Block on send when the high-water mark is reached instead of dropping."""

PUB_LINGER_MS: int = _int_env("XRFSTREAM_PUB_LINGER_MS", 1000)
"""Milliseconds close() waits for queued messages to leave the socket."""

PUB_SNDHWM: int = _int_env("XRFSTREAM_PUB_SNDHWM", 1000, minimum=1)
"""Send high-water mark (messages queued per subscriber)."""

SEND_SPECTRA: bool = _bool_env("XRFSTREAM_SEND_SPECTRA", False)
"""Publish full spectra instead of per-element counts."""


# ---------------------------------------------------------------------------
# Sinks and event log
# ---------------------------------------------------------------------------
SINK_QUEUE_SIZE: int = _int_env("XRFSTREAM_SINK_QUEUE_SIZE", 0)
"""Maximum frames queued per sink worker; 0 means unbounded."""

EVENT_LOG_PATH: str = os.getenv("XRFSTREAM_EVENT_LOG", "")
"""Optional JSON-lines stream event log path."""
