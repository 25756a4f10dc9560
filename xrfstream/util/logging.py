"""Logging for the xrfstream pipeline.

Everything logs under the ``xrfstream`` namespace, which does not propagate
to the root logger. Console output goes to stderr. ``XRFSTREAM_LOG_JSON``
(or ``json_file=``) adds a JSON-lines file carrying the per-frame extras
(``detector``, ``row``, ``col``, ``routine``, ``endpoint``, ``error_type``,
``dropped``) and the emitting thread, since frames are fitted and published
off the ingest thread.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

NAMESPACE = "xrfstream"

FRAME_EXTRAS = ("detector", "row", "col", "routine", "endpoint", "error_type", "dropped")

_configured = False


def _utc_stamp(millis: bool = True) -> str:
    now = datetime.now(timezone.utc)
    if millis:
        return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    return now.strftime("%Y-%m-%d %H:%M:%S")


def _traceback_text(record: logging.LogRecord) -> str:
    return "".join(traceback.format_exception(*record.exc_info))


def _env_level() -> str:
    if os.environ.get("XRFSTREAM_DEBUG", "").strip().lower() in ("1", "true", "yes"):
        return "DEBUG"
    return os.environ.get("XRFSTREAM_LOG_LEVEL", "INFO")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with any frame extras attached."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": _utc_stamp(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        payload.update({key: getattr(record, key) for key in FRAME_EXTRAS if hasattr(record, key)})
        if record.exc_info:
            payload["traceback"] = _traceback_text(record)
        return json.dumps(payload, default=str)


class ConsoleFormatter(logging.Formatter):
    """``[time] LEVEL [module@thread] message`` for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color and sys.stderr.isatty()

    def _source(self, record: logging.LogRecord) -> str:
        source = record.name[len(NAMESPACE) + 1:] if record.name.startswith(NAMESPACE + ".") else record.name
        if record.threadName != "MainThread":
            source += f"@{record.threadName}"
        return source

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.use_color:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"
        line = f"[{_utc_stamp(millis=False)}] {level} [{self._source(record)}] {record.getMessage()}"
        if record.exc_info:
            line += "\n" + _traceback_text(record)
        return line


def configure_logging(
    *,
    level: Optional[str] = None,
    json_file: Optional[str] = None,
    use_color: bool = True,
) -> None:
    """(Re)install the xrfstream handlers.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Defaults to ``XRFSTREAM_LOG_LEVEL``
               (INFO), or DEBUG when ``XRFSTREAM_DEBUG=1``.
        json_file: JSON-lines log path. Defaults to ``XRFSTREAM_LOG_JSON``.
        use_color: Colorize console levels when stderr is a TTY.
    """
    global _configured

    numeric_level = getattr(logging, (level or _env_level()).upper(), logging.INFO)
    if json_file is None:
        json_file = os.environ.get("XRFSTREAM_LOG_JSON") or None

    root = logging.getLogger(NAMESPACE)
    root.setLevel(numeric_level)
    root.propagate = False
    for handler in list(root.handlers):
        root.removeHandler(handler)

    _attach(root, logging.StreamHandler(sys.stderr), ConsoleFormatter(use_color=use_color), numeric_level)
    if json_file:
        try:
            file_handler = logging.FileHandler(json_file, mode="a", encoding="utf-8")
        except OSError as exc:
            root.warning("Failed to open JSON log file %s: %s", json_file, exc)
        else:
            _attach(root, file_handler, JSONFormatter(), numeric_level)

    _configured = True


def _attach(logger: logging.Logger, handler: logging.Handler, formatter: logging.Formatter, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Logger under ``xrfstream.``; configures defaults on first use."""
    if not _configured:
        configure_logging()
    if name == "__main__":
        name = "main"
    if not name.startswith(NAMESPACE):
        name = f"{NAMESPACE}.{name}"
    return logging.getLogger(name)


def log_exception(
    logger: logging.Logger,
    message: str,
    *,
    error_type: Optional[str] = None,
    **extra: Any,
) -> None:
    """Log the exception being handled, tagged with ``error_type`` and frame extras.

    Call from inside an ``except`` block.
    """
    if error_type:
        extra["error_type"] = error_type
    logger.exception(message, extra=extra)
