"""Structured stream event logging helpers."""

from __future__ import annotations

import json
import os
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


class StreamLogger:
    """Append one JSON line per stream event (frame started, completed, dropped)."""

    def __init__(self, log_path: Path):
        self.log_path = log_path
        try:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            pass
        self.run_id = f"run-{int(time.time() * 1000)}-pid{os.getpid()}"
        # producer threads log concurrently
        self._lock = threading.Lock()

    @classmethod
    def from_path(cls, log_path: Optional[str]) -> Optional["StreamLogger"]:
        """Build a logger for ``log_path``; returns None when the path is empty."""
        if not log_path:
            return None
        return cls(Path(log_path).expanduser())

    def log(self, event: str, **fields: Any) -> None:
        record = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "run_id": self.run_id,
            "event": event,
            **fields,
        }
        line = json.dumps(record, default=str) + "\n"
        with self._lock:
            try:
                with self.log_path.open("a", encoding="utf-8") as fh:
                    fh.write(line)
            except OSError:
                return
