"""Queue-backed consumer stage with a dedicated worker thread."""

from __future__ import annotations

import queue
import threading
from typing import Any, Optional

from xrfstream.data.types import StreamBlock
from xrfstream.util.logging import get_logger, log_exception

logger = get_logger(__name__)

_STOP = object()


class Sink:
    """Consume stream blocks off the producer's thread.

    Until :meth:`start` is called, :meth:`push` consumes inline on the
    caller's thread. Once started, pushed blocks go through a FIFO queue to
    one worker thread; with ``max_queue > 0`` a full queue drops the block.
    """

    def __init__(self, name: str, *, max_queue: int = 0):
        self.name = name
        self.max_queue = max(0, int(max_queue))
        self._queue: "queue.Queue[Any]" = queue.Queue(maxsize=self.max_queue)
        self._thread: Optional[threading.Thread] = None
        self._state_lock = threading.Lock()
        self.dropped = 0

    @property
    def running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._state_lock:
            if self._thread is not None:
                return
            self._thread = threading.Thread(target=self._run, name=f"sink-{self.name}", daemon=True)
            self._thread.start()

    def push(self, block: StreamBlock) -> None:
        # enqueue under the state lock so no block lands behind the stop sentinel
        with self._state_lock:
            started = self._thread is not None
            if started:
                try:
                    self._queue.put_nowait(block)
                except queue.Full:
                    pass
                else:
                    return
        if not started:
            self._consume_safely(block)
            return
        self.dropped += 1
        logger.warning(
            "%s queue full, dropping frame for detector %d",
            self.name,
            block.detector_num,
            extra={"detector": block.detector_num},
        )
        block.release()

    def stop(self, wait: bool = True) -> None:
        """Stop the worker after it drains what was queued before this call."""
        with self._state_lock:
            thread = self._thread
            self._thread = None
            if thread is None:
                return
            # blocking put: the sentinel must not be dropped on a full queue
            self._queue.put(_STOP)
        if wait:
            thread.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._consume_safely(item)
            finally:
                self._queue.task_done()

    def _consume_safely(self, block: StreamBlock) -> None:
        try:
            self._consume(block)
        except Exception:
            log_exception(
                logger,
                f"{self.name} failed to consume frame for detector {block.detector_num}",
                error_type="sink_consume",
                detector=block.detector_num,
            )

    def _consume(self, block: StreamBlock) -> None:
        raise NotImplementedError
