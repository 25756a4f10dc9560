"""Accumulate per-pixel detector spectra into complete stream blocks."""

from __future__ import annotations

import threading
from typing import Callable, Dict, List, Optional

from xrfstream.data.spectrum import Spectrum
from xrfstream.data.types import DetectorContext, StreamBlock
from xrfstream.util.logging import get_logger
from xrfstream.util.stream_logger import StreamLogger
from xrfstream.workflow.analysis_job import AnalysisJob

logger = get_logger(__name__)

OutputCallback = Callable[[StreamBlock], None]


class IntegratedSpectraStreamProducer:
    """Sum spectra per detector until the last scan position arrives.

    Each detector has at most one pending block. The fragment at
    ``(row == height, col == width)`` completes it: the block leaves the
    pending map and goes to the output callback, or is released when no
    callback is set. A later fragment for the same detector starts a new
    block.

    Fragments for one detector are serialized by a per-detector lock, so
    producers feeding different detectors never wait on each other.
    """

    def __init__(
        self,
        analysis_job: Optional[AnalysisJob] = None,
        *,
        event_log: Optional[StreamLogger] = None,
    ):
        self.analysis_job = analysis_job
        self.event_log = event_log
        self._output_callback: Optional[OutputCallback] = None
        self._stream_blocks: Dict[int, StreamBlock] = {}
        self._detector_locks: Dict[int, threading.Lock] = {}
        self._guard = threading.Lock()

    def set_output_callback(self, fn: Optional[OutputCallback]) -> None:
        self._output_callback = fn

    def pending_detectors(self) -> List[int]:
        with self._guard:
            return sorted(self._stream_blocks)

    def _detector_lock(self, detector_num: int) -> threading.Lock:
        with self._guard:
            lock = self._detector_locks.get(detector_num)
            if lock is None:
                lock = threading.Lock()
                self._detector_locks[detector_num] = lock
            return lock

    def _resolve_context(self, detector_num: int, fitting_context: Optional[DetectorContext]) -> DetectorContext:
        if fitting_context is not None:
            return fitting_context
        if self.analysis_job is None:
            raise KeyError(f"No fitting context given for detector {detector_num} and no analysis job bound")
        return self.analysis_job.get_sub_struct(detector_num)

    def _new_stream_block(
        self,
        row: int,
        col: int,
        height: int,
        width: int,
        detector_num: int,
        spectra: Spectrum,
        fitting_context: Optional[DetectorContext],
    ) -> StreamBlock:
        ctx = self._resolve_context(detector_num, fitting_context)
        block = StreamBlock(row=row, col=col, height=height, width=width)
        block.init_fitting_blocks(ctx.fit_routines, ctx.elements_to_fit)
        block.spectra = spectra
        block.model = ctx.model
        block.detector_num = detector_num
        if self.analysis_job is not None:
            block.dataset_name = self.analysis_job.dataset_name
        return block

    def ingest(
        self,
        row: int,
        col: int,
        height: int,
        width: int,
        detector_num: int,
        spectra: Spectrum,
        fitting_context: Optional[DetectorContext] = None,
    ) -> None:
        """Fold one pixel's spectrum into the pending block for ``detector_num``.

        ``spectra`` is owned by the producer after this call: it either
        becomes the new block's buffer or is summed in and dropped. The
        caller must not touch it again.
        """
        completed: Optional[StreamBlock] = None
        with self._detector_lock(detector_num):
            with self._guard:
                block = self._stream_blocks.get(detector_num)
            if block is None:
                block = self._new_stream_block(row, col, height, width, detector_num, spectra, fitting_context)
                with self._guard:
                    self._stream_blocks[detector_num] = block
                if self.event_log:
                    self.event_log.log("frame_started", detector=detector_num, height=height, width=width)
            else:
                block.spectra.add(spectra)
                block.row = row
                block.col = col
            del spectra

            if col == width and row == height:
                with self._guard:
                    self._stream_blocks.pop(detector_num, None)
                completed = block

        if completed is not None:
            self._emit(completed)

    # Callback-style alias used by scan drivers.
    cb_load_spectra_data = ingest

    def _emit(self, block: StreamBlock) -> None:
        callback = self._output_callback
        if callback is not None:
            logger.debug("Frame complete for detector %d", block.detector_num, extra={"detector": block.detector_num})
            if self.event_log:
                self.event_log.log("frame_complete", detector=block.detector_num, total_counts=block.spectra.sum())
            callback(block)
        else:
            if self.event_log:
                self.event_log.log("frame_discarded", detector=block.detector_num)
            block.release()

    def close(self) -> List[int]:
        """Release every incomplete block without emitting it.

        Returns the detector numbers whose partial frames were dropped.
        """
        with self._guard:
            detectors = sorted(self._stream_blocks)
        dropped: List[int] = []
        for detector_num in detectors:
            with self._detector_lock(detector_num):
                with self._guard:
                    block = self._stream_blocks.pop(detector_num, None)
            if block is not None:
                block.release()
                dropped.append(detector_num)
        if dropped:
            logger.warning(
                "Dropped %d incomplete frame(s) for detectors %s",
                len(dropped),
                dropped,
                extra={"dropped": dropped},
            )
        return dropped
