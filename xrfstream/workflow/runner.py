"""Wire the producer, fit stage, and publisher into one streaming pipeline."""

from __future__ import annotations

from typing import List, Optional

from xrfstream import config
from xrfstream.data.spectrum import Spectrum
from xrfstream.data.types import DetectorContext
from xrfstream.util.logging import get_logger
from xrfstream.util.stream_logger import StreamLogger
from xrfstream.workflow.analysis_job import AnalysisJob
from xrfstream.workflow.fit_stage import FitStage
from xrfstream.workflow.net_streamer import SpectraNetStreamer
from xrfstream.workflow.producer import IntegratedSpectraStreamProducer

logger = get_logger(__name__)


class StreamPipeline:
    """Producer -> fit stage -> publisher, with ordered shutdown.

    Without a streamer, fitted blocks are released after fitting.
    """

    def __init__(
        self,
        analysis_job: AnalysisJob,
        streamer: Optional[SpectraNetStreamer] = None,
        *,
        event_log: Optional[StreamLogger] = None,
        max_queue: int = config.SINK_QUEUE_SIZE,
    ):
        if event_log is None:
            event_log = StreamLogger.from_path(config.EVENT_LOG_PATH)
        self.analysis_job = analysis_job
        self.streamer = streamer
        self.event_log = event_log
        self.producer = IntegratedSpectraStreamProducer(analysis_job, event_log=event_log)
        self.fit_stage = FitStage(streamer.push if streamer is not None else None, max_queue=max_queue)
        self.producer.set_output_callback(self.fit_stage.push)
        self._closed = False

    def start(self) -> None:
        if self.streamer is not None:
            self.streamer.start()
        self.fit_stage.start()

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
        self.producer.ingest(row, col, height, width, detector_num, spectra, fitting_context)

    def close(self) -> List[int]:
        """Stop all stages; returns detectors whose partial frames were lost."""
        if self._closed:
            return []
        self._closed = True
        dropped = self.producer.close()
        if dropped and self.event_log:
            self.event_log.log("frames_dropped", detectors=dropped, dataset=self.analysis_job.dataset_name)
        # drain in pipeline order so queued frames still reach the publisher
        self.fit_stage.stop()
        if self.streamer is not None:
            self.streamer.close()
        logger.info(
            "Stream pipeline closed (published=%d, failed=%d, lost_partial=%d)",
            self.streamer.sent if self.streamer is not None else 0,
            self.streamer.failed if self.streamer is not None else 0,
            len(dropped),
        )
        return dropped

    def __enter__(self) -> "StreamPipeline":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
