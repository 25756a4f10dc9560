"""Run each bound fit routine over completed stream blocks."""

from __future__ import annotations

from typing import Callable, Optional

from xrfstream.data.types import StreamBlock
from xrfstream.util.logging import get_logger
from xrfstream.workflow.sink import Sink

logger = get_logger(__name__)


def fit_stream_block(block: StreamBlock) -> StreamBlock:
    """Fill ``fit_counts`` of every fitting block from the summed spectrum."""
    if block.spectra is None or block.model is None:
        raise ValueError(f"stream block for detector {block.detector_num} has no spectrum or model")
    for kind, fitting_block in block.fitting_blocks.items():
        fitting_block.fit_counts = fitting_block.fit_routine.fit_counts(
            block.model, block.spectra, block.elements_to_fit
        )
        logger.debug(
            "Fitted %d elements for detector %d",
            len(fitting_block.fit_counts),
            block.detector_num,
            extra={"detector": block.detector_num, "routine": kind.value},
        )
    return block


class FitStage(Sink):
    """Sink that fits a block and forwards it to ``output``."""

    def __init__(self, output: Optional[Callable[[StreamBlock], None]] = None, *, max_queue: int = 0):
        super().__init__("fit", max_queue=max_queue)
        self.output = output

    def _consume(self, block: StreamBlock) -> None:
        fit_stream_block(block)
        if self.output is None:
            block.release()
            return
        self.output(block)
