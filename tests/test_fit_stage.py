from typing import List

import numpy as np
import pytest

from xrfstream.data.model import CalibrationModel
from xrfstream.data.spectrum import Spectrum
from xrfstream.data.types import FitElement, StreamBlock
from xrfstream.fitting.base import FittingRoutine
from xrfstream.fitting.roi import ROIFitRoutine
from xrfstream.workflow.fit_stage import FitStage, fit_stream_block


def _make_block() -> StreamBlock:
    block = StreamBlock(row=2, col=3, height=2, width=3, detector_num=1)
    block.init_fitting_blocks(
        {FittingRoutine.ROI: ROIFitRoutine()},
        {"Fe": FitElement("Fe", 5.0, 2000.0), "Ca": FitElement("Ca", 2.0, 0.0)},
    )
    block.model = CalibrationModel(0.0, 1.0)
    block.spectra = Spectrum(np.arange(16, dtype=float))
    return block


def test_fit_stream_block_fills_counts_per_routine() -> None:
    block = fit_stream_block(_make_block())
    assert block.fitting_blocks[FittingRoutine.ROI].fit_counts == {"Fe": 15.0, "Ca": 2.0}
    assert block.fit_counts() == {"ROI": {"Fe": 15.0, "Ca": 2.0}}


def test_fit_stream_block_requires_spectrum() -> None:
    block = _make_block()
    block.release()
    with pytest.raises(ValueError):
        fit_stream_block(block)


def test_fit_stage_forwards_fitted_block() -> None:
    forwarded: List[StreamBlock] = []
    stage = FitStage(forwarded.append)
    block = _make_block()

    stage.push(block)

    assert forwarded == [block]
    assert block.fitting_blocks[FittingRoutine.ROI].fit_counts["Fe"] == 15.0


def test_fit_stage_without_output_releases_block() -> None:
    stage = FitStage()
    block = _make_block()
    stage.push(block)
    assert block.released
    assert block.spectra is None
