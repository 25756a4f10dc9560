"""
xrfstream: streaming XRF frame accumulation, ROI fitting, and live publish.

This package provides:
- Per-detector accumulation of per-pixel spectra into complete frames
- ROI integration of calibrated spectra into per-element counts
- A best-effort ZeroMQ PUB feed of completed frames

Usage:
    from xrfstream import AnalysisJob, CalibrationModel, FitElement, SpectraNetStreamer, StreamPipeline

    job = AnalysisJob("scan_0001")
    job.add_detector(0, CalibrationModel(0.0, 0.01), [FitElement("Fe", 6.40, 300.0)])
    with StreamPipeline(job, SpectraNetStreamer("tcp://*:43434")) as pipeline:
        pipeline.ingest(row, col, height, width, 0, spectrum)
"""
from __future__ import annotations

__version__ = "0.1.0"

from xrfstream.data.model import CalibrationModel
from xrfstream.data.spectrum import Spectrum
from xrfstream.data.types import DetectorContext, FitElement, StreamBlock
from xrfstream.fitting.base import BaseFitRoutine, FittingRoutine, make_fit_routine
from xrfstream.fitting.roi import ROIFitRoutine
from xrfstream.workflow.analysis_job import AnalysisJob
from xrfstream.workflow.net_streamer import XRF_COUNTS_TOPIC, SpectraNetStreamer
from xrfstream.workflow.producer import IntegratedSpectraStreamProducer
from xrfstream.workflow.runner import StreamPipeline

__all__ = [
    "AnalysisJob",
    "BaseFitRoutine",
    "CalibrationModel",
    "DetectorContext",
    "FitElement",
    "FittingRoutine",
    "IntegratedSpectraStreamProducer",
    "ROIFitRoutine",
    "SpectraNetStreamer",
    "Spectrum",
    "StreamBlock",
    "StreamPipeline",
    "XRF_COUNTS_TOPIC",
    "make_fit_routine",
    "__version__",
]
