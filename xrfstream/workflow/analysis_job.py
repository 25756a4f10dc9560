"""Per-detector fitting configuration lookup."""

from __future__ import annotations

from typing import Dict, Iterable, List, Mapping, Union

from xrfstream.data.model import CalibrationModel
from xrfstream.data.types import DetectorContext, FitElement
from xrfstream.fitting.base import FittingRoutine, make_fit_routine
from xrfstream.util.logging import get_logger

logger = get_logger(__name__)


class AnalysisJob:
    """Bind each detector to its calibration model, element ROIs, and fit routines."""

    def __init__(self, dataset_name: str = ""):
        self.dataset_name = dataset_name
        self._detectors: Dict[int, DetectorContext] = {}

    def add_detector(
        self,
        detector_num: int,
        model: CalibrationModel,
        elements_to_fit: Union[Mapping[str, FitElement], Iterable[FitElement]],
        fit_routines: Iterable[Union[FittingRoutine, str]] = (FittingRoutine.ROI,),
    ) -> DetectorContext:
        if isinstance(elements_to_fit, Mapping):
            elements = dict(elements_to_fit)
        else:
            elements = {element.name: element for element in elements_to_fit}

        routines = {}
        for kind in fit_routines:
            routine = make_fit_routine(kind)
            routine.initialize(model, elements)
            routines[FittingRoutine(kind)] = routine

        ctx = DetectorContext(
            detector_num=int(detector_num),
            model=model,
            fit_routines=routines,
            elements_to_fit=elements,
        )
        self._detectors[ctx.detector_num] = ctx
        logger.debug(
            "Detector %d configured: %d elements, routines=%s",
            ctx.detector_num,
            len(elements),
            ",".join(k.value for k in routines),
            extra={"detector": ctx.detector_num},
        )
        return ctx

    def get_sub_struct(self, detector_num: int) -> DetectorContext:
        try:
            return self._detectors[int(detector_num)]
        except KeyError:
            raise KeyError(f"No fitting configuration for detector {detector_num}") from None

    def detectors(self) -> List[int]:
        return sorted(self._detectors)
