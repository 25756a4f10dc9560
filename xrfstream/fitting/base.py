"""Fit routine interface and factory."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple, Union

from xrfstream.data.model import CalibrationModel
from xrfstream.data.spectrum import Spectrum
from xrfstream.data.types import FitElement


class FittingRoutine(str, Enum):
    ROI = "ROI"
    GAUSS_TAILS = "GAUSS_TAILS"
    GAUSS_MATRIX = "GAUSS_MATRIX"
    SVD = "SVD"
    NNLS = "NNLS"


class BaseFitRoutine(ABC):
    """Turns a calibrated spectrum into per-element integrated counts."""

    name: str = "base"

    @abstractmethod
    def initialize(
        self,
        model: CalibrationModel,
        elements_to_fit: Mapping[str, FitElement],
        energy_range: Optional[Tuple[int, int]] = None,
    ) -> None:
        """Prepare any per-detector state before the first fit."""

    @abstractmethod
    def fit_counts(
        self,
        model: CalibrationModel,
        spectra: Spectrum,
        elements_to_fit: Mapping[str, FitElement],
    ) -> Dict[str, float]:
        """Return integrated counts keyed by element name."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


def make_fit_routine(kind: Union[FittingRoutine, str]) -> BaseFitRoutine:
    """Instantiate the routine registered for ``kind``."""
    try:
        routine_kind = FittingRoutine(kind)
    except ValueError:
        raise ValueError(f"Unknown fitting routine '{kind}'") from None

    if routine_kind is FittingRoutine.ROI:
        from xrfstream.fitting.roi import ROIFitRoutine

        return ROIFitRoutine()
    raise NotImplementedError(f"Fitting routine {routine_kind.value} is not available in the streaming pipeline")
