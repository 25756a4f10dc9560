"""Region-of-interest integration fit routine."""

from __future__ import annotations

import math
from typing import Dict, Mapping, Optional, Tuple

from xrfstream.data.model import ENERGY_OFFSET, ENERGY_SLOPE, CalibrationModel
from xrfstream.data.spectrum import Spectrum
from xrfstream.data.types import FitElement
from xrfstream.fitting.base import BaseFitRoutine


def roi_channels(offset: float, slope: float, n_channels: int, element: FitElement) -> Tuple[int, int]:
    """Return the clamped inclusive ``(left, right)`` channel window for ``element``.

    Center is in keV, width in eV. Out-of-range windows are narrowed, never
    rejected; the clamps run in a fixed order and later ones may override
    earlier ones.
    """
    half_width_kev = element.width / 2.0 / 1000.0
    left = math.floor(((element.center - half_width_kev) - offset) / slope)
    right = math.floor(((element.center + half_width_kev) - offset) / slope)

    if right >= n_channels:
        right = n_channels - 2
    if left > right:
        left = right - 1
    if left < 0:
        left = 1
    if right < 0:
        right = n_channels - 2
    return left, right


class ROIFitRoutine(BaseFitRoutine):
    """Sum spectrum channels inside each element's energy window.

    Stateless; one instance can serve any number of detectors and threads.
    """

    name = "ROI"

    def initialize(
        self,
        model: CalibrationModel,
        elements_to_fit: Mapping[str, FitElement],
        energy_range: Optional[Tuple[int, int]] = None,
    ) -> None:
        # nothing to precompute
        return None

    def fit_counts(
        self,
        model: CalibrationModel,
        spectra: Spectrum,
        elements_to_fit: Mapping[str, FitElement],
    ) -> Dict[str, float]:
        fitp = model.fit_parameters()
        offset = fitp[ENERGY_OFFSET]
        slope = fitp[ENERGY_SLOPE]
        n_channels = spectra.size

        counts: Dict[str, float] = {}
        for name, element in elements_to_fit.items():
            left, right = roi_channels(offset, slope, n_channels, element)
            counts[name] = spectra.segment_sum(left, (right + 1) - left)
        return counts
