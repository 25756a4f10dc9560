"""Energy calibration model consumed by the fit routines."""

from __future__ import annotations

from types import MappingProxyType
from typing import Dict, Mapping, Optional

import numpy as np

ENERGY_OFFSET = "ENERGY_OFFSET"
ENERGY_SLOPE = "ENERGY_SLOPE"
ENERGY_QUADRATIC = "ENERGY_QUADRATIC"


class CalibrationModel:
    """Channel-to-energy calibration (keV) plus any extra fit parameters.

    Only the calibration terms are interpreted here; other parameters are
    carried through untouched for routines that need them.
    """

    def __init__(
        self,
        energy_offset: float = 0.0,
        energy_slope: float = 0.01,
        energy_quadratic: float = 0.0,
        extra_parameters: Optional[Mapping[str, float]] = None,
    ):
        if energy_slope == 0.0:
            raise ValueError("energy_slope must be non-zero")
        params: Dict[str, float] = {str(k): float(v) for k, v in (extra_parameters or {}).items()}
        params[ENERGY_OFFSET] = float(energy_offset)
        params[ENERGY_SLOPE] = float(energy_slope)
        params[ENERGY_QUADRATIC] = float(energy_quadratic)
        self._params = params

    def fit_parameters(self) -> Mapping[str, float]:
        return MappingProxyType(self._params)

    @property
    def energy_offset(self) -> float:
        return self._params[ENERGY_OFFSET]

    @property
    def energy_slope(self) -> float:
        return self._params[ENERGY_SLOPE]

    def energy_axis(self, n_channels: int) -> np.ndarray:
        """Energy in keV of every channel index."""
        ch = np.arange(int(n_channels), dtype=np.float64)
        return self.energy_offset + self.energy_slope * ch + self._params[ENERGY_QUADRATIC] * ch * ch

    def __repr__(self) -> str:
        return (
            f"CalibrationModel(offset={self.energy_offset:g}, slope={self.energy_slope:g}, "
            f"quadratic={self._params[ENERGY_QUADRATIC]:g})"
        )
