"""Dataclasses shared across the fitting, accumulation, and publish layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional

from xrfstream.data.model import CalibrationModel
from xrfstream.data.spectrum import Spectrum

if TYPE_CHECKING:  # pragma: no cover - type hint only
    from xrfstream.fitting.base import BaseFitRoutine, FittingRoutine


@dataclass(frozen=True)
class FitElement:
    name: str
    center: float  # keV
    width: float  # eV


@dataclass
class DetectorContext:
    """Fitting configuration for one detector, looked up per new frame."""

    detector_num: int
    model: CalibrationModel
    fit_routines: Dict["FittingRoutine", "BaseFitRoutine"] = field(default_factory=dict)
    elements_to_fit: Dict[str, FitElement] = field(default_factory=dict)


@dataclass
class FittingBlock:
    fit_routine: "BaseFitRoutine"
    fit_counts: Dict[str, float] = field(default_factory=dict)


@dataclass
class StreamBlock:
    """In-progress or completed accumulation for one detector and scan frame.

    ``width`` and ``height`` are the last column/row indices of the scan;
    the fragment at ``(height, width)`` completes the block.
    """

    row: int
    col: int
    height: int
    width: int
    detector_num: int = 0
    model: Optional[CalibrationModel] = None
    spectra: Optional[Spectrum] = None
    elements_to_fit: Mapping[str, FitElement] = field(default_factory=dict)
    fitting_blocks: Dict["FittingRoutine", FittingBlock] = field(default_factory=dict)
    dataset_name: str = ""
    released: bool = False

    def init_fitting_blocks(
        self,
        fit_routines: Mapping["FittingRoutine", "BaseFitRoutine"],
        elements_to_fit: Mapping[str, FitElement],
    ) -> None:
        self.elements_to_fit = dict(elements_to_fit)
        self.fitting_blocks = {kind: FittingBlock(routine) for kind, routine in fit_routines.items()}

    def fit_counts(self) -> Dict[str, Dict[str, float]]:
        """Per-routine counts keyed by routine name."""
        return {_kind_name(kind): dict(block.fit_counts) for kind, block in self.fitting_blocks.items()}

    def release(self) -> None:
        if self.released:
            return
        self.spectra = None
        self.fitting_blocks = {}
        self.released = True


def _kind_name(kind: Any) -> str:
    return str(getattr(kind, "value", kind))
